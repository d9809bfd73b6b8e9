"""Middleware modules."""

from schoolsync.middleware.auth import AuthMiddleware

__all__ = ["AuthMiddleware"]
