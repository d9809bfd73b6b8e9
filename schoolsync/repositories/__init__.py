"""Data access layer."""

from schoolsync.repositories.base import TenantScopedRepository

__all__ = ["TenantScopedRepository"]
