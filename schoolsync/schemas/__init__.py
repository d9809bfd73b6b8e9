"""Pydantic schemas for request/response validation."""

from schoolsync.schemas.common import APIResponse, ErrorDetail, PaginationMeta

__all__ = ["APIResponse", "ErrorDetail", "PaginationMeta"]
