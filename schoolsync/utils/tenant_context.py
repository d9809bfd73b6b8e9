"""Tenant context management using contextvars.

The auth middleware stores the authenticated principal (user, tenant and
role) in context variables for the lifetime of a request.
``resolve_tenant_context`` turns that principal into either a platform
context (super admin without a tenant) or a tenant scope, and the
``require_*`` helpers reject the wrong kind before any data is touched.
"""

import contextvars
import uuid
from dataclasses import dataclass

from schoolsync.exceptions import ForbiddenException, UnauthorizedException, UserContextError

# Context variables for request-scoped data
_tenant_id: contextvars.ContextVar[uuid.UUID | None] = contextvars.ContextVar(
    "tenant_id", default=None
)
_current_user_id: contextvars.ContextVar[uuid.UUID | None] = contextvars.ContextVar(
    "current_user_id", default=None
)
_current_user_role: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "current_user_role", default=None
)

SUPER_ADMIN_ROLE = "SUPER_ADMIN"


@dataclass(frozen=True)
class PlatformContext:
    """A platform super admin acting across tenants."""

    user_id: uuid.UUID


@dataclass(frozen=True)
class ScopedContext:
    """A principal confined to one tenant."""

    tenant_id: uuid.UUID
    user_id: uuid.UUID
    role: str


# === Resolver ===

def resolve_tenant_context() -> PlatformContext | ScopedContext:
    """Resolve the current principal into a platform or tenant scope.

    Raises:
        UnauthorizedException: If no principal is authenticated
        ForbiddenException: If a principal has no tenant and is not a super admin
    """
    user_id = _current_user_id.get()
    if user_id is None:
        raise UnauthorizedException()

    tenant_id = _tenant_id.get()
    role = _current_user_role.get()
    if tenant_id is None:
        if role == SUPER_ADMIN_ROLE:
            return PlatformContext(user_id=user_id)
        raise ForbiddenException("Your account is not attached to a school")

    return ScopedContext(tenant_id=tenant_id, user_id=user_id, role=role or "")


def require_platform_context() -> PlatformContext:
    """Resolve the context and require a platform super admin."""
    context = resolve_tenant_context()
    if not isinstance(context, PlatformContext):
        raise ForbiddenException("Only platform administrators can perform this action")
    return context


def require_scoped_context() -> ScopedContext:
    """Resolve the context and require a tenant scope."""
    context = resolve_tenant_context()
    if not isinstance(context, ScopedContext):
        raise ForbiddenException("This action requires a school account")
    return context


# === Tenant Context ===

def get_tenant_id() -> uuid.UUID:
    """Get the current tenant ID.

    Returns:
        The current tenant's UUID

    Raises:
        ForbiddenException: If the principal is not scoped to a tenant
    """
    return require_scoped_context().tenant_id


def get_tenant_id_or_none() -> uuid.UUID | None:
    """Get the current tenant ID or None if not set."""
    return _tenant_id.get()


def set_tenant_id(tid: uuid.UUID | None) -> None:
    """Set the current tenant ID."""
    _tenant_id.set(tid)


# === User Context ===

def get_current_user_id() -> uuid.UUID:
    """Get the current user ID.

    Raises:
        UserContextError: If user context is not set
    """
    uid = _current_user_id.get()
    if uid is None:
        raise UserContextError("User context is not set")
    return uid


def get_current_user_id_or_none() -> uuid.UUID | None:
    return _current_user_id.get()


def set_current_user_id(uid: uuid.UUID | None) -> None:
    _current_user_id.set(uid)


# === Role Context ===

def get_current_user_role() -> str | None:
    return _current_user_role.get()


def set_current_user_role(role: str | None) -> None:
    _current_user_role.set(role)


# === Utility Functions ===

def clear_all_context() -> None:
    """Clear all context variables.

    Call this at the end of each request to prevent context leakage.
    """
    _tenant_id.set(None)
    _current_user_id.set(None)
    _current_user_role.set(None)
