"""Role-based permission decorators and utilities.

Roles and permissions are closed enumerations. The role -> permission map is
built once at import time and never changes at runtime.
"""

from enum import Enum
from functools import wraps
from typing import Callable

from schoolsync.exceptions import ForbiddenException
from schoolsync.models.user import Role
from schoolsync.utils.tenant_context import require_platform_context, require_scoped_context


class Permission(str, Enum):
    """Actions a tenant user may be granted."""

    VIEW_ACADEMICS = "view_academics"
    MANAGE_ACADEMICS = "manage_academics"
    VIEW_CLASSES = "view_classes"
    MANAGE_CLASSES = "manage_classes"
    VIEW_STUDENTS = "view_students"
    MANAGE_STUDENTS = "manage_students"
    VIEW_TEACHERS = "view_teachers"
    MANAGE_TEACHERS = "manage_teachers"
    VIEW_GUARDIANS = "view_guardians"
    MANAGE_GUARDIANS = "manage_guardians"
    VIEW_ATTENDANCE = "view_attendance"
    MARK_ATTENDANCE = "mark_attendance"
    VIEW_FEES = "view_fees"
    MANAGE_FEES = "manage_fees"
    COLLECT_FEES = "collect_fees"
    VIEW_FEE_REPORTS = "view_fee_reports"
    VIEW_TIMETABLE = "view_timetable"
    MANAGE_TIMETABLE = "manage_timetable"
    VIEW_LEAVES = "view_leaves"
    APPLY_LEAVE = "apply_leave"
    REVIEW_LEAVE = "review_leave"
    VIEW_ADMISSIONS = "view_admissions"
    MANAGE_ADMISSIONS = "manage_admissions"
    VIEW_STAFF = "view_staff"
    MANAGE_STAFF = "manage_staff"
    VIEW_DASHBOARD = "view_dashboard"


_ALL = frozenset(Permission)

_TEACHING = frozenset(
    {
        Permission.VIEW_ACADEMICS,
        Permission.VIEW_CLASSES,
        Permission.VIEW_STUDENTS,
        Permission.VIEW_TEACHERS,
        Permission.VIEW_GUARDIANS,
        Permission.VIEW_ATTENDANCE,
        Permission.MARK_ATTENDANCE,
        Permission.VIEW_TIMETABLE,
        Permission.VIEW_LEAVES,
        Permission.APPLY_LEAVE,
        Permission.VIEW_DASHBOARD,
    }
)

_SELF_SERVICE = frozenset(
    {
        Permission.VIEW_ACADEMICS,
        Permission.VIEW_TIMETABLE,
        Permission.APPLY_LEAVE,
    }
)

ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.SUPER_ADMIN: frozenset(),  # platform only, no tenant data
    Role.SCHOOL_OWNER: _ALL,
    Role.PRINCIPAL: _ALL,
    Role.VICE_PRINCIPAL: _ALL - {Permission.MANAGE_FEES},
    Role.ADMIN_OFFICER: _TEACHING
    | {
        Permission.MANAGE_ACADEMICS,
        Permission.MANAGE_CLASSES,
        Permission.MANAGE_STUDENTS,
        Permission.MANAGE_GUARDIANS,
        Permission.VIEW_FEES,
        Permission.COLLECT_FEES,
        Permission.MANAGE_TIMETABLE,
        Permission.VIEW_ADMISSIONS,
        Permission.MANAGE_ADMISSIONS,
        Permission.VIEW_STAFF,
    },
    Role.ACCOUNTANT: frozenset(
        {
            Permission.VIEW_ACADEMICS,
            Permission.VIEW_CLASSES,
            Permission.VIEW_STUDENTS,
            Permission.VIEW_FEES,
            Permission.MANAGE_FEES,
            Permission.COLLECT_FEES,
            Permission.VIEW_FEE_REPORTS,
            Permission.VIEW_DASHBOARD,
            Permission.APPLY_LEAVE,
        }
    ),
    Role.TEACHER: _TEACHING,
    Role.STUDENT: _SELF_SERVICE,
    Role.PARENT: _SELF_SERVICE,
}


def permissions_for(role: Role | str | None) -> frozenset[Permission]:
    """Return the permission set of a role; unknown roles get nothing."""
    if role is None:
        return frozenset()
    try:
        return ROLE_PERMISSIONS[Role(role)]
    except ValueError:
        return frozenset()


def has_permission(role: Role | str | None, permission: Permission) -> bool:
    return permission in permissions_for(role)


def require_permission(*required: Permission) -> Callable:
    """Decorator that requires a tenant scope holding every given permission.

    Usage:
        @router.post("/students")
        @require_permission(Permission.MANAGE_STUDENTS)
        async def create_student(...):
            ...

    The check runs before the endpoint body, so a rejected request never
    reaches the database.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            context = require_scoped_context()
            granted = permissions_for(context.role)
            if not all(permission in granted for permission in required):
                raise ForbiddenException()
            return await func(*args, **kwargs)

        return wrapper

    return decorator


def require_super_admin() -> Callable:
    """Decorator that requires a platform super admin (no tenant, SUPER_ADMIN role)."""

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            require_platform_context()
            return await func(*args, **kwargs)

        return wrapper

    return decorator


def require_authenticated() -> Callable:
    """Decorator that requires any tenant user."""
    return require_permission()
