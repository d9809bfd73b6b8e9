"""User model with role-based access control."""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from uuid_extensions import uuid7

from schoolsync.models.base import Base, TimestampMixin


class Role(str, Enum):
    """Closed set of user roles."""

    SUPER_ADMIN = "SUPER_ADMIN"  # Platform-wide admin (no tenant_id)
    SCHOOL_OWNER = "SCHOOL_OWNER"
    PRINCIPAL = "PRINCIPAL"
    VICE_PRINCIPAL = "VICE_PRINCIPAL"
    ADMIN_OFFICER = "ADMIN_OFFICER"
    ACCOUNTANT = "ACCOUNTANT"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"
    PARENT = "PARENT"


class UserStatus(str, Enum):
    """Account status set by administrators."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class LifecycleState(str, Enum):
    """Deletion lifecycle of a user row.

    A purged user no longer has a row, so there is no stored state for it.
    """

    ACTIVE = "ACTIVE"
    SOFT_DELETED = "SOFT_DELETED"


STAFF_ROLES = frozenset(
    {
        Role.SCHOOL_OWNER,
        Role.PRINCIPAL,
        Role.VICE_PRINCIPAL,
        Role.ADMIN_OFFICER,
        Role.ACCOUNTANT,
        Role.TEACHER,
    }
)


class User(Base, TimestampMixin):
    """User account with role-based access."""

    __tablename__ = "users"
    __table_args__ = (
        # Email unique per tenant among live users
        Index(
            "idx_users_email_tenant",
            "email",
            "tenant_id",
            unique=True,
            postgresql_where=text("lifecycle_state = 'ACTIVE' AND tenant_id IS NOT NULL"),
            sqlite_where=text("lifecycle_state = 'ACTIVE' AND tenant_id IS NOT NULL"),
        ),
        Index(
            "idx_users_email_platform",
            "email",
            unique=True,
            postgresql_where=text("lifecycle_state = 'ACTIVE' AND tenant_id IS NULL"),
            sqlite_where=text("lifecycle_state = 'ACTIVE' AND tenant_id IS NULL"),
        ),
        Index("idx_users_tenant_role", "tenant_id", "role"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid7,
    )
    tenant_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=True,  # NULL for platform users
        index=True,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserStatus.ACTIVE.value,
    )
    lifecycle_state: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=LifecycleState.ACTIVE.value,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    tenant = relationship("Tenant", lazy="selectin")

    @property
    def full_name(self) -> str:
        """Get the user's full name."""
        return f"{self.first_name} {self.last_name}"

    @property
    def is_super_admin(self) -> bool:
        """Platform super admin: no tenant and the SUPER_ADMIN role."""
        return self.tenant_id is None and self.role == Role.SUPER_ADMIN.value

    @property
    def is_deleted(self) -> bool:
        return self.lifecycle_state == LifecycleState.SOFT_DELETED.value

    @property
    def is_active(self) -> bool:
        return not self.is_deleted and self.status == UserStatus.ACTIVE.value

    @property
    def is_staff(self) -> bool:
        return Role(self.role) in STAFF_ROLES
