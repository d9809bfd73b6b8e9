"""Tenant model for multi-tenancy support."""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column
from uuid_extensions import uuid7

from schoolsync.models.base import Base, SoftDeleteMixin, TimestampMixin, ensure_aware, utcnow


class TenantStatus(str, Enum):
    """Lifecycle status of a school account."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"
    SUSPENDED = "suspended"


class SubscriptionPlan(str, Enum):
    """Subscription plans offered to schools."""

    FREE = "free"
    BASIC = "basic"
    STANDARD = "standard"
    PREMIUM = "premium"


class Tenant(Base, TimestampMixin, SoftDeleteMixin):
    """A school account; the unit of data isolation."""

    __tablename__ = "tenants"
    __table_args__ = (
        Index(
            "idx_tenants_status",
            "status",
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid7,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TenantStatus.PENDING.value,
    )
    subscription_plan: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SubscriptionPlan.FREE.value,
    )
    subscription_ends_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    @property
    def is_active(self) -> bool:
        """Check if the school is active."""
        return self.status == TenantStatus.ACTIVE.value

    def has_active_subscription(self, now: datetime | None = None) -> bool:
        """Check the subscription.

        The free plan never expires. Paid plans are active only while
        subscription_ends_at is set and in the future.
        """
        if self.subscription_plan == SubscriptionPlan.FREE.value:
            return True
        ends_at = ensure_aware(self.subscription_ends_at)
        if ends_at is None:
            return False
        return ends_at > (now or utcnow())
