"""Tenant and subscription Pydantic schemas (platform administration)."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from schoolsync.models.tenant import SubscriptionPlan, TenantStatus


class TenantCreateRequest(BaseModel):
    """Schema for creating a new school."""

    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    phone: str | None = Field(None, max_length=50)
    address: str | None = None
    slug: str | None = Field(None, max_length=100, pattern=r"^[a-z0-9-]+$")
    status: TenantStatus = TenantStatus.PENDING
    subscription_plan: SubscriptionPlan = SubscriptionPlan.FREE
    subscription_ends_at: datetime | None = None


class TenantUpdateRequest(BaseModel):
    """Schema for updating a school."""

    name: str | None = Field(None, min_length=2, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    address: str | None = None
    status: TenantStatus | None = None


class TenantResponse(BaseModel):
    """Schema for tenant response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str
    email: str
    phone: str | None
    address: str | None
    status: str
    subscription_plan: str
    subscription_ends_at: datetime | None
    created_at: datetime
    updated_at: datetime


class TenantListItem(BaseModel):
    """Schema for tenant list item (summary)."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str
    email: str
    status: str
    subscription_plan: str
    subscription_ends_at: datetime | None
    created_at: datetime


class TenantStatsResponse(BaseModel):
    """Counts of schools by status."""

    total: int
    active: int
    inactive: int
    pending: int
    suspended: int


class PlanInfo(BaseModel):
    """Entry of the subscription plan catalog."""

    plan: SubscriptionPlan
    name: str
    monthly_price: Decimal
    max_students: int | None
    features: list[str]


class SubscriptionResponse(BaseModel):
    """Subscription view of a school."""

    tenant_id: uuid.UUID
    tenant_name: str
    subscription_plan: str
    subscription_ends_at: datetime | None
    is_active: bool
    days_remaining: int | None


class SubscriptionUpdateRequest(BaseModel):
    """Change plan and end date."""

    subscription_plan: SubscriptionPlan
    subscription_ends_at: datetime | None = None


class SubscriptionExtendRequest(BaseModel):
    """Extend a subscription by a number of days."""

    days: int = Field(..., ge=1, le=365)


class SubscriptionStatsResponse(BaseModel):
    by_plan: dict[str, int]
    active: int
    expired: int
    expiring_soon: int
    monthly_revenue: Decimal
