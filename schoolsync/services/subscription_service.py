"""Subscription management for schools (platform super admin only)."""

import logging
import math
import uuid
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.config import settings
from schoolsync.exceptions import ValidationException
from schoolsync.models import Tenant
from schoolsync.models.base import ensure_aware, utcnow
from schoolsync.models.tenant import SubscriptionPlan
from schoolsync.schemas.tenant import PlanInfo, SubscriptionResponse
from schoolsync.services.tenant_service import get_tenant_service
from schoolsync.utils.tenant_context import require_platform_context

logger = logging.getLogger(__name__)

PLAN_CATALOG: dict[SubscriptionPlan, PlanInfo] = {
    SubscriptionPlan.FREE: PlanInfo(
        plan=SubscriptionPlan.FREE,
        name="Free",
        monthly_price=Decimal("0"),
        max_students=100,
        features=["Up to 100 students", "Basic reporting", "Email support"],
    ),
    SubscriptionPlan.BASIC: PlanInfo(
        plan=SubscriptionPlan.BASIC,
        name="Basic",
        monthly_price=Decimal("999"),
        max_students=500,
        features=["Up to 500 students", "Advanced reporting", "Priority support"],
    ),
    SubscriptionPlan.STANDARD: PlanInfo(
        plan=SubscriptionPlan.STANDARD,
        name="Standard",
        monthly_price=Decimal("2499"),
        max_students=2000,
        features=["Up to 2000 students", "All features", "Phone support"],
    ),
    SubscriptionPlan.PREMIUM: PlanInfo(
        plan=SubscriptionPlan.PREMIUM,
        name="Premium",
        monthly_price=Decimal("4999"),
        max_students=None,
        features=["Unlimited students", "Custom features", "Dedicated support"],
    ),
}


class SubscriptionFilter:
    EXPIRED = "expired"
    EXPIRING_SOON = "expiring_soon"
    ACTIVE = "active"


class SubscriptionService:
    """Plan changes, extensions and cancellation of school subscriptions."""

    def get_plans(self) -> list[PlanInfo]:
        return list(PLAN_CATALOG.values())

    def to_response(self, tenant: Tenant, now: datetime | None = None) -> SubscriptionResponse:
        now = now or utcnow()
        ends_at = ensure_aware(tenant.subscription_ends_at)
        days_remaining = None
        if ends_at is not None:
            days_remaining = max(0, math.ceil((ends_at - now).total_seconds() / 86400))
        return SubscriptionResponse(
            tenant_id=tenant.id,
            tenant_name=tenant.name,
            subscription_plan=tenant.subscription_plan,
            subscription_ends_at=ends_at,
            is_active=tenant.has_active_subscription(now),
            days_remaining=days_remaining,
        )

    async def list_subscriptions(
        self,
        db: AsyncSession,
        plan: str | None = None,
        subscription_status: str | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Tenant], int]:
        """List schools by subscription state.

        subscription_status: ``expired`` (end date passed), ``expiring_soon``
        (ends within the configured window) or ``active``.
        """
        require_platform_context()
        now = utcnow()
        window_end = now + timedelta(days=settings.subscription_expiring_window_days)

        query = select(Tenant).where(Tenant.deleted_at.is_(None))
        if plan:
            query = query.where(Tenant.subscription_plan == plan)
        if search:
            search_term = f"%{search}%"
            query = query.where(
                (Tenant.name.ilike(search_term)) | (Tenant.email.ilike(search_term))
            )
        if subscription_status == SubscriptionFilter.EXPIRED:
            query = query.where(
                Tenant.subscription_plan != SubscriptionPlan.FREE.value,
                or_(Tenant.subscription_ends_at.is_(None), Tenant.subscription_ends_at < now),
            )
        elif subscription_status == SubscriptionFilter.EXPIRING_SOON:
            query = query.where(
                Tenant.subscription_ends_at >= now,
                Tenant.subscription_ends_at <= window_end,
            )
        elif subscription_status == SubscriptionFilter.ACTIVE:
            query = query.where(
                or_(
                    Tenant.subscription_plan == SubscriptionPlan.FREE.value,
                    Tenant.subscription_ends_at > now,
                )
            )

        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar() or 0

        query = query.order_by(Tenant.subscription_ends_at.asc(), Tenant.name.asc())
        query = query.offset((page - 1) * page_size).limit(page_size)
        result = await db.execute(query)
        return list(result.scalars().all()), total

    async def update_subscription(
        self,
        db: AsyncSession,
        tenant_id: uuid.UUID,
        plan: SubscriptionPlan,
        ends_at: datetime | None,
    ) -> Tenant:
        """Set plan and end date. Paid plans need an end date in the future."""
        tenant = await get_tenant_service().get_tenant(db, tenant_id, for_update=True)
        ends_at = ensure_aware(ends_at)

        if plan == SubscriptionPlan.FREE:
            ends_at = None
        elif ends_at is None or ends_at <= utcnow():
            raise ValidationException(
                [{"field": "subscription_ends_at", "message": "Paid plans need an end date in the future"}]
            )

        tenant.subscription_plan = plan.value
        tenant.subscription_ends_at = ends_at
        await db.flush()
        logger.info(f"Tenant {tenant.slug} subscription set to {plan.value} until {ends_at}")
        return tenant

    async def extend_subscription(self, db: AsyncSession, tenant_id: uuid.UUID, days: int) -> Tenant:
        """Extend by days, counted from now or the current end date, whichever is later."""
        if not 1 <= days <= 365:
            raise ValidationException([{"field": "days", "message": "days must be between 1 and 365"}])

        tenant = await get_tenant_service().get_tenant(db, tenant_id, for_update=True)
        if tenant.subscription_plan == SubscriptionPlan.FREE.value:
            raise ValidationException(
                [{"field": "subscription_plan", "message": "The free plan does not expire"}]
            )

        now = utcnow()
        current_end = ensure_aware(tenant.subscription_ends_at)
        start = current_end if current_end and current_end > now else now
        tenant.subscription_ends_at = start + timedelta(days=days)
        await db.flush()
        logger.info(f"Tenant {tenant.slug} subscription extended by {days} days")
        return tenant

    async def cancel_subscription(self, db: AsyncSession, tenant_id: uuid.UUID) -> Tenant:
        """Downgrade to the free plan, which has no end date."""
        tenant = await get_tenant_service().get_tenant(db, tenant_id, for_update=True)
        tenant.subscription_plan = SubscriptionPlan.FREE.value
        tenant.subscription_ends_at = None
        await db.flush()
        logger.info(f"Tenant {tenant.slug} subscription cancelled")
        return tenant

    async def get_stats(self, db: AsyncSession) -> dict:
        """Counts per plan, expired/expiring counts and monthly revenue."""
        require_platform_context()
        now = utcnow()
        window_end = now + timedelta(days=settings.subscription_expiring_window_days)
        live = Tenant.deleted_at.is_(None)
        paid = Tenant.subscription_plan != SubscriptionPlan.FREE.value

        by_plan_rows = await db.execute(
            select(Tenant.subscription_plan, func.count(Tenant.id)).where(live).group_by(Tenant.subscription_plan)
        )
        by_plan = {plan.value: 0 for plan in SubscriptionPlan}
        by_plan.update(dict(by_plan_rows.all()))

        expired = (
            await db.execute(
                select(func.count(Tenant.id)).where(
                    live,
                    paid,
                    or_(Tenant.subscription_ends_at.is_(None), Tenant.subscription_ends_at < now),
                )
            )
        ).scalar() or 0
        expiring_soon = (
            await db.execute(
                select(func.count(Tenant.id)).where(
                    live,
                    and_(Tenant.subscription_ends_at >= now, Tenant.subscription_ends_at <= window_end),
                )
            )
        ).scalar() or 0

        active_paid = await db.execute(
            select(Tenant.subscription_plan, func.count(Tenant.id))
            .where(live, paid, Tenant.subscription_ends_at > now)
            .group_by(Tenant.subscription_plan)
        )
        revenue = Decimal("0")
        active = by_plan[SubscriptionPlan.FREE.value]
        for plan, count in active_paid.all():
            revenue += PLAN_CATALOG[SubscriptionPlan(plan)].monthly_price * count
            active += count

        return {
            "by_plan": by_plan,
            "active": active,
            "expired": expired,
            "expiring_soon": expiring_soon,
            "monthly_revenue": revenue,
        }


# Singleton instance
_subscription_service: SubscriptionService | None = None


def get_subscription_service() -> SubscriptionService:
    """Get the subscription service singleton."""
    global _subscription_service
    if _subscription_service is None:
        _subscription_service = SubscriptionService()
    return _subscription_service
