"""Tenant service for school accounts (platform super admin only)."""

import logging
import re
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.exceptions import ConflictException, NotFoundException
from schoolsync.models import SchoolClass, Student, Tenant, User
from schoolsync.models.base import utcnow
from schoolsync.models.tenant import TenantStatus
from schoolsync.schemas.tenant import TenantCreateRequest, TenantUpdateRequest
from schoolsync.utils.tenant_context import require_platform_context

logger = logging.getLogger(__name__)


class TenantService:
    """Service for managing tenants (schools)."""

    async def get_tenants(
        self,
        db: AsyncSession,
        status: str | None = None,
        plan: str | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Tenant], int]:
        """Get list of tenants with optional filters."""
        require_platform_context()
        query = select(Tenant).where(Tenant.deleted_at.is_(None))

        if status:
            query = query.where(Tenant.status == status)
        if plan:
            query = query.where(Tenant.subscription_plan == plan)
        if search:
            search_term = f"%{search}%"
            query = query.where(
                (Tenant.name.ilike(search_term))
                | (Tenant.email.ilike(search_term))
                | (Tenant.slug.ilike(search_term))
            )

        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar() or 0

        query = query.order_by(Tenant.created_at.desc())
        query = query.offset((page - 1) * page_size).limit(page_size)

        result = await db.execute(query)
        return list(result.scalars().all()), total

    async def get_tenant(
        self, db: AsyncSession, tenant_id: uuid.UUID, for_update: bool = False
    ) -> Tenant:
        """Get a tenant by ID."""
        require_platform_context()
        query = select(Tenant).where(
            Tenant.id == tenant_id,
            Tenant.deleted_at.is_(None),
        )
        if for_update:
            query = query.with_for_update()
        tenant = (await db.execute(query)).scalar_one_or_none()

        if not tenant:
            raise NotFoundException("Tenant")

        return tenant

    async def slug_taken(self, db: AsyncSession, slug: str) -> bool:
        """Slugs stay reserved by soft-deleted tenants too."""
        result = await db.execute(select(Tenant.id).where(Tenant.slug == slug))
        return result.first() is not None

    async def get_tenant_stats(self, db: AsyncSession) -> dict[str, int]:
        """Count live tenants by status."""
        require_platform_context()
        result = await db.execute(
            select(Tenant.status, func.count(Tenant.id))
            .where(Tenant.deleted_at.is_(None))
            .group_by(Tenant.status)
        )
        by_status = dict(result.all())
        return {
            "total": sum(by_status.values()),
            **{status.value: by_status.get(status.value, 0) for status in TenantStatus},
        }

    async def get_tenant_usage(self, db: AsyncSession, tenant_id: uuid.UUID) -> dict[str, int]:
        """Users, students and classes owned by one tenant."""
        await self.get_tenant(db, tenant_id)

        users = await db.execute(
            select(func.count(User.id)).where(User.tenant_id == tenant_id)
        )
        students = await db.execute(
            select(func.count(Student.id)).where(
                Student.tenant_id == tenant_id,
                Student.deleted_at.is_(None),
            )
        )
        classes = await db.execute(
            select(func.count(SchoolClass.id)).where(
                SchoolClass.tenant_id == tenant_id,
                SchoolClass.deleted_at.is_(None),
            )
        )
        return {
            "total_users": users.scalar() or 0,
            "total_students": students.scalar() or 0,
            "total_classes": classes.scalar() or 0,
        }

    async def create_tenant(self, db: AsyncSession, data: TenantCreateRequest) -> Tenant:
        """Create a new tenant. New schools start pending on the free plan."""
        require_platform_context()

        slug = data.slug or self._generate_slug(data.name)
        if data.slug and await self.slug_taken(db, slug):
            raise ConflictException(f"Slug '{slug}' is already in use")

        # Append a number to generated slugs until unique
        base_slug = slug
        counter = 1
        while await self.slug_taken(db, slug):
            slug = f"{base_slug}-{counter}"
            counter += 1

        tenant = Tenant(
            name=data.name,
            slug=slug,
            email=data.email,
            phone=data.phone,
            address=data.address,
            status=data.status.value,
            subscription_plan=data.subscription_plan.value,
            subscription_ends_at=data.subscription_ends_at,
        )
        db.add(tenant)
        await db.flush()

        logger.info(f"Created tenant {tenant.slug} ({tenant.id})")
        return tenant

    async def update_tenant(
        self,
        db: AsyncSession,
        tenant_id: uuid.UUID,
        data: TenantUpdateRequest,
    ) -> Tenant:
        """Update a tenant."""
        tenant = await self.get_tenant(db, tenant_id)
        changes = data.model_dump(exclude_unset=True)

        status = changes.pop("status", None)
        if status is not None:
            tenant.status = TenantStatus(status).value

        for field, value in changes.items():
            setattr(tenant, field, value)

        await db.flush()
        return tenant

    async def toggle_status(self, db: AsyncSession, tenant_id: uuid.UUID) -> Tenant:
        """Flip an active school to inactive, anything else to active."""
        tenant = await self.get_tenant(db, tenant_id)
        tenant.status = (
            TenantStatus.INACTIVE.value if tenant.is_active else TenantStatus.ACTIVE.value
        )
        await db.flush()
        logger.info(f"Tenant {tenant.slug} status set to {tenant.status}")
        return tenant

    async def delete_tenant(self, db: AsyncSession, tenant_id: uuid.UUID) -> None:
        """Soft delete a tenant. Blocked while the tenant still owns users."""
        tenant = await self.get_tenant(db, tenant_id, for_update=True)

        user_count = (
            await db.execute(select(func.count(User.id)).where(User.tenant_id == tenant_id))
        ).scalar() or 0
        if user_count:
            raise ConflictException(
                f"Cannot delete a school that still has {user_count} user(s)"
            )

        tenant.deleted_at = utcnow()
        tenant.status = TenantStatus.INACTIVE.value
        await db.flush()
        logger.info(f"Deleted tenant {tenant.slug} ({tenant.id})")

    def _generate_slug(self, name: str) -> str:
        """Generate a URL-safe slug from name."""
        slug = name.lower()
        slug = re.sub(r"[^a-z0-9]+", "-", slug)
        return slug.strip("-")


# Singleton instance
_tenant_service: TenantService | None = None


def get_tenant_service() -> TenantService:
    """Get the tenant service singleton."""
    global _tenant_service
    if _tenant_service is None:
        _tenant_service = TenantService()
    return _tenant_service
