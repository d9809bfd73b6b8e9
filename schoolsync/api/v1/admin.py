"""Super Admin API routes: schools, subscriptions, platform users and settings."""

import logging
import uuid

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.database import get_db
from schoolsync.models.tenant import SubscriptionPlan, TenantStatus
from schoolsync.models.user import Role
from schoolsync.schemas.common import APIResponse, PaginationMeta
from schoolsync.schemas.settings import PlatformSettingsResponse, SettingsSection
from schoolsync.schemas.tenant import (
    PlanInfo,
    SubscriptionExtendRequest,
    SubscriptionResponse,
    SubscriptionStatsResponse,
    SubscriptionUpdateRequest,
    TenantCreateRequest,
    TenantListItem,
    TenantResponse,
    TenantStatsResponse,
    TenantUpdateRequest,
)
from schoolsync.schemas.user import UserCreateRequest, UserResponse, UserUpdateRequest
from schoolsync.services.settings_service import get_settings_service
from schoolsync.services.subscription_service import get_subscription_service
from schoolsync.services.tenant_service import get_tenant_service
from schoolsync.services.user_service import get_user_service
from schoolsync.utils.permissions import require_super_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


# ==================== SCHOOLS ====================

@router.get("/tenants", response_model=APIResponse[list[TenantListItem]])
@require_super_admin()
async def list_tenants(
    status: TenantStatus | None = None,
    plan: SubscriptionPlan | None = None,
    search: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List all schools with optional filters (Super Admin only)."""
    tenants, total = await get_tenant_service().get_tenants(
        db,
        status=status.value if status else None,
        plan=plan.value if plan else None,
        search=search,
        page=page,
        page_size=page_size,
    )
    return APIResponse(
        data=[TenantListItem.model_validate(t) for t in tenants],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.get("/tenants/stats", response_model=APIResponse[TenantStatsResponse])
@require_super_admin()
async def get_tenant_stats(db: AsyncSession = Depends(get_db)):
    stats = await get_tenant_service().get_tenant_stats(db)
    return APIResponse(data=TenantStatsResponse(**stats))


@router.post("/tenants", response_model=APIResponse[TenantResponse])
@require_super_admin()
async def create_tenant(
    request: TenantCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Create a new school (Super Admin only)."""
    tenant = await get_tenant_service().create_tenant(db, request)
    await db.commit()
    return APIResponse(
        data=TenantResponse.model_validate(tenant),
        message="School created successfully",
    )


@router.get("/tenants/{tenant_id}", response_model=APIResponse[TenantResponse])
@require_super_admin()
async def get_tenant(
    tenant_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    tenant = await get_tenant_service().get_tenant(db, tenant_id)
    return APIResponse(data=TenantResponse.model_validate(tenant))


@router.get("/tenants/{tenant_id}/usage")
@require_super_admin()
async def get_tenant_usage(
    tenant_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> APIResponse:
    """Users, students and classes owned by a school."""
    usage = await get_tenant_service().get_tenant_usage(db, tenant_id)
    return APIResponse(data=usage)


@router.put("/tenants/{tenant_id}", response_model=APIResponse[TenantResponse])
@require_super_admin()
async def update_tenant(
    tenant_id: uuid.UUID,
    request: TenantUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    tenant = await get_tenant_service().update_tenant(db, tenant_id, request)
    await db.commit()
    return APIResponse(
        data=TenantResponse.model_validate(tenant),
        message="School updated successfully",
    )


@router.post("/tenants/{tenant_id}/toggle-status", response_model=APIResponse[TenantResponse])
@require_super_admin()
async def toggle_tenant_status(
    tenant_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    tenant = await get_tenant_service().toggle_status(db, tenant_id)
    await db.commit()
    return APIResponse(
        data=TenantResponse.model_validate(tenant),
        message=f"School is now {tenant.status}",
    )


@router.delete("/tenants/{tenant_id}")
@require_super_admin()
async def delete_tenant(
    tenant_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> APIResponse:
    """Delete a school. Refused while the school still has users."""
    await get_tenant_service().delete_tenant(db, tenant_id)
    await db.commit()
    return APIResponse(message="School deleted successfully")


# ==================== SUBSCRIPTIONS ====================

@router.get("/subscriptions/plans", response_model=APIResponse[list[PlanInfo]])
@require_super_admin()
async def list_plans():
    return APIResponse(data=get_subscription_service().get_plans())


@router.get("/subscriptions/stats", response_model=APIResponse[SubscriptionStatsResponse])
@require_super_admin()
async def get_subscription_stats(db: AsyncSession = Depends(get_db)):
    stats = await get_subscription_service().get_stats(db)
    return APIResponse(data=SubscriptionStatsResponse(**stats))


@router.get("/subscriptions", response_model=APIResponse[list[SubscriptionResponse]])
@require_super_admin()
async def list_subscriptions(
    plan: SubscriptionPlan | None = None,
    subscription_status: str | None = Query(
        None, pattern=r"^(expired|expiring_soon|active)$"
    ),
    search: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List school subscriptions, optionally only expired or expiring soon."""
    service = get_subscription_service()
    tenants, total = await service.list_subscriptions(
        db,
        plan=plan.value if plan else None,
        subscription_status=subscription_status,
        search=search,
        page=page,
        page_size=page_size,
    )
    return APIResponse(
        data=[service.to_response(t) for t in tenants],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.put("/subscriptions/{tenant_id}", response_model=APIResponse[SubscriptionResponse])
@require_super_admin()
async def update_subscription(
    tenant_id: uuid.UUID,
    request: SubscriptionUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    service = get_subscription_service()
    tenant = await service.update_subscription(
        db, tenant_id, request.subscription_plan, request.subscription_ends_at
    )
    await db.commit()
    return APIResponse(data=service.to_response(tenant), message="Subscription updated")


@router.post("/subscriptions/{tenant_id}/extend", response_model=APIResponse[SubscriptionResponse])
@require_super_admin()
async def extend_subscription(
    tenant_id: uuid.UUID,
    request: SubscriptionExtendRequest,
    db: AsyncSession = Depends(get_db),
):
    service = get_subscription_service()
    tenant = await service.extend_subscription(db, tenant_id, request.days)
    await db.commit()
    return APIResponse(
        data=service.to_response(tenant),
        message=f"Subscription extended by {request.days} days",
    )


@router.post("/subscriptions/{tenant_id}/cancel", response_model=APIResponse[SubscriptionResponse])
@require_super_admin()
async def cancel_subscription(
    tenant_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    service = get_subscription_service()
    tenant = await service.cancel_subscription(db, tenant_id)
    await db.commit()
    return APIResponse(data=service.to_response(tenant), message="Subscription cancelled")


# ==================== USERS ====================

@router.get("/users", response_model=APIResponse[list[UserResponse]])
@require_super_admin()
async def list_users(
    search: str | None = None,
    tenant: str | None = Query(None, description="'platform' or a school id"),
    role: Role | None = None,
    status: str | None = Query(None, pattern=r"^(active|inactive|suspended|deleted)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    users, total = await get_user_service().get_users(
        db,
        search=search,
        tenant=tenant,
        role=role.value if role else None,
        status=status,
        page=page,
        page_size=page_size,
    )
    return APIResponse(
        data=[UserResponse.model_validate(u) for u in users],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.post("/users", response_model=APIResponse[UserResponse])
@require_super_admin()
async def create_user(
    request: UserCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await get_user_service().create_user(db, request)
    await db.commit()
    return APIResponse(data=UserResponse.model_validate(user), message="User created successfully")


@router.get("/users/{user_id}", response_model=APIResponse[UserResponse])
@require_super_admin()
async def get_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    user = await get_user_service().get_user(db, user_id, state=None)
    return APIResponse(data=UserResponse.model_validate(user))


@router.put("/users/{user_id}", response_model=APIResponse[UserResponse])
@require_super_admin()
async def update_user(
    user_id: uuid.UUID,
    request: UserUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await get_user_service().update_user(db, user_id, request)
    await db.commit()
    return APIResponse(data=UserResponse.model_validate(user), message="User updated successfully")


@router.post("/users/{user_id}/toggle-status", response_model=APIResponse[UserResponse])
@require_super_admin()
async def toggle_user_status(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    user = await get_user_service().toggle_status(db, user_id)
    await db.commit()
    return APIResponse(data=UserResponse.model_validate(user), message=f"User is now {user.status}")


@router.delete("/users/{user_id}", response_model=APIResponse[UserResponse])
@require_super_admin()
async def delete_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Soft delete a user. The account can be restored or purged later."""
    user = await get_user_service().soft_delete_user(db, user_id)
    await db.commit()
    return APIResponse(data=UserResponse.model_validate(user), message="User deleted")


@router.post("/users/{user_id}/restore", response_model=APIResponse[UserResponse])
@require_super_admin()
async def restore_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    user = await get_user_service().restore_user(db, user_id)
    await db.commit()
    return APIResponse(data=UserResponse.model_validate(user), message="User restored")


@router.delete("/users/{user_id}/purge")
@require_super_admin()
async def purge_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> APIResponse:
    """Permanently remove a soft-deleted user."""
    await get_user_service().purge_user(db, user_id)
    await db.commit()
    return APIResponse(message="User permanently deleted")


# ==================== SETTINGS ====================

@router.get("/settings", response_model=APIResponse[PlatformSettingsResponse])
@require_super_admin()
async def get_settings(db: AsyncSession = Depends(get_db)):
    """All settings sections with defaults filled in and secrets masked."""
    return APIResponse(data=await get_settings_service().get_all(db))


@router.get("/settings/{section}")
@require_super_admin()
async def get_settings_section(
    section: SettingsSection,
    db: AsyncSession = Depends(get_db),
) -> APIResponse:
    return APIResponse(data=await get_settings_service().get_section(db, section))


@router.put("/settings/{section}")
@require_super_admin()
async def update_settings_section(
    section: SettingsSection,
    payload: dict = Body(...),
    db: AsyncSession = Depends(get_db),
) -> APIResponse:
    """Replace one settings section. Send the mask back to keep a stored password."""
    values = await get_settings_service().update_section(db, section, payload)
    await db.commit()
    return APIResponse(data=values, message=f"{section.value.title()} settings saved successfully")
