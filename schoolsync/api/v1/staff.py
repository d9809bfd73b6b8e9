"""Staff endpoints for non-teaching school accounts."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.database import get_db
from schoolsync.models.user import Role
from schoolsync.schemas.common import APIResponse, PaginationMeta
from schoolsync.schemas.user import StaffCreate, StaffUpdate, UserResponse
from schoolsync.services.staff_service import get_staff_service
from schoolsync.utils.permissions import Permission, require_permission

router = APIRouter()


@router.get("", response_model=APIResponse[list[UserResponse]])
@require_permission(Permission.VIEW_STAFF)
async def list_staff(
    role: Role | None = None,
    search: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    members, total = await get_staff_service().get_staff(
        db, role=role, search=search, page=page, page_size=page_size
    )
    return APIResponse(
        data=[UserResponse.model_validate(m) for m in members],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.get("/{user_id}", response_model=APIResponse[UserResponse])
@require_permission(Permission.VIEW_STAFF)
async def get_staff_member(user_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    member = await get_staff_service().get_member(db, user_id)
    return APIResponse(data=UserResponse.model_validate(member))


@router.post("", response_model=APIResponse[UserResponse], status_code=201)
@require_permission(Permission.MANAGE_STAFF)
async def create_staff_member(data: StaffCreate, db: AsyncSession = Depends(get_db)):
    member = await get_staff_service().create_member(db, data)
    await db.commit()
    return APIResponse(
        data=UserResponse.model_validate(member),
        message="Staff member created successfully",
    )


@router.put("/{user_id}", response_model=APIResponse[UserResponse])
@require_permission(Permission.MANAGE_STAFF)
async def update_staff_member(
    user_id: uuid.UUID,
    data: StaffUpdate,
    db: AsyncSession = Depends(get_db),
):
    member = await get_staff_service().update_member(db, user_id, data)
    await db.commit()
    return APIResponse(
        data=UserResponse.model_validate(member),
        message="Staff member updated successfully",
    )


@router.delete("/{user_id}")
@require_permission(Permission.MANAGE_STAFF)
async def delete_staff_member(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> APIResponse:
    await get_staff_service().delete_member(db, user_id)
    await db.commit()
    return APIResponse(message="Staff member deleted successfully")
