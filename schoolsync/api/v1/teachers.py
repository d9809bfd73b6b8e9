"""Teacher endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.database import get_db
from schoolsync.schemas.common import APIResponse, PaginationMeta
from schoolsync.schemas.teacher import TeacherCreate, TeacherResponse, TeacherUpdate
from schoolsync.services.teacher_service import get_teacher_service
from schoolsync.utils.permissions import Permission, require_permission

router = APIRouter()


@router.get("", response_model=APIResponse[list[TeacherResponse]])
@require_permission(Permission.VIEW_TEACHERS)
async def list_teachers(
    status: str | None = Query(None, pattern=r"^(active|inactive)$"),
    search: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    teachers, total = await get_teacher_service().get_teachers(
        db, status=status, search=search, page=page, page_size=page_size
    )
    return APIResponse(
        data=[TeacherResponse.model_validate(t) for t in teachers],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.get("/{teacher_id}", response_model=APIResponse[TeacherResponse])
@require_permission(Permission.VIEW_TEACHERS)
async def get_teacher(teacher_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    teacher = await get_teacher_service().get_teacher(db, teacher_id)
    return APIResponse(data=TeacherResponse.model_validate(teacher))


@router.post("", response_model=APIResponse[TeacherResponse], status_code=201)
@require_permission(Permission.MANAGE_TEACHERS)
async def create_teacher(data: TeacherCreate, db: AsyncSession = Depends(get_db)):
    """Create a teacher together with their login account."""
    teacher = await get_teacher_service().create_teacher(db, data)
    await db.commit()
    return APIResponse(
        data=TeacherResponse.model_validate(teacher),
        message="Teacher created successfully",
    )


@router.put("/{teacher_id}", response_model=APIResponse[TeacherResponse])
@require_permission(Permission.MANAGE_TEACHERS)
async def update_teacher(
    teacher_id: uuid.UUID,
    data: TeacherUpdate,
    db: AsyncSession = Depends(get_db),
):
    teacher = await get_teacher_service().update_teacher(db, teacher_id, data)
    await db.commit()
    return APIResponse(
        data=TeacherResponse.model_validate(teacher),
        message="Teacher updated successfully",
    )


@router.delete("/{teacher_id}")
@require_permission(Permission.MANAGE_TEACHERS)
async def delete_teacher(
    teacher_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> APIResponse:
    await get_teacher_service().delete_teacher(db, teacher_id)
    await db.commit()
    return APIResponse(message="Teacher deleted successfully")
