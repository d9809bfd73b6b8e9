"""Student and guardian endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.database import get_db
from schoolsync.models.student import StudentStatus
from schoolsync.schemas.common import APIResponse, PaginationMeta
from schoolsync.schemas.student import (
    GuardianCreate,
    GuardianLinkRequest,
    GuardianResponse,
    GuardianUpdate,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
)
from schoolsync.services.student_service import get_student_service
from schoolsync.utils.permissions import Permission, require_permission

router = APIRouter()
guardians_router = APIRouter()


@router.get("", response_model=APIResponse[list[StudentResponse]])
@require_permission(Permission.VIEW_STUDENTS)
async def list_students(
    class_id: uuid.UUID | None = None,
    section_id: uuid.UUID | None = None,
    status: StudentStatus | None = None,
    search: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List students with optional class, section and status filters."""
    students, total = await get_student_service().get_students(
        db,
        class_id=class_id,
        section_id=section_id,
        status=status,
        search=search,
        page=page,
        page_size=page_size,
    )
    return APIResponse(
        data=[StudentResponse.model_validate(s) for s in students],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.get("/{student_id}", response_model=APIResponse[StudentResponse])
@require_permission(Permission.VIEW_STUDENTS)
async def get_student(student_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    student = await get_student_service().get_student(db, student_id)
    return APIResponse(data=StudentResponse.model_validate(student))


@router.post("", response_model=APIResponse[StudentResponse], status_code=201)
@require_permission(Permission.MANAGE_STUDENTS)
async def create_student(data: StudentCreate, db: AsyncSession = Depends(get_db)):
    """Enrol a student. A full section is rejected with 409."""
    student = await get_student_service().create_student(db, data)
    await db.commit()
    return APIResponse(
        data=StudentResponse.model_validate(student),
        message="Student created successfully",
    )


@router.put("/{student_id}", response_model=APIResponse[StudentResponse])
@require_permission(Permission.MANAGE_STUDENTS)
async def update_student(
    student_id: uuid.UUID,
    data: StudentUpdate,
    db: AsyncSession = Depends(get_db),
):
    student = await get_student_service().update_student(db, student_id, data)
    await db.commit()
    return APIResponse(
        data=StudentResponse.model_validate(student),
        message="Student updated successfully",
    )


@router.delete("/{student_id}")
@require_permission(Permission.MANAGE_STUDENTS)
async def delete_student(
    student_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> APIResponse:
    await get_student_service().delete_student(db, student_id)
    await db.commit()
    return APIResponse(message="Student deleted successfully")


@router.post("/{student_id}/guardians", response_model=APIResponse[StudentResponse])
@require_permission(Permission.MANAGE_STUDENTS)
async def link_guardian(
    student_id: uuid.UUID,
    data: GuardianLinkRequest,
    db: AsyncSession = Depends(get_db),
):
    student = await get_student_service().link_guardian(db, student_id, data)
    await db.commit()
    return APIResponse(
        data=StudentResponse.model_validate(student),
        message="Guardian linked successfully",
    )


@router.delete("/{student_id}/guardians/{guardian_id}", response_model=APIResponse[StudentResponse])
@require_permission(Permission.MANAGE_STUDENTS)
async def unlink_guardian(
    student_id: uuid.UUID,
    guardian_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    student = await get_student_service().unlink_guardian(db, student_id, guardian_id)
    await db.commit()
    return APIResponse(
        data=StudentResponse.model_validate(student),
        message="Guardian unlinked successfully",
    )


# Guardians

@guardians_router.get("", response_model=APIResponse[list[GuardianResponse]])
@require_permission(Permission.VIEW_GUARDIANS)
async def list_guardians(
    search: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    guardians, total = await get_student_service().get_guardians(
        db, search=search, page=page, page_size=page_size
    )
    return APIResponse(
        data=[GuardianResponse.model_validate(g) for g in guardians],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@guardians_router.get("/{guardian_id}", response_model=APIResponse[GuardianResponse])
@require_permission(Permission.VIEW_GUARDIANS)
async def get_guardian(guardian_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    guardian = await get_student_service().get_guardian(db, guardian_id)
    return APIResponse(data=GuardianResponse.model_validate(guardian))


@guardians_router.post("", response_model=APIResponse[GuardianResponse], status_code=201)
@require_permission(Permission.MANAGE_GUARDIANS)
async def create_guardian(data: GuardianCreate, db: AsyncSession = Depends(get_db)):
    guardian = await get_student_service().create_guardian(db, data)
    await db.commit()
    return APIResponse(
        data=GuardianResponse.model_validate(guardian),
        message="Guardian created successfully",
    )


@guardians_router.put("/{guardian_id}", response_model=APIResponse[GuardianResponse])
@require_permission(Permission.MANAGE_GUARDIANS)
async def update_guardian(
    guardian_id: uuid.UUID,
    data: GuardianUpdate,
    db: AsyncSession = Depends(get_db),
):
    guardian = await get_student_service().update_guardian(db, guardian_id, data)
    await db.commit()
    return APIResponse(
        data=GuardianResponse.model_validate(guardian),
        message="Guardian updated successfully",
    )


@guardians_router.delete("/{guardian_id}")
@require_permission(Permission.MANAGE_GUARDIANS)
async def delete_guardian(
    guardian_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> APIResponse:
    await get_student_service().delete_guardian(db, guardian_id)
    await db.commit()
    return APIResponse(message="Guardian deleted successfully")
