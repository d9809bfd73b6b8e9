"""Academic year and subject endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.database import get_db
from schoolsync.models.academic import AcademicYearStatus
from schoolsync.schemas.academic import (
    AcademicYearCreate,
    AcademicYearResponse,
    AcademicYearUpdate,
    SubjectCreate,
    SubjectResponse,
    SubjectUpdate,
)
from schoolsync.schemas.common import APIResponse, PaginationMeta
from schoolsync.services.academic_service import get_academic_service
from schoolsync.utils.permissions import Permission, require_permission

router = APIRouter()


# Academic Years

@router.get("/years", response_model=APIResponse[list[AcademicYearResponse]])
@require_permission(Permission.VIEW_ACADEMICS)
async def list_academic_years(
    status: AcademicYearStatus | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List academic years, newest first."""
    years, total = await get_academic_service().get_academic_years(
        db, status=status, page=page, page_size=page_size
    )
    return APIResponse(
        data=[AcademicYearResponse.model_validate(y) for y in years],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.get("/years/current", response_model=APIResponse[AcademicYearResponse])
@require_permission(Permission.VIEW_ACADEMICS)
async def get_current_academic_year(db: AsyncSession = Depends(get_db)):
    """Get the current academic year. 404 if none is set."""
    year = await get_academic_service().require_current_year(db)
    return APIResponse(data=AcademicYearResponse.model_validate(year))


@router.get("/years/{year_id}", response_model=APIResponse[AcademicYearResponse])
@require_permission(Permission.VIEW_ACADEMICS)
async def get_academic_year(year_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    year = await get_academic_service().get_academic_year(db, year_id)
    return APIResponse(data=AcademicYearResponse.model_validate(year))


@router.post("/years", response_model=APIResponse[AcademicYearResponse], status_code=201)
@require_permission(Permission.MANAGE_ACADEMICS)
async def create_academic_year(
    data: AcademicYearCreate,
    db: AsyncSession = Depends(get_db),
):
    year = await get_academic_service().create_academic_year(db, data)
    await db.commit()
    return APIResponse(
        data=AcademicYearResponse.model_validate(year),
        message="Academic year created successfully",
    )


@router.put("/years/{year_id}", response_model=APIResponse[AcademicYearResponse])
@require_permission(Permission.MANAGE_ACADEMICS)
async def update_academic_year(
    year_id: uuid.UUID,
    data: AcademicYearUpdate,
    db: AsyncSession = Depends(get_db),
):
    year = await get_academic_service().update_academic_year(db, year_id, data)
    await db.commit()
    return APIResponse(
        data=AcademicYearResponse.model_validate(year),
        message="Academic year updated successfully",
    )


@router.post("/years/{year_id}/set-current", response_model=APIResponse[AcademicYearResponse])
@require_permission(Permission.MANAGE_ACADEMICS)
async def set_current_academic_year(
    year_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Make a year the current one. Any other current year is cleared."""
    year = await get_academic_service().set_current(db, year_id)
    await db.commit()
    return APIResponse(
        data=AcademicYearResponse.model_validate(year),
        message=f"{year.name} is now the current academic year",
    )


@router.delete("/years/{year_id}")
@require_permission(Permission.MANAGE_ACADEMICS)
async def delete_academic_year(
    year_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> APIResponse:
    await get_academic_service().delete_academic_year(db, year_id)
    await db.commit()
    return APIResponse(message="Academic year deleted successfully")


# Subjects

@router.get("/subjects", response_model=APIResponse[list[SubjectResponse]])
@require_permission(Permission.VIEW_ACADEMICS)
async def list_subjects(
    is_active: bool | None = True,
    search: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    subjects, total = await get_academic_service().get_subjects(
        db, is_active=is_active, search=search, page=page, page_size=page_size
    )
    return APIResponse(
        data=[SubjectResponse.model_validate(s) for s in subjects],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.get("/subjects/{subject_id}", response_model=APIResponse[SubjectResponse])
@require_permission(Permission.VIEW_ACADEMICS)
async def get_subject(subject_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    subject = await get_academic_service().get_subject(db, subject_id)
    return APIResponse(data=SubjectResponse.model_validate(subject))


@router.post("/subjects", response_model=APIResponse[SubjectResponse], status_code=201)
@require_permission(Permission.MANAGE_ACADEMICS)
async def create_subject(data: SubjectCreate, db: AsyncSession = Depends(get_db)):
    subject = await get_academic_service().create_subject(db, data)
    await db.commit()
    return APIResponse(
        data=SubjectResponse.model_validate(subject),
        message="Subject created successfully",
    )


@router.put("/subjects/{subject_id}", response_model=APIResponse[SubjectResponse])
@require_permission(Permission.MANAGE_ACADEMICS)
async def update_subject(
    subject_id: uuid.UUID,
    data: SubjectUpdate,
    db: AsyncSession = Depends(get_db),
):
    subject = await get_academic_service().update_subject(db, subject_id, data)
    await db.commit()
    return APIResponse(
        data=SubjectResponse.model_validate(subject),
        message="Subject updated successfully",
    )


@router.delete("/subjects/{subject_id}")
@require_permission(Permission.MANAGE_ACADEMICS)
async def delete_subject(
    subject_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> APIResponse:
    await get_academic_service().delete_subject(db, subject_id)
    await db.commit()
    return APIResponse(message="Subject deleted successfully")
