"""Admission application endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.database import get_db
from schoolsync.models.admission import AdmissionStatus
from schoolsync.schemas.admission import (
    AdmissionApplicationCreate,
    AdmissionApplicationResponse,
    AdmissionStatusUpdate,
)
from schoolsync.schemas.common import APIResponse, PaginationMeta
from schoolsync.services.admission_service import get_admission_service
from schoolsync.utils.permissions import Permission, require_permission

router = APIRouter()


@router.get("", response_model=APIResponse[list[AdmissionApplicationResponse]])
@require_permission(Permission.VIEW_ADMISSIONS)
async def list_applications(
    status: AdmissionStatus | None = None,
    search: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    applications, total = await get_admission_service().get_applications(
        db, status=status, search=search, page=page, page_size=page_size
    )
    return APIResponse(
        data=[AdmissionApplicationResponse.model_validate(a) for a in applications],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.get("/{application_id}", response_model=APIResponse[AdmissionApplicationResponse])
@require_permission(Permission.VIEW_ADMISSIONS)
async def get_application(application_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    application = await get_admission_service().get_application(db, application_id)
    return APIResponse(data=AdmissionApplicationResponse.model_validate(application))


@router.post("", response_model=APIResponse[AdmissionApplicationResponse], status_code=201)
@require_permission(Permission.MANAGE_ADMISSIONS)
async def create_application(data: AdmissionApplicationCreate, db: AsyncSession = Depends(get_db)):
    """Record an application received by the school office."""
    application = await get_admission_service().create_application(db, data)
    await db.commit()
    return APIResponse(
        data=AdmissionApplicationResponse.model_validate(application),
        message="Application submitted successfully",
    )


@router.put("/{application_id}/status", response_model=APIResponse[AdmissionApplicationResponse])
@require_permission(Permission.MANAGE_ADMISSIONS)
async def update_application_status(
    application_id: uuid.UUID,
    data: AdmissionStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Move an application along. Approving it enrols the applicant as a student."""
    application = await get_admission_service().update_status(db, application_id, data)
    await db.commit()
    return APIResponse(
        data=AdmissionApplicationResponse.model_validate(application),
        message=f"Application {application.status.replace('_', ' ')}",
    )
