"""Attendance endpoints."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.database import get_db
from schoolsync.models.attendance import AttendanceStatus
from schoolsync.schemas.attendance import (
    AttendanceCreate,
    AttendanceResponse,
    AttendanceSummary,
    AttendanceUpdate,
    BulkAttendanceCreate,
    BulkAttendanceResponse,
    SectionSheetRow,
)
from schoolsync.schemas.common import APIResponse, PaginationMeta
from schoolsync.services.attendance_service import get_attendance_service
from schoolsync.utils.permissions import Permission, require_permission

router = APIRouter()


@router.get("", response_model=APIResponse[list[AttendanceResponse]])
@require_permission(Permission.VIEW_ATTENDANCE)
async def list_attendance(
    student_id: uuid.UUID | None = None,
    section_id: uuid.UUID | None = None,
    class_id: uuid.UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    status: AttendanceStatus | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List attendance records with optional filters."""
    records, total = await get_attendance_service().get_attendance_records(
        db,
        student_id=student_id,
        section_id=section_id,
        class_id=class_id,
        date_from=date_from,
        date_to=date_to,
        status=status,
        page=page,
        page_size=page_size,
    )
    return APIResponse(
        data=[AttendanceResponse.model_validate(r) for r in records],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.post("", response_model=APIResponse[AttendanceResponse], status_code=201)
@require_permission(Permission.MARK_ATTENDANCE)
async def create_attendance(data: AttendanceCreate, db: AsyncSession = Depends(get_db)):
    """Mark one student. A second record for the same day is rejected with 409."""
    record = await get_attendance_service().create_attendance_record(db, data)
    await db.commit()
    return APIResponse(
        data=AttendanceResponse.model_validate(record),
        message="Attendance recorded",
    )


@router.post("/bulk", response_model=APIResponse[BulkAttendanceResponse])
@require_permission(Permission.MARK_ATTENDANCE)
async def bulk_attendance(data: BulkAttendanceCreate, db: AsyncSession = Depends(get_db)):
    """Mark a whole section for a day. Existing records for the day are updated."""
    result = await get_attendance_service().record_bulk_attendance(db, data)
    await db.commit()
    return APIResponse(
        data=result,
        message=f"{result.created_count} created, {result.updated_count} updated",
    )


@router.get("/sections/{section_id}/sheet", response_model=APIResponse[list[SectionSheetRow]])
@require_permission(Permission.VIEW_ATTENDANCE)
async def get_section_sheet(
    section_id: uuid.UUID,
    target_date: date | None = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
):
    """Every active student of the section with their mark for the day (defaults to today)."""
    rows = await get_attendance_service().get_section_sheet(db, section_id, target_date or date.today())
    return APIResponse(data=rows)


@router.get("/students/{student_id}/summary", response_model=APIResponse[AttendanceSummary])
@require_permission(Permission.VIEW_ATTENDANCE)
async def get_student_summary(
    student_id: uuid.UUID,
    date_from: date | None = None,
    date_to: date | None = None,
    db: AsyncSession = Depends(get_db),
):
    summary = await get_attendance_service().get_student_summary(
        db, student_id, date_from=date_from, date_to=date_to
    )
    return APIResponse(data=summary)


@router.get("/{record_id}", response_model=APIResponse[AttendanceResponse])
@require_permission(Permission.VIEW_ATTENDANCE)
async def get_attendance(record_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    record = await get_attendance_service().get_attendance_record(db, record_id)
    return APIResponse(data=AttendanceResponse.model_validate(record))


@router.put("/{record_id}", response_model=APIResponse[AttendanceResponse])
@require_permission(Permission.MARK_ATTENDANCE)
async def update_attendance(
    record_id: uuid.UUID,
    data: AttendanceUpdate,
    db: AsyncSession = Depends(get_db),
):
    record = await get_attendance_service().update_attendance_record(db, record_id, data)
    await db.commit()
    return APIResponse(
        data=AttendanceResponse.model_validate(record),
        message="Attendance updated",
    )


@router.delete("/{record_id}")
@require_permission(Permission.MARK_ATTENDANCE)
async def delete_attendance(
    record_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> APIResponse:
    await get_attendance_service().delete_attendance_record(db, record_id)
    await db.commit()
    return APIResponse(message="Attendance record deleted")
