"""Attendance-related Pydantic schemas."""

import uuid
from datetime import date as date_type
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from schoolsync.models.attendance import AttendanceStatus, MarkedVia


class AttendanceCreate(BaseModel):
    """Schema for creating a single attendance record."""

    student_id: uuid.UUID
    date: date_type = Field(default_factory=date_type.today)
    status: AttendanceStatus = AttendanceStatus.PRESENT
    check_in_time: datetime | None = None
    check_out_time: datetime | None = None
    marked_via: MarkedVia = MarkedVia.MANUAL
    remarks: str | None = None


class AttendanceUpdate(BaseModel):
    status: AttendanceStatus | None = None
    check_in_time: datetime | None = None
    check_out_time: datetime | None = None
    remarks: str | None = None


class AttendanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    student_id: uuid.UUID
    class_id: uuid.UUID
    section_id: uuid.UUID | None
    academic_year_id: uuid.UUID
    date: date_type
    status: str
    is_present: bool
    check_in_time: datetime | None
    check_out_time: datetime | None
    marked_via: str
    marked_by: uuid.UUID | None
    remarks: str | None


class BulkAttendanceEntry(BaseModel):
    """Single record for bulk attendance submission."""

    student_id: uuid.UUID
    status: AttendanceStatus
    check_in_time: datetime | None = None
    remarks: str | None = None


class BulkAttendanceCreate(BaseModel):
    """Mark a whole section for one day. Existing rows are updated."""

    section_id: uuid.UUID
    date: date_type = Field(default_factory=date_type.today)
    records: list[BulkAttendanceEntry] = Field(..., min_length=1)
    marked_via: MarkedVia = MarkedVia.MANUAL


class BulkAttendanceResponse(BaseModel):
    created_count: int
    updated_count: int
    error_count: int
    errors: list[dict]


class AttendanceSummary(BaseModel):
    """Attendance summary for one student over a date range."""

    student_id: uuid.UUID
    total_days: int
    present_days: int
    absent_days: int
    late_days: int
    half_days: int
    leave_days: int
    holiday_days: int
    attendance_percentage: float


class SectionSheetRow(BaseModel):
    student_id: uuid.UUID
    student_name: str
    admission_no: str
    status: str | None
    is_present: bool | None
