"""Attendance service for daily student attendance."""

import logging
import uuid
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.exceptions import ConflictException, NotFoundException, SchoolSyncException
from schoolsync.models import Attendance, Student
from schoolsync.models.attendance import AttendanceStatus, PRESENT_STATUSES
from schoolsync.models.student import StudentStatus
from schoolsync.repositories import TenantScopedRepository
from schoolsync.schemas.attendance import (
    AttendanceCreate,
    AttendanceSummary,
    AttendanceUpdate,
    BulkAttendanceCreate,
    BulkAttendanceResponse,
    SectionSheetRow,
)
from schoolsync.services.class_service import get_class_service
from schoolsync.utils.tenant_context import get_current_user_id, get_tenant_id

logger = logging.getLogger(__name__)


def attendance_percentage(present: int, late: int, total: int) -> float:
    """Share of days present, late counting as present, to one decimal."""
    if total <= 0:
        return 0.0
    return round((present + late) / total * 100, 1)


class AttendanceService:
    """Service for managing attendance records."""

    def __init__(self):
        self.records = TenantScopedRepository(Attendance, "Attendance record")
        self.students = TenantScopedRepository(Student, "Student")

    async def get_attendance_records(
        self,
        db: AsyncSession,
        student_id: uuid.UUID | None = None,
        section_id: uuid.UUID | None = None,
        class_id: uuid.UUID | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        status: AttendanceStatus | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Attendance], int]:
        """Get attendance records with optional filters."""
        filters = []
        if student_id:
            filters.append(Attendance.student_id == student_id)
        if section_id:
            filters.append(Attendance.section_id == section_id)
        if class_id:
            filters.append(Attendance.class_id == class_id)
        if date_from:
            filters.append(Attendance.date >= date_from)
        if date_to:
            filters.append(Attendance.date <= date_to)
        if status:
            filters.append(Attendance.status == status.value)
        return await self.records.paginate(
            db,
            *filters,
            order_by=(Attendance.date.desc(), Attendance.created_at),
            page=page,
            page_size=page_size,
        )

    async def get_attendance_record(self, db: AsyncSession, record_id: uuid.UUID) -> Attendance:
        return await self.records.get(db, record_id)

    async def create_attendance_record(self, db: AsyncSession, data: AttendanceCreate) -> Attendance:
        """Create a single attendance record.

        Raises:
            ConflictException: If the student already has a record for the date
        """
        student = await self.students.get(db, data.student_id)

        if await self._get_existing_record(db, student.id, data.date):
            raise ConflictException("Attendance record already exists for this student on this date")

        return await self.records.create(
            db,
            conflict_message="Attendance record already exists for this student on this date",
            student=student,
            student_id=student.id,
            class_id=student.class_id,
            section_id=student.section_id,
            academic_year_id=student.academic_year_id,
            date=data.date,
            status=data.status.value,
            check_in_time=data.check_in_time,
            check_out_time=data.check_out_time,
            marked_via=data.marked_via.value,
            marked_by=get_current_user_id(),
            remarks=data.remarks,
        )

    async def update_attendance_record(
        self, db: AsyncSession, record_id: uuid.UUID, data: AttendanceUpdate
    ) -> Attendance:
        record = await self.records.get(db, record_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("status") is not None:
            changes["status"] = changes["status"].value
        changes["marked_by"] = get_current_user_id()
        return await self.records.update(db, record, **changes)

    async def delete_attendance_record(self, db: AsyncSession, record_id: uuid.UUID) -> None:
        record = await self.records.get(db, record_id)
        await self.records.soft_delete(db, record)

    async def record_bulk_attendance(
        self, db: AsyncSession, data: BulkAttendanceCreate
    ) -> BulkAttendanceResponse:
        """Mark a section for one day, updating rows that already exist."""
        section = await get_class_service().get_section(db, data.section_id)
        user_id = get_current_user_id()

        created = updated = 0
        errors = []
        for entry in data.records:
            try:
                student = await self.students.get(db, entry.student_id)
                if student.section_id != section.id:
                    raise NotFoundException("Student in this section")
            except SchoolSyncException as exc:
                errors.append({"student_id": str(entry.student_id), "error": exc.message})
                continue

            existing = await self._get_existing_record(db, student.id, data.date)
            if existing:
                existing.status = entry.status.value
                existing.check_in_time = entry.check_in_time
                existing.remarks = entry.remarks
                existing.marked_via = data.marked_via.value
                existing.marked_by = user_id
                updated += 1
            else:
                db.add(
                    Attendance(
                        tenant_id=get_tenant_id(),
                        student=student,
                        student_id=student.id,
                        class_id=student.class_id,
                        section_id=section.id,
                        academic_year_id=student.academic_year_id,
                        date=data.date,
                        status=entry.status.value,
                        check_in_time=entry.check_in_time,
                        marked_via=data.marked_via.value,
                        marked_by=user_id,
                        remarks=entry.remarks,
                    )
                )
                created += 1
            await self.records.flush(db, f"Attendance already recorded for {data.date}")

        logger.info(
            f"Bulk attendance for section {section.id} on {data.date}: "
            f"{created} created, {updated} updated, {len(errors)} errors"
        )
        return BulkAttendanceResponse(
            created_count=created,
            updated_count=updated,
            error_count=len(errors),
            errors=errors,
        )

    async def get_student_summary(
        self,
        db: AsyncSession,
        student_id: uuid.UUID,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> AttendanceSummary:
        """Counts per status and the attendance percentage for one student."""
        await self.students.get(db, student_id)

        query = (
            select(Attendance.status, func.count(Attendance.id))
            .where(Attendance.tenant_id == get_tenant_id(), Attendance.student_id == student_id)
            .group_by(Attendance.status)
        )
        if date_from:
            query = query.where(Attendance.date >= date_from)
        if date_to:
            query = query.where(Attendance.date <= date_to)
        counts = {status.value: 0 for status in AttendanceStatus}
        counts.update(dict((await db.execute(query)).all()))

        total = sum(counts.values())
        return AttendanceSummary(
            student_id=student_id,
            total_days=total,
            present_days=counts[AttendanceStatus.PRESENT.value],
            absent_days=counts[AttendanceStatus.ABSENT.value],
            late_days=counts[AttendanceStatus.LATE.value],
            half_days=counts[AttendanceStatus.HALF_DAY.value],
            leave_days=counts[AttendanceStatus.LEAVE.value],
            holiday_days=counts[AttendanceStatus.HOLIDAY.value],
            attendance_percentage=attendance_percentage(
                counts[AttendanceStatus.PRESENT.value],
                counts[AttendanceStatus.LATE.value],
                total,
            ),
        )

    async def get_section_sheet(
        self, db: AsyncSession, section_id: uuid.UUID, target_date: date
    ) -> list[SectionSheetRow]:
        """Every active student of a section with their status for the date (None if unmarked)."""
        await get_class_service().get_section(db, section_id)
        students = await self.students.all(
            db,
            Student.section_id == section_id,
            Student.status == StudentStatus.ACTIVE.value,
            order_by=(Student.roll_no, Student.admission_no),
        )
        marked = await db.execute(
            select(Attendance.student_id, Attendance.status).where(
                Attendance.tenant_id == get_tenant_id(),
                Attendance.section_id == section_id,
                Attendance.date == target_date,
            )
        )
        status_by_student = dict(marked.all())

        rows = []
        for student in students:
            status = status_by_student.get(student.id)
            rows.append(
                SectionSheetRow(
                    student_id=student.id,
                    student_name=student.full_name,
                    admission_no=student.admission_no,
                    status=status,
                    is_present=status in PRESENT_STATUSES if status else None,
                )
            )
        return rows

    async def _get_existing_record(
        self, db: AsyncSession, student_id: uuid.UUID, target_date: date
    ) -> Attendance | None:
        result = await db.execute(
            self.records.query(Attendance.student_id == student_id, Attendance.date == target_date)
        )
        return result.scalar_one_or_none()


# Singleton instance
_attendance_service: AttendanceService | None = None


def get_attendance_service() -> AttendanceService:
    """Get the attendance service singleton."""
    global _attendance_service
    if _attendance_service is None:
        _attendance_service = AttendanceService()
    return _attendance_service
