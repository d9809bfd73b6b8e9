"""Per-school dashboard statistics."""

import logging
from datetime import date

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.models import AdmissionApplication, Attendance, SchoolClass, Section, Student, Teacher
from schoolsync.models.admission import AdmissionStatus
from schoolsync.models.attendance import AttendanceStatus
from schoolsync.models.student import StudentStatus
from schoolsync.repositories import TenantScopedRepository
from schoolsync.services.fee_service import get_fee_service
from schoolsync.utils.tenant_context import get_tenant_id

logger = logging.getLogger(__name__)

_OPEN_ADMISSION_STATUSES = (
    AdmissionStatus.PENDING.value,
    AdmissionStatus.UNDER_REVIEW.value,
    AdmissionStatus.INTERVIEW_SCHEDULED.value,
)


class DashboardService:
    def __init__(self):
        self.students = TenantScopedRepository(Student, "Student")
        self.teachers = TenantScopedRepository(Teacher, "Teacher")
        self.classes = TenantScopedRepository(SchoolClass, "Class")
        self.sections = TenantScopedRepository(Section, "Section")
        self.admissions = TenantScopedRepository(AdmissionApplication, "Admission application")

    async def get_school_stats(self, db: AsyncSession, today: date | None = None) -> dict:
        """Headline numbers for the current school.

        Late arrivals count as present in the attendance percentage.
        """
        today = today or date.today()
        fees = await get_fee_service().get_summary(db)
        stats = {
            "total_students": await self.students.count(db, Student.status == StudentStatus.ACTIVE.value),
            "total_teachers": await self.teachers.count(db, Teacher.status == "active"),
            "total_classes": await self.classes.count(db, SchoolClass.is_active.is_(True)),
            "total_sections": await self.sections.count(db, Section.is_active.is_(True)),
            "attendance_today": await self._attendance_for(db, today),
            "fee_collection": {
                "collected": fees["total_collected"],
                "outstanding": fees["total_outstanding"],
                "total": fees["total_allocated"],
                "currency": fees["currency"],
            },
            "pending_admissions": await self.admissions.count(
                db, AdmissionApplication.status.in_(_OPEN_ADMISSION_STATUSES)
            ),
        }
        logger.debug(f"Dashboard stats computed for tenant {get_tenant_id()}")
        return stats

    async def _attendance_for(self, db: AsyncSession, day: date) -> dict:
        present_statuses = (AttendanceStatus.PRESENT.value, AttendanceStatus.LATE.value)
        row = (
            await db.execute(
                select(
                    func.count(Attendance.id),
                    func.sum(case((Attendance.status.in_(present_statuses), 1), else_=0)),
                    func.sum(case((Attendance.status == AttendanceStatus.ABSENT.value, 1), else_=0)),
                    func.sum(case((Attendance.status == AttendanceStatus.LATE.value, 1), else_=0)),
                ).where(Attendance.tenant_id == get_tenant_id(), Attendance.date == day)
            )
        ).one()
        total, present, absent, late = row[0] or 0, row[1] or 0, row[2] or 0, row[3] or 0
        return {
            "present": present,
            "absent": absent,
            "late": late,
            "total": total,
            "percentage": round(present / total * 100, 1) if total else 0.0,
        }


# Singleton instance
_dashboard_service: DashboardService | None = None


def get_dashboard_service() -> DashboardService:
    """Get the dashboard service singleton."""
    global _dashboard_service
    if _dashboard_service is None:
        _dashboard_service = DashboardService()
    return _dashboard_service
