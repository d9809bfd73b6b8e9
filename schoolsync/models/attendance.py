"""Attendance tracking model."""

import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from uuid_extensions import uuid7

from schoolsync.models.base import Base, TimestampMixin


class AttendanceStatus(str, Enum):
    """Attendance status options."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half_day"
    LEAVE = "leave"
    HOLIDAY = "holiday"


PRESENT_STATUSES = frozenset({AttendanceStatus.PRESENT.value, AttendanceStatus.LATE.value})


class MarkedVia(str, Enum):
    """How the attendance was captured."""

    MANUAL = "manual"
    QR_CODE = "qr_code"
    BIOMETRIC = "biometric"
    RFID = "rfid"


class Attendance(Base, TimestampMixin):
    """Daily attendance record for a student. One row per student per date."""

    __tablename__ = "attendances"
    __table_args__ = (
        UniqueConstraint("student_id", "date", name="uq_attendance_student_date"),
        Index("idx_attendance_tenant_date", "tenant_id", "date"),
        Index("idx_attendance_section_date", "section_id", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid7,
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    class_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("school_classes.id", ondelete="CASCADE"),
        nullable=False,
    )
    section_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("sections.id", ondelete="SET NULL"),
        nullable=True,
    )
    academic_year_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("academic_years.id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AttendanceStatus.PRESENT.value,
    )
    check_in_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    check_out_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    marked_via: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=MarkedVia.MANUAL.value,
    )
    marked_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    student = relationship("Student", lazy="selectin")

    @property
    def is_present(self) -> bool:
        """Check if student was present (including late)."""
        return self.status in PRESENT_STATUSES
