"""Admission application model."""

import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Date, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from schoolsync.models.base import TenantScopedModel


class AdmissionStatus(str, Enum):
    """Workflow status of an application. APPROVED and REJECTED are final."""

    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    APPROVED = "approved"
    REJECTED = "rejected"


FINAL_ADMISSION_STATUSES = frozenset({AdmissionStatus.APPROVED.value, AdmissionStatus.REJECTED.value})


class AdmissionApplication(TenantScopedModel):
    """An application to join the school.

    Approval converts the application into a Student; student_id records
    the result.
    """

    __tablename__ = "admission_applications"
    __table_args__ = (
        Index(
            "idx_admission_applications_tenant_no",
            "tenant_id",
            "application_no",
            unique=True,
        ),
        Index("idx_admission_applications_tenant_status", "tenant_id", "status"),
    )

    application_no: Mapped[str] = mapped_column(String(50), nullable=False)

    # Applicant
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    gender: Mapped[str] = mapped_column(String(10), nullable=False)
    blood_group: Mapped[str | None] = mapped_column(String(5), nullable=True)
    nationality: Mapped[str | None] = mapped_column(String(100), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Applying for
    class_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("school_classes.id", ondelete="CASCADE"),
        nullable=False,
    )
    academic_year_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("academic_years.id", ondelete="CASCADE"),
        nullable=False,
    )
    previous_school: Mapped[str | None] = mapped_column(String(255), nullable=True)
    previous_class: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Guardian
    guardian_name: Mapped[str] = mapped_column(String(200), nullable=False)
    guardian_relation: Mapped[str] = mapped_column(String(30), nullable=False)
    guardian_phone: Mapped[str] = mapped_column(String(50), nullable=False)
    guardian_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    guardian_occupation: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Workflow
    status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=AdmissionStatus.PENDING.value,
    )
    interview_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    admin_remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    processed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    student_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("students.id", ondelete="SET NULL"),
        nullable=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_final(self) -> bool:
        return self.status in FINAL_ADMISSION_STATUSES
