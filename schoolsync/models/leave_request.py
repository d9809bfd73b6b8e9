"""Leave request model."""

import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from schoolsync.models.base import TenantScopedModel


class LeaveType(str, Enum):
    SICK = "sick"
    PERSONAL = "personal"
    FAMILY = "family"
    VACATION = "vacation"
    MEDICAL = "medical"
    OTHER = "other"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


REVIEWED_STATUSES = frozenset({LeaveStatus.APPROVED.value, LeaveStatus.REJECTED.value})


class RequesterType(str, Enum):
    """Who the leave is for: a student, or a staff user."""

    STUDENT = "student"
    STAFF = "staff"


class LeaveRequest(TenantScopedModel):
    """Leave request for a student or a staff member.

    Exactly one of student_id / staff_user_id is set, matching requester_type.
    Review fields are written once, on approve or reject.
    """

    __tablename__ = "leave_requests"
    __table_args__ = (
        CheckConstraint(
            "(student_id IS NOT NULL AND staff_user_id IS NULL) "
            "OR (student_id IS NULL AND staff_user_id IS NOT NULL)",
            name="ck_leave_requests_one_requester",
        ),
        Index("idx_leave_requests_tenant_status", "tenant_id", "status"),
    )

    requester_type: Mapped[str] = mapped_column(String(20), nullable=False)
    student_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=True,
    )
    staff_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
    )
    leave_type: Mapped[str] = mapped_column(String(20), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_days: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=LeaveStatus.PENDING.value,
    )
    applied_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    review_remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def is_reviewed(self) -> bool:
        return self.status in REVIEWED_STATUSES
