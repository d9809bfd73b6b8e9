"""Academic models: academic years and subjects."""

from datetime import date
from enum import Enum

from sqlalchemy import Boolean, Date, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from schoolsync.models.base import TenantScopedModel


class AcademicYearStatus(str, Enum):
    """Academic year status options."""

    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"


class AcademicYear(TenantScopedModel):
    """A school year, e.g. "2024-2025".

    At most one live row per tenant has is_current set; the partial unique
    index below backs up AcademicYearService.set_current.
    """

    __tablename__ = "academic_years"
    __table_args__ = (
        Index(
            "idx_academic_years_one_current",
            "tenant_id",
            unique=True,
            postgresql_where=text("is_current AND deleted_at IS NULL"),
            sqlite_where=text("is_current AND deleted_at IS NULL"),
        ),
        Index(
            "idx_academic_years_tenant_name",
            "tenant_id",
            "name",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AcademicYearStatus.UPCOMING.value,
    )
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Subject(TenantScopedModel):
    """A subject/course that can be taught at a school."""

    __tablename__ = "subjects"
    __table_args__ = (
        Index(
            "idx_subjects_tenant_code",
            "tenant_id",
            "code",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(20), nullable=False)  # e.g., "ENG", "MATH"
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    subject_type: Mapped[str] = mapped_column(String(20), nullable=False, default="theory")
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
