"""School class and section models."""

import uuid

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from schoolsync.models.base import TenantScopedModel

DEFAULT_SECTION_CAPACITY = 40


class SchoolClass(TenantScopedModel):
    """A grade/class such as "Class 1"."""

    __tablename__ = "school_classes"
    __table_args__ = (
        Index(
            "idx_school_classes_tenant_name",
            "tenant_id",
            "name",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    numeric_name: Mapped[int | None] = mapped_column(Integer, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Section(TenantScopedModel):
    """A section of a class for one academic year ("Class 1 - A").

    Available seats are computed from the live student count, never stored.
    """

    __tablename__ = "sections"
    __table_args__ = (
        Index(
            "idx_sections_class_year_name",
            "class_id",
            "academic_year_id",
            "name",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    class_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("school_classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    academic_year_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("academic_years.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    capacity: Mapped[int] = mapped_column(
        Integer, nullable=False, default=DEFAULT_SECTION_CAPACITY
    )
    class_teacher_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("teachers.id", ondelete="SET NULL"),
        nullable=True,
    )
    room_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
