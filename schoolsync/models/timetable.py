"""Timetable models: period slots and weekly entries."""

import uuid
from datetime import time
from enum import Enum

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Time, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolsync.models.base import TenantScopedModel


class DayOfWeek(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


DAY_ORDER = {day.value: index for index, day in enumerate(DayOfWeek)}


class TimetableSlot(TenantScopedModel):
    """A period of the school day, e.g. "Period 1" 08:00-08:45."""

    __tablename__ = "timetable_slots"

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    slot_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_break: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class TimetableEntry(TenantScopedModel):
    """What a section studies in one slot on one weekday."""

    __tablename__ = "timetable_entries"
    __table_args__ = (
        Index(
            "idx_timetable_entries_section_slot",
            "section_id",
            "slot_id",
            "day_of_week",
            "academic_year_id",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index(
            "idx_timetable_entries_teacher_slot",
            "teacher_id",
            "slot_id",
            "day_of_week",
            "academic_year_id",
            unique=True,
            postgresql_where=text("deleted_at IS NULL AND teacher_id IS NOT NULL"),
            sqlite_where=text("deleted_at IS NULL AND teacher_id IS NOT NULL"),
        ),
    )

    section_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("sections.id", ondelete="CASCADE"),
        nullable=False,
    )
    slot_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("timetable_slots.id", ondelete="CASCADE"),
        nullable=False,
    )
    academic_year_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("academic_years.id", ondelete="CASCADE"),
        nullable=False,
    )
    day_of_week: Mapped[str] = mapped_column(String(10), nullable=False)
    subject_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("subjects.id", ondelete="SET NULL"),
        nullable=True,
    )
    teacher_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("teachers.id", ondelete="SET NULL"),
        nullable=True,
    )
    room: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Relationships
    slot = relationship("TimetableSlot", lazy="selectin")
