"""Timetable service: period slots and weekly section timetables."""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.exceptions import ConflictException, ValidationException
from schoolsync.models import Subject, Teacher, TimetableEntry, TimetableSlot
from schoolsync.models.timetable import DAY_ORDER, DayOfWeek
from schoolsync.repositories import TenantScopedRepository
from schoolsync.schemas.timetable import (
    TimetableEntryCreate,
    TimetableEntryUpdate,
    TimetableSlotCreate,
)
from schoolsync.services.academic_service import get_academic_service
from schoolsync.services.class_service import get_class_service

logger = logging.getLogger(__name__)


class TimetableService:
    def __init__(self):
        self.slots = TenantScopedRepository(TimetableSlot, "Timetable slot")
        self.entries = TenantScopedRepository(TimetableEntry, "Timetable entry")
        self.subjects = TenantScopedRepository(Subject, "Subject")
        self.teachers = TenantScopedRepository(Teacher, "Teacher")

    # ==================== SLOTS ====================

    async def get_slots(self, db: AsyncSession) -> list[TimetableSlot]:
        return await self.slots.all(db, order_by=(TimetableSlot.slot_order, TimetableSlot.start_time))

    async def create_slot(self, db: AsyncSession, data: TimetableSlotCreate) -> TimetableSlot:
        return await self.slots.create(db, **data.model_dump())

    async def update_slot(
        self, db: AsyncSession, slot_id: uuid.UUID, data: TimetableSlotCreate
    ) -> TimetableSlot:
        slot = await self.slots.get(db, slot_id)
        return await self.slots.update(db, slot, **data.model_dump())

    async def delete_slot(self, db: AsyncSession, slot_id: uuid.UUID) -> None:
        slot = await self.slots.get(db, slot_id)
        if await self.entries.exists(db, TimetableEntry.slot_id == slot.id):
            raise ConflictException("Cannot delete a slot that is used in a timetable")
        await self.slots.soft_delete(db, slot)

    # ==================== ENTRIES ====================

    async def create_entry(self, db: AsyncSession, data: TimetableEntryCreate) -> TimetableEntry:
        """Schedule a section in a slot.

        Raises:
            ConflictException: If the section slot is taken or the teacher is double-booked
        """
        section = await get_class_service().get_section(db, data.section_id)
        slot = await self.slots.get(db, data.slot_id)
        if slot.is_break and (data.subject_id or data.teacher_id):
            raise ValidationException([{"field": "slot_id", "message": "Breaks cannot have a subject or teacher"}])
        year_id = data.academic_year_id or section.academic_year_id
        await get_academic_service().get_academic_year(db, year_id)
        await self._check_references(db, data.subject_id, data.teacher_id)

        day = data.day_of_week.value
        if await self.entries.exists(
            db,
            TimetableEntry.section_id == section.id,
            TimetableEntry.slot_id == slot.id,
            TimetableEntry.day_of_week == day,
            TimetableEntry.academic_year_id == year_id,
        ):
            raise ConflictException(f"Section already has a class in {slot.name} on {day}")
        await self._check_teacher_free(db, data.teacher_id, slot, day, year_id)

        return await self.entries.create(
            db,
            conflict_message="Timetable slot is already taken",
            slot=slot,
            section_id=section.id,
            slot_id=slot.id,
            academic_year_id=year_id,
            day_of_week=day,
            subject_id=data.subject_id,
            teacher_id=data.teacher_id,
            room=data.room,
        )

    async def update_entry(
        self, db: AsyncSession, entry_id: uuid.UUID, data: TimetableEntryUpdate
    ) -> TimetableEntry:
        entry = await self.entries.get(db, entry_id)
        changes = data.model_dump(exclude_unset=True)
        await self._check_references(db, changes.get("subject_id"), changes.get("teacher_id"))
        if changes.get("teacher_id") and changes["teacher_id"] != entry.teacher_id:
            await self._check_teacher_free(
                db, changes["teacher_id"], entry.slot, entry.day_of_week, entry.academic_year_id
            )
        return await self.entries.update(
            db, entry, conflict_message="Teacher is already booked in this slot", **changes
        )

    async def delete_entry(self, db: AsyncSession, entry_id: uuid.UUID) -> None:
        entry = await self.entries.get(db, entry_id)
        await self.entries.soft_delete(db, entry)

    async def get_section_timetable(
        self, db: AsyncSession, section_id: uuid.UUID, academic_year_id: uuid.UUID | None = None
    ) -> dict[str, list[TimetableEntry]]:
        """Weekly view: entries grouped by day, ordered by slot."""
        section = await get_class_service().get_section(db, section_id)
        year_id = academic_year_id or section.academic_year_id
        entries = await self.entries.all(
            db,
            TimetableEntry.section_id == section.id,
            TimetableEntry.academic_year_id == year_id,
        )
        week: dict[str, list[TimetableEntry]] = {day.value: [] for day in DayOfWeek}
        for entry in sorted(
            entries, key=lambda e: (DAY_ORDER[e.day_of_week], e.slot.slot_order, e.slot.start_time)
        ):
            week[entry.day_of_week].append(entry)
        return week

    async def get_teacher_timetable(
        self, db: AsyncSession, teacher_id: uuid.UUID, academic_year_id: uuid.UUID | None = None
    ) -> list[TimetableEntry]:
        await self.teachers.get(db, teacher_id)
        filters = [TimetableEntry.teacher_id == teacher_id]
        if academic_year_id:
            filters.append(TimetableEntry.academic_year_id == academic_year_id)
        entries = await self.entries.all(db, *filters)
        return sorted(entries, key=lambda e: (DAY_ORDER[e.day_of_week], e.slot.slot_order))

    async def _check_references(
        self, db: AsyncSession, subject_id: uuid.UUID | None, teacher_id: uuid.UUID | None
    ) -> None:
        if subject_id:
            await self.subjects.get(db, subject_id)
        if teacher_id:
            await self.teachers.get(db, teacher_id)

    async def _check_teacher_free(
        self,
        db: AsyncSession,
        teacher_id: uuid.UUID | None,
        slot: TimetableSlot,
        day: str,
        year_id: uuid.UUID,
    ) -> None:
        if teacher_id is None:
            return
        if await self.entries.exists(
            db,
            TimetableEntry.teacher_id == teacher_id,
            TimetableEntry.slot_id == slot.id,
            TimetableEntry.day_of_week == day,
            TimetableEntry.academic_year_id == year_id,
        ):
            raise ConflictException(f"Teacher is already booked in {slot.name} on {day}")


# Singleton instance
_timetable_service: TimetableService | None = None


def get_timetable_service() -> TimetableService:
    """Get the timetable service singleton."""
    global _timetable_service
    if _timetable_service is None:
        _timetable_service = TimetableService()
    return _timetable_service
