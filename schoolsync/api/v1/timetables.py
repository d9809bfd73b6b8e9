"""Timetable endpoints: period slots and weekly entries."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.database import get_db
from schoolsync.schemas.common import APIResponse
from schoolsync.schemas.timetable import (
    TimetableEntryCreate,
    TimetableEntryResponse,
    TimetableEntryUpdate,
    TimetableSlotCreate,
    TimetableSlotResponse,
)
from schoolsync.services.timetable_service import get_timetable_service
from schoolsync.utils.permissions import Permission, require_permission

router = APIRouter()


# Slots

@router.get("/slots", response_model=APIResponse[list[TimetableSlotResponse]])
@require_permission(Permission.VIEW_TIMETABLE)
async def list_slots(db: AsyncSession = Depends(get_db)):
    slots = await get_timetable_service().get_slots(db)
    return APIResponse(data=[TimetableSlotResponse.model_validate(s) for s in slots])


@router.post("/slots", response_model=APIResponse[TimetableSlotResponse], status_code=201)
@require_permission(Permission.MANAGE_TIMETABLE)
async def create_slot(data: TimetableSlotCreate, db: AsyncSession = Depends(get_db)):
    slot = await get_timetable_service().create_slot(db, data)
    await db.commit()
    return APIResponse(
        data=TimetableSlotResponse.model_validate(slot),
        message="Slot created successfully",
    )


@router.put("/slots/{slot_id}", response_model=APIResponse[TimetableSlotResponse])
@require_permission(Permission.MANAGE_TIMETABLE)
async def update_slot(
    slot_id: uuid.UUID,
    data: TimetableSlotCreate,
    db: AsyncSession = Depends(get_db),
):
    slot = await get_timetable_service().update_slot(db, slot_id, data)
    await db.commit()
    return APIResponse(
        data=TimetableSlotResponse.model_validate(slot),
        message="Slot updated successfully",
    )


@router.delete("/slots/{slot_id}")
@require_permission(Permission.MANAGE_TIMETABLE)
async def delete_slot(slot_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> APIResponse:
    await get_timetable_service().delete_slot(db, slot_id)
    await db.commit()
    return APIResponse(message="Slot deleted successfully")


# Entries

@router.post("/entries", response_model=APIResponse[TimetableEntryResponse], status_code=201)
@require_permission(Permission.MANAGE_TIMETABLE)
async def create_entry(data: TimetableEntryCreate, db: AsyncSession = Depends(get_db)):
    """Schedule a section in a slot. Clashes for the section or teacher are rejected with 409."""
    entry = await get_timetable_service().create_entry(db, data)
    await db.commit()
    return APIResponse(
        data=TimetableEntryResponse.model_validate(entry),
        message="Timetable entry created",
    )


@router.put("/entries/{entry_id}", response_model=APIResponse[TimetableEntryResponse])
@require_permission(Permission.MANAGE_TIMETABLE)
async def update_entry(
    entry_id: uuid.UUID,
    data: TimetableEntryUpdate,
    db: AsyncSession = Depends(get_db),
):
    entry = await get_timetable_service().update_entry(db, entry_id, data)
    await db.commit()
    return APIResponse(
        data=TimetableEntryResponse.model_validate(entry),
        message="Timetable entry updated",
    )


@router.delete("/entries/{entry_id}")
@require_permission(Permission.MANAGE_TIMETABLE)
async def delete_entry(entry_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> APIResponse:
    await get_timetable_service().delete_entry(db, entry_id)
    await db.commit()
    return APIResponse(message="Timetable entry deleted")


@router.get(
    "/sections/{section_id}",
    response_model=APIResponse[dict[str, list[TimetableEntryResponse]]],
)
@require_permission(Permission.VIEW_TIMETABLE)
async def get_section_timetable(
    section_id: uuid.UUID,
    academic_year_id: uuid.UUID | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Weekly timetable of a section, keyed by day."""
    week = await get_timetable_service().get_section_timetable(db, section_id, academic_year_id)
    return APIResponse(
        data={
            day: [TimetableEntryResponse.model_validate(e) for e in entries]
            for day, entries in week.items()
        }
    )


@router.get("/teachers/{teacher_id}", response_model=APIResponse[list[TimetableEntryResponse]])
@require_permission(Permission.VIEW_TIMETABLE)
async def get_teacher_timetable(
    teacher_id: uuid.UUID,
    academic_year_id: uuid.UUID | None = None,
    db: AsyncSession = Depends(get_db),
):
    entries = await get_timetable_service().get_teacher_timetable(db, teacher_id, academic_year_id)
    return APIResponse(data=[TimetableEntryResponse.model_validate(e) for e in entries])
