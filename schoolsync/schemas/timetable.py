"""Timetable schemas."""

import uuid
from datetime import time

from pydantic import BaseModel, ConfigDict, Field, model_validator

from schoolsync.models.timetable import DayOfWeek


class TimetableSlotCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    start_time: time
    end_time: time
    slot_order: int = 0
    is_break: bool = False

    @model_validator(mode="after")
    def check_times(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class TimetableSlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    start_time: time
    end_time: time
    slot_order: int
    is_break: bool


class TimetableEntryCreate(BaseModel):
    section_id: uuid.UUID
    slot_id: uuid.UUID
    academic_year_id: uuid.UUID | None = Field(
        None, description="Defaults to the current academic year"
    )
    day_of_week: DayOfWeek
    subject_id: uuid.UUID | None = None
    teacher_id: uuid.UUID | None = None
    room: str | None = Field(None, max_length=50)


class TimetableEntryUpdate(BaseModel):
    subject_id: uuid.UUID | None = None
    teacher_id: uuid.UUID | None = None
    room: str | None = Field(None, max_length=50)


class TimetableEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    section_id: uuid.UUID
    slot_id: uuid.UUID
    academic_year_id: uuid.UUID
    day_of_week: str
    subject_id: uuid.UUID | None
    teacher_id: uuid.UUID | None
    room: str | None
