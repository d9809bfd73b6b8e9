"""Class and section schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from schoolsync.models.school_class import DEFAULT_SECTION_CAPACITY


class SchoolClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    numeric_name: int | None = None
    description: str | None = None
    display_order: int = 0


class SchoolClassUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    numeric_name: int | None = None
    description: str | None = None
    display_order: int | None = None
    is_active: bool | None = None


class SchoolClassResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    name: str
    numeric_name: int | None
    description: str | None
    display_order: int
    is_active: bool
    created_at: datetime


class SectionCreate(BaseModel):
    class_id: uuid.UUID
    academic_year_id: uuid.UUID | None = Field(
        None, description="Defaults to the current academic year"
    )
    name: str = Field(..., min_length=1, max_length=50)
    capacity: int = Field(DEFAULT_SECTION_CAPACITY, ge=1, le=500)
    class_teacher_id: uuid.UUID | None = None
    room_number: str | None = Field(None, max_length=50)


class SectionUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=50)
    capacity: int | None = Field(None, ge=1, le=500)
    class_teacher_id: uuid.UUID | None = None
    room_number: str | None = Field(None, max_length=50)
    is_active: bool | None = None


class SectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    class_id: uuid.UUID
    academic_year_id: uuid.UUID
    name: str
    capacity: int
    class_teacher_id: uuid.UUID | None
    room_number: str | None
    is_active: bool

    # Computed by the service
    student_count: int = 0
    available_seats: int = 0
