"""Academic year and subject schemas."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from schoolsync.models.academic import AcademicYearStatus


class AcademicYearCreate(BaseModel):
    """Schema for creating an academic year."""

    name: str = Field(..., min_length=1, max_length=50)
    start_date: date
    end_date: date
    status: AcademicYearStatus = AcademicYearStatus.UPCOMING
    is_current: bool = False
    description: str | None = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class AcademicYearUpdate(BaseModel):
    """Schema for updating an academic year. is_current is changed via set-current only."""

    name: str | None = Field(None, min_length=1, max_length=50)
    start_date: date | None = None
    end_date: date | None = None
    status: AcademicYearStatus | None = None
    description: str | None = None


class AcademicYearResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    name: str
    start_date: date
    end_date: date
    status: str
    is_current: bool
    description: str | None
    created_at: datetime


class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=20)
    description: str | None = None
    subject_type: str = Field("theory", max_length=20)
    display_order: int = 0


class SubjectUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    code: str | None = Field(None, min_length=1, max_length=20)
    description: str | None = None
    subject_type: str | None = Field(None, max_length=20)
    display_order: int | None = None
    is_active: bool | None = None


class SubjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    code: str
    description: str | None
    subject_type: str
    display_order: int
    is_active: bool
