"""Student and guardian schemas."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from schoolsync.models.student import Gender, StudentStatus


class StudentCreate(BaseModel):
    """Creates the student's User and profile together."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=50)
    admission_no: str = Field(..., min_length=1, max_length=50)
    roll_no: str | None = Field(None, max_length=20)
    class_id: uuid.UUID
    section_id: uuid.UUID | None = None
    academic_year_id: uuid.UUID | None = Field(
        None, description="Defaults to the current academic year"
    )
    date_of_birth: date | None = None
    gender: Gender | None = None
    admission_date: date | None = None
    blood_group: str | None = Field(None, max_length=5)
    address: str | None = None
    medical_info: str | None = None


class StudentUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=50)
    roll_no: str | None = Field(None, max_length=20)
    class_id: uuid.UUID | None = None
    section_id: uuid.UUID | None = None
    date_of_birth: date | None = None
    gender: Gender | None = None
    blood_group: str | None = Field(None, max_length=5)
    address: str | None = None
    medical_info: str | None = None
    status: StudentStatus | None = None


class GuardianLinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    guardian_id: uuid.UUID
    relationship_type: str
    is_primary: bool
    is_emergency_contact: bool
    can_pickup: bool


class StudentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    user_id: uuid.UUID
    full_name: str
    admission_no: str
    roll_no: str | None
    class_id: uuid.UUID
    section_id: uuid.UUID | None
    academic_year_id: uuid.UUID
    date_of_birth: date | None
    gender: str | None
    admission_date: date | None
    status: str
    created_at: datetime
    guardian_links: list[GuardianLinkResponse] = []


class GuardianCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    relation: str = Field("guardian", max_length=30)
    phone: str = Field(..., min_length=3, max_length=50)
    email: EmailStr | None = None
    occupation: str | None = Field(None, max_length=100)
    address: str | None = None


class GuardianUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    relation: str | None = Field(None, max_length=30)
    phone: str | None = Field(None, min_length=3, max_length=50)
    email: EmailStr | None = None
    occupation: str | None = Field(None, max_length=100)
    address: str | None = None


class GuardianResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    full_name: str
    first_name: str
    last_name: str
    relation: str
    phone: str
    email: str | None
    occupation: str | None


class GuardianLinkRequest(BaseModel):
    """Attach a guardian to a student."""

    guardian_id: uuid.UUID
    relationship_type: str = Field("guardian", max_length=30)
    is_primary: bool = False
    is_emergency_contact: bool = False
    can_pickup: bool = False
