"""Teacher schemas."""

import uuid
from datetime import date

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class TeacherCreate(BaseModel):
    """Creates the login User and the teacher profile together."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=50)
    employee_id: str = Field(..., min_length=1, max_length=50)
    qualification: str | None = Field(None, max_length=255)
    specialization: str | None = Field(None, max_length=255)
    joining_date: date | None = None


class TeacherUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=50)
    employee_id: str | None = Field(None, min_length=1, max_length=50)
    qualification: str | None = Field(None, max_length=255)
    specialization: str | None = Field(None, max_length=255)
    joining_date: date | None = None
    status: str | None = Field(None, pattern=r"^(active|inactive)$")


class TeacherResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    full_name: str
    employee_id: str
    qualification: str | None
    specialization: str | None
    joining_date: date | None
    status: str
