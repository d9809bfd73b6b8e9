"""User-related Pydantic schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from schoolsync.models.user import Role, UserStatus


class UserCreateRequest(BaseModel):
    """Schema for creating a user from the platform console."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=50)
    role: Role
    tenant_id: uuid.UUID | None = None
    status: UserStatus = UserStatus.ACTIVE


class UserUpdateRequest(BaseModel):
    """Schema for updating a user."""

    email: EmailStr | None = None
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=50)
    role: Role | None = None
    status: UserStatus | None = None
    password: str | None = Field(None, min_length=8)


class UserResponse(BaseModel):
    """Schema for user response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID | None
    email: str
    first_name: str
    last_name: str
    full_name: str
    phone: str | None
    role: str
    status: str
    lifecycle_state: str
    deleted_at: datetime | None
    last_login_at: datetime | None
    created_at: datetime


class StaffCreate(BaseModel):
    """A non-teaching staff account of the current school."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=50)
    role: Role


class StaffUpdate(BaseModel):
    email: EmailStr | None = None
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=50)
    role: Role | None = None
    status: UserStatus | None = None
