"""Authentication-related Pydantic schemas."""

import uuid

from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1)
    tenant_slug: str | None = Field(
        None, description="School slug; omit for platform accounts"
    )


class LoginResponse(BaseModel):
    """Login response with an access token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds until token expires


class CurrentUserResponse(BaseModel):
    """The authenticated principal."""

    user_id: uuid.UUID
    tenant_id: uuid.UUID | None
    role: str | None
    is_platform: bool
