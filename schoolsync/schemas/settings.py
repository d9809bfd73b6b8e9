"""Typed platform settings sections.

Each section is stored as its own SystemSettings row keyed by
``settings.<section>``.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

MASKED_VALUE = "********"


class SettingsSection(str, Enum):
    GENERAL = "general"
    EMAIL = "email"
    FEATURES = "features"
    SECURITY = "security"


class GeneralSettings(BaseModel):
    platform_name: str = Field("SchoolSync", max_length=100)
    platform_description: str | None = Field(
        "Multi-tenant School Management System", max_length=500
    )
    support_email: EmailStr = "support@schoolsync.com"
    support_phone: str | None = Field("", max_length=20)
    default_timezone: str = Field("UTC", max_length=100)
    default_language: str = Field("en", max_length=10)
    date_format: str = Field("%Y-%m-%d", max_length=20)
    time_format: str = Field("%H:%M", max_length=20)


class EmailSettings(BaseModel):
    mail_driver: Literal["smtp", "mailgun", "ses", "postmark", "log"] = "smtp"
    mail_host: str | None = Field(None, max_length=255)
    mail_port: int | None = Field(587, ge=1, le=65535)
    mail_username: str | None = Field(None, max_length=255)
    mail_password: str | None = Field(None, max_length=255)
    mail_encryption: Literal["tls", "ssl"] | None = "tls"
    mail_from_address: EmailStr = "noreply@schoolsync.com"
    mail_from_name: str = Field("SchoolSync", max_length=100)


class FeatureSettings(BaseModel):
    enable_registration: bool = True
    enable_social_login: bool = False
    enable_two_factor: bool = True
    enable_api_access: bool = True
    enable_notifications: bool = True
    enable_sms: bool = False
    maintenance_mode: bool = False


class SecuritySettings(BaseModel):
    session_lifetime: int = Field(120, ge=15, le=1440)
    password_min_length: int = Field(8, ge=6, le=32)
    password_require_uppercase: bool = True
    password_require_numbers: bool = True
    password_require_symbols: bool = False
    max_login_attempts: int = Field(5, ge=3, le=10)
    lockout_duration: int = Field(15, ge=1, le=60)


SECTION_MODELS: dict[SettingsSection, type[BaseModel]] = {
    SettingsSection.GENERAL: GeneralSettings,
    SettingsSection.EMAIL: EmailSettings,
    SettingsSection.FEATURES: FeatureSettings,
    SettingsSection.SECURITY: SecuritySettings,
}


class PlatformSettingsResponse(BaseModel):
    general: GeneralSettings
    email: EmailSettings
    features: FeatureSettings
    security: SecuritySettings
