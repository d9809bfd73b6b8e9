"""SystemSettings model for platform-wide configuration (non-tenant-scoped)."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from schoolsync.models.base import BaseModel, JSONType


class SystemSettings(BaseModel):
    """Key-value store for platform-wide settings.

    One row per settings section (general, email, features, security), so
    updating one section never rewrites another.
    """

    __tablename__ = "system_settings"

    key: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        index=True,
    )
    value: Mapped[dict] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
    )
