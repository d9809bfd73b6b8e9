"""Platform settings stored as one SystemSettings row per section."""

import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.exceptions import ConflictException, ValidationException
from schoolsync.models import SystemSettings
from schoolsync.schemas.settings import (
    MASKED_VALUE,
    SECTION_MODELS,
    PlatformSettingsResponse,
    SettingsSection,
)
from schoolsync.utils.tenant_context import require_platform_context

logger = logging.getLogger(__name__)

SETTINGS_KEY_PREFIX = "settings."

# Fields never returned in clear text
SECRET_FIELDS: dict[SettingsSection, tuple[str, ...]] = {
    SettingsSection.EMAIL: ("mail_password",),
}


def section_key(section: SettingsSection) -> str:
    return f"{SETTINGS_KEY_PREFIX}{section.value}"


def mask_secrets(section: SettingsSection, values: dict) -> dict:
    masked = dict(values)
    for field in SECRET_FIELDS.get(section, ()):
        if masked.get(field):
            masked[field] = MASKED_VALUE
    return masked


class SettingsService:
    """Read and write the typed platform settings sections."""

    async def _get_row(
        self, db: AsyncSession, section: SettingsSection, for_update: bool = False
    ) -> SystemSettings | None:
        query = select(SystemSettings).where(SystemSettings.key == section_key(section))
        if for_update:
            query = query.with_for_update()
        return (await db.execute(query)).scalar_one_or_none()

    async def _load(self, db: AsyncSession, section: SettingsSection) -> dict:
        """Stored values merged over the section defaults, secrets in clear."""
        model = SECTION_MODELS[section]
        row = await self._get_row(db, section)
        stored = dict(row.value) if row else {}
        known = {key: value for key, value in stored.items() if key in model.model_fields}
        return model(**{**model().model_dump(), **known}).model_dump(mode="json")

    async def get_section(self, db: AsyncSession, section: SettingsSection) -> dict:
        require_platform_context()
        return mask_secrets(section, await self._load(db, section))

    async def get_all(self, db: AsyncSession) -> PlatformSettingsResponse:
        require_platform_context()
        values = {
            section.value: mask_secrets(section, await self._load(db, section))
            for section in SettingsSection
        }
        return PlatformSettingsResponse(**values)

    async def update_section(
        self, db: AsyncSession, section: SettingsSection, payload: dict
    ) -> dict:
        """Validate and replace one section.

        The section row is locked for the update, so concurrent writes to
        other sections are untouched. A secret sent back as the mask keeps
        its stored value.
        """
        require_platform_context()
        model = SECTION_MODELS[section]
        row = await self._get_row(db, section, for_update=True)
        current = dict(row.value) if row else {}

        payload = dict(payload)
        for field in SECRET_FIELDS.get(section, ()):
            if payload.get(field) == MASKED_VALUE:
                payload[field] = current.get(field)

        try:
            validated = model(**payload)
        except PydanticValidationError as exc:
            raise ValidationException(
                [
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in exc.errors()
                ]
            ) from exc

        values = validated.model_dump(mode="json")
        if row:
            row.value = values
        else:
            db.add(SystemSettings(key=section_key(section), value=values))
        try:
            await db.flush()
        except IntegrityError as exc:
            raise ConflictException("Settings were modified concurrently, please retry") from exc

        logger.info(f"Platform settings section '{section.value}' updated")
        return mask_secrets(section, values)


# Singleton instance
_settings_service: SettingsService | None = None


def get_settings_service() -> SettingsService:
    """Get the settings service singleton."""
    global _settings_service
    if _settings_service is None:
        _settings_service = SettingsService()
    return _settings_service
