"""Service for academic years and subjects."""

import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.exceptions import NotFoundException, ValidationException
from schoolsync.models import AcademicYear, Subject, Tenant
from schoolsync.models.academic import AcademicYearStatus
from schoolsync.repositories import TenantScopedRepository
from schoolsync.schemas.academic import (
    AcademicYearCreate,
    AcademicYearUpdate,
    SubjectCreate,
    SubjectUpdate,
)
from schoolsync.utils.tenant_context import get_tenant_id

logger = logging.getLogger(__name__)


class AcademicService:
    """Academic configuration of a school."""

    def __init__(self):
        self.years = TenantScopedRepository(AcademicYear, "Academic year")
        self.subjects = TenantScopedRepository(Subject, "Subject")

    # ==================== ACADEMIC YEARS ====================

    async def get_academic_years(
        self,
        db: AsyncSession,
        status: AcademicYearStatus | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[AcademicYear], int]:
        filters = []
        if status:
            filters.append(AcademicYear.status == status.value)
        return await self.years.paginate(
            db,
            *filters,
            order_by=(AcademicYear.start_date.desc(),),
            page=page,
            page_size=page_size,
        )

    async def get_academic_year(self, db: AsyncSession, year_id: uuid.UUID) -> AcademicYear:
        return await self.years.get(db, year_id)

    async def get_current_year(self, db: AsyncSession) -> AcademicYear | None:
        """The tenant's current academic year, if one is set."""
        result = await db.execute(self.years.query(AcademicYear.is_current.is_(True)))
        return result.scalar_one_or_none()

    async def require_current_year(self, db: AsyncSession) -> AcademicYear:
        year = await self.get_current_year(db)
        if year is None:
            raise NotFoundException("Current academic year")
        return year

    async def resolve_year_id(self, db: AsyncSession, year_id: uuid.UUID | None) -> uuid.UUID:
        """Check an explicit year belongs to the tenant, or fall back to the current one."""
        if year_id is None:
            return (await self.require_current_year(db)).id
        return (await self.years.get(db, year_id)).id

    async def create_academic_year(self, db: AsyncSession, data: AcademicYearCreate) -> AcademicYear:
        year = await self.years.create(
            db,
            conflict_message=f"Academic year '{data.name}' already exists",
            name=data.name,
            start_date=data.start_date,
            end_date=data.end_date,
            status=data.status.value,
            is_current=False,
            description=data.description,
        )
        if data.is_current:
            year = await self.set_current(db, year.id)
        return year

    async def update_academic_year(
        self, db: AsyncSession, year_id: uuid.UUID, data: AcademicYearUpdate
    ) -> AcademicYear:
        year = await self.years.get(db, year_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("status") is not None:
            changes["status"] = AcademicYearStatus(changes["status"]).value

        start_date = changes.get("start_date") or year.start_date
        end_date = changes.get("end_date") or year.end_date
        if end_date <= start_date:
            raise ValidationException([{"field": "end_date", "message": "end_date must be after start_date"}])

        return await self.years.update(
            db,
            year,
            conflict_message="An academic year with this name already exists",
            **changes,
        )

    async def set_current(self, db: AsyncSession, year_id: uuid.UUID) -> AcademicYear:
        """Make one academic year the tenant's current year.

        The tenant row is locked first, so two concurrent calls for the same
        school serialize. Every other year is cleared before the target is
        set. Calling it for the current year changes nothing.
        """
        tenant_id = get_tenant_id()
        await db.execute(select(Tenant.id).where(Tenant.id == tenant_id).with_for_update())

        year = await self.years.get(db, year_id)
        if year.is_current and year.status == AcademicYearStatus.ACTIVE.value:
            return year

        await db.execute(
            update(AcademicYear)
            .where(
                AcademicYear.tenant_id == tenant_id,
                AcademicYear.id != year.id,
                AcademicYear.is_current.is_(True),
            )
            .values(is_current=False)
            .execution_options(synchronize_session="fetch")
        )
        await db.flush()

        year.is_current = True
        year.status = AcademicYearStatus.ACTIVE.value
        await db.flush()
        logger.info(f"Academic year {year.name} ({year.id}) is now current for tenant {tenant_id}")
        return year

    async def delete_academic_year(self, db: AsyncSession, year_id: uuid.UUID) -> None:
        year = await self.years.get(db, year_id)
        year.is_current = False
        await self.years.soft_delete(db, year)

    # ==================== SUBJECTS ====================

    async def get_subjects(
        self,
        db: AsyncSession,
        is_active: bool | None = True,
        search: str | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> tuple[list[Subject], int]:
        """Get all subjects for the current tenant."""
        filters = []
        if is_active is not None:
            filters.append(Subject.is_active == is_active)
        return await self.subjects.paginate(
            db,
            *filters,
            search=search,
            search_fields=("name", "code"),
            order_by=(Subject.display_order, Subject.name),
            page=page,
            page_size=page_size,
        )

    async def get_subject(self, db: AsyncSession, subject_id: uuid.UUID) -> Subject:
        return await self.subjects.get(db, subject_id)

    async def create_subject(self, db: AsyncSession, data: SubjectCreate) -> Subject:
        code = data.code.upper()
        return await self.subjects.create(
            db,
            conflict_message=f"Subject code '{code}' already exists",
            name=data.name,
            code=code,
            description=data.description,
            subject_type=data.subject_type,
            display_order=data.display_order,
            is_active=True,
        )

    async def update_subject(
        self, db: AsyncSession, subject_id: uuid.UUID, data: SubjectUpdate
    ) -> Subject:
        subject = await self.subjects.get(db, subject_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("code"):
            changes["code"] = changes["code"].upper()
        return await self.subjects.update(
            db,
            subject,
            conflict_message="A subject with this code already exists",
            **changes,
        )

    async def delete_subject(self, db: AsyncSession, subject_id: uuid.UUID) -> None:
        """Soft delete a subject."""
        subject = await self.subjects.get(db, subject_id)
        await self.subjects.soft_delete(db, subject)


# Singleton instance
_academic_service: AcademicService | None = None


def get_academic_service() -> AcademicService:
    """Get the academic service singleton."""
    global _academic_service
    if _academic_service is None:
        _academic_service = AcademicService()
    return _academic_service
