"""Service for managing school classes and their sections."""

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.exceptions import ConflictException, ValidationException
from schoolsync.models import SchoolClass, Section, Student, Teacher
from schoolsync.models.student import StudentStatus
from schoolsync.repositories import TenantScopedRepository
from schoolsync.schemas.school_class import (
    SchoolClassCreate,
    SchoolClassUpdate,
    SectionCreate,
    SectionResponse,
    SectionUpdate,
)
from schoolsync.services.academic_service import get_academic_service
from schoolsync.utils.tenant_context import get_tenant_id

logger = logging.getLogger(__name__)


class ClassService:
    """Service for classes and sections."""

    def __init__(self):
        self.classes = TenantScopedRepository(SchoolClass, "Class")
        self.sections = TenantScopedRepository(Section, "Section")
        self.teachers = TenantScopedRepository(Teacher, "Teacher")

    # ==================== CLASSES ====================

    async def get_classes(
        self,
        db: AsyncSession,
        is_active: bool | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> tuple[list[SchoolClass], int]:
        filters = []
        if is_active is not None:
            filters.append(SchoolClass.is_active == is_active)
        return await self.classes.paginate(
            db,
            *filters,
            search=search,
            search_fields=("name",),
            order_by=(SchoolClass.display_order, SchoolClass.name),
            page=page,
            page_size=page_size,
        )

    async def get_class(self, db: AsyncSession, class_id: uuid.UUID) -> SchoolClass:
        return await self.classes.get(db, class_id)

    async def create_class(self, db: AsyncSession, data: SchoolClassCreate) -> SchoolClass:
        return await self.classes.create(
            db,
            conflict_message=f"Class '{data.name}' already exists",
            **data.model_dump(),
        )

    async def update_class(
        self, db: AsyncSession, class_id: uuid.UUID, data: SchoolClassUpdate
    ) -> SchoolClass:
        school_class = await self.classes.get(db, class_id)
        return await self.classes.update(
            db,
            school_class,
            conflict_message="A class with this name already exists",
            **data.model_dump(exclude_unset=True),
        )

    async def delete_class(self, db: AsyncSession, class_id: uuid.UUID) -> None:
        """Soft delete a class. Blocked while active students are enrolled."""
        school_class = await self.classes.get(db, class_id)
        enrolled = await self._count_students(db, Student.class_id == school_class.id)
        if enrolled:
            raise ConflictException(f"Cannot delete a class with {enrolled} enrolled student(s)")
        await self.classes.soft_delete(db, school_class)

    # ==================== SECTIONS ====================

    async def get_sections(
        self,
        db: AsyncSession,
        class_id: uuid.UUID | None = None,
        academic_year_id: uuid.UUID | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> tuple[list[Section], int]:
        filters = []
        if class_id:
            filters.append(Section.class_id == class_id)
        if academic_year_id:
            filters.append(Section.academic_year_id == academic_year_id)
        return await self.sections.paginate(
            db,
            *filters,
            order_by=(Section.name,),
            page=page,
            page_size=page_size,
        )

    async def get_section(
        self, db: AsyncSession, section_id: uuid.UUID, for_update: bool = False
    ) -> Section:
        return await self.sections.get(db, section_id, for_update=for_update)

    async def create_section(self, db: AsyncSession, data: SectionCreate) -> Section:
        await self.classes.get(db, data.class_id)
        year_id = await get_academic_service().resolve_year_id(db, data.academic_year_id)
        if data.class_teacher_id:
            await self.teachers.get(db, data.class_teacher_id)

        return await self.sections.create(
            db,
            conflict_message=f"Section '{data.name}' already exists for this class and year",
            class_id=data.class_id,
            academic_year_id=year_id,
            name=data.name,
            capacity=data.capacity,
            class_teacher_id=data.class_teacher_id,
            room_number=data.room_number,
        )

    async def update_section(
        self, db: AsyncSession, section_id: uuid.UUID, data: SectionUpdate
    ) -> Section:
        section = await self.sections.get(db, section_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("class_teacher_id"):
            await self.teachers.get(db, changes["class_teacher_id"])
        if changes.get("capacity") is not None:
            enrolled = await self.count_active_students(db, section.id)
            if changes["capacity"] < enrolled:
                raise ValidationException(
                    [{"field": "capacity", "message": f"Section already has {enrolled} active students"}]
                )

        return await self.sections.update(
            db,
            section,
            conflict_message="A section with this name already exists",
            **changes,
        )

    async def delete_section(self, db: AsyncSession, section_id: uuid.UUID) -> None:
        section = await self.sections.get(db, section_id)
        enrolled = await self.count_active_students(db, section.id)
        if enrolled:
            raise ConflictException(f"Cannot delete a section with {enrolled} active student(s)")
        await self.sections.soft_delete(db, section)

    # ==================== SEATS ====================

    async def _count_students(self, db: AsyncSession, *filters) -> int:
        result = await db.execute(
            select(func.count(Student.id)).where(
                Student.tenant_id == get_tenant_id(),
                Student.deleted_at.is_(None),
                Student.status == StudentStatus.ACTIVE.value,
                *filters,
            )
        )
        return result.scalar() or 0

    async def count_active_students(self, db: AsyncSession, section_id: uuid.UUID) -> int:
        return await self._count_students(db, Student.section_id == section_id)

    async def available_seats(self, db: AsyncSession, section: Section) -> int:
        """capacity minus active students, computed on every call."""
        return max(0, section.capacity - await self.count_active_students(db, section.id))

    async def ensure_seat_available(self, db: AsyncSession, section_id: uuid.UUID) -> Section:
        """Lock the section and reject enrolment when it is full."""
        section = await self.sections.get(db, section_id, for_update=True)
        if await self.available_seats(db, section) <= 0:
            raise ConflictException(f"Section '{section.name}' is full ({section.capacity} seats)")
        return section

    async def to_response(self, db: AsyncSession, section: Section) -> SectionResponse:
        enrolled = await self.count_active_students(db, section.id)
        response = SectionResponse.model_validate(section)
        response.student_count = enrolled
        response.available_seats = max(0, section.capacity - enrolled)
        return response


# Singleton instance
_class_service: ClassService | None = None


def get_class_service() -> ClassService:
    """Get the class service singleton."""
    global _class_service
    if _class_service is None:
        _class_service = ClassService()
    return _class_service
