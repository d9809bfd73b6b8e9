"""Service for teacher staff profiles."""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.models import Teacher
from schoolsync.models.user import Role, UserStatus
from schoolsync.repositories import TenantScopedRepository
from schoolsync.schemas.teacher import TeacherCreate, TeacherUpdate
from schoolsync.services.user_service import get_user_service
from schoolsync.utils.tenant_context import get_tenant_id

logger = logging.getLogger(__name__)

_USER_FIELDS = ("first_name", "last_name", "phone")


class TeacherService:
    def __init__(self):
        self.teachers = TenantScopedRepository(Teacher, "Teacher")

    async def get_teachers(
        self,
        db: AsyncSession,
        status: str | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Teacher], int]:
        filters = []
        if status:
            filters.append(Teacher.status == status)
        return await self.teachers.paginate(
            db,
            *filters,
            search=search,
            search_fields=("employee_id", "specialization"),
            order_by=(Teacher.employee_id,),
            page=page,
            page_size=page_size,
        )

    async def get_teacher(self, db: AsyncSession, teacher_id: uuid.UUID) -> Teacher:
        return await self.teachers.get(db, teacher_id)

    async def create_teacher(self, db: AsyncSession, data: TeacherCreate) -> Teacher:
        """Create the teacher's login account and staff profile."""
        user = await get_user_service().create_account(
            db,
            tenant_id=get_tenant_id(),
            email=data.email,
            password=data.password,
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            role=Role.TEACHER,
        )
        teacher = await self.teachers.create(
            db,
            conflict_message=f"Employee ID '{data.employee_id}' already exists",
            user=user,
            user_id=user.id,
            employee_id=data.employee_id,
            qualification=data.qualification,
            specialization=data.specialization,
            joining_date=data.joining_date,
        )
        logger.info(f"Created teacher {teacher.employee_id} ({teacher.id})")
        return teacher

    async def update_teacher(
        self, db: AsyncSession, teacher_id: uuid.UUID, data: TeacherUpdate
    ) -> Teacher:
        teacher = await self.teachers.get(db, teacher_id)
        changes = data.model_dump(exclude_unset=True)

        for field in _USER_FIELDS:
            if field in changes:
                setattr(teacher.user, field, changes.pop(field))

        return await self.teachers.update(
            db,
            teacher,
            conflict_message="A teacher with this employee ID already exists",
            **changes,
        )

    async def delete_teacher(self, db: AsyncSession, teacher_id: uuid.UUID) -> None:
        """Soft delete the profile and deactivate the login."""
        teacher = await self.teachers.get(db, teacher_id)
        teacher.status = "inactive"
        if teacher.user:
            teacher.user.status = UserStatus.INACTIVE.value
        await self.teachers.soft_delete(db, teacher)


# Singleton instance
_teacher_service: TeacherService | None = None


def get_teacher_service() -> TeacherService:
    """Get the teacher service singleton."""
    global _teacher_service
    if _teacher_service is None:
        _teacher_service = TeacherService()
    return _teacher_service
