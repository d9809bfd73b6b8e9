"""Service for students, guardians and the links between them."""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.exceptions import ConflictException, NotFoundException, ValidationException
from schoolsync.models import Guardian, Student, StudentGuardian
from schoolsync.models.student import StudentStatus
from schoolsync.models.user import Role, UserStatus
from schoolsync.repositories import TenantScopedRepository
from schoolsync.schemas.student import (
    GuardianCreate,
    GuardianLinkRequest,
    GuardianUpdate,
    StudentCreate,
    StudentUpdate,
)
from schoolsync.services.academic_service import get_academic_service
from schoolsync.services.class_service import get_class_service
from schoolsync.services.user_service import get_user_service
from schoolsync.utils.tenant_context import get_tenant_id

logger = logging.getLogger(__name__)

_USER_FIELDS = ("first_name", "last_name", "phone")


class StudentService:
    """Service for managing students and guardians."""

    def __init__(self):
        self.students = TenantScopedRepository(Student, "Student")
        self.guardians = TenantScopedRepository(Guardian, "Guardian")

    # ==================== STUDENTS ====================

    async def get_students(
        self,
        db: AsyncSession,
        class_id: uuid.UUID | None = None,
        section_id: uuid.UUID | None = None,
        status: StudentStatus | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Student], int]:
        filters = []
        if class_id:
            filters.append(Student.class_id == class_id)
        if section_id:
            filters.append(Student.section_id == section_id)
        if status:
            filters.append(Student.status == status.value)
        return await self.students.paginate(
            db,
            *filters,
            search=search,
            search_fields=("admission_no", "roll_no"),
            order_by=(Student.admission_no,),
            page=page,
            page_size=page_size,
        )

    async def get_student(
        self, db: AsyncSession, student_id: uuid.UUID, for_update: bool = False
    ) -> Student:
        return await self.students.get(db, student_id, for_update=for_update)

    async def create_student(self, db: AsyncSession, data: StudentCreate) -> Student:
        """Enrol a student: login account plus profile.

        Raises:
            ConflictException: If the admission number is taken or the section is full
        """
        class_service = get_class_service()
        await class_service.get_class(db, data.class_id)
        year_id = await get_academic_service().resolve_year_id(db, data.academic_year_id)

        # Admission numbers are never reused, not even after deletion
        taken = await db.execute(
            self.students.query(Student.admission_no == data.admission_no, include_deleted=True)
        )
        if taken.first() is not None:
            raise ConflictException(f"Admission number '{data.admission_no}' already exists")

        if data.section_id:
            section = await class_service.ensure_seat_available(db, data.section_id)
            self._check_section_class(section, data.class_id)

        user = await get_user_service().create_account(
            db,
            tenant_id=get_tenant_id(),
            email=data.email,
            password=data.password,
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            role=Role.STUDENT,
        )
        student = await self.students.create(
            db,
            conflict_message=f"Admission number '{data.admission_no}' already exists",
            user=user,
            user_id=user.id,
            guardian_links=[],
            admission_no=data.admission_no,
            roll_no=data.roll_no,
            class_id=data.class_id,
            section_id=data.section_id,
            academic_year_id=year_id,
            date_of_birth=data.date_of_birth,
            gender=data.gender.value if data.gender else None,
            admission_date=data.admission_date,
            blood_group=data.blood_group,
            address=data.address,
            medical_info=data.medical_info,
        )
        logger.info(f"Enrolled student {student.admission_no} ({student.id})")
        return student

    async def update_student(
        self, db: AsyncSession, student_id: uuid.UUID, data: StudentUpdate
    ) -> Student:
        student = await self.students.get(db, student_id)
        changes = data.model_dump(exclude_unset=True)
        class_service = get_class_service()

        for field in _USER_FIELDS:
            if field in changes:
                setattr(student.user, field, changes.pop(field))

        if changes.get("class_id") is None:
            changes.pop("class_id", None)
        class_id = changes.get("class_id", student.class_id)
        section_id = changes["section_id"] if "section_id" in changes else student.section_id
        status = StudentStatus(changes.get("status") or student.status)

        if class_id != student.class_id:
            await class_service.get_class(db, class_id)

        # A student takes a seat when they become active in a section they did not hold
        takes_seat = status == StudentStatus.ACTIVE and (
            section_id != student.section_id or student.status != StudentStatus.ACTIVE.value
        )
        if section_id and takes_seat:
            section = await class_service.ensure_seat_available(db, section_id)
            self._check_section_class(section, class_id)
        elif section_id and (class_id != student.class_id or section_id != student.section_id):
            section = await class_service.get_section(db, section_id)
            self._check_section_class(section, class_id)

        if changes.get("gender") is not None:
            changes["gender"] = changes["gender"].value
        if changes.get("status") is not None:
            changes["status"] = status.value

        return await self.students.update(db, student, **changes)

    async def delete_student(self, db: AsyncSession, student_id: uuid.UUID) -> None:
        """Soft delete the profile and deactivate the login."""
        student = await self.students.get(db, student_id)
        student.status = StudentStatus.INACTIVE.value
        if student.user:
            student.user.status = UserStatus.INACTIVE.value
        await self.students.soft_delete(db, student)

    def _check_section_class(self, section, class_id: uuid.UUID) -> None:
        if section.class_id != class_id:
            raise ValidationException(
                [{"field": "section_id", "message": "Section does not belong to the selected class"}]
            )

    # ==================== GUARDIANS ====================

    async def get_guardians(
        self,
        db: AsyncSession,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Guardian], int]:
        return await self.guardians.paginate(
            db,
            search=search,
            search_fields=("first_name", "last_name", "phone", "email"),
            order_by=(Guardian.last_name, Guardian.first_name),
            page=page,
            page_size=page_size,
        )

    async def get_guardian(self, db: AsyncSession, guardian_id: uuid.UUID) -> Guardian:
        return await self.guardians.get(db, guardian_id)

    async def create_guardian(self, db: AsyncSession, data: GuardianCreate) -> Guardian:
        return await self.guardians.create(db, **data.model_dump())

    async def update_guardian(
        self, db: AsyncSession, guardian_id: uuid.UUID, data: GuardianUpdate
    ) -> Guardian:
        guardian = await self.guardians.get(db, guardian_id)
        return await self.guardians.update(db, guardian, **data.model_dump(exclude_unset=True))

    async def delete_guardian(self, db: AsyncSession, guardian_id: uuid.UUID) -> None:
        guardian = await self.guardians.get(db, guardian_id)
        await self.guardians.soft_delete(db, guardian)

    async def link_guardian(
        self, db: AsyncSession, student_id: uuid.UUID, data: GuardianLinkRequest
    ) -> Student:
        """Attach a guardian to a student. A new primary guardian demotes the old one."""
        student = await self.students.get(db, student_id)
        await self.guardians.get(db, data.guardian_id)

        if any(link.guardian_id == data.guardian_id for link in student.guardian_links):
            raise ConflictException("Guardian is already linked to this student")

        if data.is_primary:
            for link in student.guardian_links:
                link.is_primary = False

        student.guardian_links.append(
            StudentGuardian(
                student_id=student.id,
                guardian_id=data.guardian_id,
                relationship_type=data.relationship_type,
                is_primary=data.is_primary,
                is_emergency_contact=data.is_emergency_contact,
                can_pickup=data.can_pickup,
            )
        )
        await db.flush()
        return student

    async def unlink_guardian(
        self, db: AsyncSession, student_id: uuid.UUID, guardian_id: uuid.UUID
    ) -> Student:
        student = await self.students.get(db, student_id)
        link = next(
            (link for link in student.guardian_links if link.guardian_id == guardian_id),
            None,
        )
        if link is None:
            raise NotFoundException("Guardian link")
        student.guardian_links.remove(link)
        await db.flush()
        return student


# Singleton instance
_student_service: StudentService | None = None


def get_student_service() -> StudentService:
    """Get the student service singleton."""
    global _student_service
    if _student_service is None:
        _student_service = StudentService()
    return _student_service
