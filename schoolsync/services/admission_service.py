"""Admission applications: apply, review and convert to a student."""

import logging
import secrets
import string
import uuid
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.config import settings
from schoolsync.exceptions import ConflictException
from schoolsync.models import AdmissionApplication, Guardian, Student
from schoolsync.models.admission import AdmissionStatus
from schoolsync.models.base import utcnow
from schoolsync.models.student import Gender
from schoolsync.repositories import TenantScopedRepository
from schoolsync.schemas.admission import AdmissionApplicationCreate, AdmissionStatusUpdate
from schoolsync.schemas.student import GuardianCreate, GuardianLinkRequest, StudentCreate
from schoolsync.services.academic_service import get_academic_service
from schoolsync.services.class_service import get_class_service
from schoolsync.services.student_service import get_student_service
from schoolsync.utils.tenant_context import require_scoped_context

logger = logging.getLogger(__name__)

_KNOWN_RELATIONS = {"father", "mother", "guardian"}
_APPLICATION_NO_ALPHABET = string.ascii_uppercase + string.digits


def generate_application_no(today: date | None = None) -> str:
    """ADM-<year>-<6 random characters>."""
    year = (today or date.today()).year
    suffix = "".join(secrets.choice(_APPLICATION_NO_ALPHABET) for _ in range(6))
    return f"{settings.application_prefix}-{year}-{suffix}"


class AdmissionService:
    def __init__(self):
        self.applications = TenantScopedRepository(AdmissionApplication, "Admission application")
        self.guardians = TenantScopedRepository(Guardian, "Guardian")

    async def get_applications(
        self,
        db: AsyncSession,
        status: AdmissionStatus | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[AdmissionApplication], int]:
        filters = []
        if status:
            filters.append(AdmissionApplication.status == status.value)
        return await self.applications.paginate(
            db,
            *filters,
            search=search,
            search_fields=("first_name", "last_name", "application_no", "guardian_phone"),
            order_by=(AdmissionApplication.created_at.desc(),),
            page=page,
            page_size=page_size,
        )

    async def get_application(self, db: AsyncSession, application_id: uuid.UUID) -> AdmissionApplication:
        return await self.applications.get(db, application_id)

    async def create_application(
        self, db: AsyncSession, data: AdmissionApplicationCreate
    ) -> AdmissionApplication:
        await get_class_service().get_class(db, data.class_id)
        year_id = await get_academic_service().resolve_year_id(db, data.academic_year_id)

        values = data.model_dump(exclude={"academic_year_id"})
        values["gender"] = data.gender.value
        application = await self.applications.create(
            db,
            conflict_message="Could not allocate an application number, please retry",
            application_no=generate_application_no(),
            academic_year_id=year_id,
            status=AdmissionStatus.PENDING.value,
            **values,
        )
        logger.info(f"Admission application {application.application_no} received")
        return application

    async def update_status(
        self, db: AsyncSession, application_id: uuid.UUID, data: AdmissionStatusUpdate
    ) -> AdmissionApplication:
        """Record a workflow decision. Approval enrols the applicant in the same transaction.

        Raises:
            ConflictException: If the application was already approved or rejected,
                or the student cannot be enrolled
        """
        context = require_scoped_context()
        application = await self.applications.get(db, application_id, for_update=True)
        if application.is_final:
            raise ConflictException(f"Application is already {application.status}")

        application.status = data.status.value
        if data.admin_remarks is not None:
            application.admin_remarks = data.admin_remarks
        if data.interview_date is not None:
            application.interview_date = data.interview_date
        application.processed_by = context.user_id
        application.processed_at = utcnow()

        if data.status == AdmissionStatus.APPROVED:
            student = await self._convert_to_student(db, application, data.section_id)
            application.student_id = student.id

        await self.applications.flush(db)
        logger.info(f"Admission application {application.application_no} is now {application.status}")
        return application

    async def _convert_to_student(
        self, db: AsyncSession, application: AdmissionApplication, section_id: uuid.UUID | None
    ) -> Student:
        student_service = get_student_service()
        student = await student_service.create_student(
            db,
            StudentCreate(
                email=application.email
                or f"{application.application_no.lower()}@{settings.admitted_student_email_domain}",
                password=secrets.token_urlsafe(12),
                first_name=application.first_name,
                last_name=application.last_name,
                admission_no=application.application_no,
                class_id=application.class_id,
                section_id=section_id,
                academic_year_id=application.academic_year_id,
                date_of_birth=application.date_of_birth,
                gender=Gender(application.gender),
                admission_date=date.today(),
                blood_group=application.blood_group,
                address=application.address,
            ),
        )

        relation = application.guardian_relation.strip().lower()
        guardian = await self._find_or_create_guardian(db, application, relation)
        await student_service.link_guardian(
            db,
            student.id,
            GuardianLinkRequest(
                guardian_id=guardian.id,
                relationship_type=relation if relation in _KNOWN_RELATIONS else "other",
                is_primary=True,
                is_emergency_contact=True,
                can_pickup=True,
            ),
        )
        return student

    async def _find_or_create_guardian(
        self, db: AsyncSession, application: AdmissionApplication, relation: str
    ) -> Guardian:
        """Reuse the school's guardian with the same phone number."""
        existing = await self.guardians.all(db, Guardian.phone == application.guardian_phone)
        if existing:
            return existing[0]

        first_name, _, last_name = application.guardian_name.strip().partition(" ")
        return await get_student_service().create_guardian(
            db,
            GuardianCreate(
                first_name=first_name,
                last_name=last_name or application.last_name,
                relation=relation if relation in _KNOWN_RELATIONS else "other",
                phone=application.guardian_phone,
                email=application.guardian_email,
                occupation=application.guardian_occupation,
                address=application.address,
            ),
        )


# Singleton instance
_admission_service: AdmissionService | None = None


def get_admission_service() -> AdmissionService:
    """Get the admission service singleton."""
    global _admission_service
    if _admission_service is None:
        _admission_service = AdmissionService()
    return _admission_service
