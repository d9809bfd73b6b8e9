"""Service for non-teaching staff accounts of a school."""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.exceptions import ConflictException, ForbiddenException, NotFoundException, ValidationException
from schoolsync.models import User
from schoolsync.models.user import LifecycleState, Role
from schoolsync.repositories import TenantScopedRepository
from schoolsync.schemas.user import StaffCreate, StaffUpdate
from schoolsync.services.user_service import get_user_service
from schoolsync.utils.tenant_context import get_tenant_id, require_scoped_context

logger = logging.getLogger(__name__)

STAFF_ROLES = (
    Role.SCHOOL_OWNER,
    Role.PRINCIPAL,
    Role.VICE_PRINCIPAL,
    Role.ADMIN_OFFICER,
    Role.ACCOUNTANT,
)
_STAFF_ROLE_VALUES = tuple(role.value for role in STAFF_ROLES)


class StaffService:
    def __init__(self):
        self.staff = TenantScopedRepository(User, "Staff member")

    async def get_staff(
        self,
        db: AsyncSession,
        role: Role | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[User], int]:
        filters = [User.role.in_(_STAFF_ROLE_VALUES)]
        if role:
            filters.append(User.role == role.value)
        return await self.staff.paginate(
            db,
            *filters,
            search=search,
            search_fields=("first_name", "last_name", "email"),
            order_by=(User.last_name, User.first_name),
            page=page,
            page_size=page_size,
        )

    async def get_member(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        member = await self.staff.get_or_none(db, user_id)
        if member is None or member.role not in _STAFF_ROLE_VALUES:
            raise NotFoundException("Staff member")
        return member

    async def create_member(self, db: AsyncSession, data: StaffCreate) -> User:
        self._check_role(data.role)
        user = await get_user_service().create_account(
            db,
            tenant_id=get_tenant_id(),
            email=data.email,
            password=data.password,
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            role=data.role,
        )
        logger.info(f"Created staff member {user.id} ({data.role.value})")
        return user

    async def update_member(self, db: AsyncSession, user_id: uuid.UUID, data: StaffUpdate) -> User:
        member = await self._get_managed(db, user_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if "role" in changes:
            self._check_role(changes["role"])
            changes["role"] = changes["role"].value
        if "status" in changes:
            if member.id == require_scoped_context().user_id:
                raise ForbiddenException("You cannot change your own status")
            changes["status"] = changes["status"].value
        if "email" in changes:
            changes["email"] = changes["email"].strip().lower()
            if await get_user_service().email_in_use(
                db, changes["email"], member.tenant_id, exclude_user_id=member.id
            ):
                raise ConflictException("A user with this email already exists")

        return await self.staff.update(
            db,
            member,
            conflict_message="A user with this email already exists",
            **changes,
        )

    async def delete_member(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        """Soft delete a staff account. Nobody deletes their own account."""
        member = await self._get_managed(db, user_id)
        if member.id == require_scoped_context().user_id:
            raise ForbiddenException("You cannot delete your own account")
        member.lifecycle_state = LifecycleState.SOFT_DELETED.value
        await self.staff.soft_delete(db, member)
        logger.info(f"Deleted staff member {member.id}")

    async def _get_managed(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        member = await self.get_member(db, user_id)
        if member.role == Role.SCHOOL_OWNER.value:
            self._require_owner()
        return member

    def _check_role(self, role: Role) -> None:
        if role not in STAFF_ROLES:
            raise ValidationException(
                [{"field": "role", "message": "Teachers, students and parents have their own endpoints"}]
            )
        if role == Role.SCHOOL_OWNER:
            self._require_owner()

    def _require_owner(self) -> None:
        if require_scoped_context().role != Role.SCHOOL_OWNER.value:
            raise ForbiddenException("Only the school owner can manage owner accounts")


# Singleton instance
_staff_service: StaffService | None = None


def get_staff_service() -> StaffService:
    """Get the staff service singleton."""
    global _staff_service
    if _staff_service is None:
        _staff_service = StaffService()
    return _staff_service
