"""User service: platform user administration and account creation."""

import logging
import uuid

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.exceptions import ConflictException, ForbiddenException, NotFoundException, ValidationException
from schoolsync.models import Student, Teacher, User
from schoolsync.models.base import utcnow
from schoolsync.models.user import LifecycleState, Role, UserStatus
from schoolsync.schemas.user import UserCreateRequest, UserUpdateRequest
from schoolsync.services.tenant_service import get_tenant_service
from schoolsync.utils.security import hash_password
from schoolsync.utils.tenant_context import require_platform_context

logger = logging.getLogger(__name__)

PLATFORM_TENANT_FILTER = "platform"
DELETED_STATUS_FILTER = "deleted"


class UserService:
    """Service for managing users."""

    # === Account creation (shared with tenant services) ===

    async def email_in_use(
        self,
        db: AsyncSession,
        email: str,
        tenant_id: uuid.UUID | None,
        exclude_user_id: uuid.UUID | None = None,
    ) -> bool:
        """Check whether a live user already owns email in the same scope."""
        tenant_clause = User.tenant_id.is_(None) if tenant_id is None else User.tenant_id == tenant_id
        query = select(User.id).where(
            func.lower(User.email) == email.lower(),
            tenant_clause,
            User.lifecycle_state == LifecycleState.ACTIVE.value,
        )
        if exclude_user_id is not None:
            query = query.where(User.id != exclude_user_id)
        return (await db.execute(query)).first() is not None

    async def create_account(
        self,
        db: AsyncSession,
        *,
        tenant_id: uuid.UUID | None,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: Role,
        phone: str | None = None,
        status: UserStatus = UserStatus.ACTIVE,
    ) -> User:
        """Create a login account. Callers authorize and choose the tenant."""
        if role == Role.SUPER_ADMIN and tenant_id is not None:
            raise ValidationException([{"field": "tenant_id", "message": "Super admins cannot belong to a school"}])
        if role != Role.SUPER_ADMIN and tenant_id is None:
            raise ValidationException([{"field": "tenant_id", "message": "School users need a tenant"}])

        email = email.strip().lower()
        if await self.email_in_use(db, email, tenant_id):
            raise ConflictException("A user with this email already exists")

        user = User(
            tenant_id=tenant_id,
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            role=role.value,
            status=status.value,
            lifecycle_state=LifecycleState.ACTIVE.value,
        )
        db.add(user)
        await db.flush()
        return user

    # === Platform administration ===

    async def get_users(
        self,
        db: AsyncSession,
        search: str | None = None,
        tenant: str | None = None,
        role: str | None = None,
        status: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[User], int]:
        """List users across tenants.

        tenant: ``platform`` for users without a school, or a tenant id.
        status: a UserStatus value, or ``deleted`` for soft-deleted users.
        """
        require_platform_context()

        if status == DELETED_STATUS_FILTER:
            query = select(User).where(User.lifecycle_state == LifecycleState.SOFT_DELETED.value)
        else:
            query = select(User).where(User.lifecycle_state == LifecycleState.ACTIVE.value)
            if status:
                query = query.where(User.status == status)

        if tenant == PLATFORM_TENANT_FILTER:
            query = query.where(User.tenant_id.is_(None))
        elif tenant:
            try:
                query = query.where(User.tenant_id == uuid.UUID(tenant))
            except ValueError:
                raise ValidationException([{"field": "tenant", "message": "Invalid tenant id"}])
        if role:
            query = query.where(User.role == role)
        if search:
            search_term = f"%{search}%"
            query = query.where(
                or_(
                    User.first_name.ilike(search_term),
                    User.last_name.ilike(search_term),
                    User.email.ilike(search_term),
                )
            )

        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar() or 0

        query = query.order_by(User.created_at.desc())
        query = query.offset((page - 1) * page_size).limit(page_size)
        result = await db.execute(query)
        return list(result.scalars().all()), total

    async def get_user(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        state: LifecycleState | None = LifecycleState.ACTIVE,
    ) -> User:
        """Get a user by ID, optionally restricted to one lifecycle state."""
        require_platform_context()
        query = select(User).where(User.id == user_id)
        if state is not None:
            query = query.where(User.lifecycle_state == state.value)
        user = (await db.execute(query)).scalar_one_or_none()
        if not user:
            raise NotFoundException("User")
        return user

    async def create_user(self, db: AsyncSession, data: UserCreateRequest) -> User:
        """Create a platform or school user."""
        require_platform_context()
        if data.tenant_id is not None:
            await get_tenant_service().get_tenant(db, data.tenant_id)

        user = await self.create_account(
            db,
            tenant_id=data.tenant_id,
            email=data.email,
            password=data.password,
            first_name=data.first_name,
            last_name=data.last_name,
            role=data.role,
            phone=data.phone,
            status=data.status,
        )
        logger.info(f"Created user {user.id} with role {user.role}")
        return user

    async def update_user(self, db: AsyncSession, user_id: uuid.UUID, data: UserUpdateRequest) -> User:
        user = await self.get_user(db, user_id)
        changes = data.model_dump(exclude_unset=True)

        if "email" in changes and changes["email"]:
            email = changes.pop("email").strip().lower()
            if await self.email_in_use(db, email, user.tenant_id, exclude_user_id=user.id):
                raise ConflictException("A user with this email already exists")
            user.email = email
        if changes.get("role") is not None:
            role = Role(changes.pop("role"))
            if (role == Role.SUPER_ADMIN) != (user.tenant_id is None):
                raise ValidationException([{"field": "role", "message": "Role does not match the user's scope"}])
            user.role = role.value
        if changes.get("status") is not None:
            user.status = UserStatus(changes.pop("status")).value
        if changes.get("password"):
            user.password_hash = hash_password(changes.pop("password"))

        for field in ("first_name", "last_name", "phone"):
            if field in changes:
                setattr(user, field, changes[field])

        await db.flush()
        return user

    async def toggle_status(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        """Flip an active user to inactive, anything else to active."""
        user = await self.get_user(db, user_id)
        self._forbid_self(user, "change your own status")
        user.status = (
            UserStatus.INACTIVE.value if user.status == UserStatus.ACTIVE.value else UserStatus.ACTIVE.value
        )
        await db.flush()
        return user

    async def soft_delete_user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        """ACTIVE -> SOFT_DELETED."""
        user = await self.get_user(db, user_id)
        self._forbid_self(user, "delete your own account")
        user.lifecycle_state = LifecycleState.SOFT_DELETED.value
        user.deleted_at = utcnow()
        await db.flush()
        logger.info(f"Soft-deleted user {user.id}")
        return user

    async def restore_user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        """SOFT_DELETED -> ACTIVE. Other states cannot be restored."""
        user = await self.get_user(db, user_id, state=None)
        if user.lifecycle_state != LifecycleState.SOFT_DELETED.value:
            raise ConflictException("Only deleted users can be restored")
        if await self.email_in_use(db, user.email, user.tenant_id, exclude_user_id=user.id):
            raise ConflictException("Another user now owns this email")

        user.lifecycle_state = LifecycleState.ACTIVE.value
        user.deleted_at = None
        await db.flush()
        logger.info(f"Restored user {user.id}")
        return user

    async def purge_user(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        """Permanently remove a soft-deleted user.

        Users that own a student or teacher profile cannot be purged.
        """
        user = await self.get_user(db, user_id, state=None)
        if user.lifecycle_state != LifecycleState.SOFT_DELETED.value:
            raise ConflictException("Only deleted users can be permanently removed")
        for model, label in ((Student, "student"), (Teacher, "teacher")):
            profile = await db.execute(select(model.id).where(model.user_id == user.id).limit(1))
            if profile.first() is not None:
                raise ConflictException(f"This user has a {label} profile and cannot be permanently removed")
        await db.delete(user)
        await db.flush()
        logger.info(f"Purged user {user_id}")

    def _forbid_self(self, user: User, action: str) -> None:
        if user.id == require_platform_context().user_id:
            raise ForbiddenException(f"You cannot {action}")


# Singleton instance
_user_service: UserService | None = None


def get_user_service() -> UserService:
    """Get the user service singleton."""
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
