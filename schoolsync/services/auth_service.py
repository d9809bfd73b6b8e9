"""Authentication service for login and token issuance."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.config import settings
from schoolsync.exceptions import UnauthorizedException
from schoolsync.models import Tenant, User
from schoolsync.models.base import utcnow
from schoolsync.models.user import LifecycleState
from schoolsync.schemas.auth import LoginRequest, LoginResponse
from schoolsync.utils.security import create_access_token, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """Service for handling authentication operations."""

    async def login(
        self, db: AsyncSession, request: LoginRequest
    ) -> tuple[LoginResponse, User]:
        """Authenticate a user and return an access token.

        With ``tenant_slug`` the account is looked up inside that school.
        Without it, platform accounts are tried first, then a school account
        if exactly one school has that email.

        Raises:
            UnauthorizedException: If credentials are invalid or the account
                or its school is not active
        """
        user = await self._find_user(db, request)

        if not user or not verify_password(request.password, user.password_hash):
            logger.info(f"Failed login for {request.email}")
            raise UnauthorizedException("Invalid email or password")

        if not user.is_active:
            raise UnauthorizedException("Your account is inactive")

        if user.tenant_id is not None:
            tenant = await db.get(Tenant, user.tenant_id)
            if tenant is None or tenant.deleted_at is not None or not tenant.is_active:
                raise UnauthorizedException("Your school account is not active")
            if not tenant.has_active_subscription():
                raise UnauthorizedException("Your school's subscription has expired")

        user.last_login_at = utcnow()
        await db.flush()

        access_token = create_access_token(
            user_id=user.id,
            tenant_id=user.tenant_id,
            role=user.role,
            name=user.full_name,
        )
        response = LoginResponse(
            access_token=access_token,
            token_type="bearer",
            expires_in=settings.jwt_access_token_expire_minutes * 60,
        )
        return response, user

    async def _find_user(self, db: AsyncSession, request: LoginRequest) -> User | None:
        email = request.email.strip().lower()
        live = (
            func.lower(User.email) == email,
            User.lifecycle_state == LifecycleState.ACTIVE.value,
        )

        if request.tenant_slug:
            result = await db.execute(
                select(User)
                .join(Tenant, Tenant.id == User.tenant_id)
                .where(*live, Tenant.slug == request.tenant_slug)
            )
            return result.scalar_one_or_none()

        platform = await db.execute(select(User).where(*live, User.tenant_id.is_(None)))
        user = platform.scalar_one_or_none()
        if user:
            return user

        candidates = await db.execute(select(User).where(*live).limit(2))
        matches = list(candidates.scalars().all())
        return matches[0] if len(matches) == 1 else None


# Singleton instance
_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get the auth service singleton."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
