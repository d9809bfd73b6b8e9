"""Authentication API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.database import get_db
from schoolsync.schemas.auth import CurrentUserResponse, LoginRequest, LoginResponse
from schoolsync.schemas.common import APIResponse
from schoolsync.services.auth_service import get_auth_service
from schoolsync.utils.tenant_context import SUPER_ADMIN_ROLE, PlatformContext, resolve_tenant_context

router = APIRouter()


@router.post("/login", response_model=APIResponse[LoginResponse])
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Authenticate a user and return an access token."""
    auth_service = get_auth_service()
    login_response, user = await auth_service.login(db, request)
    await db.commit()

    return APIResponse(
        data=login_response,
        message=f"Welcome back, {user.first_name}!",
    )


@router.get("/me", response_model=APIResponse[CurrentUserResponse])
async def get_current_user():
    """Return the principal resolved from the access token."""
    context = resolve_tenant_context()
    if isinstance(context, PlatformContext):
        data = CurrentUserResponse(
            user_id=context.user_id,
            tenant_id=None,
            role=SUPER_ADMIN_ROLE,
            is_platform=True,
        )
    else:
        data = CurrentUserResponse(
            user_id=context.user_id,
            tenant_id=context.tenant_id,
            role=context.role,
            is_platform=False,
        )
    return APIResponse(data=data)
