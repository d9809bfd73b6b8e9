"""Dashboard endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.database import get_db
from schoolsync.schemas.common import APIResponse
from schoolsync.schemas.dashboard import SchoolStatsResponse
from schoolsync.services.dashboard_service import get_dashboard_service
from schoolsync.utils.permissions import Permission, require_permission

router = APIRouter()


@router.get("/stats", response_model=APIResponse[SchoolStatsResponse])
@require_permission(Permission.VIEW_DASHBOARD)
async def get_school_stats(db: AsyncSession = Depends(get_db)):
    stats = await get_dashboard_service().get_school_stats(db)
    return APIResponse(data=SchoolStatsResponse.model_validate(stats))
