"""Request dependencies shared by the v1 routers."""

import logging

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.database import get_db
from schoolsync.exceptions import ForbiddenException
from schoolsync.models import Tenant
from schoolsync.utils.tenant_context import get_tenant_id_or_none

logger = logging.getLogger(__name__)


async def ensure_school_access(db: AsyncSession = Depends(get_db)) -> None:
    """Reject tenant principals whose school is not active or whose plan has lapsed.

    Runs on every v1 request. Anonymous and platform principals carry no
    tenant and pass through to the endpoint's own checks.
    """
    tenant_id = get_tenant_id_or_none()
    if tenant_id is None:
        return

    tenant = await db.get(Tenant, tenant_id)
    if tenant is None or tenant.deleted_at is not None or not tenant.is_active:
        logger.info(f"Blocked request for inactive school {tenant_id}")
        raise ForbiddenException("Your school account is not active")
    if not tenant.has_active_subscription():
        logger.info(f"Blocked request for school {tenant_id} with an expired subscription")
        raise ForbiddenException("Your school's subscription has expired")
