"""Leave request endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.database import get_db
from schoolsync.models.leave_request import LeaveStatus, RequesterType
from schoolsync.schemas.common import APIResponse, PaginationMeta
from schoolsync.schemas.leave_request import (
    LeaveRejectRequest,
    LeaveRequestCreate,
    LeaveRequestResponse,
    LeaveReviewRequest,
)
from schoolsync.services.leave_service import get_leave_service
from schoolsync.utils.permissions import Permission, require_permission

router = APIRouter()


@router.get("", response_model=APIResponse[list[LeaveRequestResponse]])
@require_permission(Permission.APPLY_LEAVE)
async def list_leave_requests(
    status: LeaveStatus | None = None,
    requester_type: RequesterType | None = None,
    student_id: uuid.UUID | None = None,
    mine: bool = False,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List leave requests. Without the view permission only your own are returned."""
    requests, total = await get_leave_service().get_leave_requests(
        db,
        status=status,
        requester_type=requester_type,
        student_id=student_id,
        mine=mine,
        page=page,
        page_size=page_size,
    )
    return APIResponse(
        data=[LeaveRequestResponse.model_validate(r) for r in requests],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.get("/{request_id}", response_model=APIResponse[LeaveRequestResponse])
@require_permission(Permission.VIEW_LEAVES)
async def get_leave_request(request_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    leave = await get_leave_service().get_leave_request(db, request_id)
    return APIResponse(data=LeaveRequestResponse.model_validate(leave))


@router.post("", response_model=APIResponse[LeaveRequestResponse], status_code=201)
@require_permission(Permission.APPLY_LEAVE)
async def create_leave_request(data: LeaveRequestCreate, db: AsyncSession = Depends(get_db)):
    leave = await get_leave_service().create_leave_request(db, data)
    await db.commit()
    return APIResponse(
        data=LeaveRequestResponse.model_validate(leave),
        message="Leave request submitted",
    )


@router.post("/{request_id}/approve", response_model=APIResponse[LeaveRequestResponse])
@require_permission(Permission.REVIEW_LEAVE)
async def approve_leave_request(
    request_id: uuid.UUID,
    data: LeaveReviewRequest | None = None,
    db: AsyncSession = Depends(get_db),
):
    leave = await get_leave_service().approve(db, request_id, data.remarks if data else None)
    await db.commit()
    return APIResponse(
        data=LeaveRequestResponse.model_validate(leave),
        message="Leave request approved",
    )


@router.post("/{request_id}/reject", response_model=APIResponse[LeaveRequestResponse])
@require_permission(Permission.REVIEW_LEAVE)
async def reject_leave_request(
    request_id: uuid.UUID,
    data: LeaveRejectRequest,
    db: AsyncSession = Depends(get_db),
):
    leave = await get_leave_service().reject(db, request_id, data.remarks)
    await db.commit()
    return APIResponse(
        data=LeaveRequestResponse.model_validate(leave),
        message="Leave request rejected",
    )


@router.post("/{request_id}/cancel", response_model=APIResponse[LeaveRequestResponse])
@require_permission(Permission.APPLY_LEAVE)
async def cancel_leave_request(request_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Withdraw your own pending request."""
    leave = await get_leave_service().cancel(db, request_id)
    await db.commit()
    return APIResponse(
        data=LeaveRequestResponse.model_validate(leave),
        message="Leave request cancelled",
    )
