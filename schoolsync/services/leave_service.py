"""Leave request service: apply, review and cancel."""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.exceptions import ConflictException, ForbiddenException, ValidationException
from schoolsync.models import LeaveRequest, Student
from schoolsync.models.base import utcnow
from schoolsync.models.leave_request import LeaveStatus, RequesterType
from schoolsync.repositories import TenantScopedRepository
from schoolsync.schemas.leave_request import LeaveRequestCreate
from schoolsync.utils.permissions import Permission, has_permission
from schoolsync.utils.tenant_context import require_scoped_context

logger = logging.getLogger(__name__)


class LeaveService:
    def __init__(self):
        self.requests = TenantScopedRepository(LeaveRequest, "Leave request")
        self.students = TenantScopedRepository(Student, "Student")

    async def get_leave_requests(
        self,
        db: AsyncSession,
        status: LeaveStatus | None = None,
        requester_type: RequesterType | None = None,
        student_id: uuid.UUID | None = None,
        mine: bool = False,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[LeaveRequest], int]:
        """List leave requests. Users without the review permission only see their own."""
        context = require_scoped_context()
        filters = []
        if status:
            filters.append(LeaveRequest.status == status.value)
        if requester_type:
            filters.append(LeaveRequest.requester_type == requester_type.value)
        if student_id:
            filters.append(LeaveRequest.student_id == student_id)
        if mine or not has_permission(context.role, Permission.VIEW_LEAVES):
            filters.append(LeaveRequest.applied_by == context.user_id)
        return await self.requests.paginate(
            db,
            *filters,
            order_by=(LeaveRequest.start_date.desc(),),
            page=page,
            page_size=page_size,
        )

    async def get_leave_request(self, db: AsyncSession, request_id: uuid.UUID) -> LeaveRequest:
        return await self.requests.get(db, request_id)

    async def create_leave_request(self, db: AsyncSession, data: LeaveRequestCreate) -> LeaveRequest:
        """Apply for leave. Staff leave is always for the applying user."""
        context = require_scoped_context()
        if data.end_date < data.start_date:
            raise ValidationException([{"field": "end_date", "message": "end_date must be on or after start_date"}])

        student_id = None
        staff_user_id = None
        if data.requester_type == RequesterType.STUDENT:
            student_id = (await self.students.get(db, data.student_id)).id
        else:
            staff_user_id = context.user_id

        leave = await self.requests.create(
            db,
            requester_type=data.requester_type.value,
            student_id=student_id,
            staff_user_id=staff_user_id,
            leave_type=data.leave_type.value,
            start_date=data.start_date,
            end_date=data.end_date,
            total_days=(data.end_date - data.start_date).days + 1,
            reason=data.reason,
            status=LeaveStatus.PENDING.value,
            applied_by=context.user_id,
        )
        logger.info(f"Leave request {leave.id} created for {leave.total_days} day(s)")
        return leave

    async def approve(
        self, db: AsyncSession, request_id: uuid.UUID, remarks: str | None = None
    ) -> LeaveRequest:
        return await self._review(db, request_id, LeaveStatus.APPROVED, remarks)

    async def reject(self, db: AsyncSession, request_id: uuid.UUID, remarks: str) -> LeaveRequest:
        if not remarks or not remarks.strip():
            raise ValidationException([{"field": "remarks", "message": "A reason is required to reject leave"}])
        return await self._review(db, request_id, LeaveStatus.REJECTED, remarks)

    async def cancel(self, db: AsyncSession, request_id: uuid.UUID) -> LeaveRequest:
        """Withdraw a pending request. Only the applicant can cancel."""
        context = require_scoped_context()
        leave = await self.requests.get(db, request_id, for_update=True)
        if leave.applied_by != context.user_id:
            raise ForbiddenException("Only the applicant can cancel this leave request")
        self._ensure_pending(leave)
        leave.status = LeaveStatus.CANCELLED.value
        await db.flush()
        return leave

    async def _review(
        self, db: AsyncSession, request_id: uuid.UUID, decision: LeaveStatus, remarks: str | None
    ) -> LeaveRequest:
        context = require_scoped_context()
        leave = await self.requests.get(db, request_id, for_update=True)
        self._ensure_pending(leave)
        if context.user_id in (leave.staff_user_id, leave.applied_by):
            raise ForbiddenException("You cannot review your own leave request")

        leave.status = decision.value
        leave.reviewed_by = context.user_id
        leave.reviewed_at = utcnow()
        leave.review_remarks = remarks
        await db.flush()
        logger.info(f"Leave request {leave.id} {decision.value} by {context.user_id}")
        return leave

    def _ensure_pending(self, leave: LeaveRequest) -> None:
        if leave.status != LeaveStatus.PENDING.value:
            raise ConflictException(f"Leave request is already {leave.status}")


# Singleton instance
_leave_service: LeaveService | None = None


def get_leave_service() -> LeaveService:
    """Get the leave service singleton."""
    global _leave_service
    if _leave_service is None:
        _leave_service = LeaveService()
    return _leave_service
