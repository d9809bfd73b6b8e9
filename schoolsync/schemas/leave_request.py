"""Leave request schemas."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from schoolsync.models.leave_request import LeaveType, RequesterType


class LeaveRequestCreate(BaseModel):
    """Apply for leave.

    Staff apply for themselves. Student leave needs student_id.
    """

    requester_type: RequesterType
    student_id: uuid.UUID | None = None
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_request(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        if self.requester_type == RequesterType.STUDENT and self.student_id is None:
            raise ValueError("student_id is required for student leave")
        if self.requester_type == RequesterType.STAFF and self.student_id is not None:
            raise ValueError("student_id must not be set for staff leave")
        return self


class LeaveReviewRequest(BaseModel):
    remarks: str | None = None


class LeaveRejectRequest(BaseModel):
    remarks: str = Field(..., min_length=1)


class LeaveRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    requester_type: str
    student_id: uuid.UUID | None
    staff_user_id: uuid.UUID | None
    leave_type: str
    start_date: date
    end_date: date
    total_days: int
    reason: str
    status: str
    applied_by: uuid.UUID | None
    reviewed_by: uuid.UUID | None
    reviewed_at: datetime | None
    review_remarks: str | None
    created_at: datetime
