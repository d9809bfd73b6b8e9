"""Admission application schemas."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from schoolsync.models.admission import AdmissionStatus
from schoolsync.models.student import Gender


class AdmissionApplicationCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr | None = Field(None, description="Login email for the student once admitted")
    date_of_birth: date
    gender: Gender
    blood_group: str | None = Field(None, max_length=5)
    nationality: str | None = Field(None, max_length=100)
    address: str | None = None
    class_id: uuid.UUID
    academic_year_id: uuid.UUID | None = Field(
        None, description="Defaults to the current academic year"
    )
    previous_school: str | None = Field(None, max_length=255)
    previous_class: str | None = Field(None, max_length=100)
    guardian_name: str = Field(..., min_length=1, max_length=200)
    guardian_relation: str = Field(..., min_length=1, max_length=30)
    guardian_phone: str = Field(..., min_length=3, max_length=50)
    guardian_email: EmailStr | None = None
    guardian_occupation: str | None = Field(None, max_length=100)


class AdmissionStatusUpdate(BaseModel):
    """Move an application through the workflow.

    Approving converts the application into a student; section_id places
    the new student in a section of the applied class.
    """

    status: AdmissionStatus
    admin_remarks: str | None = None
    interview_date: date | None = None
    section_id: uuid.UUID | None = None

    @model_validator(mode="after")
    def check_update(self):
        if self.status == AdmissionStatus.INTERVIEW_SCHEDULED and self.interview_date is None:
            raise ValueError("interview_date is required to schedule an interview")
        if self.status == AdmissionStatus.REJECTED and not (self.admin_remarks or "").strip():
            raise ValueError("admin_remarks are required to reject an application")
        return self


class AdmissionApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    application_no: str
    full_name: str
    first_name: str
    last_name: str
    email: str | None
    date_of_birth: date
    gender: str
    class_id: uuid.UUID
    academic_year_id: uuid.UUID
    previous_school: str | None
    guardian_name: str
    guardian_relation: str
    guardian_phone: str
    guardian_email: str | None
    status: str
    interview_date: date | None
    admin_remarks: str | None
    processed_by: uuid.UUID | None
    processed_at: datetime | None
    student_id: uuid.UUID | None
    created_at: datetime
