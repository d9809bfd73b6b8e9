"""Dashboard schemas."""

from decimal import Decimal

from pydantic import BaseModel


class AttendanceToday(BaseModel):
    present: int
    absent: int
    late: int
    total: int
    percentage: float


class FeeCollection(BaseModel):
    collected: Decimal
    outstanding: Decimal
    total: Decimal
    currency: str


class SchoolStatsResponse(BaseModel):
    total_students: int
    total_teachers: int
    total_classes: int
    total_sections: int
    attendance_today: AttendanceToday
    fee_collection: FeeCollection
    pending_admissions: int
