"""SQLAlchemy models for SchoolSync."""

from schoolsync.models.base import Base, BaseModel, TenantScopedModel, TimestampMixin, SoftDeleteMixin
from schoolsync.models.tenant import Tenant, TenantStatus, SubscriptionPlan
from schoolsync.models.user import User, Role, UserStatus, LifecycleState
from schoolsync.models.system_settings import SystemSettings
from schoolsync.models.academic import AcademicYear, AcademicYearStatus, Subject
from schoolsync.models.school_class import SchoolClass, Section
from schoolsync.models.teacher import Teacher
from schoolsync.models.student import Student, StudentStatus, Guardian, StudentGuardian, Gender
from schoolsync.models.fee import (
    AllocationStatus,
    Discount,
    DiscountType,
    FeeAuditAction,
    FeeAuditLog,
    FeeCategory,
    FeeFrequency,
    FeePayment,
    FeeStructure,
    PaymentMethod,
    PaymentStatus,
    ReceiptSequence,
    StudentFeeAllocation,
)
from schoolsync.models.attendance import Attendance, AttendanceStatus, MarkedVia
from schoolsync.models.leave_request import LeaveRequest, LeaveStatus, LeaveType, RequesterType
from schoolsync.models.timetable import DayOfWeek, TimetableEntry, TimetableSlot
from schoolsync.models.admission import AdmissionApplication, AdmissionStatus

__all__ = [
    # Base
    "Base",
    "BaseModel",
    "TenantScopedModel",
    "TimestampMixin",
    "SoftDeleteMixin",
    # Tenant
    "Tenant",
    "TenantStatus",
    "SubscriptionPlan",
    # User
    "User",
    "Role",
    "UserStatus",
    "LifecycleState",
    # Settings
    "SystemSettings",
    # Academic
    "AcademicYear",
    "AcademicYearStatus",
    "Subject",
    # Classes
    "SchoolClass",
    "Section",
    # People
    "Teacher",
    "Student",
    "StudentStatus",
    "Guardian",
    "StudentGuardian",
    "Gender",
    # Fees
    "AllocationStatus",
    "Discount",
    "DiscountType",
    "FeeAuditAction",
    "FeeAuditLog",
    "FeeCategory",
    "FeeFrequency",
    "FeePayment",
    "FeeStructure",
    "PaymentMethod",
    "PaymentStatus",
    "ReceiptSequence",
    "StudentFeeAllocation",
    # Attendance
    "Attendance",
    "AttendanceStatus",
    "MarkedVia",
    # Leave
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "RequesterType",
    # Timetable
    "DayOfWeek",
    "TimetableEntry",
    "TimetableSlot",
    # Admissions
    "AdmissionApplication",
    "AdmissionStatus",
]
