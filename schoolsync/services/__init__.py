"""Service layer for business logic."""

from schoolsync.services.academic_service import AcademicService, get_academic_service
from schoolsync.services.admission_service import AdmissionService, get_admission_service
from schoolsync.services.attendance_service import AttendanceService, get_attendance_service
from schoolsync.services.auth_service import AuthService, get_auth_service
from schoolsync.services.class_service import ClassService, get_class_service
from schoolsync.services.dashboard_service import DashboardService, get_dashboard_service
from schoolsync.services.fee_service import FeeService, get_fee_service
from schoolsync.services.leave_service import LeaveService, get_leave_service
from schoolsync.services.payment_service import PaymentService, get_payment_service
from schoolsync.services.settings_service import SettingsService, get_settings_service
from schoolsync.services.staff_service import StaffService, get_staff_service
from schoolsync.services.student_service import StudentService, get_student_service
from schoolsync.services.subscription_service import SubscriptionService, get_subscription_service
from schoolsync.services.teacher_service import TeacherService, get_teacher_service
from schoolsync.services.tenant_service import TenantService, get_tenant_service
from schoolsync.services.timetable_service import TimetableService, get_timetable_service
from schoolsync.services.user_service import UserService, get_user_service

__all__ = [
    "AcademicService",
    "get_academic_service",
    "AdmissionService",
    "get_admission_service",
    "AttendanceService",
    "get_attendance_service",
    "AuthService",
    "get_auth_service",
    "ClassService",
    "get_class_service",
    "DashboardService",
    "get_dashboard_service",
    "FeeService",
    "get_fee_service",
    "LeaveService",
    "get_leave_service",
    "PaymentService",
    "get_payment_service",
    "SettingsService",
    "get_settings_service",
    "StaffService",
    "get_staff_service",
    "StudentService",
    "get_student_service",
    "SubscriptionService",
    "get_subscription_service",
    "TeacherService",
    "get_teacher_service",
    "TenantService",
    "get_tenant_service",
    "TimetableService",
    "get_timetable_service",
    "UserService",
    "get_user_service",
]
