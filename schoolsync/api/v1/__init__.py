"""API v1 router aggregator."""

from fastapi import APIRouter, Depends

from schoolsync.api.dependencies import ensure_school_access
from schoolsync.api.v1 import (
    academic,
    admin,
    admissions,
    attendance,
    auth,
    classes,
    dashboard,
    fees,
    leave_requests,
    staff,
    students,
    teachers,
    timetables,
)

api_router = APIRouter(tags=["API v1"], dependencies=[Depends(ensure_school_access)])

# Include all API routers
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(academic.router, prefix="/academic", tags=["Academic"])
api_router.include_router(classes.router, prefix="/classes", tags=["Classes"])
api_router.include_router(teachers.router, prefix="/teachers", tags=["Teachers"])
api_router.include_router(students.router, prefix="/students", tags=["Students"])
api_router.include_router(students.guardians_router, prefix="/guardians", tags=["Guardians"])
api_router.include_router(admissions.router, prefix="/admissions", tags=["Admissions"])
api_router.include_router(staff.router, prefix="/staff", tags=["Staff"])
api_router.include_router(fees.router, prefix="/fees", tags=["Fees"])
api_router.include_router(attendance.router, prefix="/attendance", tags=["Attendance"])
api_router.include_router(leave_requests.router, prefix="/leave-requests", tags=["Leave Requests"])
api_router.include_router(timetables.router, prefix="/timetables", tags=["Timetables"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
api_router.include_router(admin.router)
