#!/usr/bin/env python3
"""
Development seed data script.

Creates the demo school used in local development:
- 1 tenant (Demo International School, slug "demo-school")
- a principal, a teacher and an accountant
- academic year 2024-2025 (current)
- Class 1 with section A
- 3 students, each allocated a Tuition fee of 1000.00
  (late fee 50.00 after 5 grace days)
- one partial payment, so the first receipt RCP-<year>-000001 exists

Usage:
    python scripts/seed.py

All demo users have password: "password123"
"""

import asyncio
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from schoolsync.database import async_session_factory, engine
from schoolsync.models import Tenant
from schoolsync.models.academic import AcademicYearStatus
from schoolsync.models.fee import FeeFrequency, PaymentMethod
from schoolsync.models.tenant import SubscriptionPlan, TenantStatus
from schoolsync.models.user import Role
from schoolsync.schemas.academic import AcademicYearCreate, SubjectCreate
from schoolsync.schemas.fee import (
    AllocationGenerateRequest,
    FeeCategoryCreate,
    FeeStructureCreate,
    PaymentCreate,
)
from schoolsync.schemas.school_class import SchoolClassCreate, SectionCreate
from schoolsync.schemas.student import StudentCreate
from schoolsync.schemas.teacher import TeacherCreate
from schoolsync.services import (
    get_academic_service,
    get_class_service,
    get_fee_service,
    get_payment_service,
    get_student_service,
    get_teacher_service,
    get_user_service,
)
from schoolsync.utils.tenant_context import (
    clear_all_context,
    set_current_user_id,
    set_current_user_role,
    set_tenant_id,
)

DEMO_SLUG = "demo-school"
TEST_PASSWORD = "password123"

STUDENTS = [
    {"first_name": "Alice", "last_name": "Johnson", "admission_no": "ADM-0001"},
    {"first_name": "Brian", "last_name": "Okafor", "admission_no": "ADM-0002"},
    {"first_name": "Chloe", "last_name": "Martins", "admission_no": "ADM-0003"},
]


async def seed_database():
    """Seed the database with the demo school."""
    print("\n" + "=" * 50)
    print("SchoolSync - Seeding Development Data")
    print("=" * 50 + "\n")

    async with async_session_factory() as session:
        result = await session.execute(select(Tenant).where(Tenant.slug == DEMO_SLUG))
        existing_tenant = result.scalar_one_or_none()

        if existing_tenant:
            print(f"Seed data already exists (tenant '{DEMO_SLUG}' found).")
            confirm = input("Delete and recreate? (y/n): ").strip().lower()
            if confirm != "y":
                print("Aborting.")
                return False

            # Tenant-owned rows go with the tenant (ON DELETE CASCADE)
            print("Deleting existing data...")
            await session.delete(existing_tenant)
            await session.commit()
            print("Existing data deleted.\n")

        print("Creating tenant: Demo International School...")
        tenant = Tenant(
            name="Demo International School",
            slug=DEMO_SLUG,
            email="info@demo.com",
            status=TenantStatus.ACTIVE.value,
            subscription_plan=SubscriptionPlan.FREE.value,
        )
        session.add(tenant)
        await session.flush()

        print("Creating principal: principal@demo.com...")
        principal = await get_user_service().create_account(
            session,
            tenant_id=tenant.id,
            email="principal@demo.com",
            password=TEST_PASSWORD,
            first_name="Jane",
            last_name="Smith",
            role=Role.PRINCIPAL,
        )
        await get_user_service().create_account(
            session,
            tenant_id=tenant.id,
            email="accountant@demo.com",
            password=TEST_PASSWORD,
            first_name="Mark",
            last_name="Mensah",
            role=Role.ACCOUNTANT,
        )

        # Everything below runs as the principal, through the tenant-scoped services
        set_tenant_id(tenant.id)
        set_current_user_id(principal.id)
        set_current_user_role(Role.PRINCIPAL.value)
        try:
            print("Creating academic year 2024-2025...")
            year = await get_academic_service().create_academic_year(
                session,
                AcademicYearCreate(
                    name="2024-2025",
                    start_date=date(2024, 9, 1),
                    end_date=date(2025, 6, 30),
                    status=AcademicYearStatus.ACTIVE,
                    is_current=True,
                ),
            )
            for name, code in (("English", "ENG"), ("Mathematics", "MATH"), ("Science", "SCI")):
                await get_academic_service().create_subject(session, SubjectCreate(name=name, code=code))

            print("Creating teacher: teacher@demo.com...")
            teacher = await get_teacher_service().create_teacher(
                session,
                TeacherCreate(
                    email="teacher@demo.com",
                    password=TEST_PASSWORD,
                    first_name="John",
                    last_name="Doe",
                    employee_id="EMP-001",
                    specialization="Mathematics",
                ),
            )

            print("Creating class: Class 1 (section A)...")
            class_one = await get_class_service().create_class(
                session, SchoolClassCreate(name="Class 1", numeric_name=1, display_order=1)
            )
            section = await get_class_service().create_section(
                session,
                SectionCreate(
                    class_id=class_one.id,
                    academic_year_id=year.id,
                    name="A",
                    capacity=30,
                    class_teacher_id=teacher.id,
                ),
            )

            print("Creating students...")
            students = []
            for index, data in enumerate(STUDENTS, start=1):
                student = await get_student_service().create_student(
                    session,
                    StudentCreate(
                        email=f"student{index}@demo.com",
                        password=TEST_PASSWORD,
                        class_id=class_one.id,
                        section_id=section.id,
                        academic_year_id=year.id,
                        roll_no=str(index),
                        admission_date=date(2024, 9, 1),
                        **data,
                    ),
                )
                students.append(student)

            print("Creating fees: Tuition 1000.00...")
            tuition = await get_fee_service().create_category(
                session,
                FeeCategoryCreate(name="Tuition", code="TUITION", frequency=FeeFrequency.YEARLY),
            )
            structure = await get_fee_service().create_structure(
                session,
                FeeStructureCreate(
                    fee_category_id=tuition.id,
                    class_id=class_one.id,
                    academic_year_id=year.id,
                    name="Class 1 Tuition 2024-2025",
                    amount=Decimal("1000.00"),
                    due_date=date(2024, 10, 1),
                    late_fee=Decimal("50.00"),
                    grace_days=5,
                ),
            )
            created, _ = await get_fee_service().generate_allocations(
                session, AllocationGenerateRequest(fee_structure_id=structure.id)
            )

            allocations, _ = await get_fee_service().get_allocations(
                session, student_id=students[0].id
            )
            payment, allocation = await get_payment_service().record_payment(
                session,
                PaymentCreate(
                    allocation_id=allocations[0].id,
                    student_id=students[0].id,
                    amount=Decimal("400.00"),
                    late_fee=Decimal("0.00"),
                    payment_method=PaymentMethod.CASH,
                    payment_date=date(2024, 9, 15),
                ),
            )
        finally:
            clear_all_context()

        await session.commit()

        print("\n" + "=" * 50)
        print("Seed Data Created Successfully!")
        print("=" * 50)
        print("\nTenant:")
        print(f"  Name: {tenant.name}")
        print(f"  Slug: {tenant.slug}")
        print(f"  ID: {tenant.id}")
        print(f"\nUsers (all have password: {TEST_PASSWORD}):")
        print("  Principal: principal@demo.com")
        print("  Accountant: accountant@demo.com")
        print("  Teacher: teacher@demo.com")
        for index in range(1, len(students) + 1):
            print(f"  Student {index}: student{index}@demo.com")
        print("\nFees:")
        print(f"  {structure.name}: {structure.amount} ({created} allocation(s))")
        print(f"  Receipt {payment.receipt_number}: {payment.amount} paid, {allocation.due_amount} due")
        print("=" * 50 + "\n")

        return True


async def main():
    """Main entry point."""
    try:
        success = await seed_database()
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\n\nAborted by user.")
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
