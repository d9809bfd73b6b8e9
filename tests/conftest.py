import os

# Settings are read at import time
os.environ.setdefault("APP_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["APP_ENV"] = "testing"

from contextlib import contextmanager
from datetime import date
from types import SimpleNamespace
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from schoolsync.database import get_db
from schoolsync.main import app
from schoolsync.models import Base, Tenant, User
from schoolsync.models.academic import AcademicYearStatus
from schoolsync.models.tenant import SubscriptionPlan, TenantStatus
from schoolsync.models.user import Role
from schoolsync.schemas.academic import AcademicYearCreate
from schoolsync.schemas.school_class import SchoolClassCreate, SectionCreate
from schoolsync.schemas.student import StudentCreate
from schoolsync.services import get_academic_service, get_class_service, get_student_service
from schoolsync.utils.security import create_access_token, hash_password
from schoolsync.utils.tenant_context import (
    clear_all_context,
    set_current_user_id,
    set_current_user_role,
    set_tenant_id,
)

TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_PASSWORD = "password123"


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory schema per test, shared with the app through get_db."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.clear()
    clear_all_context()
    await engine.dispose()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@contextmanager
def acting_as(user: User):
    """Run service calls as the given user, the way AuthMiddleware would."""
    set_current_user_id(user.id)
    set_tenant_id(user.tenant_id)
    set_current_user_role(user.role)
    try:
        yield
    finally:
        clear_all_context()


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user_id=user.id, tenant_id=user.tenant_id, role=user.role)
    return {"Authorization": f"Bearer {token}"}


async def create_tenant(db: AsyncSession, slug: str, name: str | None = None) -> Tenant:
    tenant = Tenant(
        name=name or slug.replace("-", " ").title(),
        slug=slug,
        email=f"office@{slug}.com",
        status=TenantStatus.ACTIVE.value,
        subscription_plan=SubscriptionPlan.FREE.value,
    )
    db.add(tenant)
    await db.commit()
    return tenant


async def create_user(
    db: AsyncSession,
    tenant: Tenant | None,
    role: Role,
    email: str,
    first_name: str = "Test",
    last_name: str = "User",
) -> User:
    user = User(
        tenant_id=tenant.id if tenant else None,
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        first_name=first_name,
        last_name=last_name,
        role=role.value,
    )
    db.add(user)
    await db.commit()
    return user


async def create_school(db: AsyncSession, tenant: Tenant, principal: User) -> SimpleNamespace:
    """Current academic year plus Class 1 / section A. Returns ids only."""
    with acting_as(principal):
        year = await get_academic_service().create_academic_year(
            db,
            AcademicYearCreate(
                name="2024-2025",
                start_date=date(2024, 9, 1),
                end_date=date(2025, 6, 30),
                status=AcademicYearStatus.ACTIVE,
                is_current=True,
            ),
        )
        school_class = await get_class_service().create_class(
            db, SchoolClassCreate(name="Class 1", numeric_name=1)
        )
        section = await get_class_service().create_section(
            db, SectionCreate(class_id=school_class.id, name="A", capacity=30)
        )
        ids = SimpleNamespace(
            tenant_id=tenant.id,
            year_id=year.id,
            class_id=school_class.id,
            section_id=section.id,
        )
    await db.commit()
    return ids


async def enrol_student(
    db: AsyncSession, principal: User, school: SimpleNamespace, admission_no: str, first_name: str
):
    with acting_as(principal):
        student = await get_student_service().create_student(
            db,
            StudentCreate(
                email=f"{admission_no.lower()}@students.com",
                password=TEST_PASSWORD,
                first_name=first_name,
                last_name="Pupil",
                admission_no=admission_no,
                class_id=school.class_id,
                section_id=school.section_id,
            ),
        )
        student_id = student.id
    await db.commit()
    return student_id


@pytest.fixture()
async def tenant(db_session: AsyncSession) -> Tenant:
    return await create_tenant(db_session, "demo-school", "Demo International School")


@pytest.fixture()
async def principal(db_session: AsyncSession, tenant: Tenant) -> User:
    return await create_user(db_session, tenant, Role.PRINCIPAL, "principal@demo.com", "Jane", "Smith")


@pytest.fixture()
async def super_admin(db_session: AsyncSession) -> User:
    return await create_user(db_session, None, Role.SUPER_ADMIN, "admin@schoolsync.com", "Super", "Admin")


@pytest.fixture()
async def school(db_session: AsyncSession, tenant: Tenant, principal: User) -> SimpleNamespace:
    return await create_school(db_session, tenant, principal)
