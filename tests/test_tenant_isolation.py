from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.exceptions import ForbiddenException, UnauthorizedException
from schoolsync.models.user import Role
from schoolsync.services import get_class_service
from schoolsync.utils.tenant_context import (
    PlatformContext,
    ScopedContext,
    resolve_tenant_context,
    set_current_user_id,
    set_current_user_role,
)
from tests.conftest import (
    acting_as,
    auth_headers,
    create_school,
    create_tenant,
    create_user,
    enrol_student,
)


@pytest.fixture()
async def other_school(db_session: AsyncSession):
    tenant = await create_tenant(db_session, "riverside-academy")
    principal = await create_user(db_session, tenant, Role.PRINCIPAL, "head@riverside.com")
    school = await create_school(db_session, tenant, principal)
    return principal, school


async def test_student_of_another_school_is_not_found(
    client: AsyncClient, db_session: AsyncSession, principal, school, other_school
) -> None:
    other_principal, _ = other_school
    intruder = auth_headers(other_principal)
    student_id = await enrol_student(db_session, principal, school, "ADM-001", "Alice")

    response = await client.get(f"/api/v1/students/{student_id}", headers=auth_headers(principal))
    assert response.status_code == 200

    response = await client.get(f"/api/v1/students/{student_id}", headers=intruder)
    assert response.status_code == 404

    response = await client.put(
        f"/api/v1/students/{student_id}",
        json={"first_name": "Mallory"},
        headers=intruder,
    )
    assert response.status_code == 404


async def test_lists_only_show_own_tenant(
    client: AsyncClient, db_session: AsyncSession, principal, school, other_school
) -> None:
    other_principal, _ = other_school
    await enrol_student(db_session, principal, school, "ADM-001", "Alice")

    mine = await client.get("/api/v1/students", headers=auth_headers(principal))
    theirs = await client.get("/api/v1/students", headers=auth_headers(other_principal))
    assert mine.json()["pagination"]["total_items"] == 1
    assert theirs.json()["pagination"]["total_items"] == 0

    classes = await client.get("/api/v1/classes", headers=auth_headers(other_principal))
    assert [c["name"] for c in classes.json()["data"]] == ["Class 1"]
    assert classes.json()["data"][0]["tenant_id"] != str(school.tenant_id)


async def test_same_admission_number_allowed_in_different_schools(
    db_session: AsyncSession, principal, school, other_school
) -> None:
    other_principal, riverside = other_school
    first = await enrol_student(db_session, principal, school, "ADM-001", "Alice")
    second = await enrol_student(db_session, other_principal, riverside, "ADM-001", "Ana")
    assert first != second


async def test_client_supplied_tenant_id_is_ignored(
    db_session: AsyncSession, principal, school, other_school
) -> None:
    with acting_as(principal):
        created = await get_class_service().classes.create(
            db_session, tenant_id=other_school[1].tenant_id, name="Class 2"
        )
        assert created.tenant_id == school.tenant_id


async def test_platform_admin_cannot_use_tenant_endpoints(
    client: AsyncClient, super_admin, school
) -> None:
    response = await client.get("/api/v1/students", headers=auth_headers(super_admin))
    assert response.status_code == 403


async def test_tenant_user_cannot_use_admin_endpoints(client: AsyncClient, principal) -> None:
    response = await client.get("/api/v1/admin/tenants", headers=auth_headers(principal))
    assert response.status_code == 403


async def test_anonymous_requests_are_rejected(client: AsyncClient) -> None:
    response = await client.get("/api/v1/students")
    assert response.status_code == 401

    response = await client.get("/api/v1/students", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


async def test_receipt_sequences_are_independent_per_tenant(
    client: AsyncClient, db_session: AsyncSession, principal, school, other_school
) -> None:
    other_principal, riverside = other_school
    receipts = []
    for head, ids, admission_no in ((principal, school, "ADM-001"), (other_principal, riverside, "ADM-900")):
        headers = auth_headers(head)
        student_id = await enrol_student(db_session, head, ids, admission_no, "Pat")
        category = await client.post("/api/v1/fees/categories", json={"name": "Tuition", "code": "TUI"}, headers=headers)
        structure = await client.post(
            "/api/v1/fees/structures",
            json={"fee_category_id": category.json()["data"]["id"], "name": "Tuition", "amount": "500.00"},
            headers=headers,
        )
        await client.post(
            "/api/v1/fees/allocations/generate",
            json={"fee_structure_id": structure.json()["data"]["id"]},
            headers=headers,
        )
        allocations = await client.get(
            "/api/v1/fees/allocations", params={"student_id": str(student_id)}, headers=headers
        )
        payment = await client.post(
            "/api/v1/fees/payments",
            json={
                "allocation_id": allocations.json()["data"][0]["id"],
                "amount": "100.00",
                "payment_method": "cash",
            },
            headers=headers,
        )
        assert payment.status_code == 201
        receipts.append(payment.json()["data"]["payment"]["receipt_number"])

    year = date.today().year
    assert receipts == [f"RCP-{year}-000001", f"RCP-{year}-000001"]


def test_resolver_distinguishes_platform_and_scoped(principal, super_admin) -> None:
    with acting_as(super_admin):
        assert isinstance(resolve_tenant_context(), PlatformContext)
    with acting_as(principal):
        context = resolve_tenant_context()
        assert isinstance(context, ScopedContext)
        assert context.tenant_id == principal.tenant_id


def test_resolver_rejects_missing_or_tenantless_principals(principal) -> None:
    with pytest.raises(UnauthorizedException):
        resolve_tenant_context()

    set_current_user_id(principal.id)
    set_current_user_role(Role.TEACHER.value)
    try:
        with pytest.raises(ForbiddenException):
            resolve_tenant_context()
    finally:
        set_current_user_id(None)
        set_current_user_role(None)
