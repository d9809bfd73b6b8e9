from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.models.user import Role
from tests.conftest import TEST_PASSWORD, auth_headers, create_user, enrol_student


def staff_payload(email: str, role: str) -> dict:
    return {
        "email": email,
        "password": TEST_PASSWORD,
        "first_name": "Sam",
        "last_name": "Okafor",
        "role": role,
    }


async def test_create_and_list_staff(
    client: AsyncClient, db_session: AsyncSession, principal, school
) -> None:
    await enrol_student(db_session, principal, school, "ADM-001", "Alice")
    headers = auth_headers(principal)

    response = await client.post(
        "/api/v1/staff", json=staff_payload("bursar@demo.com", "ACCOUNTANT"), headers=headers
    )
    assert response.status_code == 201
    accountant = response.json()["data"]
    assert accountant["role"] == "ACCOUNTANT"
    assert accountant["tenant_id"] == str(principal.tenant_id)

    response = await client.get("/api/v1/staff", headers=headers)
    assert sorted(m["email"] for m in response.json()["data"]) == ["bursar@demo.com", "principal@demo.com"]

    response = await client.get("/api/v1/staff", params={"role": "ACCOUNTANT"}, headers=headers)
    assert [m["id"] for m in response.json()["data"]] == [accountant["id"]]

    response = await client.post(
        "/api/v1/staff", json=staff_payload("bursar@demo.com", "ACCOUNTANT"), headers=headers
    )
    assert response.status_code == 409


async def test_staff_endpoints_only_handle_staff_roles(
    client: AsyncClient, db_session: AsyncSession, tenant, principal
) -> None:
    teacher = await create_user(db_session, tenant, Role.TEACHER, "teacher@demo.com")
    teacher_id = teacher.id
    headers = auth_headers(principal)

    response = await client.post(
        "/api/v1/staff", json=staff_payload("new.teacher@demo.com", "TEACHER"), headers=headers
    )
    assert response.status_code == 422

    response = await client.get(f"/api/v1/staff/{teacher_id}", headers=headers)
    assert response.status_code == 404


async def test_only_the_owner_manages_owner_accounts(
    client: AsyncClient, db_session: AsyncSession, tenant, principal
) -> None:
    owner = await create_user(db_session, tenant, Role.SCHOOL_OWNER, "owner@demo.com")
    owner_headers = auth_headers(owner)
    owner_id = owner.id
    headers = auth_headers(principal)

    response = await client.post(
        "/api/v1/staff", json=staff_payload("partner@demo.com", "SCHOOL_OWNER"), headers=headers
    )
    assert response.status_code == 403

    response = await client.put(f"/api/v1/staff/{owner_id}", json={"phone": "555-0100"}, headers=headers)
    assert response.status_code == 403

    response = await client.post(
        "/api/v1/staff", json=staff_payload("partner@demo.com", "SCHOOL_OWNER"), headers=owner_headers
    )
    assert response.status_code == 201


async def test_staff_cannot_remove_themselves(client: AsyncClient, principal) -> None:
    headers = auth_headers(principal)
    url = f"/api/v1/staff/{principal.id}"

    response = await client.put(url, json={"status": "suspended"}, headers=headers)
    assert response.status_code == 403

    response = await client.delete(url, headers=headers)
    assert response.status_code == 403


async def test_deleted_staff_leave_the_list(client: AsyncClient, principal) -> None:
    headers = auth_headers(principal)
    response = await client.post(
        "/api/v1/staff", json=staff_payload("officer@demo.com", "ADMIN_OFFICER"), headers=headers
    )
    officer_id = response.json()["data"]["id"]

    response = await client.delete(f"/api/v1/staff/{officer_id}", headers=headers)
    assert response.status_code == 200

    response = await client.get("/api/v1/staff", headers=headers)
    assert [m["email"] for m in response.json()["data"]] == ["principal@demo.com"]


async def test_admin_officer_can_view_but_not_manage_staff(
    client: AsyncClient, db_session: AsyncSession, tenant
) -> None:
    officer = await create_user(db_session, tenant, Role.ADMIN_OFFICER, "officer@demo.com")
    headers = auth_headers(officer)

    response = await client.get("/api/v1/staff", headers=headers)
    assert response.status_code == 200

    response = await client.post(
        "/api/v1/staff", json=staff_payload("clerk@demo.com", "ACCOUNTANT"), headers=headers
    )
    assert response.status_code == 403
