import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.models.user import Role
from tests.conftest import auth_headers, create_user, enrol_student


def staff_leave(**overrides) -> dict:
    return {
        "requester_type": "staff",
        "leave_type": "sick",
        "start_date": "2024-11-04",
        "end_date": "2024-11-06",
        "reason": "Flu",
        **overrides,
    }


@pytest.fixture()
async def staff(db_session: AsyncSession, tenant) -> dict:
    teacher = await create_user(db_session, tenant, Role.TEACHER, "teacher@demo.com")
    deputy = await create_user(db_session, tenant, Role.VICE_PRINCIPAL, "deputy@demo.com")
    return {
        "teacher": auth_headers(teacher),
        "teacher_id": str(teacher.id),
        "deputy": auth_headers(deputy),
    }


async def apply(client: AsyncClient, headers: dict, **overrides) -> dict:
    response = await client.post("/api/v1/leave-requests", json=staff_leave(**overrides), headers=headers)
    assert response.status_code == 201
    return response.json()["data"]


async def test_staff_leave_belongs_to_the_applicant(client: AsyncClient, staff) -> None:
    leave = await apply(client, staff["teacher"])
    assert leave["staff_user_id"] == staff["teacher_id"]
    assert leave["applied_by"] == staff["teacher_id"]
    assert leave["total_days"] == 3
    assert leave["status"] == "pending"


async def test_approval_flow(client: AsyncClient, principal, staff) -> None:
    principal_headers = auth_headers(principal)
    principal_id = str(principal.id)
    leave = await apply(client, staff["teacher"])
    url = f"/api/v1/leave-requests/{leave['id']}"

    response = await client.post(f"{url}/approve", headers=staff["teacher"])
    assert response.status_code == 403

    response = await client.post(f"{url}/approve", json={"remarks": "Get well"}, headers=principal_headers)
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "approved"
    assert response.json()["data"]["reviewed_by"] == principal_id

    response = await client.post(f"{url}/reject", json={"remarks": "Changed my mind"}, headers=staff["deputy"])
    assert response.status_code == 409


async def test_reviewer_cannot_approve_own_leave(client: AsyncClient, principal, staff) -> None:
    headers = auth_headers(principal)
    leave = await apply(client, headers, leave_type="personal")

    response = await client.post(f"/api/v1/leave-requests/{leave['id']}/approve", headers=headers)
    assert response.status_code == 403

    response = await client.post(f"/api/v1/leave-requests/{leave['id']}/approve", headers=staff["deputy"])
    assert response.status_code == 200


async def test_rejection_requires_remarks(client: AsyncClient, principal, staff) -> None:
    headers = auth_headers(principal)
    leave = await apply(client, staff["teacher"])
    url = f"/api/v1/leave-requests/{leave['id']}/reject"

    assert (await client.post(url, json={}, headers=headers)).status_code == 422
    assert (await client.post(url, json={"remarks": "   "}, headers=headers)).status_code == 422

    response = await client.post(url, json={"remarks": "Exams week"}, headers=headers)
    assert response.json()["data"]["status"] == "rejected"
    assert response.json()["data"]["review_remarks"] == "Exams week"


async def test_only_applicant_can_cancel(client: AsyncClient, principal, staff) -> None:
    leave = await apply(client, staff["teacher"])
    url = f"/api/v1/leave-requests/{leave['id']}/cancel"

    response = await client.post(url, headers=auth_headers(principal))
    assert response.status_code == 403

    response = await client.post(url, headers=staff["teacher"])
    assert response.json()["data"]["status"] == "cancelled"

    response = await client.post(url, headers=staff["teacher"])
    assert response.status_code == 409


async def test_invalid_requests(client: AsyncClient, staff) -> None:
    response = await client.post(
        "/api/v1/leave-requests",
        json=staff_leave(start_date="2024-11-06", end_date="2024-11-04"),
        headers=staff["teacher"],
    )
    assert response.status_code == 422

    response = await client.post(
        "/api/v1/leave-requests",
        json=staff_leave(requester_type="student"),
        headers=staff["teacher"],
    )
    assert response.status_code == 422


async def test_parents_only_see_their_own_requests(
    client: AsyncClient, db_session: AsyncSession, tenant, principal, school, staff
) -> None:
    student_id = await enrol_student(db_session, principal, school, "ADM-001", "Alice")
    parent = await create_user(db_session, tenant, Role.PARENT, "parent@demo.com")
    parent_headers = auth_headers(parent)

    await apply(client, staff["teacher"])
    await apply(
        client,
        parent_headers,
        requester_type="student",
        student_id=str(student_id),
        leave_type="family",
        reason="Wedding",
    )

    mine = await client.get("/api/v1/leave-requests", headers=parent_headers)
    assert [r["requester_type"] for r in mine.json()["data"]] == ["student"]

    everyone = await client.get("/api/v1/leave-requests", headers=auth_headers(principal))
    assert everyone.json()["pagination"]["total_items"] == 2


async def test_staff_cannot_approve_student_leave_they_filed(
    client: AsyncClient, db_session: AsyncSession, principal, school, staff
) -> None:
    principal_headers = auth_headers(principal)
    student_id = await enrol_student(db_session, principal, school, "ADM-001", "Alice")
    leave = await apply(
        client,
        staff["deputy"],
        requester_type="student",
        student_id=str(student_id),
        leave_type="family",
        reason="Funeral",
    )
    url = f"/api/v1/leave-requests/{leave['id']}/approve"

    response = await client.post(url, headers=staff["deputy"])
    assert response.status_code == 403

    response = await client.post(url, headers=principal_headers)
    assert response.status_code == 200
