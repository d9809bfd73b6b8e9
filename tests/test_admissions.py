import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.models.user import Role
from tests.conftest import auth_headers, create_user


def application_payload(school, first_name: str = "Nora", **extra) -> dict:
    return {
        "first_name": first_name,
        "last_name": "Banda",
        "date_of_birth": "2018-03-14",
        "gender": "FEMALE",
        "class_id": str(school.class_id),
        "guardian_name": "Ruth Banda",
        "guardian_relation": "Mother",
        "guardian_phone": "555-0199",
        **extra,
    }


@pytest.fixture()
async def application(client: AsyncClient, principal, school) -> dict:
    response = await client.post(
        "/api/v1/admissions", json=application_payload(school), headers=auth_headers(principal)
    )
    assert response.status_code == 201
    return response.json()["data"]


async def test_apply_list_and_filter(client: AsyncClient, principal, school, application) -> None:
    headers = auth_headers(principal)
    assert application["status"] == "pending"
    assert application["application_no"].startswith("ADM-")
    assert application["academic_year_id"] == str(school.year_id)

    response = await client.post(
        "/api/v1/admissions", json=application_payload(school, "Tariq"), headers=headers
    )
    second = response.json()["data"]
    assert second["application_no"] != application["application_no"]
    await client.put(
        f"/api/v1/admissions/{second['id']}/status", json={"status": "under_review"}, headers=headers
    )

    response = await client.get("/api/v1/admissions", params={"status": "pending"}, headers=headers)
    assert [a["id"] for a in response.json()["data"]] == [application["id"]]

    response = await client.get("/api/v1/admissions", params={"search": "tariq"}, headers=headers)
    assert response.json()["pagination"]["total_items"] == 1

    response = await client.get(f"/api/v1/admissions/{application['id']}", headers=headers)
    assert response.json()["data"]["full_name"] == "Nora Banda"


async def test_interview_needs_a_date(client: AsyncClient, principal, application) -> None:
    headers = auth_headers(principal)
    url = f"/api/v1/admissions/{application['id']}/status"

    response = await client.put(url, json={"status": "interview_scheduled"}, headers=headers)
    assert response.status_code == 422

    response = await client.put(
        url, json={"status": "interview_scheduled", "interview_date": "2024-11-02"}, headers=headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["interview_date"] == "2024-11-02"
    assert data["processed_by"] == str(principal.id)


async def test_rejection_needs_remarks_and_is_final(client: AsyncClient, principal, application) -> None:
    headers = auth_headers(principal)
    url = f"/api/v1/admissions/{application['id']}/status"

    response = await client.put(url, json={"status": "rejected"}, headers=headers)
    assert response.status_code == 422

    response = await client.put(
        url, json={"status": "rejected", "admin_remarks": "Class is full"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["student_id"] is None

    response = await client.put(url, json={"status": "approved"}, headers=headers)
    assert response.status_code == 409


async def test_approval_enrols_the_applicant(client: AsyncClient, principal, school, application) -> None:
    headers = auth_headers(principal)
    url = f"/api/v1/admissions/{application['id']}/status"

    response = await client.put(
        url, json={"status": "approved", "section_id": str(school.section_id)}, headers=headers
    )
    assert response.status_code == 200
    student_id = response.json()["data"]["student_id"]
    assert student_id is not None

    student = (await client.get(f"/api/v1/students/{student_id}", headers=headers)).json()["data"]
    assert student["admission_no"] == application["application_no"]
    assert student["section_id"] == str(school.section_id)
    assert student["gender"] == "FEMALE"
    [link] = student["guardian_links"]
    assert link["relationship_type"] == "mother"
    assert link["is_primary"] is True
    assert link["can_pickup"] is True

    response = await client.put(url, json={"status": "approved"}, headers=headers)
    assert response.status_code == 409


async def test_approval_reuses_guardian_with_same_phone(
    client: AsyncClient, principal, school, application
) -> None:
    headers = auth_headers(principal)
    response = await client.post(
        "/api/v1/guardians",
        json={"first_name": "Ruth", "last_name": "Banda", "phone": "555-0199"},
        headers=headers,
    )
    guardian_id = response.json()["data"]["id"]

    response = await client.put(
        f"/api/v1/admissions/{application['id']}/status", json={"status": "approved"}, headers=headers
    )
    student_id = response.json()["data"]["student_id"]
    student = (await client.get(f"/api/v1/students/{student_id}", headers=headers)).json()["data"]
    assert [link["guardian_id"] for link in student["guardian_links"]] == [guardian_id]


async def test_teachers_cannot_process_applications(
    client: AsyncClient, db_session: AsyncSession, tenant, application
) -> None:
    teacher = await create_user(db_session, tenant, Role.TEACHER, "teacher@demo.com")
    response = await client.put(
        f"/api/v1/admissions/{application['id']}/status",
        json={"status": "under_review"},
        headers=auth_headers(teacher),
    )
    assert response.status_code == 403
