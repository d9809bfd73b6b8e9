import pytest
from httpx import AsyncClient

from tests.conftest import TEST_PASSWORD, auth_headers


def student_payload(admission_no: str, school, section_id) -> dict:
    return {
        "email": f"{admission_no.lower()}@students.com",
        "password": TEST_PASSWORD,
        "first_name": admission_no,
        "last_name": "Pupil",
        "admission_no": admission_no,
        "class_id": str(school.class_id),
        "section_id": str(section_id),
    }


@pytest.fixture()
async def small_section(client: AsyncClient, principal, school) -> str:
    response = await client.post(
        "/api/v1/classes/sections",
        json={"class_id": str(school.class_id), "name": "Small", "capacity": 1},
        headers=auth_headers(principal),
    )
    assert response.status_code == 201
    return response.json()["data"]["id"]


async def test_full_section_rejects_enrolment(client: AsyncClient, principal, school, small_section) -> None:
    headers = auth_headers(principal)
    response = await client.post(
        "/api/v1/students", json=student_payload("ADM-001", school, small_section), headers=headers
    )
    assert response.status_code == 201

    response = await client.post(
        "/api/v1/students", json=student_payload("ADM-002", school, small_section), headers=headers
    )
    assert response.status_code == 409

    section = await client.get(f"/api/v1/classes/sections/{small_section}", headers=headers)
    assert section.json()["data"]["available_seats"] == 0


async def test_reactivation_needs_a_free_seat(client: AsyncClient, principal, school, small_section) -> None:
    headers = auth_headers(principal)
    first = (
        await client.post("/api/v1/students", json=student_payload("ADM-001", school, small_section), headers=headers)
    ).json()["data"]
    url = f"/api/v1/students/{first['id']}"

    response = await client.put(url, json={"status": "inactive"}, headers=headers)
    assert response.status_code == 200

    response = await client.post(
        "/api/v1/students", json=student_payload("ADM-002", school, small_section), headers=headers
    )
    assert response.status_code == 201

    response = await client.put(url, json={"status": "active"}, headers=headers)
    assert response.status_code == 409

    # Moving to a section with room works
    response = await client.put(
        url, json={"status": "active", "section_id": str(school.section_id)}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["section_id"] == str(school.section_id)


async def test_class_change_must_match_section(client: AsyncClient, principal, school) -> None:
    headers = auth_headers(principal)
    student = (
        await client.post("/api/v1/students", json=student_payload("ADM-001", school, school.section_id), headers=headers)
    ).json()["data"]
    response = await client.post(
        "/api/v1/classes", json={"name": "Class 2", "numeric_name": 2}, headers=headers
    )
    class_two = response.json()["data"]["id"]
    url = f"/api/v1/students/{student['id']}"

    response = await client.put(url, json={"class_id": class_two}, headers=headers)
    assert response.status_code == 422

    response = await client.put(url, json={"class_id": class_two, "section_id": None}, headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["class_id"] == class_two
    assert response.json()["data"]["section_id"] is None


async def test_guardian_link_and_unlink(client: AsyncClient, principal, school) -> None:
    headers = auth_headers(principal)
    student = (
        await client.post("/api/v1/students", json=student_payload("ADM-001", school, school.section_id), headers=headers)
    ).json()["data"]
    guardians = []
    for first_name, phone in (("Mary", "555-0101"), ("Peter", "555-0102")):
        response = await client.post(
            "/api/v1/guardians",
            json={"first_name": first_name, "last_name": "Pupil", "phone": phone},
            headers=headers,
        )
        assert response.status_code == 201
        guardians.append(response.json()["data"]["id"])

    url = f"/api/v1/students/{student['id']}/guardians"
    response = await client.post(
        url,
        json={"guardian_id": guardians[0], "relationship_type": "mother", "is_primary": True, "can_pickup": True},
        headers=headers,
    )
    assert response.status_code == 200
    [link] = response.json()["data"]["guardian_links"]
    assert link["relationship_type"] == "mother"
    assert link["is_primary"] is True
    assert link["can_pickup"] is True

    response = await client.post(url, json={"guardian_id": guardians[0]}, headers=headers)
    assert response.status_code == 409

    # A new primary guardian demotes the old one
    response = await client.post(
        url, json={"guardian_id": guardians[1], "relationship_type": "father", "is_primary": True}, headers=headers
    )
    links = {link["guardian_id"]: link for link in response.json()["data"]["guardian_links"]}
    assert links[guardians[0]]["is_primary"] is False
    assert links[guardians[1]]["is_primary"] is True

    response = await client.delete(f"{url}/{guardians[0]}", headers=headers)
    assert response.status_code == 200
    assert [link["guardian_id"] for link in response.json()["data"]["guardian_links"]] == [guardians[1]]

    response = await client.delete(f"{url}/{guardians[0]}", headers=headers)
    assert response.status_code == 404
