import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.models.user import Role
from schoolsync.services.attendance_service import AttendanceService
from tests.conftest import auth_headers, create_user, enrol_student

DAY = "2024-10-14"


@pytest.fixture()
async def pupils(db_session: AsyncSession, principal, school) -> list[uuid.UUID]:
    return [
        await enrol_student(db_session, principal, school, "ADM-001", "Alice"),
        await enrol_student(db_session, principal, school, "ADM-002", "Brian"),
    ]


async def mark(client: AsyncClient, headers: dict, student_id, status: str = "present", day: str = DAY):
    return await client.post(
        "/api/v1/attendance",
        json={"student_id": str(student_id), "date": day, "status": status},
        headers=headers,
    )


async def test_one_record_per_student_per_day(client: AsyncClient, principal, pupils) -> None:
    headers = auth_headers(principal)
    response = await mark(client, headers, pupils[0])
    assert response.status_code == 201
    record = response.json()["data"]
    assert record["is_present"] is True
    assert record["marked_by"] == str(principal.id)

    response = await mark(client, headers, pupils[0], status="absent")
    assert response.status_code == 409

    response = await mark(client, headers, pupils[0], day="2024-10-15")
    assert response.status_code == 201


async def test_bulk_marking_updates_existing_rows(client: AsyncClient, principal, school, pupils) -> None:
    headers = auth_headers(principal)
    payload = {
        "section_id": str(school.section_id),
        "date": DAY,
        "records": [
            {"student_id": str(pupils[0]), "status": "present"},
            {"student_id": str(pupils[1]), "status": "absent"},
        ],
    }
    response = await client.post("/api/v1/attendance/bulk", json=payload, headers=headers)
    assert response.status_code == 200
    assert response.json()["data"] == {
        "created_count": 2,
        "updated_count": 0,
        "error_count": 0,
        "errors": [],
    }

    payload["records"][1]["status"] = "late"
    payload["records"].append({"student_id": str(uuid.uuid4()), "status": "present"})
    response = await client.post("/api/v1/attendance/bulk", json=payload, headers=headers)
    result = response.json()["data"]
    assert result["created_count"] == 0
    assert result["updated_count"] == 2
    assert result["error_count"] == 1

    listing = await client.get("/api/v1/attendance", params={"date_from": DAY, "date_to": DAY}, headers=headers)
    statuses = sorted(r["status"] for r in listing.json()["data"])
    assert statuses == ["late", "present"]


async def test_section_sheet_shows_unmarked_students(client: AsyncClient, principal, school, pupils) -> None:
    headers = auth_headers(principal)
    await mark(client, headers, pupils[0], status="late")

    response = await client.get(
        f"/api/v1/attendance/sections/{school.section_id}/sheet",
        params={"date": DAY},
        headers=headers,
    )
    assert response.status_code == 200
    rows = {row["admission_no"]: row for row in response.json()["data"]}
    assert rows["ADM-001"]["status"] == "late"
    assert rows["ADM-001"]["is_present"] is True
    assert rows["ADM-002"]["status"] is None
    assert rows["ADM-002"]["is_present"] is None


async def test_summary_counts_late_as_present(client: AsyncClient, principal, pupils) -> None:
    headers = auth_headers(principal)
    marks = [
        ("2024-10-07", "present"),
        ("2024-10-08", "present"),
        ("2024-10-09", "late"),
        ("2024-10-10", "absent"),
        ("2024-10-11", "present"),
    ]
    for day, status in marks:
        assert (await mark(client, headers, pupils[0], status=status, day=day)).status_code == 201

    response = await client.get(f"/api/v1/attendance/students/{pupils[0]}/summary", headers=headers)
    summary = response.json()["data"]
    assert summary["total_days"] == 5
    assert summary["present_days"] == 3
    assert summary["late_days"] == 1
    assert summary["absent_days"] == 1
    assert summary["attendance_percentage"] == 80.0

    empty = await client.get(f"/api/v1/attendance/students/{pupils[1]}/summary", headers=headers)
    assert empty.json()["data"]["attendance_percentage"] == 0.0


async def test_teacher_marks_but_student_cannot(
    client: AsyncClient, db_session: AsyncSession, tenant, pupils
) -> None:
    teacher = await create_user(db_session, tenant, Role.TEACHER, "teacher@demo.com")
    pupil = await create_user(db_session, tenant, Role.STUDENT, "pupil@demo.com")
    pupil_headers = auth_headers(pupil)

    response = await mark(client, auth_headers(teacher), pupils[0])
    assert response.status_code == 201

    response = await mark(client, pupil_headers, pupils[1])
    assert response.status_code == 403


async def test_bulk_marking_race_is_a_conflict(
    client: AsyncClient, monkeypatch, principal, school, pupils
) -> None:
    headers = auth_headers(principal)
    assert (await mark(client, headers, pupils[0])).status_code == 201

    async def missed_lookup(self, db, student_id, target_date):
        # Another request inserted the row after this one looked
        return None

    monkeypatch.setattr(AttendanceService, "_get_existing_record", missed_lookup)
    response = await client.post(
        "/api/v1/attendance/bulk",
        json={
            "section_id": str(school.section_id),
            "date": DAY,
            "records": [{"student_id": str(pupils[0]), "status": "absent"}],
        },
        headers=headers,
    )
    assert response.status_code == 409
