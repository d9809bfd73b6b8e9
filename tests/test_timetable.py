import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.schemas.school_class import SectionCreate
from schoolsync.services import get_class_service
from tests.conftest import acting_as, auth_headers


@pytest.fixture()
async def week(client: AsyncClient, db_session: AsyncSession, principal, school) -> dict:
    """Two periods, a break, a subject, a teacher and a second section."""
    with acting_as(principal):
        section_b = await get_class_service().create_section(
            db_session, SectionCreate(class_id=school.class_id, name="B", capacity=30)
        )
        section_b_id = section_b.id
    await db_session.commit()

    headers = auth_headers(principal)
    ids = {"headers": headers, "section_a": str(school.section_id), "section_b": str(section_b_id)}
    slots = (
        ("period_1", "Period 1", "08:00", "08:45", False),
        ("recess", "Recess", "08:45", "09:00", True),
        ("period_2", "Period 2", "09:00", "09:45", False),
    )
    for order, (key, name, start, end, is_break) in enumerate(slots, start=1):
        response = await client.post(
            "/api/v1/timetables/slots",
            json={
                "name": name,
                "start_time": start,
                "end_time": end,
                "is_break": is_break,
                "slot_order": order,
            },
            headers=headers,
        )
        assert response.status_code == 201
        ids[key] = response.json()["data"]["id"]

    response = await client.post(
        "/api/v1/academic/subjects", json={"name": "Mathematics", "code": "MATH"}, headers=headers
    )
    ids["math"] = response.json()["data"]["id"]

    response = await client.post(
        "/api/v1/teachers",
        json={
            "email": "teacher@demo.com",
            "password": "password123",
            "first_name": "John",
            "last_name": "Doe",
            "employee_id": "EMP-001",
        },
        headers=headers,
    )
    assert response.status_code == 201
    ids["teacher"] = response.json()["data"]["id"]
    return ids


async def schedule(client: AsyncClient, week: dict, section: str, slot: str, day: str = "monday", **extra):
    return await client.post(
        "/api/v1/timetables/entries",
        json={"section_id": week[section], "slot_id": week[slot], "day_of_week": day, **extra},
        headers=week["headers"],
    )


async def test_section_cannot_have_two_classes_in_one_slot(client: AsyncClient, week) -> None:
    response = await schedule(client, week, "section_a", "period_1", subject_id=week["math"])
    assert response.status_code == 201

    response = await schedule(client, week, "section_a", "period_1")
    assert response.status_code == 409

    response = await schedule(client, week, "section_a", "period_1", day="tuesday")
    assert response.status_code == 201


async def test_teacher_cannot_be_double_booked(client: AsyncClient, week) -> None:
    response = await schedule(client, week, "section_a", "period_1", teacher_id=week["teacher"])
    assert response.status_code == 201

    response = await schedule(client, week, "section_b", "period_1", teacher_id=week["teacher"])
    assert response.status_code == 409

    response = await schedule(client, week, "section_b", "period_2", teacher_id=week["teacher"])
    assert response.status_code == 201


async def test_breaks_carry_no_lesson(client: AsyncClient, week) -> None:
    response = await schedule(client, week, "section_a", "recess", subject_id=week["math"])
    assert response.status_code == 422

    response = await schedule(client, week, "section_a", "recess")
    assert response.status_code == 201


async def test_slot_in_use_cannot_be_deleted(client: AsyncClient, week) -> None:
    await schedule(client, week, "section_a", "period_2")

    response = await client.delete(f"/api/v1/timetables/slots/{week['period_2']}", headers=week["headers"])
    assert response.status_code == 409

    response = await client.delete(f"/api/v1/timetables/slots/{week['period_1']}", headers=week["headers"])
    assert response.status_code == 200


async def test_slot_times_are_validated(client: AsyncClient, week) -> None:
    response = await client.post(
        "/api/v1/timetables/slots",
        json={"name": "Backwards", "start_time": "10:00", "end_time": "09:00"},
        headers=week["headers"],
    )
    assert response.status_code == 422


async def test_weekly_views(client: AsyncClient, week) -> None:
    await schedule(client, week, "section_a", "period_2", teacher_id=week["teacher"], subject_id=week["math"])
    await schedule(client, week, "section_a", "period_1", teacher_id=week["teacher"], subject_id=week["math"])
    await schedule(client, week, "section_a", "period_1", day="friday")

    response = await client.get(f"/api/v1/timetables/sections/{week['section_a']}", headers=week["headers"])
    timetable = response.json()["data"]
    assert [e["slot_id"] for e in timetable["monday"]] == [week["period_1"], week["period_2"]]
    assert len(timetable["friday"]) == 1
    assert timetable["sunday"] == []

    response = await client.get(f"/api/v1/timetables/teachers/{week['teacher']}", headers=week["headers"])
    assert len(response.json()["data"]) == 2
