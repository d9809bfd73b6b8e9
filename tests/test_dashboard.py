from datetime import date
from decimal import Decimal

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.models.user import Role
from tests.conftest import auth_headers, create_user, enrol_student
from tests.test_admissions import application_payload
from tests.test_fee_ledger import allocate, create_fee, first_allocation, pay


async def test_school_stats(client: AsyncClient, db_session: AsyncSession, principal, school) -> None:
    alice = await enrol_student(db_session, principal, school, "ADM-001", "Alice")
    brian = await enrol_student(db_session, principal, school, "ADM-002", "Brian")
    headers = auth_headers(principal)
    today = date.today().isoformat()

    for student_id, status in ((alice, "late"), (brian, "absent")):
        response = await client.post(
            "/api/v1/attendance",
            json={"student_id": str(student_id), "date": today, "status": status},
            headers=headers,
        )
        assert response.status_code == 201

    structure_id = await create_fee(client, headers, school)
    await allocate(client, headers, structure_id)
    allocation = await first_allocation(client, headers, alice)
    await pay(client, headers, allocation["id"], "400.00")

    await client.post("/api/v1/admissions", json=application_payload(school), headers=headers)

    response = await client.get("/api/v1/dashboard/stats", headers=headers)
    assert response.status_code == 200
    stats = response.json()["data"]
    assert stats["total_students"] == 2
    assert stats["total_teachers"] == 0
    assert stats["total_classes"] == 1
    assert stats["total_sections"] == 1
    assert stats["attendance_today"] == {
        "present": 1,
        "absent": 1,
        "late": 1,
        "total": 2,
        "percentage": 50.0,
    }
    fees = stats["fee_collection"]
    assert Decimal(fees["collected"]) == Decimal("400.00")
    assert Decimal(fees["outstanding"]) == Decimal("1600.00")
    assert Decimal(fees["total"]) == Decimal("2000.00")
    assert stats["pending_admissions"] == 1


async def test_empty_school_stats(client: AsyncClient, principal, school) -> None:
    response = await client.get("/api/v1/dashboard/stats", headers=auth_headers(principal))
    stats = response.json()["data"]
    assert stats["attendance_today"]["percentage"] == 0.0
    assert Decimal(stats["fee_collection"]["total"]) == Decimal("0")


async def test_parents_do_not_see_the_dashboard(client: AsyncClient, db_session: AsyncSession, tenant) -> None:
    parent = await create_user(db_session, tenant, Role.PARENT, "parent@demo.com")
    response = await client.get("/api/v1/dashboard/stats", headers=auth_headers(parent))
    assert response.status_code == 403
