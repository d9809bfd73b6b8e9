from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.models import AcademicYear
from schoolsync.models.user import Role
from tests.conftest import auth_headers, create_tenant, create_user


async def create_year(client: AsyncClient, headers: dict, name: str, start: str, end: str, **extra):
    return await client.post(
        "/api/v1/academic/years",
        json={"name": name, "start_date": start, "end_date": end, **extra},
        headers=headers,
    )


async def current_year_count(db: AsyncSession, tenant_id) -> int:
    result = await db.execute(
        select(func.count(AcademicYear.id)).where(
            AcademicYear.tenant_id == tenant_id, AcademicYear.is_current.is_(True)
        )
    )
    return result.scalar()


async def test_set_current_keeps_a_single_current_year(
    client: AsyncClient, db_session: AsyncSession, principal, school
) -> None:
    headers = auth_headers(principal)
    response = await create_year(client, headers, "2025-2026", "2025-09-01", "2026-06-30")
    assert response.status_code == 201
    next_year = response.json()["data"]
    assert next_year["is_current"] is False
    assert next_year["status"] == "upcoming"

    response = await client.post(f"/api/v1/academic/years/{next_year['id']}/set-current", headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["is_current"] is True
    assert response.json()["data"]["status"] == "active"

    current = await client.get("/api/v1/academic/years/current", headers=headers)
    assert current.json()["data"]["id"] == next_year["id"]

    previous = await client.get(f"/api/v1/academic/years/{school.year_id}", headers=headers)
    assert previous.json()["data"]["is_current"] is False
    assert await current_year_count(db_session, school.tenant_id) == 1


async def test_set_current_is_idempotent(
    client: AsyncClient, db_session: AsyncSession, principal, school
) -> None:
    headers = auth_headers(principal)
    for _ in range(2):
        response = await client.post(f"/api/v1/academic/years/{school.year_id}/set-current", headers=headers)
        assert response.status_code == 200
    assert await current_year_count(db_session, school.tenant_id) == 1


async def test_creating_a_current_year_replaces_the_previous_one(
    client: AsyncClient, db_session: AsyncSession, principal, school
) -> None:
    headers = auth_headers(principal)
    response = await create_year(
        client, headers, "2025-2026", "2025-09-01", "2026-06-30", is_current=True
    )
    assert response.json()["data"]["is_current"] is True
    assert await current_year_count(db_session, school.tenant_id) == 1


async def test_current_year_is_per_tenant(
    client: AsyncClient, db_session: AsyncSession, principal, school
) -> None:
    other = await create_tenant(db_session, "hillside-school")
    other_head = await create_user(db_session, other, Role.PRINCIPAL, "head@hillside.com")
    headers = auth_headers(other_head)
    own_headers = auth_headers(principal)

    response = await client.get("/api/v1/academic/years/current", headers=headers)
    assert response.status_code == 404

    response = await create_year(client, headers, "2024-2025", "2024-09-01", "2025-06-30", is_current=True)
    assert response.status_code == 201

    mine = await client.get("/api/v1/academic/years/current", headers=own_headers)
    assert mine.json()["data"]["id"] == str(school.year_id)


async def test_year_validation(client: AsyncClient, principal, school) -> None:
    headers = auth_headers(principal)
    response = await create_year(client, headers, "Backwards", "2025-06-30", "2025-01-01")
    assert response.status_code == 422

    response = await create_year(client, headers, "2024-2025", "2024-09-01", "2025-06-30")
    assert response.status_code == 409


async def test_subject_codes_are_unique(client: AsyncClient, principal) -> None:
    headers = auth_headers(principal)
    response = await client.post(
        "/api/v1/academic/subjects", json={"name": "Mathematics", "code": "MATH"}, headers=headers
    )
    assert response.status_code == 201

    response = await client.post(
        "/api/v1/academic/subjects", json={"name": "Maths again", "code": "MATH"}, headers=headers
    )
    assert response.status_code == 409

    listing = await client.get("/api/v1/academic/subjects", headers=headers)
    assert [s["code"] for s in listing.json()["data"]] == ["MATH"]
