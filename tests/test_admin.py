from datetime import datetime, timedelta, timezone

from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.models import FeePayment, Student
from schoolsync.models.user import Role
from tests.conftest import auth_headers, create_tenant, create_user, enrol_student
from tests.test_fee_ledger import allocate, create_fee, first_allocation, pay

MASK = "********"


async def test_create_tenant_generates_unique_slugs(client: AsyncClient, super_admin) -> None:
    headers = auth_headers(super_admin)
    slugs = []
    for _ in range(2):
        response = await client.post(
            "/api/v1/admin/tenants",
            json={"name": "Green Valley School", "email": "office@greenvalley.com"},
            headers=headers,
        )
        assert response.status_code == 200
        slugs.append(response.json()["data"]["slug"])
    assert slugs == ["green-valley-school", "green-valley-school-1"]

    response = await client.post(
        "/api/v1/admin/tenants",
        json={"name": "Copycat", "email": "x@copycat.com", "slug": "green-valley-school"},
        headers=headers,
    )
    assert response.status_code == 409

    stats = await client.get("/api/v1/admin/tenants/stats", headers=headers)
    assert stats.json()["data"]["total"] == 2
    assert stats.json()["data"]["pending"] == 2


async def test_tenant_with_users_cannot_be_deleted(
    client: AsyncClient, db_session: AsyncSession, super_admin, tenant, principal
) -> None:
    headers = auth_headers(super_admin)
    empty = await create_tenant(db_session, "empty-school")
    empty_id = empty.id

    response = await client.delete(f"/api/v1/admin/tenants/{tenant.id}", headers=headers)
    assert response.status_code == 409

    response = await client.delete(f"/api/v1/admin/tenants/{empty_id}", headers=headers)
    assert response.status_code == 200

    response = await client.get(f"/api/v1/admin/tenants/{empty_id}", headers=headers)
    assert response.status_code == 404


async def test_tenant_usage(client: AsyncClient, super_admin, tenant, principal, school) -> None:
    response = await client.get(f"/api/v1/admin/tenants/{tenant.id}/usage", headers=auth_headers(super_admin))
    assert response.json()["data"] == {"total_users": 1, "total_students": 0, "total_classes": 1}


async def test_subscription_lifecycle(client: AsyncClient, super_admin, tenant) -> None:
    headers = auth_headers(super_admin)
    base = f"/api/v1/admin/subscriptions/{tenant.id}"

    response = await client.post(f"{base}/extend", json={"days": 30}, headers=headers)
    assert response.status_code == 422

    response = await client.put(base, json={"subscription_plan": "premium"}, headers=headers)
    assert response.status_code == 422

    ends_at = datetime.now(timezone.utc) + timedelta(days=10)
    response = await client.put(
        base,
        json={"subscription_plan": "premium", "subscription_ends_at": ends_at.isoformat()},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["is_active"] is True

    response = await client.post(f"{base}/extend", json={"days": 30}, headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["days_remaining"] == 40

    response = await client.post(f"{base}/cancel", headers=headers)
    data = response.json()["data"]
    assert data["subscription_plan"] == "free"
    assert data["subscription_ends_at"] is None


async def test_subscription_plans_and_stats(client: AsyncClient, super_admin, tenant) -> None:
    headers = auth_headers(super_admin)
    plans = await client.get("/api/v1/admin/subscriptions/plans", headers=headers)
    assert [p["plan"] for p in plans.json()["data"]] == ["free", "basic", "standard", "premium"]

    stats = await client.get("/api/v1/admin/subscriptions/stats", headers=headers)
    assert stats.json()["data"]["by_plan"]["free"] == 1


async def test_mail_password_is_masked(client: AsyncClient, super_admin) -> None:
    headers = auth_headers(super_admin)
    response = await client.put(
        "/api/v1/admin/settings/email",
        json={"mail_host": "smtp.example.com", "mail_username": "mailer", "mail_password": "s3cret"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["mail_password"] == MASK

    response = await client.get("/api/v1/admin/settings", headers=headers)
    data = response.json()["data"]
    assert data["email"]["mail_password"] == MASK
    assert data["email"]["mail_host"] == "smtp.example.com"
    assert data["general"]["platform_name"] == "SchoolSync"

    # Sending the mask back keeps the stored secret
    response = await client.put(
        "/api/v1/admin/settings/email",
        json={"mail_host": "smtp2.example.com", "mail_password": MASK},
        headers=headers,
    )
    assert response.json()["data"]["mail_password"] == MASK


async def test_invalid_settings_are_rejected(client: AsyncClient, super_admin) -> None:
    response = await client.put(
        "/api/v1/admin/settings/security",
        json={"session_lifetime": 5},
        headers=auth_headers(super_admin),
    )
    assert response.status_code == 422


async def test_user_soft_delete_restore_and_purge(
    client: AsyncClient, db_session: AsyncSession, super_admin, tenant
) -> None:
    headers = auth_headers(super_admin)
    teacher = await create_user(db_session, tenant, Role.TEACHER, "teacher@demo.com")
    base = f"/api/v1/admin/users/{teacher.id}"

    response = await client.delete(f"{base}/purge", headers=headers)
    assert response.status_code == 409

    response = await client.delete(base, headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["lifecycle_state"] == "SOFT_DELETED"

    deleted = await client.get("/api/v1/admin/users", params={"status": "deleted"}, headers=headers)
    assert [u["email"] for u in deleted.json()["data"]] == ["teacher@demo.com"]

    response = await client.post(f"{base}/restore", headers=headers)
    assert response.json()["data"]["lifecycle_state"] == "ACTIVE"

    response = await client.post(f"{base}/restore", headers=headers)
    assert response.status_code == 409

    await client.delete(base, headers=headers)
    response = await client.delete(f"{base}/purge", headers=headers)
    assert response.status_code == 200

    response = await client.get(base, headers=headers)
    assert response.status_code == 404


async def test_admin_cannot_act_on_self(client: AsyncClient, super_admin) -> None:
    headers = auth_headers(super_admin)
    response = await client.delete(f"/api/v1/admin/users/{super_admin.id}", headers=headers)
    assert response.status_code == 403


async def test_create_user_enforces_scope(client: AsyncClient, super_admin, tenant) -> None:
    headers = auth_headers(super_admin)
    tenant_id = str(tenant.id)
    response = await client.post(
        "/api/v1/admin/users",
        json={
            "email": "teacher@demo.com",
            "password": "password123",
            "first_name": "John",
            "last_name": "Doe",
            "role": "TEACHER",
        },
        headers=headers,
    )
    assert response.status_code == 422

    response = await client.post(
        "/api/v1/admin/users",
        json={
            "email": "teacher@demo.com",
            "password": "password123",
            "first_name": "John",
            "last_name": "Doe",
            "role": "TEACHER",
            "tenant_id": tenant_id,
        },
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["tenant_id"] == tenant_id


async def test_student_login_with_payments_cannot_be_purged(
    client: AsyncClient, db_session: AsyncSession, super_admin, principal, school
) -> None:
    headers = auth_headers(principal)
    admin_headers = auth_headers(super_admin)
    student_id = await enrol_student(db_session, principal, school, "ADM-001", "Alice")
    student_user_id = (await db_session.get(Student, student_id)).user_id

    structure_id = await create_fee(client, headers, school)
    await allocate(client, headers, structure_id)
    allocation = await first_allocation(client, headers, student_id)
    assert (await pay(client, headers, allocation["id"], "100.00")).status_code == 201

    base = f"/api/v1/admin/users/{student_user_id}"
    assert (await client.delete(base, headers=admin_headers)).status_code == 200
    response = await client.delete(f"{base}/purge", headers=admin_headers)
    assert response.status_code == 409

    payments = await db_session.execute(select(func.count()).select_from(FeePayment))
    assert payments.scalar_one() == 1
