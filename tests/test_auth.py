from datetime import timedelta

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.models.base import utcnow
from schoolsync.models.tenant import SubscriptionPlan, TenantStatus
from schoolsync.models.user import Role
from tests.conftest import TEST_PASSWORD, auth_headers, create_tenant, create_user


async def login(client: AsyncClient, email: str, password: str = TEST_PASSWORD, slug: str | None = None):
    payload = {"email": email, "password": password}
    if slug:
        payload["tenant_slug"] = slug
    return await client.post("/api/v1/auth/login", json=payload)


async def test_health_is_public(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200


async def test_login_and_me(client: AsyncClient, principal) -> None:
    response = await login(client, "principal@demo.com", slug="demo-school")
    assert response.status_code == 200
    token = response.json()["data"]["access_token"]
    assert response.json()["data"]["token_type"] == "bearer"

    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    data = me.json()["data"]
    assert data["user_id"] == str(principal.id)
    assert data["tenant_id"] == str(principal.tenant_id)
    assert data["role"] == "PRINCIPAL"
    assert data["is_platform"] is False


async def test_login_without_slug_finds_unique_account(client: AsyncClient, principal) -> None:
    response = await login(client, "Principal@Demo.com")
    assert response.status_code == 200


async def test_ambiguous_email_needs_a_slug(
    client: AsyncClient, db_session: AsyncSession, principal
) -> None:
    other = await create_tenant(db_session, "second-school")
    await create_user(db_session, other, Role.TEACHER, "principal@demo.com")

    response = await login(client, "principal@demo.com")
    assert response.status_code == 401

    response = await login(client, "principal@demo.com", slug="second-school")
    assert response.status_code == 200


async def test_platform_login(client: AsyncClient, super_admin) -> None:
    response = await login(client, "admin@schoolsync.com")
    token = response.json()["data"]["access_token"]

    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["data"]["is_platform"] is True
    assert me.json()["data"]["tenant_id"] is None


async def test_wrong_password(client: AsyncClient, principal) -> None:
    response = await login(client, "principal@demo.com", password="not-the-password", slug="demo-school")
    assert response.status_code == 401
    assert response.json()["status"] == "error"


async def test_inactive_school_cannot_log_in(
    client: AsyncClient, db_session: AsyncSession, tenant, principal
) -> None:
    tenant.status = TenantStatus.SUSPENDED.value
    await db_session.commit()

    response = await login(client, "principal@demo.com", slug="demo-school")
    assert response.status_code == 401


async def test_suspended_school_tokens_stop_working(
    client: AsyncClient, db_session: AsyncSession, tenant, principal, super_admin
) -> None:
    headers = auth_headers(principal)
    admin_headers = auth_headers(super_admin)
    assert (await client.get("/api/v1/students", headers=headers)).status_code == 200

    tenant.status = TenantStatus.SUSPENDED.value
    await db_session.commit()

    response = await client.get("/api/v1/students", headers=headers)
    assert response.status_code == 403
    assert response.json()["status"] == "error"

    # Platform admins are not bound to a school
    response = await client.get("/api/v1/admin/tenants", headers=admin_headers)
    assert response.status_code == 200


async def test_expired_subscription_blocks_school_requests(
    client: AsyncClient, db_session: AsyncSession, tenant, principal
) -> None:
    headers = auth_headers(principal)
    tenant.subscription_plan = SubscriptionPlan.PREMIUM.value
    tenant.subscription_ends_at = utcnow() + timedelta(days=30)
    await db_session.commit()
    assert (await client.get("/api/v1/students", headers=headers)).status_code == 200

    tenant.subscription_ends_at = utcnow() - timedelta(days=30)
    await db_session.commit()

    response = await client.post(
        "/api/v1/fees/categories", json={"name": "Bus", "code": "BUS"}, headers=headers
    )
    assert response.status_code == 403

    response = await login(client, "principal@demo.com", slug="demo-school")
    assert response.status_code == 401
