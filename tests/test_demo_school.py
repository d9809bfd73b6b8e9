"""The demo school, built and billed entirely through the HTTP API."""

from datetime import date
from decimal import Decimal

from httpx import AsyncClient

from tests.conftest import TEST_PASSWORD, auth_headers


async def post(client: AsyncClient, url: str, payload: dict, headers: dict, expected: int = 201) -> dict:
    response = await client.post(url, json=payload, headers=headers)
    assert response.status_code == expected, response.text
    return response.json()["data"]


async def test_demo_school_tuition_lifecycle(client: AsyncClient, super_admin) -> None:
    admin = auth_headers(super_admin)

    tenant = await post(
        client,
        "/api/v1/admin/tenants",
        {"name": "Demo School", "email": "info@demo.com", "slug": "demo-school", "status": "active"},
        admin,
        expected=200,
    )
    await post(
        client,
        "/api/v1/admin/users",
        {
            "email": "principal@demo.com",
            "password": TEST_PASSWORD,
            "first_name": "Jane",
            "last_name": "Smith",
            "role": "PRINCIPAL",
            "tenant_id": tenant["id"],
        },
        admin,
        expected=200,
    )

    login = await post(
        client,
        "/api/v1/auth/login",
        {"email": "principal@demo.com", "password": TEST_PASSWORD, "tenant_slug": "demo-school"},
        {},
        expected=200,
    )
    headers = {"Authorization": f"Bearer {login['access_token']}"}

    year = await post(
        client,
        "/api/v1/academic/years",
        {"name": "2024-2025", "start_date": "2024-09-01", "end_date": "2025-06-30", "is_current": True},
        headers,
    )
    assert year["is_current"] is True

    class_one = await post(client, "/api/v1/classes", {"name": "Class 1", "numeric_name": 1}, headers)
    section = await post(
        client, "/api/v1/classes/sections", {"class_id": class_one["id"], "name": "A", "capacity": 30}, headers
    )
    student = await post(
        client,
        "/api/v1/students",
        {
            "email": "student1@demo.com",
            "password": TEST_PASSWORD,
            "first_name": "Alice",
            "last_name": "Johnson",
            "admission_no": "ADM-0001",
            "class_id": class_one["id"],
            "section_id": section["id"],
        },
        headers,
    )
    assert student["academic_year_id"] == year["id"]

    tuition = await post(client, "/api/v1/fees/categories", {"name": "Tuition", "code": "TUITION"}, headers)
    structure = await post(
        client,
        "/api/v1/fees/structures",
        {
            "fee_category_id": tuition["id"],
            "class_id": class_one["id"],
            "name": "Class 1 Tuition",
            "amount": "1000",
            "due_date": "2024-10-01",
            "late_fee": "50",
            "grace_days": 5,
        },
        headers,
    )
    generated = await post(
        client, "/api/v1/fees/allocations/generate", {"fee_structure_id": structure["id"]}, headers, expected=200
    )
    assert generated == {"created": 1, "skipped": 0}

    response = await client.get("/api/v1/fees/allocations", params={"student_id": student["id"]}, headers=headers)
    allocation = response.json()["data"][0]
    assert Decimal(allocation["net_amount"]) == Decimal("1000")
    assert Decimal(allocation["due_amount"]) == Decimal("1000")
    assert allocation["status"] == "pending"

    paid = await post(
        client,
        "/api/v1/fees/payments",
        {
            "allocation_id": allocation["id"],
            "student_id": student["id"],
            "amount": "1000",
            "payment_method": "cash",
            "payment_date": "2024-10-01",
        },
        headers,
    )
    assert Decimal(paid["allocation"]["due_amount"]) == Decimal("0")
    assert paid["allocation"]["status"] == "paid"
    assert Decimal(paid["payment"]["total_amount"]) == Decimal("1000")
    assert paid["payment"]["receipt_number"] == f"RCP-{date.today().year}-000001"
    assert paid["payment"]["flagged_for_review"] is False

    extra = await post(
        client,
        "/api/v1/fees/payments",
        {
            "allocation_id": allocation["id"],
            "amount": "200",
            "payment_method": "cash",
            "payment_date": "2024-10-02",
        },
        headers,
    )
    assert extra["payment"]["flagged_for_review"] is True
    assert extra["payment"]["receipt_number"] == f"RCP-{date.today().year}-000002"
    assert Decimal(extra["allocation"]["due_amount"]) == Decimal("0")
    assert extra["allocation"]["status"] == "paid"

    flagged = await client.get("/api/v1/fees/payments", params={"flagged_only": True}, headers=headers)
    assert [p["receipt_number"] for p in flagged.json()["data"]] == [extra["payment"]["receipt_number"]]

    summary = await client.get("/api/v1/fees/reports/summary", headers=headers)
    totals = summary.json()["data"]
    assert Decimal(totals["total_allocated"]) == Decimal("1000")
    assert Decimal(totals["total_collected"]) == Decimal("1200")
    assert Decimal(totals["total_outstanding"]) == Decimal("0")
    assert totals["allocations_by_status"]["paid"] == 1
    assert totals["currency"] == "USD"
