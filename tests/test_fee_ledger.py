import uuid
from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.exceptions import InvariantViolation
from schoolsync.models import FeeAuditLog, StudentFeeAllocation
from schoolsync.models.fee import FeeAuditAction, PaymentMethod
from schoolsync.models.user import Role
from schoolsync.schemas.fee import PaymentCreate
from schoolsync.services import get_payment_service
from tests.conftest import acting_as, auth_headers, create_tenant, create_user, enrol_student

RECEIPT_YEAR = date.today().year


async def create_fee(client: AsyncClient, headers: dict, school, amount: str = "1000.00", **extra) -> str:
    response = await client.post(
        "/api/v1/fees/categories",
        json={"name": "Tuition", "code": "tuition"},
        headers=headers,
    )
    assert response.status_code == 201
    category_id = response.json()["data"]["id"]

    response = await client.post(
        "/api/v1/fees/structures",
        json={
            "fee_category_id": category_id,
            "class_id": str(school.class_id),
            "name": "Class 1 Tuition",
            "amount": amount,
            **extra,
        },
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()["data"]["id"]


async def allocate(client: AsyncClient, headers: dict, structure_id: str, **extra) -> dict:
    response = await client.post(
        "/api/v1/fees/allocations/generate",
        json={"fee_structure_id": structure_id, **extra},
        headers=headers,
    )
    assert response.status_code == 200
    return response.json()["data"]


async def first_allocation(client: AsyncClient, headers: dict, student_id) -> dict:
    response = await client.get(
        "/api/v1/fees/allocations", params={"student_id": str(student_id)}, headers=headers
    )
    assert response.status_code == 200
    return response.json()["data"][0]


async def pay(client: AsyncClient, headers: dict, allocation_id: str, amount: str, **extra):
    return await client.post(
        "/api/v1/fees/payments",
        json={
            "allocation_id": allocation_id,
            "amount": amount,
            "late_fee": "0.00",
            "payment_method": "cash",
            **extra,
        },
        headers=headers,
    )


@pytest.fixture()
async def allocation(client: AsyncClient, db_session: AsyncSession, principal, school) -> dict:
    headers = auth_headers(principal)
    student_id = await enrol_student(db_session, principal, school, "ADM-001", "Alice")
    structure_id = await create_fee(client, headers, school)
    result = await allocate(client, headers, structure_id)
    assert result == {"created": 1, "skipped": 0}
    return await first_allocation(client, headers, student_id)


async def test_payments_reduce_due_amount(client: AsyncClient, principal, allocation) -> None:
    headers = auth_headers(principal)
    assert Decimal(allocation["due_amount"]) == Decimal("1000.00")

    expected = [("400.00", "600.00", "partial"), ("400.00", "200.00", "partial"), ("300.00", "0.00", "paid")]
    for amount, due, status in expected:
        response = await pay(client, headers, allocation["id"], amount)
        assert response.status_code == 201
        data = response.json()["data"]
        assert Decimal(data["allocation"]["due_amount"]) == Decimal(due)
        assert data["allocation"]["status"] == status

    final = data["allocation"]
    assert Decimal(final["paid_amount"]) == Decimal("1100.00")
    assert Decimal(final["due_amount"]) == Decimal("0")


async def test_overpayment_is_recorded_and_flagged(
    client: AsyncClient, db_session: AsyncSession, principal, allocation
) -> None:
    headers = auth_headers(principal)
    await pay(client, headers, allocation["id"], "900.00")

    response = await pay(client, headers, allocation["id"], "300.00")
    assert response.status_code == 201
    body = response.json()
    assert body["data"]["payment"]["flagged_for_review"] is True
    assert "overpayment" in body["message"]
    assert body["data"]["allocation"]["status"] == "paid"

    result = await db_session.execute(
        select(FeeAuditLog).where(FeeAuditLog.action == FeeAuditAction.OVERPAYMENT_FLAGGED.value)
    )
    flagged = result.scalars().all()
    assert len(flagged) == 1
    assert flagged[0].amount == Decimal("200.00")


async def test_receipt_numbers_are_sequential_per_tenant(
    client: AsyncClient, principal, allocation
) -> None:
    headers = auth_headers(principal)
    receipts = []
    for _ in range(3):
        response = await pay(client, headers, allocation["id"], "100.00")
        receipts.append(response.json()["data"]["payment"]["receipt_number"])

    assert receipts == [f"RCP-{RECEIPT_YEAR}-{n:06d}" for n in (1, 2, 3)]


async def test_voided_receipt_number_is_not_reused(client: AsyncClient, principal, allocation) -> None:
    headers = auth_headers(principal)
    first = (await pay(client, headers, allocation["id"], "250.00")).json()["data"]["payment"]

    response = await client.post(
        f"/api/v1/fees/payments/{first['id']}/void",
        json={"reason": "Entered twice"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "voided"

    refreshed = await client.get(f"/api/v1/fees/allocations/{allocation['id']}", headers=headers)
    assert Decimal(refreshed.json()["data"]["due_amount"]) == Decimal("1000.00")
    assert refreshed.json()["data"]["status"] == "pending"

    second = (await pay(client, headers, allocation["id"], "250.00")).json()["data"]["payment"]
    assert second["receipt_number"] == f"RCP-{RECEIPT_YEAR}-000002"

    lookup = await client.get(f"/api/v1/fees/payments/receipt/{first['receipt_number']}", headers=headers)
    assert lookup.status_code == 200
    assert lookup.json()["data"]["status"] == "voided"


async def test_payment_on_waived_allocation_is_rejected(client: AsyncClient, principal, allocation) -> None:
    headers = auth_headers(principal)
    response = await client.post(
        f"/api/v1/fees/allocations/{allocation['id']}/waive",
        json={"remarks": "Scholarship"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "waived"

    response = await pay(client, headers, allocation["id"], "100.00")
    assert response.status_code == 409


async def test_fully_paid_allocation_cannot_be_waived(client: AsyncClient, principal, allocation) -> None:
    headers = auth_headers(principal)
    await pay(client, headers, allocation["id"], "1000.00")

    response = await client.post(
        f"/api/v1/fees/allocations/{allocation['id']}/waive",
        json={"remarks": "Too late"},
        headers=headers,
    )
    assert response.status_code == 409


async def test_payment_for_another_student_is_rejected(
    client: AsyncClient, db_session: AsyncSession, principal, school, allocation
) -> None:
    headers = auth_headers(principal)
    other_student = await enrol_student(db_session, principal, school, "ADM-002", "Brian")

    response = await pay(client, headers, allocation["id"], "100.00", student_id=str(other_student))
    assert response.status_code == 409


async def test_non_positive_amount_is_rejected(client: AsyncClient, principal, allocation) -> None:
    response = await pay(client, auth_headers(principal), allocation["id"], "0")
    assert response.status_code == 422


async def test_late_fee_charged_after_grace_period(
    client: AsyncClient, db_session: AsyncSession, principal, school
) -> None:
    headers = auth_headers(principal)
    student_id = await enrol_student(db_session, principal, school, "ADM-010", "Late")
    structure_id = await create_fee(
        client, headers, school, due_date="2024-10-01", late_fee="50.00", grace_days=5
    )
    await allocate(client, headers, structure_id)
    allocation = await first_allocation(client, headers, student_id)

    on_time = await client.post(
        "/api/v1/fees/payments",
        json={
            "allocation_id": allocation["id"],
            "amount": "100.00",
            "payment_method": "cash",
            "payment_date": "2024-10-06",
        },
        headers=headers,
    )
    assert Decimal(on_time.json()["data"]["payment"]["late_fee"]) == Decimal("0")

    late = await client.post(
        "/api/v1/fees/payments",
        json={
            "allocation_id": allocation["id"],
            "amount": "100.00",
            "payment_method": "cash",
            "payment_date": "2024-10-07",
        },
        headers=headers,
    )
    payment = late.json()["data"]["payment"]
    assert Decimal(payment["late_fee"]) == Decimal("50.00")
    assert Decimal(payment["total_amount"]) == Decimal("150.00")
    # Late fees never count toward the allocation
    assert Decimal(late.json()["data"]["allocation"]["due_amount"]) == Decimal("800.00")


async def test_percentage_discount_applied_on_allocation(
    client: AsyncClient, db_session: AsyncSession, principal, school
) -> None:
    headers = auth_headers(principal)
    student_id = await enrol_student(db_session, principal, school, "ADM-020", "Dora")
    structure_id = await create_fee(client, headers, school, amount="1500.00")
    response = await client.post(
        "/api/v1/fees/discounts",
        json={"name": "Sibling", "discount_type": "percentage", "value": "10"},
        headers=headers,
    )
    discount_id = response.json()["data"]["id"]

    await allocate(client, headers, structure_id, discount_id=discount_id)
    allocation = await first_allocation(client, headers, student_id)
    assert Decimal(allocation["discount_amount"]) == Decimal("150.00")
    assert Decimal(allocation["net_amount"]) == Decimal("1350.00")
    assert Decimal(allocation["due_amount"]) == Decimal("1350.00")


async def test_generate_skips_existing_allocations(client: AsyncClient, principal, allocation) -> None:
    headers = auth_headers(principal)
    result = await allocate(client, headers, allocation["fee_structure_id"])
    assert result == {"created": 0, "skipped": 1}


async def test_inconsistent_ledger_aborts_payment(
    db_session: AsyncSession, principal, allocation
) -> None:
    row = await db_session.get(StudentFeeAllocation, uuid.UUID(allocation["id"]))
    row.due_amount = Decimal("5.00")
    await db_session.commit()

    with acting_as(principal):
        with pytest.raises(InvariantViolation):
            await get_payment_service().record_payment(
                db_session,
                PaymentCreate(
                    allocation_id=row.id,
                    amount=Decimal("100.00"),
                    late_fee=Decimal("0"),
                    payment_method=PaymentMethod.CASH,
                ),
            )


async def test_fee_permissions_by_role(
    client: AsyncClient, db_session: AsyncSession, tenant, school, allocation
) -> None:
    accountant = await create_user(db_session, tenant, Role.ACCOUNTANT, "accounts@demo.com")
    headers = auth_headers(accountant)

    response = await pay(client, headers, allocation["id"], "100.00")
    assert response.status_code == 201

    response = await client.post(
        "/api/v1/fees/categories", json={"name": "Bus", "code": "BUS"}, headers=headers
    )
    assert response.status_code == 201

    teacher = await create_user(db_session, tenant, Role.TEACHER, "teacher@demo.com")
    response = await pay(client, auth_headers(teacher), allocation["id"], "100.00")
    assert response.status_code == 403


async def test_overdue_sweep(client: AsyncClient, db_session: AsyncSession, principal, school) -> None:
    headers = auth_headers(principal)
    student_id = await enrol_student(db_session, principal, school, "ADM-030", "Omar")
    structure_id = await create_fee(client, headers, school, due_date="2024-10-01")
    await allocate(client, headers, structure_id)

    allocation = await first_allocation(client, headers, student_id)
    assert allocation["status"] == "pending"
    assert allocation["is_overdue"] is True

    response = await client.post("/api/v1/fees/allocations/mark-overdue", headers=headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"marked_overdue": 1}

    allocation = await first_allocation(client, headers, student_id)
    assert allocation["status"] == "overdue"

    response = await client.post("/api/v1/fees/allocations/mark-overdue", headers=headers)
    assert response.json()["data"] == {"marked_overdue": 0}

    result = await db_session.execute(
        select(FeeAuditLog).where(FeeAuditLog.action == FeeAuditAction.ALLOCATION_OVERDUE.value)
    )
    assert len(result.scalars().all()) == 1


async def test_fee_reports(client: AsyncClient, db_session: AsyncSession, principal, school) -> None:
    headers = auth_headers(principal)
    first = await enrol_student(db_session, principal, school, "ADM-040", "Ada")
    second = await enrol_student(db_session, principal, school, "ADM-041", "Ben")
    structure_id = await create_fee(client, headers, school, due_date="2024-10-01")
    await allocate(client, headers, structure_id)

    allocation = await first_allocation(client, headers, first)
    response = await pay(client, headers, allocation["id"], "400.00", payment_method="bank_transfer")
    assert response.status_code == 201

    summary = (await client.get("/api/v1/fees/reports/summary", headers=headers)).json()["data"]
    assert Decimal(summary["total_allocated"]) == Decimal("2000.00")
    assert Decimal(summary["total_collected"]) == Decimal("400.00")
    assert Decimal(summary["total_outstanding"]) == Decimal("1600.00")
    assert summary["allocations_by_status"]["partial"] == 1
    assert summary["allocations_by_status"]["pending"] == 1
    assert summary["overdue_count"] == 2
    assert Decimal(summary["collection_by_method"]["bank_transfer"]) == Decimal("400.00")
    assert summary["currency"] == "USD"

    [row] = (await client.get("/api/v1/fees/reports/by-class", headers=headers)).json()["data"]
    assert row["class_name"] == "Class 1"
    assert Decimal(row["total_net"]) == Decimal("2000.00")
    assert Decimal(row["total_paid"]) == Decimal("400.00")
    assert Decimal(row["total_due"]) == Decimal("1600.00")

    defaulters = (await client.get("/api/v1/fees/reports/defaulters", headers=headers)).json()["data"]
    assert [d["student_id"] for d in defaulters] == [str(second), str(first)]
    assert [Decimal(d["total_due"]) for d in defaulters] == [Decimal("1000.00"), Decimal("600.00")]


async def test_payment_against_another_school_is_not_found(
    client: AsyncClient, db_session: AsyncSession, allocation
) -> None:
    other = await create_tenant(db_session, "hillside-school")
    accountant = await create_user(db_session, other, Role.ACCOUNTANT, "accounts@hillside.com")

    response = await pay(client, auth_headers(accountant), allocation["id"], "100.00")
    assert response.status_code == 404


async def test_receipt_lookup_stays_within_the_school(
    client: AsyncClient, db_session: AsyncSession, principal, allocation
) -> None:
    receipt = (await pay(client, auth_headers(principal), allocation["id"], "100.00")).json()["data"]["payment"]
    other = await create_tenant(db_session, "hillside-school")
    accountant = await create_user(db_session, other, Role.ACCOUNTANT, "accounts@hillside.com")

    response = await client.get(
        f"/api/v1/fees/payments/receipt/{receipt['receipt_number']}", headers=auth_headers(accountant)
    )
    assert response.status_code == 404
