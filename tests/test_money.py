from datetime import date
from decimal import Decimal

from schoolsync.models import FeeStructure, StudentFeeAllocation
from schoolsync.models.fee import AllocationStatus, DiscountType, calculate_discount
from schoolsync.services.attendance_service import attendance_percentage
from schoolsync.services.payment_service import format_receipt_number
from schoolsync.utils.money import to_money


def test_percentage_discount_rounds_to_cents() -> None:
    assert calculate_discount(DiscountType.PERCENTAGE.value, 10, Decimal("1500")) == Decimal("150.00")
    assert calculate_discount(DiscountType.PERCENTAGE.value, Decimal("12.5"), Decimal("99.99")) == Decimal("12.50")


def test_fixed_discount_is_capped_at_amount() -> None:
    assert calculate_discount(DiscountType.FIXED.value, 500, Decimal("300")) == Decimal("300.00")
    assert calculate_discount(DiscountType.FIXED.value, 50, Decimal("300")) == Decimal("50.00")


def test_to_money_handles_floats_and_none() -> None:
    assert to_money(0.1) == Decimal("0.10")
    assert to_money(None) == Decimal("0.00")
    assert to_money("2.005") == Decimal("2.01")


def test_receipt_number_format() -> None:
    assert format_receipt_number(2025, 1) == "RCP-2025-000001"
    assert format_receipt_number(2025, 123456) == "RCP-2025-123456"


def make_allocation(net: str) -> StudentFeeAllocation:
    return StudentFeeAllocation(
        original_amount=Decimal(net),
        discount_amount=Decimal("0.00"),
        net_amount=Decimal(net),
        paid_amount=Decimal("0.00"),
        due_amount=Decimal(net),
        status=AllocationStatus.PENDING.value,
    )


def test_apply_payment_never_goes_negative() -> None:
    allocation = make_allocation("1000")
    for amount, due in (("400", "600.00"), ("400", "200.00"), ("300", "0.00")):
        allocation.apply_payment(Decimal(amount))
        assert allocation.due_amount == Decimal(due)
        assert allocation.is_consistent()
    assert allocation.status == AllocationStatus.PAID.value
    assert allocation.paid_amount == Decimal("1100.00")


def test_reverse_payment_reopens_allocation() -> None:
    allocation = make_allocation("500")
    allocation.apply_payment(Decimal("500"))
    allocation.reverse_payment(Decimal("200"))
    assert allocation.status == AllocationStatus.PARTIAL.value
    assert allocation.due_amount == Decimal("200.00")


def test_late_fee_only_after_grace_days() -> None:
    structure = FeeStructure(
        amount=Decimal("1000"), due_date=date(2024, 10, 1), late_fee=Decimal("50"), grace_days=5
    )
    assert structure.late_fee_for(date(2024, 10, 6)) == Decimal("0.00")
    assert structure.late_fee_for(date(2024, 10, 7)) == Decimal("50.00")


def test_attendance_percentage_counts_late_as_present() -> None:
    assert attendance_percentage(present=3, late=1, total=5) == 80.0
    assert attendance_percentage(present=0, late=0, total=0) == 0.0
