"""Fee models: categories, structures, discounts and the allocation ledger."""

import uuid
from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from uuid_extensions import uuid7

from schoolsync.models.base import Base, JSONType, TenantScopedModel, TimestampMixin
from schoolsync.utils.money import ZERO, to_money

Money = Numeric(12, 2)


class FeeFrequency(str, Enum):
    """How often a fee category is charged."""

    ONE_TIME = "one_time"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    HALF_YEARLY = "half_yearly"
    YEARLY = "yearly"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class AllocationStatus(str, Enum):
    """Ledger status of a student fee allocation.

    PENDING -> PARTIAL -> PAID follows paid_amount. OVERDUE and WAIVED are
    set explicitly; WAIVED is terminal.
    """

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    WAIVED = "waived"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    ONLINE = "online"
    CHEQUE = "cheque"
    MOBILE_BANKING = "mobile_banking"


class PaymentStatus(str, Enum):
    COMPLETED = "completed"
    VOIDED = "voided"


class FeeAuditAction(str, Enum):
    PAYMENT_RECORDED = "payment_recorded"
    OVERPAYMENT_FLAGGED = "overpayment_flagged"
    PAYMENT_VOIDED = "payment_voided"
    ALLOCATION_WAIVED = "allocation_waived"
    ALLOCATION_OVERDUE = "allocation_overdue"


class FeeCategory(TenantScopedModel):
    """A kind of fee, e.g. Tuition or Transport."""

    __tablename__ = "fee_categories"
    __table_args__ = (
        Index(
            "idx_fee_categories_tenant_code",
            "tenant_id",
            "code",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(30), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    frequency: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=FeeFrequency.YEARLY.value,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class FeeStructure(TenantScopedModel):
    """Amount charged for a category in one academic year.

    A null class_id means the structure applies to every class.
    """

    __tablename__ = "fee_structures"
    __table_args__ = (
        Index("idx_fee_structures_year_class", "academic_year_id", "class_id"),
    )

    fee_category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("fee_categories.id", ondelete="CASCADE"),
        nullable=False,
    )
    class_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("school_classes.id", ondelete="CASCADE"),
        nullable=True,
    )
    academic_year_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("academic_years.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    late_fee: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)
    grace_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Relationships
    category = relationship("FeeCategory", lazy="selectin")

    def late_fee_for(self, payment_date: date, due_date: date | None = None) -> Decimal:
        """Late fee owed when paying on payment_date.

        Charged only once the payment is more than grace_days past due.
        """
        due = due_date or self.due_date
        if due is None or not self.late_fee:
            return ZERO
        days_late = (payment_date - due).days
        if days_late > self.grace_days:
            return to_money(self.late_fee)
        return ZERO


class Discount(TenantScopedModel):
    """A reusable discount (scholarship, sibling discount, ...)."""

    __tablename__ = "discounts"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str | None] = mapped_column(String(30), nullable=True)
    discount_type: Mapped[str] = mapped_column(String(20), nullable=False)
    value: Mapped[Decimal] = mapped_column(Money, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def calculate_discount(self, amount) -> Decimal:
        """Discount applied to amount.

        Percentage discounts round to cents. Fixed discounts never exceed
        the amount they discount.
        """
        return calculate_discount(self.discount_type, self.value, amount)


def calculate_discount(discount_type: str, value, amount) -> Decimal:
    amount = to_money(amount)
    value = to_money(value)
    if discount_type == DiscountType.PERCENTAGE.value:
        return to_money(amount * value / Decimal(100))
    return min(value, amount)


class StudentFeeAllocation(TenantScopedModel):
    """Ledger row: what one student owes for one fee structure.

    due_amount == max(0, net_amount - paid_amount) after every mutation.
    Only FeePaymentService.record_payment advances paid_amount.
    """

    __tablename__ = "student_fee_allocations"
    __table_args__ = (
        UniqueConstraint("student_id", "fee_structure_id", name="uq_allocation_student_structure"),
        Index("idx_allocations_tenant_status", "tenant_id", "status"),
    )

    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    fee_structure_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("fee_structures.id", ondelete="CASCADE"),
        nullable=False,
    )
    academic_year_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("academic_years.id", ondelete="CASCADE"),
        nullable=False,
    )
    discount_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("discounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    original_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)
    net_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)
    due_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AllocationStatus.PENDING.value,
    )
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    fee_structure = relationship("FeeStructure", lazy="selectin")

    def expected_due(self) -> Decimal:
        return max(ZERO, to_money(self.net_amount) - to_money(self.paid_amount))

    def is_consistent(self) -> bool:
        """Check net = original - discount and due = max(0, net - paid)."""
        net = to_money(self.original_amount) - to_money(self.discount_amount)
        return to_money(self.net_amount) == net and to_money(self.due_amount) == self.expected_due()

    def apply_payment(self, amount) -> None:
        """Advance paid_amount and recompute due_amount and status."""
        self.paid_amount = to_money(self.paid_amount) + to_money(amount)
        self.due_amount = self.expected_due()
        self.recompute_status()

    def reverse_payment(self, amount) -> None:
        """Undo a voided payment's contribution."""
        self.paid_amount = max(ZERO, to_money(self.paid_amount) - to_money(amount))
        self.due_amount = self.expected_due()
        if self.status != AllocationStatus.WAIVED.value:
            self.status = (
                AllocationStatus.PARTIAL.value
                if self.paid_amount > ZERO
                else AllocationStatus.PENDING.value
            )

    def recompute_status(self) -> None:
        if self.due_amount <= ZERO:
            self.status = AllocationStatus.PAID.value
        elif self.paid_amount > ZERO:
            self.status = AllocationStatus.PARTIAL.value

    @property
    def is_overdue(self) -> bool:
        """Derived overdue: still owing and past the due date."""
        if self.due_date is None:
            return False
        return self.status in (
            AllocationStatus.PENDING.value,
            AllocationStatus.PARTIAL.value,
            AllocationStatus.OVERDUE.value,
        ) and self.due_date < date.today()


class FeePayment(TenantScopedModel):
    """Immutable payment record. Soft-deleted (voided) only for corrections."""

    __tablename__ = "fee_payments"
    __table_args__ = (
        UniqueConstraint("tenant_id", "receipt_number", name="uq_fee_payments_receipt"),
        Index("idx_fee_payments_allocation", "allocation_id"),
        Index("idx_fee_payments_tenant_date", "tenant_id", "payment_date"),
    )

    allocation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("student_fee_allocations.id", ondelete="CASCADE"),
        nullable=False,
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    receipt_number: Mapped[str] = mapped_column(String(30), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    late_fee: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)
    total_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    transaction_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentStatus.COMPLETED.value,
    )
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    collected_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    flagged_for_review: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    review_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)


class ReceiptSequence(Base, TimestampMixin):
    """Last receipt number issued per tenant per calendar year.

    Rows are locked while a payment is recorded and never decremented,
    so receipt numbers are not reused after a payment is voided.
    """

    __tablename__ = "receipt_sequences"
    __table_args__ = (
        UniqueConstraint("tenant_id", "year", name="uq_receipt_sequences_tenant_year"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid7,
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    last_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class FeeAuditLog(Base, TimestampMixin):
    """Append-only audit trail of ledger events."""

    __tablename__ = "fee_audit_logs"
    __table_args__ = (
        Index("idx_fee_audit_logs_tenant_action", "tenant_id", "action"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid7,
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
    )
    allocation_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("student_fee_allocations.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    payment_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("fee_payments.id", ondelete="SET NULL"),
        nullable=True,
    )
    action: Mapped[str] = mapped_column(String(40), nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    details: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    performed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
