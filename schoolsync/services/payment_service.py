"""Fee payment service: the only writer that advances an allocation's paid amount.

record_payment runs inside the request transaction:

1. lock the allocation row (cross-tenant rows are not found)
2. check the student and the allocation status
3. check the stored ledger amounts agree before touching them
4. mint the next receipt number from the locked tenant/year sequence
5. insert the payment and apply it to the allocation
6. flag and audit an overpayment instead of rejecting it
"""

import logging
import uuid
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.config import settings
from schoolsync.exceptions import ConflictException, NotFoundException, ValidationException
from schoolsync.models import FeePayment, ReceiptSequence, StudentFeeAllocation
from schoolsync.models.base import utcnow
from schoolsync.models.fee import AllocationStatus, FeeAuditAction, PaymentMethod, PaymentStatus
from schoolsync.repositories import TenantScopedRepository
from schoolsync.schemas.fee import PaymentCreate
from schoolsync.services.fee_service import ensure_ledger_consistent, log_fee_audit
from schoolsync.utils.money import ZERO, to_money
from schoolsync.utils.tenant_context import get_current_user_id_or_none, get_tenant_id

logger = logging.getLogger(__name__)

RECEIPT_DIGITS = 6


def format_receipt_number(year: int, number: int, prefix: str | None = None) -> str:
    """RCP-2025-000001"""
    return f"{prefix or settings.receipt_prefix}-{year}-{number:0{RECEIPT_DIGITS}d}"


class PaymentService:
    """Service for recording, voiding and looking up fee payments."""

    def __init__(self):
        self.payments = TenantScopedRepository(FeePayment, "Payment")
        self.allocations = TenantScopedRepository(StudentFeeAllocation, "Fee allocation")

    async def next_receipt_number(self, db: AsyncSession, year: int | None = None) -> str:
        """Advance the tenant's receipt counter for the year and format it.

        The counter row is locked until the transaction ends and is never
        decremented, so numbers are monotonic and never reused.
        """
        tenant_id = get_tenant_id()
        year = year or utcnow().year

        result = await db.execute(
            select(ReceiptSequence)
            .where(ReceiptSequence.tenant_id == tenant_id, ReceiptSequence.year == year)
            .with_for_update()
        )
        sequence = result.scalar_one_or_none()
        if sequence is None:
            sequence = ReceiptSequence(tenant_id=tenant_id, year=year, last_number=0)
            db.add(sequence)
            try:
                await db.flush()
            except IntegrityError as exc:
                # Another transaction created this year's counter first
                raise ConflictException("Receipt counter is busy, please retry") from exc

        sequence.last_number += 1
        await db.flush()
        return format_receipt_number(year, sequence.last_number)

    async def record_payment(
        self, db: AsyncSession, data: PaymentCreate
    ) -> tuple[FeePayment, StudentFeeAllocation]:
        """Record a payment against an allocation.

        Returns:
            Tuple of (payment, updated allocation)

        Raises:
            ValidationException: If the amount is not positive
            NotFoundException: If the allocation is missing or owned by another tenant
            ConflictException: If the student does not match or the allocation is waived
            InvariantViolation: If the stored ledger amounts disagree
        """
        amount = to_money(data.amount)
        if amount <= ZERO:
            raise ValidationException([{"field": "amount", "message": "Amount must be greater than zero"}])

        allocation = await self.allocations.get(db, data.allocation_id, for_update=True)
        if data.student_id is not None and data.student_id != allocation.student_id:
            raise ConflictException("Allocation does not belong to this student")
        if allocation.status == AllocationStatus.WAIVED.value:
            raise ConflictException("Payments cannot be recorded against a waived allocation")
        ensure_ledger_consistent(allocation)

        payment_date = data.payment_date or date.today()
        if data.late_fee is not None:
            late_fee = to_money(data.late_fee)
        elif allocation.fee_structure is not None:
            late_fee = allocation.fee_structure.late_fee_for(payment_date, allocation.due_date)
        else:
            late_fee = ZERO

        due_before = to_money(allocation.due_amount)
        overpaid = amount > due_before
        receipt_number = await self.next_receipt_number(db)

        payment = await self.payments.create(
            db,
            conflict_message=f"Receipt number {receipt_number} already exists",
            allocation_id=allocation.id,
            student_id=allocation.student_id,
            receipt_number=receipt_number,
            amount=amount,
            late_fee=late_fee,
            total_amount=amount + late_fee,
            payment_date=payment_date,
            payment_method=PaymentMethod(data.payment_method).value,
            transaction_reference=data.transaction_reference,
            status=PaymentStatus.COMPLETED.value,
            remarks=data.remarks,
            collected_by=get_current_user_id_or_none(),
            flagged_for_review=overpaid,
            review_reason=(
                f"Payment of {amount} exceeds amount due {due_before}" if overpaid else None
            ),
        )

        status_before = allocation.status
        allocation.apply_payment(amount)

        await log_fee_audit(
            db,
            FeeAuditAction.PAYMENT_RECORDED,
            allocation_id=allocation.id,
            payment_id=payment.id,
            amount=amount,
            details={
                "receipt_number": receipt_number,
                "late_fee": str(late_fee),
                "status_before": status_before,
                "status_after": allocation.status,
            },
        )
        if overpaid:
            logger.warning(
                f"Overpayment on allocation {allocation.id}: paid {amount}, due was {due_before} "
                f"(receipt {receipt_number})"
            )
            await log_fee_audit(
                db,
                FeeAuditAction.OVERPAYMENT_FLAGGED,
                allocation_id=allocation.id,
                payment_id=payment.id,
                amount=amount - due_before,
                details={"due_before": str(due_before), "amount": str(amount)},
            )

        await db.flush()
        logger.info(
            f"Recorded payment {receipt_number} of {amount} on allocation {allocation.id} "
            f"({status_before} -> {allocation.status})"
        )
        return payment, allocation

    async def void_payment(self, db: AsyncSession, payment_id: uuid.UUID, reason: str) -> FeePayment:
        """Void a payment: soft delete it and take its amount back off the allocation.

        The receipt number stays used.
        """
        payment = await self.payments.get(db, payment_id, for_update=True)
        allocation = await self.allocations.get(db, payment.allocation_id, for_update=True)
        ensure_ledger_consistent(allocation)

        status_before = allocation.status
        allocation.reverse_payment(payment.amount)
        payment.status = PaymentStatus.VOIDED.value
        payment.review_reason = reason
        await self.payments.soft_delete(db, payment)

        await log_fee_audit(
            db,
            FeeAuditAction.PAYMENT_VOIDED,
            allocation_id=allocation.id,
            payment_id=payment.id,
            amount=payment.amount,
            details={
                "receipt_number": payment.receipt_number,
                "reason": reason,
                "status_before": status_before,
                "status_after": allocation.status,
            },
        )
        await db.flush()
        logger.info(f"Voided payment {payment.receipt_number}: {reason}")
        return payment

    async def get_payments(
        self,
        db: AsyncSession,
        student_id: uuid.UUID | None = None,
        allocation_id: uuid.UUID | None = None,
        payment_method: PaymentMethod | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        flagged_only: bool = False,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[FeePayment], int]:
        filters = []
        if student_id:
            filters.append(FeePayment.student_id == student_id)
        if allocation_id:
            filters.append(FeePayment.allocation_id == allocation_id)
        if payment_method:
            filters.append(FeePayment.payment_method == payment_method.value)
        if date_from:
            filters.append(FeePayment.payment_date >= date_from)
        if date_to:
            filters.append(FeePayment.payment_date <= date_to)
        if flagged_only:
            filters.append(FeePayment.flagged_for_review.is_(True))
        return await self.payments.paginate(
            db,
            *filters,
            order_by=(FeePayment.payment_date.desc(), FeePayment.receipt_number.desc()),
            page=page,
            page_size=page_size,
        )

    async def get_payment(self, db: AsyncSession, payment_id: uuid.UUID) -> FeePayment:
        return await self.payments.get(db, payment_id)

    async def get_by_receipt(self, db: AsyncSession, receipt_number: str) -> FeePayment:
        """Look up a payment by receipt number, voided payments included."""
        result = await db.execute(
            self.payments.query(FeePayment.receipt_number == receipt_number, include_deleted=True)
        )
        payment = result.scalar_one_or_none()
        if payment is None:
            raise NotFoundException("Payment")
        return payment


# Singleton instance
_payment_service: PaymentService | None = None


def get_payment_service() -> PaymentService:
    """Get the payment service singleton."""
    global _payment_service
    if _payment_service is None:
        _payment_service = PaymentService()
    return _payment_service
