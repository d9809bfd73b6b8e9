"""Fee setup and allocation service: categories, structures, discounts, allocations, reports."""

import logging
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.config import settings
from schoolsync.exceptions import ConflictException, InvariantViolation, ValidationException
from schoolsync.models import (
    Discount,
    FeeAuditLog,
    FeeCategory,
    FeePayment,
    FeeStructure,
    SchoolClass,
    Student,
    StudentFeeAllocation,
    User,
)
from schoolsync.models.fee import AllocationStatus, DiscountType, FeeAuditAction
from schoolsync.models.student import StudentStatus
from schoolsync.repositories import TenantScopedRepository
from schoolsync.schemas.fee import (
    AllocationGenerateRequest,
    DiscountCreate,
    DiscountUpdate,
    FeeCategoryCreate,
    FeeCategoryUpdate,
    FeeStructureCreate,
    FeeStructureUpdate,
)
from schoolsync.services.academic_service import get_academic_service
from schoolsync.services.class_service import get_class_service
from schoolsync.utils.money import ZERO, to_money
from schoolsync.utils.tenant_context import get_current_user_id_or_none, get_tenant_id

logger = logging.getLogger(__name__)

# Statuses that still owe money
OPEN_STATUSES = (
    AllocationStatus.PENDING.value,
    AllocationStatus.PARTIAL.value,
    AllocationStatus.OVERDUE.value,
)


async def log_fee_audit(
    db: AsyncSession,
    action: FeeAuditAction,
    allocation_id: uuid.UUID | None = None,
    payment_id: uuid.UUID | None = None,
    amount: Decimal | None = None,
    details: dict | None = None,
) -> FeeAuditLog:
    """Append a ledger event for the current tenant."""
    log = FeeAuditLog(
        tenant_id=get_tenant_id(),
        allocation_id=allocation_id,
        payment_id=payment_id,
        action=action.value,
        amount=amount,
        details=details or {},
        performed_by=get_current_user_id_or_none(),
    )
    db.add(log)
    return log


def ensure_ledger_consistent(allocation: StudentFeeAllocation) -> None:
    """Abort before writing when stored amounts disagree with each other."""
    if not allocation.is_consistent():
        logger.error(
            f"Ledger invariant broken on allocation {allocation.id}: "
            f"net={allocation.net_amount} paid={allocation.paid_amount} due={allocation.due_amount}"
        )
        raise InvariantViolation(f"Allocation {allocation.id} has inconsistent amounts")


class FeeService:
    """Service for fee configuration and student allocations."""

    def __init__(self):
        self.categories = TenantScopedRepository(FeeCategory, "Fee category")
        self.structures = TenantScopedRepository(FeeStructure, "Fee structure")
        self.discounts = TenantScopedRepository(Discount, "Discount")
        self.allocations = TenantScopedRepository(StudentFeeAllocation, "Fee allocation")
        self.students = TenantScopedRepository(Student, "Student")

    # ==================== CATEGORIES ====================

    async def get_categories(
        self, db: AsyncSession, is_active: bool | None = None, page: int = 1, page_size: int = 50
    ) -> tuple[list[FeeCategory], int]:
        filters = [FeeCategory.is_active == is_active] if is_active is not None else []
        return await self.categories.paginate(
            db, *filters, order_by=(FeeCategory.name,), page=page, page_size=page_size
        )

    async def create_category(self, db: AsyncSession, data: FeeCategoryCreate) -> FeeCategory:
        code = data.code.upper()
        return await self.categories.create(
            db,
            conflict_message=f"Fee category code '{code}' already exists",
            name=data.name,
            code=code,
            description=data.description,
            frequency=data.frequency.value,
        )

    async def update_category(
        self, db: AsyncSession, category_id: uuid.UUID, data: FeeCategoryUpdate
    ) -> FeeCategory:
        category = await self.categories.get(db, category_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("code"):
            changes["code"] = changes["code"].upper()
        if changes.get("frequency") is not None:
            changes["frequency"] = changes["frequency"].value
        return await self.categories.update(
            db, category, conflict_message="A fee category with this code already exists", **changes
        )

    async def delete_category(self, db: AsyncSession, category_id: uuid.UUID) -> None:
        category = await self.categories.get(db, category_id)
        if await self.structures.exists(db, FeeStructure.fee_category_id == category.id):
            raise ConflictException("Cannot delete a fee category that has fee structures")
        await self.categories.soft_delete(db, category)

    # ==================== STRUCTURES ====================

    async def get_structures(
        self,
        db: AsyncSession,
        academic_year_id: uuid.UUID | None = None,
        class_id: uuid.UUID | None = None,
        fee_category_id: uuid.UUID | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> tuple[list[FeeStructure], int]:
        filters = []
        if academic_year_id:
            filters.append(FeeStructure.academic_year_id == academic_year_id)
        if class_id:
            # Structures with no class apply to every class
            filters.append(or_(FeeStructure.class_id == class_id, FeeStructure.class_id.is_(None)))
        if fee_category_id:
            filters.append(FeeStructure.fee_category_id == fee_category_id)
        return await self.structures.paginate(
            db, *filters, order_by=(FeeStructure.due_date, FeeStructure.name), page=page, page_size=page_size
        )

    async def get_structure(self, db: AsyncSession, structure_id: uuid.UUID) -> FeeStructure:
        return await self.structures.get(db, structure_id)

    async def create_structure(self, db: AsyncSession, data: FeeStructureCreate) -> FeeStructure:
        category = await self.categories.get(db, data.fee_category_id)
        if data.class_id:
            await get_class_service().get_class(db, data.class_id)
        year_id = await get_academic_service().resolve_year_id(db, data.academic_year_id)

        return await self.structures.create(
            db,
            category=category,
            fee_category_id=category.id,
            class_id=data.class_id,
            academic_year_id=year_id,
            name=data.name,
            amount=to_money(data.amount),
            due_date=data.due_date,
            late_fee=to_money(data.late_fee),
            grace_days=data.grace_days,
            description=data.description,
        )

    async def update_structure(
        self, db: AsyncSession, structure_id: uuid.UUID, data: FeeStructureUpdate
    ) -> FeeStructure:
        """Update a structure. Existing allocations keep the amounts they were created with."""
        structure = await self.structures.get(db, structure_id)
        changes = data.model_dump(exclude_unset=True)
        for field in ("amount", "late_fee"):
            if changes.get(field) is not None:
                changes[field] = to_money(changes[field])
        return await self.structures.update(db, structure, **changes)

    async def delete_structure(self, db: AsyncSession, structure_id: uuid.UUID) -> None:
        structure = await self.structures.get(db, structure_id)
        if await self.allocations.exists(db, StudentFeeAllocation.fee_structure_id == structure.id):
            raise ConflictException("Cannot delete a fee structure that has been allocated")
        await self.structures.soft_delete(db, structure)

    # ==================== DISCOUNTS ====================

    async def get_discounts(
        self, db: AsyncSession, is_active: bool | None = None, page: int = 1, page_size: int = 50
    ) -> tuple[list[Discount], int]:
        filters = [Discount.is_active == is_active] if is_active is not None else []
        return await self.discounts.paginate(
            db, *filters, order_by=(Discount.name,), page=page, page_size=page_size
        )

    async def create_discount(self, db: AsyncSession, data: DiscountCreate) -> Discount:
        self._check_discount_value(data.discount_type.value, data.value)
        return await self.discounts.create(
            db,
            name=data.name,
            code=data.code,
            discount_type=data.discount_type.value,
            value=to_money(data.value),
            description=data.description,
        )

    async def update_discount(
        self, db: AsyncSession, discount_id: uuid.UUID, data: DiscountUpdate
    ) -> Discount:
        discount = await self.discounts.get(db, discount_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("discount_type") is not None:
            changes["discount_type"] = changes["discount_type"].value
        if changes.get("value") is not None:
            changes["value"] = to_money(changes["value"])
        self._check_discount_value(
            changes.get("discount_type") or discount.discount_type,
            changes.get("value") or discount.value,
        )
        return await self.discounts.update(db, discount, **changes)

    async def delete_discount(self, db: AsyncSession, discount_id: uuid.UUID) -> None:
        discount = await self.discounts.get(db, discount_id)
        await self.discounts.soft_delete(db, discount)

    def _check_discount_value(self, discount_type: str, value) -> None:
        if discount_type == DiscountType.PERCENTAGE.value and to_money(value) > Decimal(100):
            raise ValidationException([{"field": "value", "message": "Percentage cannot exceed 100"}])

    # ==================== ALLOCATIONS ====================

    async def get_allocations(
        self,
        db: AsyncSession,
        student_id: uuid.UUID | None = None,
        fee_structure_id: uuid.UUID | None = None,
        academic_year_id: uuid.UUID | None = None,
        status: AllocationStatus | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> tuple[list[StudentFeeAllocation], int]:
        filters = []
        if student_id:
            filters.append(StudentFeeAllocation.student_id == student_id)
        if fee_structure_id:
            filters.append(StudentFeeAllocation.fee_structure_id == fee_structure_id)
        if academic_year_id:
            filters.append(StudentFeeAllocation.academic_year_id == academic_year_id)
        if status:
            filters.append(StudentFeeAllocation.status == status.value)
        return await self.allocations.paginate(
            db,
            *filters,
            order_by=(StudentFeeAllocation.due_date, StudentFeeAllocation.created_at),
            page=page,
            page_size=page_size,
        )

    async def get_allocation(
        self, db: AsyncSession, allocation_id: uuid.UUID, for_update: bool = False
    ) -> StudentFeeAllocation:
        return await self.allocations.get(db, allocation_id, for_update=for_update)

    async def generate_allocations(
        self, db: AsyncSession, data: AllocationGenerateRequest
    ) -> tuple[int, int]:
        """Allocate a fee structure to students, skipping existing allocations.

        Returns:
            Tuple of (created, skipped)
        """
        structure = await self.structures.get(db, data.fee_structure_id)
        if not structure.is_active:
            raise ConflictException("Fee structure is inactive")

        discount = None
        if data.discount_id:
            discount = await self.discounts.get(db, data.discount_id)
            if not discount.is_active:
                raise ConflictException("Discount is inactive")

        if data.student_ids:
            students = [await self.students.get(db, student_id) for student_id in data.student_ids]
        else:
            filters = [
                Student.status == StudentStatus.ACTIVE.value,
                Student.academic_year_id == structure.academic_year_id,
            ]
            if structure.class_id:
                filters.append(Student.class_id == structure.class_id)
            students = await self.students.all(db, *filters)

        existing = await db.execute(
            select(StudentFeeAllocation.student_id).where(
                StudentFeeAllocation.tenant_id == get_tenant_id(),
                StudentFeeAllocation.fee_structure_id == structure.id,
            )
        )
        already_allocated = set(existing.scalars().all())

        original = to_money(structure.amount)
        discount_amount = discount.calculate_discount(original) if discount else ZERO
        created = skipped = 0
        for student in students:
            if student.id in already_allocated:
                skipped += 1
                continue
            allocation = StudentFeeAllocation(
                tenant_id=get_tenant_id(),
                student_id=student.id,
                fee_structure=structure,
                fee_structure_id=structure.id,
                academic_year_id=structure.academic_year_id,
                discount_id=discount.id if discount else None,
                original_amount=original,
                discount_amount=discount_amount,
                net_amount=original - discount_amount,
                paid_amount=ZERO,
                due_amount=original - discount_amount,
                due_date=structure.due_date,
                status=AllocationStatus.PENDING.value,
            )
            allocation.recompute_status()
            db.add(allocation)
            already_allocated.add(student.id)
            created += 1

        await self.allocations.flush(db, "Fee already allocated to one of these students")
        logger.info(f"Allocated fee structure {structure.id}: {created} created, {skipped} skipped")
        return created, skipped

    async def waive_allocation(
        self, db: AsyncSession, allocation_id: uuid.UUID, remarks: str
    ) -> StudentFeeAllocation:
        """Waive whatever is still owed. Waived allocations accept no further payments."""
        allocation = await self.allocations.get(db, allocation_id, for_update=True)
        if allocation.status == AllocationStatus.WAIVED.value:
            raise ConflictException("Allocation is already waived")
        if allocation.status == AllocationStatus.PAID.value:
            raise ConflictException("A fully paid allocation cannot be waived")
        ensure_ledger_consistent(allocation)

        waived_amount = allocation.due_amount
        allocation.status = AllocationStatus.WAIVED.value
        allocation.remarks = remarks
        await log_fee_audit(
            db,
            FeeAuditAction.ALLOCATION_WAIVED,
            allocation_id=allocation.id,
            amount=waived_amount,
            details={"remarks": remarks},
        )
        await db.flush()
        logger.info(f"Allocation {allocation.id} waived ({waived_amount} outstanding)")
        return allocation

    async def mark_overdue(self, db: AsyncSession, today: date | None = None) -> int:
        """Move pending/partial allocations whose due date has passed to overdue."""
        today = today or date.today()
        overdue = await self.allocations.all(
            db,
            StudentFeeAllocation.status.in_(
                (AllocationStatus.PENDING.value, AllocationStatus.PARTIAL.value)
            ),
            StudentFeeAllocation.due_date < today,
            StudentFeeAllocation.due_amount > 0,
        )
        for allocation in overdue:
            allocation.status = AllocationStatus.OVERDUE.value
            await log_fee_audit(
                db,
                FeeAuditAction.ALLOCATION_OVERDUE,
                allocation_id=allocation.id,
                amount=allocation.due_amount,
            )
        await db.flush()
        if overdue:
            logger.info(f"Marked {len(overdue)} allocation(s) overdue")
        return len(overdue)

    # ==================== REPORTS ====================

    async def get_summary(
        self, db: AsyncSession, academic_year_id: uuid.UUID | None = None
    ) -> dict:
        """Totals across allocations and payments of the tenant."""
        tenant_id = get_tenant_id()
        today = date.today()
        allocation_filters = [
            StudentFeeAllocation.tenant_id == tenant_id,
            StudentFeeAllocation.deleted_at.is_(None),
        ]
        if academic_year_id:
            allocation_filters.append(StudentFeeAllocation.academic_year_id == academic_year_id)

        totals = (
            await db.execute(
                select(
                    func.coalesce(func.sum(StudentFeeAllocation.original_amount), 0),
                    func.coalesce(func.sum(StudentFeeAllocation.discount_amount), 0),
                ).where(*allocation_filters)
            )
        ).one()
        outstanding = (
            await db.execute(
                select(func.coalesce(func.sum(StudentFeeAllocation.due_amount), 0)).where(
                    *allocation_filters,
                    StudentFeeAllocation.status.in_(OPEN_STATUSES),
                )
            )
        ).scalar()
        by_status_rows = await db.execute(
            select(StudentFeeAllocation.status, func.count(StudentFeeAllocation.id))
            .where(*allocation_filters)
            .group_by(StudentFeeAllocation.status)
        )
        by_status = {status.value: 0 for status in AllocationStatus}
        by_status.update(dict(by_status_rows.all()))

        overdue_count = (
            await db.execute(
                select(func.count(StudentFeeAllocation.id)).where(
                    *allocation_filters,
                    or_(
                        StudentFeeAllocation.status == AllocationStatus.OVERDUE.value,
                        and_(
                            StudentFeeAllocation.status.in_(
                                (AllocationStatus.PENDING.value, AllocationStatus.PARTIAL.value)
                            ),
                            StudentFeeAllocation.due_date < today,
                        ),
                    ),
                )
            )
        ).scalar() or 0

        payment_query = (
            select(
                FeePayment.payment_method,
                func.coalesce(func.sum(FeePayment.amount), 0),
                func.coalesce(func.sum(FeePayment.late_fee), 0),
            )
            .join(StudentFeeAllocation, StudentFeeAllocation.id == FeePayment.allocation_id)
            .where(FeePayment.tenant_id == tenant_id, FeePayment.deleted_at.is_(None))
            .group_by(FeePayment.payment_method)
        )
        if academic_year_id:
            payment_query = payment_query.where(StudentFeeAllocation.academic_year_id == academic_year_id)
        collection_by_method: dict[str, Decimal] = {}
        total_collected = total_late_fees = ZERO
        for method, amount, late_fee in (await db.execute(payment_query)).all():
            collection_by_method[method] = to_money(amount)
            total_collected += to_money(amount)
            total_late_fees += to_money(late_fee)

        return {
            "total_allocated": to_money(totals[0]),
            "total_discount": to_money(totals[1]),
            "total_collected": total_collected,
            "total_late_fees": total_late_fees,
            "total_outstanding": to_money(outstanding),
            "allocations_by_status": by_status,
            "overdue_count": overdue_count,
            "collection_by_method": collection_by_method,
            "currency": settings.default_currency,
        }

    async def get_class_summary(
        self, db: AsyncSession, academic_year_id: uuid.UUID | None = None
    ) -> list[dict]:
        """Net, paid and due per class."""
        query = (
            select(
                SchoolClass.id,
                SchoolClass.name,
                func.coalesce(func.sum(StudentFeeAllocation.net_amount), 0),
                func.coalesce(func.sum(StudentFeeAllocation.paid_amount), 0),
                func.coalesce(func.sum(StudentFeeAllocation.due_amount), 0),
            )
            .select_from(StudentFeeAllocation)
            .join(Student, Student.id == StudentFeeAllocation.student_id)
            .outerjoin(SchoolClass, SchoolClass.id == Student.class_id)
            .where(
                StudentFeeAllocation.tenant_id == get_tenant_id(),
                StudentFeeAllocation.deleted_at.is_(None),
                StudentFeeAllocation.status != AllocationStatus.WAIVED.value,
            )
            .group_by(SchoolClass.id, SchoolClass.name)
            .order_by(SchoolClass.name)
        )
        if academic_year_id:
            query = query.where(StudentFeeAllocation.academic_year_id == academic_year_id)

        return [
            {
                "class_id": class_id,
                "class_name": class_name,
                "total_net": to_money(net),
                "total_paid": to_money(paid),
                "total_due": to_money(due),
            }
            for class_id, class_name, net, paid, due in (await db.execute(query)).all()
        ]

    async def get_defaulters(
        self, db: AsyncSession, limit: int = 20, today: date | None = None
    ) -> list[dict]:
        """Students owing money on overdue allocations, largest balance first."""
        today = today or date.today()
        total_due = func.sum(StudentFeeAllocation.due_amount)
        query = (
            select(
                Student.id,
                User.first_name,
                User.last_name,
                Student.admission_no,
                total_due,
                func.count(StudentFeeAllocation.id),
            )
            .select_from(StudentFeeAllocation)
            .join(Student, Student.id == StudentFeeAllocation.student_id)
            .join(User, User.id == Student.user_id)
            .where(
                StudentFeeAllocation.tenant_id == get_tenant_id(),
                StudentFeeAllocation.deleted_at.is_(None),
                StudentFeeAllocation.due_amount > 0,
                or_(
                    StudentFeeAllocation.status == AllocationStatus.OVERDUE.value,
                    and_(
                        StudentFeeAllocation.status.in_(
                            (AllocationStatus.PENDING.value, AllocationStatus.PARTIAL.value)
                        ),
                        StudentFeeAllocation.due_date < today,
                    ),
                ),
            )
            .group_by(Student.id, User.first_name, User.last_name, Student.admission_no)
            .order_by(total_due.desc())
            .limit(limit)
        )
        return [
            {
                "student_id": student_id,
                "student_name": f"{first_name} {last_name}",
                "admission_no": admission_no,
                "total_due": to_money(due),
                "allocation_count": count,
            }
            for student_id, first_name, last_name, admission_no, due, count in (await db.execute(query)).all()
        ]


# Singleton instance
_fee_service: FeeService | None = None


def get_fee_service() -> FeeService:
    """Get the fee service singleton."""
    global _fee_service
    if _fee_service is None:
        _fee_service = FeeService()
    return _fee_service
