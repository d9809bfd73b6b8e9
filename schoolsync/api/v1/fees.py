"""Fee ledger endpoints: categories, structures, discounts, allocations, payments and reports."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.database import get_db
from schoolsync.models.fee import AllocationStatus, PaymentMethod
from schoolsync.schemas.common import APIResponse, PaginationMeta
from schoolsync.schemas.fee import (
    AllocationGenerateRequest,
    AllocationGenerateResponse,
    AllocationResponse,
    AllocationWaiveRequest,
    ClassFeeSummary,
    DefaulterEntry,
    DiscountCreate,
    DiscountResponse,
    DiscountUpdate,
    FeeCategoryCreate,
    FeeCategoryResponse,
    FeeCategoryUpdate,
    FeeStructureCreate,
    FeeStructureResponse,
    FeeStructureUpdate,
    FeeSummaryResponse,
    OverdueSweepResponse,
    PaymentCreate,
    PaymentResponse,
    PaymentResult,
    PaymentVoidRequest,
)
from schoolsync.services.fee_service import get_fee_service
from schoolsync.services.payment_service import get_payment_service
from schoolsync.utils.permissions import Permission, require_permission

router = APIRouter()


# ==================== CATEGORIES ====================

@router.get("/categories", response_model=APIResponse[list[FeeCategoryResponse]])
@require_permission(Permission.VIEW_FEES)
async def list_categories(
    is_active: bool | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    categories, total = await get_fee_service().get_categories(
        db, is_active=is_active, page=page, page_size=page_size
    )
    return APIResponse(
        data=[FeeCategoryResponse.model_validate(c) for c in categories],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.post("/categories", response_model=APIResponse[FeeCategoryResponse], status_code=201)
@require_permission(Permission.MANAGE_FEES)
async def create_category(data: FeeCategoryCreate, db: AsyncSession = Depends(get_db)):
    category = await get_fee_service().create_category(db, data)
    await db.commit()
    return APIResponse(
        data=FeeCategoryResponse.model_validate(category),
        message="Fee category created successfully",
    )


@router.put("/categories/{category_id}", response_model=APIResponse[FeeCategoryResponse])
@require_permission(Permission.MANAGE_FEES)
async def update_category(
    category_id: uuid.UUID,
    data: FeeCategoryUpdate,
    db: AsyncSession = Depends(get_db),
):
    category = await get_fee_service().update_category(db, category_id, data)
    await db.commit()
    return APIResponse(
        data=FeeCategoryResponse.model_validate(category),
        message="Fee category updated successfully",
    )


@router.delete("/categories/{category_id}")
@require_permission(Permission.MANAGE_FEES)
async def delete_category(
    category_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> APIResponse:
    await get_fee_service().delete_category(db, category_id)
    await db.commit()
    return APIResponse(message="Fee category deleted successfully")


# ==================== STRUCTURES ====================

@router.get("/structures", response_model=APIResponse[list[FeeStructureResponse]])
@require_permission(Permission.VIEW_FEES)
async def list_structures(
    academic_year_id: uuid.UUID | None = None,
    class_id: uuid.UUID | None = None,
    fee_category_id: uuid.UUID | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List fee structures. Filtering by class also returns school-wide structures."""
    structures, total = await get_fee_service().get_structures(
        db,
        academic_year_id=academic_year_id,
        class_id=class_id,
        fee_category_id=fee_category_id,
        page=page,
        page_size=page_size,
    )
    return APIResponse(
        data=[FeeStructureResponse.model_validate(s) for s in structures],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.get("/structures/{structure_id}", response_model=APIResponse[FeeStructureResponse])
@require_permission(Permission.VIEW_FEES)
async def get_structure(structure_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    structure = await get_fee_service().get_structure(db, structure_id)
    return APIResponse(data=FeeStructureResponse.model_validate(structure))


@router.post("/structures", response_model=APIResponse[FeeStructureResponse], status_code=201)
@require_permission(Permission.MANAGE_FEES)
async def create_structure(data: FeeStructureCreate, db: AsyncSession = Depends(get_db)):
    structure = await get_fee_service().create_structure(db, data)
    await db.commit()
    return APIResponse(
        data=FeeStructureResponse.model_validate(structure),
        message="Fee structure created successfully",
    )


@router.put("/structures/{structure_id}", response_model=APIResponse[FeeStructureResponse])
@require_permission(Permission.MANAGE_FEES)
async def update_structure(
    structure_id: uuid.UUID,
    data: FeeStructureUpdate,
    db: AsyncSession = Depends(get_db),
):
    structure = await get_fee_service().update_structure(db, structure_id, data)
    await db.commit()
    return APIResponse(
        data=FeeStructureResponse.model_validate(structure),
        message="Fee structure updated successfully",
    )


@router.delete("/structures/{structure_id}")
@require_permission(Permission.MANAGE_FEES)
async def delete_structure(
    structure_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> APIResponse:
    await get_fee_service().delete_structure(db, structure_id)
    await db.commit()
    return APIResponse(message="Fee structure deleted successfully")


# ==================== DISCOUNTS ====================

@router.get("/discounts", response_model=APIResponse[list[DiscountResponse]])
@require_permission(Permission.VIEW_FEES)
async def list_discounts(
    is_active: bool | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    discounts, total = await get_fee_service().get_discounts(
        db, is_active=is_active, page=page, page_size=page_size
    )
    return APIResponse(
        data=[DiscountResponse.model_validate(d) for d in discounts],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.post("/discounts", response_model=APIResponse[DiscountResponse], status_code=201)
@require_permission(Permission.MANAGE_FEES)
async def create_discount(data: DiscountCreate, db: AsyncSession = Depends(get_db)):
    discount = await get_fee_service().create_discount(db, data)
    await db.commit()
    return APIResponse(
        data=DiscountResponse.model_validate(discount),
        message="Discount created successfully",
    )


@router.put("/discounts/{discount_id}", response_model=APIResponse[DiscountResponse])
@require_permission(Permission.MANAGE_FEES)
async def update_discount(
    discount_id: uuid.UUID,
    data: DiscountUpdate,
    db: AsyncSession = Depends(get_db),
):
    discount = await get_fee_service().update_discount(db, discount_id, data)
    await db.commit()
    return APIResponse(
        data=DiscountResponse.model_validate(discount),
        message="Discount updated successfully",
    )


@router.delete("/discounts/{discount_id}")
@require_permission(Permission.MANAGE_FEES)
async def delete_discount(
    discount_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> APIResponse:
    await get_fee_service().delete_discount(db, discount_id)
    await db.commit()
    return APIResponse(message="Discount deleted successfully")


# ==================== ALLOCATIONS ====================

@router.get("/allocations", response_model=APIResponse[list[AllocationResponse]])
@require_permission(Permission.VIEW_FEES)
async def list_allocations(
    student_id: uuid.UUID | None = None,
    fee_structure_id: uuid.UUID | None = None,
    academic_year_id: uuid.UUID | None = None,
    status: AllocationStatus | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    allocations, total = await get_fee_service().get_allocations(
        db,
        student_id=student_id,
        fee_structure_id=fee_structure_id,
        academic_year_id=academic_year_id,
        status=status,
        page=page,
        page_size=page_size,
    )
    return APIResponse(
        data=[AllocationResponse.model_validate(a) for a in allocations],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.get("/allocations/{allocation_id}", response_model=APIResponse[AllocationResponse])
@require_permission(Permission.VIEW_FEES)
async def get_allocation(allocation_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    allocation = await get_fee_service().get_allocation(db, allocation_id)
    return APIResponse(data=AllocationResponse.model_validate(allocation))


@router.post("/allocations/generate", response_model=APIResponse[AllocationGenerateResponse])
@require_permission(Permission.MANAGE_FEES)
async def generate_allocations(
    data: AllocationGenerateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Allocate a fee structure to students. Students already allocated are skipped."""
    created, skipped = await get_fee_service().generate_allocations(db, data)
    await db.commit()
    return APIResponse(
        data=AllocationGenerateResponse(created=created, skipped=skipped),
        message=f"{created} allocation(s) created, {skipped} skipped",
    )


@router.post("/allocations/{allocation_id}/waive", response_model=APIResponse[AllocationResponse])
@require_permission(Permission.MANAGE_FEES)
async def waive_allocation(
    allocation_id: uuid.UUID,
    data: AllocationWaiveRequest,
    db: AsyncSession = Depends(get_db),
):
    allocation = await get_fee_service().waive_allocation(db, allocation_id, data.remarks)
    await db.commit()
    return APIResponse(
        data=AllocationResponse.model_validate(allocation),
        message="Allocation waived",
    )


@router.post("/allocations/mark-overdue", response_model=APIResponse[OverdueSweepResponse])
@require_permission(Permission.MANAGE_FEES)
async def mark_overdue(db: AsyncSession = Depends(get_db)):
    """Flag unpaid allocations past their due date as overdue."""
    count = await get_fee_service().mark_overdue(db)
    await db.commit()
    return APIResponse(data=OverdueSweepResponse(marked_overdue=count))


# ==================== PAYMENTS ====================

@router.get("/payments", response_model=APIResponse[list[PaymentResponse]])
@require_permission(Permission.VIEW_FEES)
async def list_payments(
    student_id: uuid.UUID | None = None,
    allocation_id: uuid.UUID | None = None,
    payment_method: PaymentMethod | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    flagged_only: bool = False,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    payments, total = await get_payment_service().get_payments(
        db,
        student_id=student_id,
        allocation_id=allocation_id,
        payment_method=payment_method,
        date_from=date_from,
        date_to=date_to,
        flagged_only=flagged_only,
        page=page,
        page_size=page_size,
    )
    return APIResponse(
        data=[PaymentResponse.model_validate(p) for p in payments],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.get("/payments/receipt/{receipt_number}", response_model=APIResponse[PaymentResponse])
@require_permission(Permission.VIEW_FEES)
async def get_payment_by_receipt(receipt_number: str, db: AsyncSession = Depends(get_db)):
    """Look up a payment by receipt number within the current school.

    Receipt numbers are unique per school, so the same number may exist in
    another school; that payment is never visible here.
    """
    payment = await get_payment_service().get_by_receipt(db, receipt_number)
    return APIResponse(data=PaymentResponse.model_validate(payment))


@router.get("/payments/{payment_id}", response_model=APIResponse[PaymentResponse])
@require_permission(Permission.VIEW_FEES)
async def get_payment(payment_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    payment = await get_payment_service().get_payment(db, payment_id)
    return APIResponse(data=PaymentResponse.model_validate(payment))


@router.post("/payments", response_model=APIResponse[PaymentResult], status_code=201)
@require_permission(Permission.COLLECT_FEES)
async def record_payment(data: PaymentCreate, db: AsyncSession = Depends(get_db)):
    """Record a payment and return the receipt with the updated allocation."""
    payment, allocation = await get_payment_service().record_payment(db, data)
    await db.commit()
    message = f"Payment recorded. Receipt {payment.receipt_number}"
    if payment.flagged_for_review:
        message += " (flagged for review: overpayment)"
    return APIResponse(
        data=PaymentResult(
            payment=PaymentResponse.model_validate(payment),
            allocation=AllocationResponse.model_validate(allocation),
        ),
        message=message,
    )


@router.post("/payments/{payment_id}/void", response_model=APIResponse[PaymentResponse])
@require_permission(Permission.MANAGE_FEES)
async def void_payment(
    payment_id: uuid.UUID,
    data: PaymentVoidRequest,
    db: AsyncSession = Depends(get_db),
):
    payment = await get_payment_service().void_payment(db, payment_id, data.reason)
    await db.commit()
    return APIResponse(
        data=PaymentResponse.model_validate(payment),
        message=f"Payment {payment.receipt_number} voided",
    )


# ==================== REPORTS ====================

@router.get("/reports/summary", response_model=APIResponse[FeeSummaryResponse])
@require_permission(Permission.VIEW_FEE_REPORTS)
async def get_fee_summary(
    academic_year_id: uuid.UUID | None = None,
    db: AsyncSession = Depends(get_db),
):
    summary = await get_fee_service().get_summary(db, academic_year_id)
    return APIResponse(data=FeeSummaryResponse(**summary))


@router.get("/reports/by-class", response_model=APIResponse[list[ClassFeeSummary]])
@require_permission(Permission.VIEW_FEE_REPORTS)
async def get_class_summary(
    academic_year_id: uuid.UUID | None = None,
    db: AsyncSession = Depends(get_db),
):
    rows = await get_fee_service().get_class_summary(db, academic_year_id)
    return APIResponse(data=[ClassFeeSummary(**row) for row in rows])


@router.get("/reports/defaulters", response_model=APIResponse[list[DefaulterEntry]])
@require_permission(Permission.VIEW_FEE_REPORTS)
async def get_defaulters(
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Students with overdue balances, largest first."""
    rows = await get_fee_service().get_defaulters(db, limit=limit)
    return APIResponse(data=[DefaulterEntry(**row) for row in rows])
