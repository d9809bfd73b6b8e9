"""Fee schemas: categories, structures, discounts, allocations and payments."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from schoolsync.models.fee import DiscountType, FeeFrequency, PaymentMethod


class FeeCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=30)
    description: str | None = None
    frequency: FeeFrequency = FeeFrequency.YEARLY


class FeeCategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    code: str | None = Field(None, min_length=1, max_length=30)
    description: str | None = None
    frequency: FeeFrequency | None = None
    is_active: bool | None = None


class FeeCategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    code: str
    description: str | None
    frequency: str
    is_active: bool


class FeeStructureCreate(BaseModel):
    fee_category_id: uuid.UUID
    class_id: uuid.UUID | None = Field(None, description="Null applies to all classes")
    academic_year_id: uuid.UUID | None = Field(
        None, description="Defaults to the current academic year"
    )
    name: str = Field(..., min_length=1, max_length=150)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    due_date: date | None = None
    late_fee: Decimal = Field(Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)
    grace_days: int = Field(0, ge=0, le=365)
    description: str | None = None


class FeeStructureUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=150)
    amount: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    due_date: date | None = None
    late_fee: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    grace_days: int | None = Field(None, ge=0, le=365)
    description: str | None = None
    is_active: bool | None = None


class FeeStructureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    fee_category_id: uuid.UUID
    class_id: uuid.UUID | None
    academic_year_id: uuid.UUID
    name: str
    amount: Decimal
    due_date: date | None
    late_fee: Decimal
    grace_days: int
    is_active: bool


class DiscountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str | None = Field(None, max_length=30)
    discount_type: DiscountType
    value: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: str | None = None


class DiscountUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    code: str | None = Field(None, max_length=30)
    discount_type: DiscountType | None = None
    value: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    description: str | None = None
    is_active: bool | None = None


class DiscountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    code: str | None
    discount_type: str
    value: Decimal
    is_active: bool


class AllocationGenerateRequest(BaseModel):
    """Allocate a fee structure to students.

    With no student_ids, every active student of the structure's class (or
    of the whole year when the structure has no class) is allocated.
    """

    fee_structure_id: uuid.UUID
    student_ids: list[uuid.UUID] | None = None
    discount_id: uuid.UUID | None = None


class AllocationGenerateResponse(BaseModel):
    created: int
    skipped: int


class AllocationWaiveRequest(BaseModel):
    remarks: str = Field(..., min_length=1)


class AllocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    student_id: uuid.UUID
    fee_structure_id: uuid.UUID
    academic_year_id: uuid.UUID
    discount_id: uuid.UUID | None
    original_amount: Decimal
    discount_amount: Decimal
    net_amount: Decimal
    paid_amount: Decimal
    due_amount: Decimal
    due_date: date | None
    status: str
    is_overdue: bool
    remarks: str | None


class PaymentCreate(BaseModel):
    """Record a payment against an allocation."""

    allocation_id: uuid.UUID
    student_id: uuid.UUID | None = Field(
        None, description="When given, must match the allocation's student"
    )
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    late_fee: Decimal | None = Field(
        None, ge=0, max_digits=12, decimal_places=2,
        description="Computed from the fee structure when omitted",
    )
    payment_method: PaymentMethod
    payment_date: date | None = None
    transaction_reference: str | None = Field(None, max_length=100)
    remarks: str | None = None


class PaymentVoidRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=255)


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    allocation_id: uuid.UUID
    student_id: uuid.UUID
    receipt_number: str
    amount: Decimal
    late_fee: Decimal
    total_amount: Decimal
    payment_date: date
    payment_method: str
    transaction_reference: str | None
    status: str
    flagged_for_review: bool
    review_reason: str | None
    created_at: datetime


class PaymentResult(BaseModel):
    """A recorded payment and the allocation after it was applied."""

    payment: PaymentResponse
    allocation: AllocationResponse


class FeeSummaryResponse(BaseModel):
    total_allocated: Decimal
    total_discount: Decimal
    total_collected: Decimal
    total_late_fees: Decimal
    total_outstanding: Decimal
    allocations_by_status: dict[str, int]
    overdue_count: int
    collection_by_method: dict[str, Decimal]
    currency: str


class ClassFeeSummary(BaseModel):
    class_id: uuid.UUID | None
    class_name: str | None
    total_net: Decimal
    total_paid: Decimal
    total_due: Decimal


class DefaulterEntry(BaseModel):
    student_id: uuid.UUID
    student_name: str
    admission_no: str
    total_due: Decimal
    allocation_count: int


class OverdueSweepResponse(BaseModel):
    marked_overdue: int

