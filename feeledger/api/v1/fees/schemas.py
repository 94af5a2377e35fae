"""Fees schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from feeledger.core.enums import FeeCategory, PaymentMethod
from feeledger.core.ledger.schemas import BreakdownLine


# --- One-off fee items ---
class FeeItemTemplate(BaseModel):
    category: FeeCategory = FeeCategory.OTHER
    title: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., ge=0, decimal_places=2)
    month_year: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}$", description="e.g. 2024-03")
    due_date: Optional[date] = None


class FeeItemCreate(FeeItemTemplate):
    student_id: UUID


class FeeItemBulkCreate(FeeItemTemplate):
    """One fee applied to every active student of a class."""

    class_id: UUID


class FeeItemResponse(BaseModel):
    id: UUID
    student_id: UUID
    category: FeeCategory
    title: str
    amount: Decimal
    month_year: Optional[str] = None
    due_date: Optional[date] = None
    created_at: datetime

    class Config:
        from_attributes = True


class FeeItemBulkResult(BaseModel):
    class_id: UUID
    created_count: int
    items: List[FeeItemResponse]


# --- Payment ---
class PaymentCreate(BaseModel):
    amount_paid: Decimal = Field(..., gt=0, decimal_places=2)
    payment_method: PaymentMethod = PaymentMethod.CASH
    remarks: str = Field("", max_length=500)
    paid_at: Optional[datetime] = None


class PaymentResponse(BaseModel):
    id: UUID
    student_id: UUID
    amount_paid: Decimal
    payment_method: PaymentMethod
    remarks: str
    breakdown: List[BreakdownLine]
    paid_at: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentPreviewRequest(BaseModel):
    amount: Decimal = Field(..., decimal_places=2, description="Candidate amount; zero or less gives an empty breakdown")


# --- Summary ---
class ClassStudentCount(BaseModel):
    class_id: UUID
    class_name: str
    student_count: int


class FeeSummaryResponse(BaseModel):
    total_collection: Decimal
    pending_dues: Decimal
    active_students: int
    total_classes: int
    students_per_class: List[ClassStudentCount]
    students_with_data_warnings: List[UUID] = Field(default_factory=list)
