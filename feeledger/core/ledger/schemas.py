"""Ledger records: frozen inputs read from collaborators, and the derived values computed from them."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, Field

from feeledger.core.enums import (
    DataQualityFlag,
    FeeCategory,
    ObligationKind,
    PaymentMethod,
    PeriodStatus,
)


# --- Inputs ---
class ClassFeeSchedule(BaseModel):
    id: UUID
    name: str
    monthly_fee: Decimal = Field(..., ge=0)

    class Config:
        frozen = True
        from_attributes = True


class ClassHistoryEntry(BaseModel):
    """Student billed under class_id from start_date onwards."""

    class_id: UUID
    start_date: date

    class Config:
        frozen = True
        from_attributes = True


class Student(BaseModel):
    id: UUID
    class_id: UUID
    name: str = ""
    admission_date: date
    is_active: bool = True
    inactive_date: Optional[date] = None
    transport_fee: Decimal = Field(Decimal("0"), ge=0)
    class_history: Tuple[ClassHistoryEntry, ...] = ()

    class Config:
        frozen = True
        from_attributes = True


class OneOffFeeItem(BaseModel):
    id: UUID
    student_id: UUID
    category: FeeCategory = FeeCategory.OTHER
    title: str
    amount: Decimal = Field(..., ge=0)
    month_year: Optional[str] = None  # descriptive only
    due_date: Optional[date] = None  # descriptive only

    class Config:
        frozen = True
        from_attributes = True


class BreakdownLine(BaseModel):
    description: str
    amount: Decimal

    class Config:
        frozen = True
        from_attributes = True


class Payment(BaseModel):
    id: UUID
    student_id: UUID
    amount_paid: Decimal = Field(..., ge=0)
    paid_at: datetime
    payment_method: PaymentMethod = PaymentMethod.CASH
    remarks: str = ""
    breakdown: Tuple[BreakdownLine, ...] = ()

    class Config:
        frozen = True
        from_attributes = True


# --- Timeline / accrual ---
class TimelineMonth(BaseModel):
    month: str  # YYYY-MM
    start: date
    schedule_id: UUID


class Timeline(BaseModel):
    months: List[TimelineMonth]
    end_date: date
    flags: List[DataQualityFlag] = Field(default_factory=list)


class BillingPeriod(BaseModel):
    month: str
    schedule_id: UUID
    tuition: Decimal
    transport: Decimal
    expected: Decimal


class Accrual(BaseModel):
    periods: List[BillingPeriod]
    one_off_items: List[OneOffFeeItem]
    total_tuition: Decimal
    total_transport: Decimal
    total_one_off: Decimal
    total_expected: Decimal
    flags: List[DataQualityFlag] = Field(default_factory=list)


# --- Allocation ---
class Obligation(BaseModel):
    kind: ObligationKind
    key: str  # month key for periods, item id for one-off fees
    description: str
    amount_due: Decimal


class ObligationAllocation(BaseModel):
    obligation: Obligation
    allocated: Decimal
    outstanding: Decimal
    status: PeriodStatus


class AllocationResult(BaseModel):
    amount: Decimal
    lines: List[ObligationAllocation]
    excess: Decimal


class AllocationBreakdown(BaseModel):
    """What a candidate payment would cover, in allocation order."""

    amount: Decimal
    items: List[BreakdownLine]
    excess_credit: Decimal


# --- Snapshot ---
class PeriodStatusItem(BaseModel):
    month: str
    schedule_id: UUID
    status: PeriodStatus
    paid_amount: Decimal
    expected_amount: Decimal
    tuition: Decimal
    transport: Decimal


class OneOffStatusItem(BaseModel):
    item_id: UUID
    title: str
    category: FeeCategory
    amount: Decimal
    paid_amount: Decimal
    status: PeriodStatus


class OutstandingItem(BaseModel):
    kind: ObligationKind
    key: str
    description: str
    amount: Decimal


class DuesSnapshot(BaseModel):
    student_id: UUID
    as_of: date
    calculation_end_date: date
    total_tuition: Decimal
    total_transport: Decimal
    total_one_off: Decimal
    total_expected: Decimal
    total_paid: Decimal
    balance: Decimal  # negative means credit
    excess_credit: Decimal
    month_status: List[PeriodStatusItem]
    pending_months: List[PeriodStatusItem]
    one_off_status: List[OneOffStatusItem]
    outstanding: List[OutstandingItem]
    flags: List[DataQualityFlag] = Field(default_factory=list)
