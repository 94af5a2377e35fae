"""Student schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ClassHistoryItem(BaseModel):
    class_id: UUID
    start_date: date

    class Config:
        from_attributes = True


class StudentCreate(BaseModel):
    class_id: UUID
    roll_no: str = Field(..., min_length=1, max_length=30)
    name: str = Field(..., min_length=1, max_length=255)
    father_name: Optional[str] = Field(None, max_length=255)
    contact: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=500)
    identity_no: Optional[str] = Field(None, max_length=50)
    dob: Optional[date] = None
    admission_date: date
    is_active: bool = True
    inactive_date: Optional[date] = None
    transport_fee: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)


class StudentUpdate(BaseModel):
    """Profile and billing flags. Class changes go through promotion so history stays append-only."""

    roll_no: Optional[str] = Field(None, min_length=1, max_length=30)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    father_name: Optional[str] = Field(None, max_length=255)
    contact: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=500)
    identity_no: Optional[str] = Field(None, max_length=50)
    dob: Optional[date] = None
    admission_date: Optional[date] = None
    is_active: Optional[bool] = None
    inactive_date: Optional[date] = None
    transport_fee: Optional[Decimal] = Field(None, ge=0, decimal_places=2)


class StudentResponse(BaseModel):
    id: UUID
    class_id: UUID
    roll_no: str
    name: str
    father_name: Optional[str] = None
    contact: Optional[str] = None
    address: Optional[str] = None
    identity_no: Optional[str] = None
    dob: Optional[date] = None
    admission_date: date
    is_active: bool
    inactive_date: Optional[date] = None
    transport_fee: Decimal
    class_history: List[ClassHistoryItem] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class StudentBulkPromote(BaseModel):
    """Move students to target_class_id; billing under the new class starts next month."""

    student_ids: List[UUID] = Field(..., min_length=1)
    target_class_id: UUID
    promoted_on: Optional[date] = Field(None, description="Defaults to today")


class StudentBulkPromoteResult(BaseModel):
    promoted_count: int
    promoted_ids: List[UUID] = Field(default_factory=list)
    effective_date: date
