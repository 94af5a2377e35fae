from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    monthly_fee: Decimal = Field(..., ge=0, decimal_places=2)


class ClassUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    monthly_fee: Optional[Decimal] = Field(None, ge=0, decimal_places=2)


class ClassResponse(BaseModel):
    id: UUID
    name: str
    monthly_fee: Decimal
    student_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
