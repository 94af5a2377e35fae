"""Fees router: one-off fees, dues, payment preview, payments, summary."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.exceptions import ServiceError
from feeledger.core.ledger.schemas import AllocationBreakdown, DuesSnapshot
from feeledger.db.session import get_db

from .schemas import (
    FeeItemBulkCreate,
    FeeItemBulkResult,
    FeeItemCreate,
    FeeItemResponse,
    FeeSummaryResponse,
    PaymentCreate,
    PaymentPreviewRequest,
    PaymentResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/fees", tags=["fees"])


# --- One-off fee items ---
@router.post("/items", response_model=FeeItemResponse, status_code=status.HTTP_201_CREATED)
async def create_fee_item(
    payload: FeeItemCreate,
    db: AsyncSession = Depends(get_db),
) -> FeeItemResponse:
    try:
        return await service.create_fee_item(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/items/bulk", response_model=FeeItemBulkResult, status_code=status.HTTP_201_CREATED)
async def bulk_create_fee_items(
    payload: FeeItemBulkCreate,
    db: AsyncSession = Depends(get_db),
) -> FeeItemBulkResult:
    try:
        return await service.bulk_create_fee_items(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/items", response_model=List[FeeItemResponse])
async def list_fee_items(
    student_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> List[FeeItemResponse]:
    return await service.list_fee_items(db, student_id=student_id)


@router.delete("/items/{fee_item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_fee_item(fee_item_id: UUID, db: AsyncSession = Depends(get_db)) -> None:
    if not await service.delete_fee_item(db, fee_item_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fee item not found")


# --- Dues ---
@router.get("/students/{student_id}/dues", response_model=DuesSnapshot)
async def get_student_dues(
    student_id: UUID,
    as_of: Optional[date] = Query(None, description="Defaults to today"),
    db: AsyncSession = Depends(get_db),
) -> DuesSnapshot:
    try:
        return await service.get_student_dues(db, student_id, as_of=as_of)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/students/{student_id}/preview", response_model=AllocationBreakdown)
async def preview_payment(
    student_id: UUID,
    payload: PaymentPreviewRequest,
    as_of: Optional[date] = Query(None, description="Defaults to today"),
    db: AsyncSession = Depends(get_db),
) -> AllocationBreakdown:
    try:
        return await service.preview_student_payment(db, student_id, payload.amount, as_of=as_of)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# --- Payment ---
@router.post(
    "/students/{student_id}/payments",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_payment(
    student_id: UUID,
    payload: PaymentCreate,
    as_of: Optional[date] = Query(None, description="Same as the preview; defaults to today"),
    db: AsyncSession = Depends(get_db),
) -> PaymentResponse:
    try:
        return await service.record_payment(db, student_id, payload, as_of=as_of)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/students/{student_id}/payments", response_model=List[PaymentResponse])
async def get_payment_history(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> List[PaymentResponse]:
    return await service.get_payment_history(db, student_id)


@router.delete("/payments/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment(payment_id: UUID, db: AsyncSession = Depends(get_db)) -> None:
    if not await service.delete_payment(db, payment_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")


# --- Summary ---
@router.get("/summary", response_model=FeeSummaryResponse)
async def get_fee_summary(
    as_of: Optional[date] = Query(None, description="Defaults to today"),
    db: AsyncSession = Depends(get_db),
) -> FeeSummaryResponse:
    return await service.get_fee_summary(db, as_of=as_of)
