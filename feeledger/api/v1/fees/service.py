"""Fees service: one-off fees, dues snapshots, payment preview and recording, dashboard summary."""

import logging
from collections import defaultdict
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.config import settings
from feeledger.core.exceptions import ServiceError
from feeledger.core.ledger import schemas as ledger
from feeledger.core.ledger.snapshot import compute_dues_snapshot, preview_payment
from feeledger.core.models import FeeItem, PaymentTransaction, SchoolClass, Student
from feeledger.core.services import (
    _to_decimal,
    _to_uuid,
    get_student_row,
    load_schedules,
    require_class,
    to_fee_item,
    to_payment,
    to_schedule,
    to_student,
)

from .schemas import (
    ClassStudentCount,
    FeeItemBulkCreate,
    FeeItemBulkResult,
    FeeItemCreate,
    FeeItemResponse,
    FeeSummaryResponse,
    PaymentCreate,
    PaymentResponse,
)

logger = logging.getLogger(__name__)


# --- One-off fee items ---
def _fee_item_to_response(f: FeeItem) -> FeeItemResponse:
    return FeeItemResponse(
        id=_to_uuid(f.id),
        student_id=_to_uuid(f.student_id),
        category=f.category,
        title=f.title,
        amount=_to_decimal(f.amount),
        month_year=f.month_year,
        due_date=f.due_date,
        created_at=f.created_at,
    )


async def create_fee_item(db: AsyncSession, payload: FeeItemCreate) -> FeeItemResponse:
    if not await get_student_row(db, payload.student_id):
        raise ServiceError("Invalid student", status.HTTP_400_BAD_REQUEST)
    obj = FeeItem(
        student_id=payload.student_id,
        category=payload.category.value,
        title=payload.title.strip(),
        amount=payload.amount,
        month_year=payload.month_year,
        due_date=payload.due_date,
    )
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    return _fee_item_to_response(obj)


async def bulk_create_fee_items(db: AsyncSession, payload: FeeItemBulkCreate) -> FeeItemBulkResult:
    """Add the same one-off fee to every active student currently in the class. Inactive students are skipped."""
    await require_class(db, payload.class_id, status.HTTP_404_NOT_FOUND)
    student_ids = (
        await db.execute(
            select(Student.id)
            .where(Student.class_id == payload.class_id, Student.is_active.is_(True))
            .order_by(Student.roll_no, Student.id)
        )
    ).scalars().all()
    objs = [
        FeeItem(
            student_id=sid,
            category=payload.category.value,
            title=payload.title.strip(),
            amount=payload.amount,
            month_year=payload.month_year,
            due_date=payload.due_date,
        )
        for sid in student_ids
    ]
    db.add_all(objs)
    await db.commit()
    for obj in objs:
        await db.refresh(obj)
    logger.info("Applied fee %r to %d students of class %s", payload.title, len(objs), payload.class_id)
    return FeeItemBulkResult(
        class_id=payload.class_id,
        created_count=len(objs),
        items=[_fee_item_to_response(o) for o in objs],
    )


async def _fee_item_rows(db: AsyncSession, student_id: Optional[UUID] = None) -> List[FeeItem]:
    """Stored order: allocation covers one-off fees in the order they were added."""
    stmt = select(FeeItem)
    if student_id is not None:
        stmt = stmt.where(FeeItem.student_id == student_id)
    stmt = stmt.order_by(FeeItem.created_at, FeeItem.id)
    return list((await db.execute(stmt)).scalars().all())


async def list_fee_items(db: AsyncSession, student_id: Optional[UUID] = None) -> List[FeeItemResponse]:
    return [_fee_item_to_response(f) for f in await _fee_item_rows(db, student_id)]


async def delete_fee_item(db: AsyncSession, fee_item_id: UUID) -> bool:
    obj = await db.get(FeeItem, fee_item_id)
    if not obj:
        return False
    await db.delete(obj)
    await db.commit()
    return True


# --- Dues ---
async def _ledger_inputs(
    db: AsyncSession,
    student_id: UUID,
) -> Tuple[ledger.Student, ledger.ClassFeeSchedule, List[ledger.Payment], List[ledger.OneOffFeeItem], List[ledger.ClassFeeSchedule]]:
    """Point-in-time view of everything the ledger needs for one student."""
    row = await get_student_row(db, student_id)
    if not row:
        raise ServiceError("Student not found", status.HTTP_404_NOT_FOUND)
    current = await db.get(SchoolClass, row.class_id)
    if not current:
        raise ServiceError("Student's class not found", status.HTTP_400_BAD_REQUEST)
    payments = (
        await db.execute(select(PaymentTransaction).where(PaymentTransaction.student_id == student_id))
    ).scalars().all()
    items = await _fee_item_rows(db, student_id)
    return (
        to_student(row),
        to_schedule(current),
        [to_payment(p) for p in payments],
        [to_fee_item(f) for f in items],
        await load_schedules(db),
    )


async def get_student_dues(
    db: AsyncSession,
    student_id: UUID,
    as_of: Optional[date] = None,
) -> ledger.DuesSnapshot:
    student, current, payments, items, schedules = await _ledger_inputs(db, student_id)
    return compute_dues_snapshot(
        student, current, payments, items, schedules,
        as_of=as_of, max_months=settings.max_billing_months,
    )


async def preview_student_payment(
    db: AsyncSession,
    student_id: UUID,
    amount: Decimal,
    as_of: Optional[date] = None,
) -> ledger.AllocationBreakdown:
    snapshot = await get_student_dues(db, student_id, as_of=as_of)
    return preview_payment(snapshot, amount)


# --- Payment ---
def _pt_to_response(pt: PaymentTransaction) -> PaymentResponse:
    record = to_payment(pt)
    return PaymentResponse(
        id=record.id,
        student_id=record.student_id,
        amount_paid=record.amount_paid,
        payment_method=record.payment_method,
        remarks=record.remarks,
        breakdown=list(record.breakdown),
        paid_at=record.paid_at,
        created_at=pt.created_at,
    )


async def record_payment(
    db: AsyncSession,
    student_id: UUID,
    payload: PaymentCreate,
    as_of: Optional[date] = None,
) -> PaymentResponse:
    """
    Store a payment with the breakdown the preview gives at this moment. The breakdown is
    never recomputed afterwards, even if fees or history change.

    as_of follows the preview endpoint (today when omitted), not paid_at, so a backdated
    payment is split exactly as the operator previewed it.
    """
    paid_at = payload.paid_at or datetime.now(timezone.utc)
    breakdown = await preview_student_payment(db, student_id, payload.amount_paid, as_of=as_of)
    pt = PaymentTransaction(
        student_id=student_id,
        amount_paid=payload.amount_paid,
        payment_method=payload.payment_method.value,
        remarks=(payload.remarks or "").strip(),
        breakdown=[{"description": b.description, "amount": str(b.amount)} for b in breakdown.items],
        paid_at=paid_at,
    )
    db.add(pt)
    await db.commit()
    await db.refresh(pt)
    logger.info(
        "Recorded payment %s of %s for student %s (%d breakdown lines, excess %s)",
        pt.id, payload.amount_paid, student_id, len(breakdown.items), breakdown.excess_credit,
    )
    return _pt_to_response(pt)


async def get_payment_history(db: AsyncSession, student_id: UUID) -> List[PaymentResponse]:
    stmt = (
        select(PaymentTransaction)
        .where(PaymentTransaction.student_id == student_id)
        .order_by(PaymentTransaction.paid_at.desc())
    )
    result = await db.execute(stmt)
    return [_pt_to_response(pt) for pt in result.scalars().all()]


async def delete_payment(db: AsyncSession, payment_id: UUID) -> bool:
    obj = await db.get(PaymentTransaction, payment_id)
    if not obj:
        return False
    await db.delete(obj)
    await db.commit()
    logger.info("Deleted payment %s for student %s", payment_id, obj.student_id)
    return True


# --- Summary ---
async def get_fee_summary(db: AsyncSession, as_of: Optional[date] = None) -> FeeSummaryResponse:
    """Totals across all students. Students whose current class no longer exists are left out of dues."""
    class_rows = (await db.execute(select(SchoolClass).order_by(SchoolClass.name))).scalars().all()
    schedules = [to_schedule(c) for c in class_rows]
    schedule_map = {s.id: s for s in schedules}
    students = [to_student(s) for s in (await db.execute(select(Student))).scalars().all()]
    payments = [to_payment(p) for p in (await db.execute(select(PaymentTransaction))).scalars().all()]
    items = [to_fee_item(f) for f in await _fee_item_rows(db)]

    payments_by_student = defaultdict(list)
    for p in payments:
        payments_by_student[p.student_id].append(p)
    items_by_student = defaultdict(list)
    for i in items:
        items_by_student[i.student_id].append(i)

    pending = Decimal("0")
    warnings: List[UUID] = []
    for student in students:
        current = schedule_map.get(student.class_id)
        if current is None:
            continue
        snapshot = compute_dues_snapshot(
            student, current,
            payments_by_student[student.id], items_by_student[student.id], schedules,
            as_of=as_of, max_months=settings.max_billing_months,
        )
        pending += snapshot.balance
        if snapshot.flags:
            warnings.append(student.id)

    counts = defaultdict(int)
    for student in students:
        counts[student.class_id] += 1

    return FeeSummaryResponse(
        total_collection=sum((p.amount_paid for p in payments), Decimal("0")),
        pending_dues=pending,
        active_students=sum(1 for s in students if s.is_active),
        total_classes=len(schedules),
        students_per_class=[
            ClassStudentCount(class_id=s.id, class_name=s.name, student_count=counts[s.id])
            for s in schedules
        ],
        students_with_data_warnings=warnings,
    )
