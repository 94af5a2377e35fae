"""Shared helpers: ORM rows to ledger records, and the loaders the fee and student services share."""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.enums import FeeCategory, PaymentMethod
from feeledger.core.exceptions import ServiceError
from feeledger.core.ledger import schemas as ledger
from feeledger.core.models import FeeItem, PaymentTransaction, SchoolClass, Student


def _to_uuid(val):
    if val is None:
        return None
    return val if isinstance(val, UUID) else UUID(str(val))


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def to_schedule(c: SchoolClass) -> ledger.ClassFeeSchedule:
    return ledger.ClassFeeSchedule(id=_to_uuid(c.id), name=c.name, monthly_fee=_to_decimal(c.monthly_fee))


def to_student(s: Student) -> ledger.Student:
    return ledger.Student(
        id=_to_uuid(s.id),
        class_id=_to_uuid(s.class_id),
        name=s.name,
        admission_date=s.admission_date,
        is_active=bool(s.is_active),
        inactive_date=s.inactive_date,
        transport_fee=_to_decimal(s.transport_fee),
        class_history=tuple(
            ledger.ClassHistoryEntry(class_id=_to_uuid(h.class_id), start_date=h.start_date)
            for h in s.class_history
        ),
    )


def to_fee_item(f: FeeItem) -> ledger.OneOffFeeItem:
    return ledger.OneOffFeeItem(
        id=_to_uuid(f.id),
        student_id=_to_uuid(f.student_id),
        category=FeeCategory(f.category),
        title=f.title,
        amount=_to_decimal(f.amount),
        month_year=f.month_year,
        due_date=f.due_date,
    )


def to_payment(pt: PaymentTransaction) -> ledger.Payment:
    return ledger.Payment(
        id=_to_uuid(pt.id),
        student_id=_to_uuid(pt.student_id),
        amount_paid=_to_decimal(pt.amount_paid),
        paid_at=pt.paid_at,
        payment_method=PaymentMethod(pt.payment_method),
        remarks=pt.remarks or "",
        breakdown=tuple(
            ledger.BreakdownLine(description=b["description"], amount=_to_decimal(b["amount"]))
            for b in (pt.breakdown or [])
        ),
    )


async def get_student_row(db: AsyncSession, student_id: UUID) -> Optional[Student]:
    result = await db.execute(select(Student).where(Student.id == student_id))
    return result.scalar_one_or_none()


async def load_schedules(db: AsyncSession) -> List[ledger.ClassFeeSchedule]:
    rows = (await db.execute(select(SchoolClass).order_by(SchoolClass.name))).scalars().all()
    return [to_schedule(c) for c in rows]


async def require_class(db: AsyncSession, class_id: UUID, status_code: int = status.HTTP_400_BAD_REQUEST) -> SchoolClass:
    cl = await db.get(SchoolClass, class_id)
    if not cl:
        raise ServiceError("Invalid class", status_code)
    return cl
