"""Student records and class promotion."""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.exceptions import ServiceError
from feeledger.core.ledger.promotion import promote_student
from feeledger.core.ledger.timeline import next_month_start
from feeledger.core.models import ClassHistoryRecord, FeeItem, PaymentTransaction, Student
from feeledger.core.services import _to_decimal, _to_uuid, get_student_row, require_class, to_student

from .schemas import (
    ClassHistoryItem,
    StudentBulkPromote,
    StudentBulkPromoteResult,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
)

logger = logging.getLogger(__name__)


def _student_to_response(s: Student) -> StudentResponse:
    return StudentResponse(
        id=_to_uuid(s.id),
        class_id=_to_uuid(s.class_id),
        roll_no=s.roll_no,
        name=s.name,
        father_name=s.father_name,
        contact=s.contact,
        address=s.address,
        identity_no=s.identity_no,
        dob=s.dob,
        admission_date=s.admission_date,
        is_active=bool(s.is_active),
        inactive_date=s.inactive_date,
        transport_fee=_to_decimal(s.transport_fee),
        class_history=[
            ClassHistoryItem(class_id=_to_uuid(h.class_id), start_date=h.start_date)
            for h in s.class_history
        ],
        created_at=s.created_at,
        updated_at=s.updated_at,
    )


async def create_student(db: AsyncSession, payload: StudentCreate) -> StudentResponse:
    """New students start with one history entry: their class, from the admission date."""
    await require_class(db, payload.class_id)
    obj = Student(
        class_id=payload.class_id,
        roll_no=payload.roll_no.strip(),
        name=payload.name.strip(),
        father_name=payload.father_name,
        contact=payload.contact,
        address=payload.address,
        identity_no=payload.identity_no,
        dob=payload.dob,
        admission_date=payload.admission_date,
        is_active=payload.is_active,
        inactive_date=None if payload.is_active else payload.inactive_date,
        transport_fee=payload.transport_fee,
    )
    obj.class_history.append(
        ClassHistoryRecord(class_id=payload.class_id, start_date=payload.admission_date, sequence=0)
    )
    db.add(obj)
    await db.commit()
    return _student_to_response(obj)


async def list_students(
    db: AsyncSession,
    class_id: Optional[UUID] = None,
    active_only: bool = False,
) -> List[StudentResponse]:
    stmt = select(Student)
    if class_id is not None:
        stmt = stmt.where(Student.class_id == class_id)
    if active_only:
        stmt = stmt.where(Student.is_active.is_(True))
    stmt = stmt.order_by(Student.name, Student.roll_no)
    result = await db.execute(stmt)
    return [_student_to_response(s) for s in result.scalars().all()]


async def get_student(db: AsyncSession, student_id: UUID) -> Optional[StudentResponse]:
    obj = await get_student_row(db, student_id)
    return _student_to_response(obj) if obj else None


async def update_student(
    db: AsyncSession,
    student_id: UUID,
    payload: StudentUpdate,
) -> Optional[StudentResponse]:
    obj = await get_student_row(db, student_id)
    if not obj:
        return None
    data = payload.model_dump(exclude_unset=True)
    for field in ("roll_no", "name"):
        if data.get(field) is not None:
            data[field] = data[field].strip()
    for field, value in data.items():
        if field in ("roll_no", "name", "admission_date", "is_active", "transport_fee") and value is None:
            continue
        setattr(obj, field, value)
    if obj.is_active:
        obj.inactive_date = None
    await db.commit()
    return _student_to_response(obj)


async def delete_student(db: AsyncSession, student_id: UUID) -> bool:
    obj = await get_student_row(db, student_id)
    if not obj:
        return False
    await db.execute(delete(PaymentTransaction).where(PaymentTransaction.student_id == student_id))
    await db.execute(delete(FeeItem).where(FeeItem.student_id == student_id))
    await db.delete(obj)
    await db.commit()
    return True


async def promote_students(db: AsyncSession, payload: StudentBulkPromote) -> StudentBulkPromoteResult:
    """
    Move each student to the target class. Existing history rows are never touched; the new
    entry starts on the first day of the month after promoted_on, so months already billed
    keep their class.
    """
    await require_class(db, payload.target_class_id, status.HTTP_404_NOT_FOUND)
    promoted_on = payload.promoted_on or date.today()
    student_ids = list(dict.fromkeys(payload.student_ids))

    result = await db.execute(select(Student).where(Student.id.in_(student_ids)))
    rows = {s.id: s for s in result.scalars().all()}
    missing = [str(i) for i in student_ids if i not in rows]
    if missing:
        raise ServiceError(f"Students not found: {', '.join(missing)}", status.HTTP_404_NOT_FOUND)

    for sid in student_ids:
        row = rows[sid]
        promoted = promote_student(to_student(row), payload.target_class_id, promoted_on)
        existing = len(row.class_history)
        for seq, entry in enumerate(promoted.class_history[existing:], start=existing):
            row.class_history.append(
                ClassHistoryRecord(class_id=entry.class_id, start_date=entry.start_date, sequence=seq)
            )
        row.class_id = payload.target_class_id
    await db.commit()

    effective = next_month_start(promoted_on)
    logger.info(
        "Promoted %d students to class %s effective %s",
        len(student_ids), payload.target_class_id, effective.isoformat(),
    )
    return StudentBulkPromoteResult(
        promoted_count=len(student_ids),
        promoted_ids=student_ids,
        effective_date=effective,
    )
