from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.exceptions import ServiceError
from feeledger.core.models import ClassHistoryRecord, SchoolClass, Student
from feeledger.core.services import _to_decimal, _to_uuid

from .schemas import ClassCreate, ClassResponse, ClassUpdate


def _class_to_response(c: SchoolClass, student_count: int = 0) -> ClassResponse:
    return ClassResponse(
        id=_to_uuid(c.id),
        name=c.name,
        monthly_fee=_to_decimal(c.monthly_fee),
        student_count=student_count,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


async def _student_count(db: AsyncSession, class_id: UUID) -> int:
    result = await db.execute(select(func.count(Student.id)).where(Student.class_id == class_id))
    return result.scalar() or 0


async def create_class(db: AsyncSession, payload: ClassCreate) -> ClassResponse:
    try:
        obj = SchoolClass(name=payload.name.strip(), monthly_fee=payload.monthly_fee)
        db.add(obj)
        await db.commit()
        await db.refresh(obj)
        return _class_to_response(obj)
    except IntegrityError:
        await db.rollback()
        raise ServiceError("Class name already exists", status.HTTP_409_CONFLICT)


async def list_classes(db: AsyncSession) -> List[ClassResponse]:
    counts_subq = (
        select(Student.class_id, func.count(Student.id).label("student_count"))
        .group_by(Student.class_id)
    ).subquery()
    stmt = (
        select(SchoolClass, func.coalesce(counts_subq.c.student_count, 0))
        .outerjoin(counts_subq, SchoolClass.id == counts_subq.c.class_id)
        .order_by(SchoolClass.name)
    )
    result = await db.execute(stmt)
    return [_class_to_response(c, count) for c, count in result.all()]


async def get_class(db: AsyncSession, class_id: UUID) -> Optional[ClassResponse]:
    obj = await db.get(SchoolClass, class_id)
    if not obj:
        return None
    return _class_to_response(obj, await _student_count(db, class_id))


async def update_class(
    db: AsyncSession,
    class_id: UUID,
    payload: ClassUpdate,
) -> Optional[ClassResponse]:
    """Fee changes apply to every month billed under this class, past months included."""
    obj = await db.get(SchoolClass, class_id)
    if not obj:
        return None
    if payload.name is not None:
        obj.name = payload.name.strip()
    if payload.monthly_fee is not None:
        obj.monthly_fee = payload.monthly_fee
    try:
        await db.commit()
        await db.refresh(obj)
        return _class_to_response(obj, await _student_count(db, class_id))
    except IntegrityError:
        await db.rollback()
        raise ServiceError("Class name already exists", status.HTTP_409_CONFLICT)


async def delete_class(db: AsyncSession, class_id: UUID) -> bool:
    obj = await db.get(SchoolClass, class_id)
    if not obj:
        return False
    used = await db.execute(select(Student.id).where(Student.class_id == class_id).limit(1))
    if used.scalar_one_or_none() is not None:
        raise ServiceError("Cannot delete class: it is used by students", status.HTTP_400_BAD_REQUEST)
    in_history = await db.execute(
        select(ClassHistoryRecord.id).where(ClassHistoryRecord.class_id == class_id).limit(1)
    )
    if in_history.scalar_one_or_none() is not None:
        raise ServiceError("Cannot delete class: it is referenced by class history", status.HTTP_400_BAD_REQUEST)
    await db.delete(obj)
    await db.commit()
    return True
