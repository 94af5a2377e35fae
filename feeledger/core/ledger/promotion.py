"""Class transfer. History is append-only; a promotion bills from the first day of next month."""

from datetime import date, datetime
from typing import Union
from uuid import UUID

from .schemas import ClassHistoryEntry, Student
from .timeline import effective_history, next_month_start


def promote_student(student: Student, target_class_id: UUID, promoted_on: Union[date, datetime]) -> Student:
    """Return a copy of student moved to target_class_id; months before the effective date keep their class."""
    history = effective_history(student)
    history.append(ClassHistoryEntry(class_id=target_class_id, start_date=next_month_start(promoted_on)))
    return student.model_copy(update={"class_id": target_class_id, "class_history": tuple(history)})
