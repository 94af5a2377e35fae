"""
Enrollment timeline: which calendar months a student is billed for, and under which class.

Months run from the admission month through the end month (inactivation month for an
inactive student with a recorded inactive date, otherwise the as-of month), both inclusive,
and always at least one month.
"""

import calendar
from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple, Union
from uuid import UUID

from feeledger.core.enums import DataQualityFlag

from .schemas import ClassHistoryEntry, Student, Timeline, TimelineMonth

DEFAULT_MAX_BILLING_MONTHS = 500


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def month_start(value: Union[date, datetime]) -> date:
    return date(value.year, value.month, 1)


def add_months(value: date, months: int) -> date:
    """First day of the month `months` after the month of value."""
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def next_month_start(value: Union[date, datetime]) -> date:
    return add_months(month_start(value), 1)


def month_key(value: Union[date, datetime]) -> str:
    return f"{value.year}-{value.month:02d}"


def month_name(key: str) -> str:
    """'2024-01' -> 'January 2024'."""
    year, month = key.split("-")
    return f"{calendar.month_name[int(month)]} {int(year)}"


def effective_history(student: Student) -> List[ClassHistoryEntry]:
    """Recorded history, or the implicit entry (current class from admission date) when none exists."""
    if student.class_history:
        return list(student.class_history)
    return [ClassHistoryEntry(class_id=student.class_id, start_date=student.admission_date)]


def resolve_schedule_id(history: Sequence[ClassHistoryEntry], target: date) -> Tuple[UUID, bool]:
    """
    Return (class_id, fell_back) for the month starting at target.

    The entry with the latest start_date <= target wins; ties go to the entry recorded last.
    With no such entry the earliest entry is used and fell_back is True.
    """
    chosen: Optional[ClassHistoryEntry] = None
    for entry in history:
        if entry.start_date <= target and (chosen is None or entry.start_date >= chosen.start_date):
            chosen = entry
    if chosen is not None:
        return chosen.class_id, False

    earliest: Optional[ClassHistoryEntry] = None
    for entry in history:
        if earliest is None or entry.start_date <= earliest.start_date:
            earliest = entry
    return earliest.class_id, True


def calculation_end_date(student: Student, as_of: date) -> date:
    if not student.is_active and student.inactive_date is not None:
        return student.inactive_date
    return as_of


def resolve_timeline(
    student: Student,
    as_of: Optional[Union[date, datetime]] = None,
    max_months: int = DEFAULT_MAX_BILLING_MONTHS,
) -> Timeline:
    as_of_date = _as_date(as_of) if as_of is not None else date.today()
    end = calculation_end_date(student, as_of_date)
    history = effective_history(student)

    flags: List[DataQualityFlag] = []
    if student.admission_date > end:
        flags.append(DataQualityFlag.ADMISSION_AFTER_END)

    months: List[TimelineMonth] = []
    fell_back_any = False
    cursor = month_start(student.admission_date)
    while cursor <= end or not months:
        if len(months) >= max_months:
            flags.append(DataQualityFlag.TIMELINE_TRUNCATED)
            break
        class_id, fell_back = resolve_schedule_id(history, cursor)
        fell_back_any = fell_back_any or fell_back
        months.append(TimelineMonth(month=month_key(cursor), start=cursor, schedule_id=class_id))
        cursor = add_months(cursor, 1)

    if fell_back_any:
        flags.append(DataQualityFlag.HISTORY_FALLBACK)
    return Timeline(months=months, end_date=end, flags=flags)
