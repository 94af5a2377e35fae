"""
Dues snapshot: the single entry point every screen reads balances from.

Allocation is against the cumulative total paid, not payment by payment: the sum of all of a
student's payments is laid over the months oldest first, then over one-off fees. Which payment
covered which month is not tracked. Nothing is cached; every call recomputes from its inputs.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Union

from feeledger.core.enums import DataQualityFlag, ObligationKind, PeriodStatus

from .accrual import ZERO, accrue
from .allocation import allocate, build_obligations, outstanding_items, preview_allocation
from .schemas import (
    AllocationBreakdown,
    ClassFeeSchedule,
    DuesSnapshot,
    OneOffFeeItem,
    OneOffStatusItem,
    Payment,
    PeriodStatusItem,
    Student,
)
from .timeline import DEFAULT_MAX_BILLING_MONTHS, resolve_timeline

logger = logging.getLogger(__name__)


def compute_dues_snapshot(
    student: Student,
    resolved_schedule: ClassFeeSchedule,
    all_payments: Iterable[Payment],
    all_one_off_items: Iterable[OneOffFeeItem],
    all_schedules: Iterable[ClassFeeSchedule],
    as_of: Optional[Union[date, datetime]] = None,
    max_months: int = DEFAULT_MAX_BILLING_MONTHS,
) -> DuesSnapshot:
    """
    Compute what the student owes as of `as_of` (today by default).

    Payments and one-off items belonging to other students are ignored, so callers may pass
    the full collections. resolved_schedule is the student's current class.
    """
    as_of_date = as_of.date() if isinstance(as_of, datetime) else (as_of or date.today())
    timeline = resolve_timeline(student, as_of_date, max_months=max_months)
    items = [i for i in all_one_off_items if i.student_id == student.id]
    accrual = accrue(timeline, all_schedules, resolved_schedule, student.transport_fee, items)

    total_paid = sum((p.amount_paid for p in all_payments if p.student_id == student.id), ZERO)
    result = allocate(total_paid, build_obligations(accrual))

    period_lines = [line for line in result.lines if line.obligation.kind == ObligationKind.PERIOD]
    item_lines = [line for line in result.lines if line.obligation.kind == ObligationKind.ONE_OFF]

    month_status = [
        PeriodStatusItem(
            month=period.month,
            schedule_id=period.schedule_id,
            status=line.status,
            paid_amount=line.allocated,
            expected_amount=period.expected,
            tuition=period.tuition,
            transport=period.transport,
        )
        for period, line in zip(accrual.periods, period_lines)
    ]
    one_off_status = [
        OneOffStatusItem(
            item_id=item.id,
            title=item.title,
            category=item.category,
            amount=item.amount,
            paid_amount=line.allocated,
            status=line.status,
        )
        for item, line in zip(accrual.one_off_items, item_lines)
    ]

    flags: List[DataQualityFlag] = timeline.flags + accrual.flags
    for flag in flags:
        logger.warning("Dues for student %s computed with data-quality fallback: %s", student.id, flag.value)

    return DuesSnapshot(
        student_id=student.id,
        as_of=as_of_date,
        calculation_end_date=timeline.end_date,
        total_tuition=accrual.total_tuition,
        total_transport=accrual.total_transport,
        total_one_off=accrual.total_one_off,
        total_expected=accrual.total_expected,
        total_paid=total_paid,
        balance=accrual.total_expected - total_paid,
        excess_credit=result.excess,
        month_status=month_status,
        pending_months=[m for m in month_status if m.status != PeriodStatus.paid],
        one_off_status=one_off_status,
        outstanding=outstanding_items(result),
        flags=flags,
    )


def preview_payment(snapshot: DuesSnapshot, candidate_amount: Decimal) -> AllocationBreakdown:
    """Breakdown a new payment would get, given the snapshot it is entered against."""
    return preview_allocation(
        candidate_amount,
        snapshot.pending_months,
        [i for i in snapshot.one_off_status if i.status != PeriodStatus.paid],
    )
