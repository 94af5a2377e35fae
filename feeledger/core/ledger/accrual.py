"""Obligation accrual: expected tuition + transport per billing month, plus one-off fees."""

from decimal import Decimal
from typing import Iterable, List, Sequence

from feeledger.core.enums import DataQualityFlag

from .schemas import Accrual, BillingPeriod, ClassFeeSchedule, OneOffFeeItem, Timeline

ZERO = Decimal("0")


def accrue(
    timeline: Timeline,
    schedules: Iterable[ClassFeeSchedule],
    fallback_schedule: ClassFeeSchedule,
    transport_fee: Decimal,
    one_off_items: Sequence[OneOffFeeItem],
) -> Accrual:
    """
    Price every month of the timeline.

    Schedules are looked up by id at call time, so a fee edit applies to all months billed
    under that class. A history entry pointing at an unknown class bills at the fallback
    (current) schedule.
    """
    lookup = {s.id: s for s in schedules}
    transport = transport_fee or ZERO
    flags: List[DataQualityFlag] = []

    periods: List[BillingPeriod] = []
    total_tuition = ZERO
    for m in timeline.months:
        schedule = lookup.get(m.schedule_id)
        if schedule is None:
            schedule = lookup.get(fallback_schedule.id, fallback_schedule)
            if DataQualityFlag.UNKNOWN_SCHEDULE not in flags:
                flags.append(DataQualityFlag.UNKNOWN_SCHEDULE)
        total_tuition += schedule.monthly_fee
        periods.append(
            BillingPeriod(
                month=m.month,
                schedule_id=schedule.id,
                tuition=schedule.monthly_fee,
                transport=transport,
                expected=schedule.monthly_fee + transport,
            )
        )

    items = list(one_off_items)
    total_transport = transport * len(periods)
    total_one_off = sum((i.amount for i in items), ZERO)
    return Accrual(
        periods=periods,
        one_off_items=items,
        total_tuition=total_tuition,
        total_transport=total_transport,
        total_one_off=total_one_off,
        total_expected=total_tuition + total_transport + total_one_off,
        flags=flags,
    )
