"""
Payment allocation.

An amount is applied to obligations in a fixed order: billing months oldest first, then
one-off fees in stored order. Whatever is left after every obligation is covered is excess
credit. The same routine replays the cumulative paid-to-date against all obligations (to
classify months) and previews a new payment against what is still outstanding.
"""

from decimal import Decimal
from typing import List, Sequence

from feeledger.core.enums import ObligationKind, PeriodStatus

from .accrual import ZERO
from .schemas import (
    Accrual,
    AllocationBreakdown,
    AllocationResult,
    BreakdownLine,
    Obligation,
    ObligationAllocation,
    OneOffStatusItem,
    OutstandingItem,
    PeriodStatusItem,
)
from .timeline import month_name

EXCESS_CREDIT_DESCRIPTION = "Excess / Advance Credit"
PARTIAL_SUFFIX = " (Partial)"


def period_status(allocated: Decimal, due: Decimal) -> PeriodStatus:
    if allocated >= due:
        return PeriodStatus.paid
    if allocated > 0:
        return PeriodStatus.partial
    return PeriodStatus.unpaid


def allocate(amount: Decimal, obligations: Sequence[Obligation]) -> AllocationResult:
    remaining = max(amount, ZERO)
    lines: List[ObligationAllocation] = []
    for ob in obligations:
        allocated = min(remaining, ob.amount_due)
        remaining -= allocated
        lines.append(
            ObligationAllocation(
                obligation=ob,
                allocated=allocated,
                outstanding=ob.amount_due - allocated,
                status=period_status(allocated, ob.amount_due),
            )
        )
    return AllocationResult(amount=max(amount, ZERO), lines=lines, excess=remaining)


def build_obligations(accrual: Accrual) -> List[Obligation]:
    """Full obligations, used when replaying the whole payment history."""
    obligations = [
        Obligation(
            kind=ObligationKind.PERIOD,
            key=p.month,
            description=f"{month_name(p.month)} Fee",
            amount_due=p.expected,
        )
        for p in accrual.periods
    ]
    obligations.extend(
        Obligation(
            kind=ObligationKind.ONE_OFF,
            key=str(item.id),
            description=item.title,
            amount_due=item.amount,
        )
        for item in accrual.one_off_items
    )
    return obligations


def outstanding_items(result: AllocationResult) -> List[OutstandingItem]:
    """Unmet remainders, suffixed when the obligation was partly covered."""
    items = []
    for line in result.lines:
        if line.outstanding <= 0:
            continue
        description = line.obligation.description
        if line.allocated > 0:
            description += PARTIAL_SUFFIX
        items.append(
            OutstandingItem(
                kind=line.obligation.kind,
                key=line.obligation.key,
                description=description,
                amount=line.outstanding,
            )
        )
    return items


def to_breakdown(result: AllocationResult) -> AllocationBreakdown:
    items = []
    for line in result.lines:
        if line.allocated <= 0:
            continue
        description = line.obligation.description
        if line.outstanding > 0:
            description += PARTIAL_SUFFIX
        items.append(BreakdownLine(description=description, amount=line.allocated))
    if result.excess > 0:
        items.append(BreakdownLine(description=EXCESS_CREDIT_DESCRIPTION, amount=result.excess))
    return AllocationBreakdown(amount=result.amount, items=items, excess_credit=result.excess)


def preview_allocation(
    candidate_amount: Decimal,
    outstanding_periods: Sequence[PeriodStatusItem],
    outstanding_one_off_items: Sequence[OneOffStatusItem],
) -> AllocationBreakdown:
    """
    What a new payment of candidate_amount would cover.

    Only the unpaid remainder of each month/item is offered. A non-positive amount yields an
    empty breakdown; with nothing outstanding the whole amount becomes excess credit.
    """
    if candidate_amount <= 0:
        return AllocationBreakdown(amount=ZERO, items=[], excess_credit=ZERO)

    obligations = [
        Obligation(
            kind=ObligationKind.PERIOD,
            key=p.month,
            description=f"{month_name(p.month)} Fee (Tuit.+Trans.)",
            amount_due=p.expected_amount - p.paid_amount,
        )
        for p in outstanding_periods
        if p.expected_amount > p.paid_amount
    ]
    obligations.extend(
        Obligation(
            kind=ObligationKind.ONE_OFF,
            key=str(item.item_id),
            description=item.title,
            amount_due=item.amount - item.paid_amount,
        )
        for item in outstanding_one_off_items
        if item.amount > item.paid_amount
    )
    return to_breakdown(allocate(candidate_amount, obligations))
