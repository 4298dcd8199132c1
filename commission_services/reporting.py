"""
commission_services.reporting -- "Where are we now" views over results.

Responsibility:
    Answer date-relative questions about computed results: the cutoff
    governing today, the next payment a role will receive, and how much a
    role has been paid through a date.  These read "today" from an
    injected Clock; the per-investment computation never does.
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from commission_engines.cutoff import current_cutoff
from commission_kernel.domain.clock import Clock
from commission_kernel.domain.values import (
    BreakdownRow,
    CommissionResult,
    CutoffPeriod,
    Role,
)


def reporting_cutoff(clock: Clock) -> CutoffPeriod:
    """Cutoff governing the clock's current date."""
    return current_cutoff(clock.today())


def next_payment_index(due_dates: Sequence[date], today: date) -> int | None:
    """Index of the first due date on or after ``today``; None if all passed."""
    index = bisect_left(list(due_dates), today)
    return index if index < len(due_dates) else None


def next_role_payment(
    result: CommissionResult,
    role: Role,
    today: date,
) -> BreakdownRow | None:
    """
    Next row paying ``role`` a positive amount.

    The first such row due on or after ``today``; when every positive row
    is in the past, the first positive row.  None when the role is never
    paid.
    """
    paying = [r for r in result.monthly_breakdown if r.amount_for(role) > 0]
    if not paying:
        return None
    for row in paying:
        if row.due_date >= today:
            return row
    return paying[0]


def amount_paid_through(result: CommissionResult, role: Role, as_of: date) -> Decimal:
    """Sum of ``role``'s amounts due on or before ``as_of``."""
    return sum(
        (r.amount_for(role) for r in result.monthly_breakdown if r.due_date <= as_of),
        Decimal("0"),
    )
