"""
Module: commission_engines.schedule
Responsibility:
    Produce the ordered payment due dates of a commitment: the monthly
    schedule every intermediary role follows, the cyclic schedule a
    non-monthly investor follows, and the trailing partial period that
    covers the days between the last cutoff and maturity.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Each monthly due date is the 5th business day of the month after
      its cutoff's month.
    - Advisor and office are always paid on the monthly schedule; only
      the investor follows the declared liquidity.
    - The cyclic schedule keeps entries whose 1-based index is a multiple
      of the cycle length, plus the final entry when the commitment does
      not divide evenly.
    - A trailing period exists only when maturity falls after the last
      cutoff; it is paid on the next business day after the last monthly
      due date.

Failure modes:
    - ValueError for non-positive cycle lengths or negative month counts.
    - CalendarInvariantError propagated from the calendar.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from commission_kernel.domain.values import CutoffPeriod
from commission_engines.calendar import add_months, next_business_day, nth_business_day_of_month, shift_month
from commission_engines.cutoff import cutoff_sequence, resolve_cutoff
from commission_engines.proration import counted_days

PAYMENT_BUSINESS_DAY = 5


@dataclass(frozen=True)
class TrailingPeriod:
    """Fractional period between the last cutoff and maturity."""

    start_exclusive: date
    end_inclusive: date
    days: int
    due_date: date


@dataclass(frozen=True)
class PaymentSchedule:
    """
    Cutoffs and due dates of one commitment.

    Guarantees:
        - ``len(cutoffs) == len(due_dates) == commitment_months``.
        - ``all_due_dates`` appends the trailing due date when present.
    """

    deposit_date: date
    cutoffs: tuple[CutoffPeriod, ...]
    due_dates: tuple[date, ...]
    maturity: date
    trailing: TrailingPeriod | None = None

    @property
    def first_cutoff(self) -> CutoffPeriod:
        return self.cutoffs[0]

    @property
    def commitment_months(self) -> int:
        return len(self.cutoffs)

    @property
    def all_due_dates(self) -> tuple[date, ...]:
        if self.trailing is None:
            return self.due_dates
        return self.due_dates + (self.trailing.due_date,)


def payment_due_date(cutoff: CutoffPeriod) -> date:
    """5th business day of the month following ``cutoff``."""
    year, month = shift_month(cutoff.year, cutoff.month, 1)
    return nth_business_day_of_month(year, month, PAYMENT_BUSINESS_DAY)


def build_monthly_schedule(first_cutoff: CutoffPeriod, months: int) -> tuple[date, ...]:
    """One due date per cutoff ``first_cutoff + i months``, i in 0..months-1."""
    return tuple(payment_due_date(c) for c in cutoff_sequence(first_cutoff, months))


def cycle_payout_indices(months: int, cycle_months: int) -> tuple[int, ...]:
    """0-based indices of a ``months``-long schedule on which a cycle pays out."""
    if cycle_months < 1:
        raise ValueError(f"cycle_months must be >= 1, got {cycle_months}")
    if months < 0:
        raise ValueError(f"months cannot be negative, got {months}")
    indices = [i for i in range(months) if (i + 1) % cycle_months == 0]
    if months and months % cycle_months != 0:
        indices.append(months - 1)
    return tuple(indices)


def build_cyclic_schedule(
    monthly_schedule: tuple[date, ...],
    cycle_months: int,
) -> tuple[date, ...]:
    """Entries of ``monthly_schedule`` on which a ``cycle_months`` cycle pays."""
    if cycle_months == 1:
        return tuple(monthly_schedule)
    return tuple(
        monthly_schedule[i]
        for i in cycle_payout_indices(len(monthly_schedule), cycle_months)
    )


def maturity_date(deposit_date: date, commitment_months: int) -> date:
    """Deposit date plus the commitment length."""
    return add_months(deposit_date, commitment_months)


def trailing_partial(
    deposit_date: date,
    first_cutoff: CutoffPeriod,
    commitment_months: int,
    last_due_date: date,
) -> TrailingPeriod | None:
    """
    Leftover days between the last scheduled cutoff and maturity.

    Returns None when maturity coincides with (or precedes) the last
    cutoff, i.e. the commitment ends on a cutoff boundary.
    """
    if commitment_months < 1:
        return None
    last_cutoff = cutoff_sequence(first_cutoff, commitment_months)[-1].cutoff_date
    maturity = maturity_date(deposit_date, commitment_months)
    days = counted_days(last_cutoff, maturity)
    if days == 0:
        return None
    return TrailingPeriod(
        start_exclusive=last_cutoff,
        end_inclusive=maturity,
        days=days,
        due_date=next_business_day(last_due_date),
    )


def build_payment_schedule(deposit_date: date, commitment_months: int) -> PaymentSchedule:
    """Full schedule for a deposit: cutoffs, monthly due dates, trailing period."""
    if commitment_months < 1:
        raise ValueError(
            f"commitment_months must be positive, got {commitment_months}"
        )
    first = resolve_cutoff(deposit_date)
    cutoffs = cutoff_sequence(first, commitment_months)
    due_dates = tuple(payment_due_date(c) for c in cutoffs)
    return PaymentSchedule(
        deposit_date=deposit_date,
        cutoffs=cutoffs,
        due_dates=due_dates,
        maturity=maturity_date(deposit_date, commitment_months),
        trailing=trailing_partial(deposit_date, first, commitment_months, due_dates[-1]),
    )
