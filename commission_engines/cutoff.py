"""
Module: commission_engines.cutoff
Responsibility:
    Map deposit dates to their governing cutoff (always day 20 of some
    month) and enumerate subsequent cutoffs for a commitment.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - A deposit on day d < 20 belongs to the cutoff on day 20 of the same
      month; d >= 20 belongs to day 20 of the next month.  A cutoff
      captures positions that existed continuously up to and including
      day 20.
    - Subsequent cutoffs are derived from the first cutoff by whole-month
      shifts, never re-derived from the deposit date.

Failure modes:
    - ValueError for negative month offsets or counts.

Usage:
    from commission_engines.cutoff import resolve_cutoff

    resolve_cutoff(date(2024, 1, 10)).cutoff_date   # date(2024, 1, 20)
    resolve_cutoff(date(2024, 1, 25)).cutoff_date   # date(2024, 2, 20)
"""

from __future__ import annotations

from datetime import date

from commission_kernel.domain.values import CUTOFF_DAY, CutoffPeriod
from commission_engines.calendar import shift_month


def resolve_cutoff(deposit_date: date) -> CutoffPeriod:
    """Cutoff period a deposit first belongs to."""
    if deposit_date.day < CUTOFF_DAY:
        return CutoffPeriod.of(deposit_date.year, deposit_date.month)
    year, month = shift_month(deposit_date.year, deposit_date.month, 1)
    return CutoffPeriod.of(year, month)


def kth_subsequent_cutoff(cutoff: CutoffPeriod, k: int) -> CutoffPeriod:
    """``cutoff`` advanced by ``k`` whole months (k >= 0)."""
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")
    year, month = shift_month(cutoff.year, cutoff.month, k)
    return CutoffPeriod.of(year, month)


def cutoff_sequence(first: CutoffPeriod, count: int) -> tuple[CutoffPeriod, ...]:
    """``first`` and the following ``count - 1`` monthly cutoffs."""
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    return tuple(kth_subsequent_cutoff(first, k) for k in range(count))


def current_cutoff(today: date) -> CutoffPeriod:
    """
    Cutoff governing ``today`` for reporting.

    Day 20 of the current month once today >= 20, otherwise day 20 of the
    previous month.  Not used by the per-investment computation.
    """
    if today.day >= CUTOFF_DAY:
        return CutoffPeriod.of(today.year, today.month)
    year, month = shift_month(today.year, today.month, -1)
    return CutoffPeriod.of(year, month)


def commission_window(cutoff: CutoffPeriod) -> tuple[date, date]:
    """Accrual window running from ``cutoff`` to the next cutoff."""
    return cutoff.cutoff_date, kth_subsequent_cutoff(cutoff, 1).cutoff_date
