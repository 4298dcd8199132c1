"""
Module: commission_engines.eligibility
Responsibility:
    Per-role decision of whether a cutoff is payable, applying the
    payout-start waiting period (D+N) counted from the deposit date.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - eligible(d, c, p)  <=>  d + p <= c   (inclusive boundary).
    - Intermediary roles are evaluated with p = 0 and are therefore
      eligible from the first cutoff.
    - "Never eligible within the commitment" is a valid outcome and is
      returned as ``None``, not raised.

Failure modes:
    - ValueError for negative waiting periods or commitment lengths.
"""

from __future__ import annotations

from datetime import date, timedelta

from commission_kernel.domain.values import CutoffPeriod
from commission_engines.cutoff import kth_subsequent_cutoff


def _cutoff_date(cutoff: CutoffPeriod | date) -> date:
    return cutoff.cutoff_date if isinstance(cutoff, CutoffPeriod) else cutoff


def commission_start(deposit_date: date, payout_start_days: int) -> date:
    """First day on which the role's commission may accrue."""
    if payout_start_days < 0:
        raise ValueError(
            f"payout_start_days cannot be negative, got {payout_start_days}"
        )
    return deposit_date + timedelta(days=payout_start_days)


def is_eligible(
    deposit_date: date,
    cutoff: CutoffPeriod | date,
    payout_start_days: int,
) -> bool:
    """True when the waiting period has elapsed on or before ``cutoff``."""
    return commission_start(deposit_date, payout_start_days) <= _cutoff_date(cutoff)


def first_eligible_cutoff_index(
    deposit_date: date,
    first_cutoff: CutoffPeriod,
    payout_start_days: int,
    commitment_months: int,
) -> int | None:
    """
    Index of the first of ``commitment_months`` cutoffs that is eligible.

    Scans ``first_cutoff``, ``first_cutoff + 1 month``, ... and returns
    ``None`` when the waiting period outlasts the whole commitment.
    """
    if commitment_months < 0:
        raise ValueError(
            f"commitment_months cannot be negative, got {commitment_months}"
        )
    start = commission_start(deposit_date, payout_start_days)
    for index in range(commitment_months):
        if start <= kth_subsequent_cutoff(first_cutoff, index).cutoff_date:
            return index
    return None
