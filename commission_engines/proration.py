"""
Module: commission_engines.proration
Responsibility:
    Day-counted partial-period amounts for any role, rate and date span.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Decimal-only arithmetic; no rounding (currency rounding belongs to
      the consumer).
    - 30-day month convention: the daily rate is monthly_rate / 30
      regardless of the calendar month's length.  The product is
      evaluated as ``amount * rate * days / 30`` so that a full 30-day
      span returns exactly ``amount * rate``.
    - Days are counted from the day AFTER the reference start through the
      reference end, inclusive.

Failure modes:
    - ValueError for negative day counts.

Usage:
    from commission_engines.proration import counted_days, prorate

    days = counted_days(date(2024, 1, 10), date(2024, 1, 20))   # 10
    prorate(Decimal("100000"), Decimal("0.03"), days)           # 1000
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from commission_kernel.domain.values import ProratedShare, Role
from commission_kernel.logging_config import get_logger

logger = get_logger("engines.proration")

DAY_COUNT_BASIS = Decimal("30")

_ZERO = Decimal("0")


def counted_days(from_exclusive: date, to_inclusive: date) -> int:
    """Whole days in (from_exclusive, to_inclusive]; zero when empty."""
    return max(0, (to_inclusive - from_exclusive).days)


def prorate(amount: Decimal, monthly_rate: Decimal, days: int) -> Decimal:
    """``amount * (monthly_rate / 30) * days``."""
    if days < 0:
        raise ValueError(f"days cannot be negative, got {days}")
    if days == 0:
        return _ZERO
    return amount * monthly_rate * Decimal(days) / DAY_COUNT_BASIS


def full_period_amount(amount: Decimal, monthly_rate: Decimal) -> Decimal:
    """Flat amount for one whole period."""
    return amount * monthly_rate


def prorated_share(
    role: Role,
    amount: Decimal,
    monthly_rate: Decimal,
    from_exclusive: date,
    to_inclusive: date,
) -> ProratedShare:
    """Pro-rata share for ``role`` over (from_exclusive, to_inclusive]."""
    days = counted_days(from_exclusive, to_inclusive)
    return ProratedShare(
        role=role,
        days_counted=days,
        amount=prorate(amount, monthly_rate, days),
    )


def effective_rate(rate: Decimal | None, role: Role | None = None) -> tuple[Decimal, bool]:
    """
    Rate usable in arithmetic, plus whether zero was substituted.

    A missing (None) or non-finite rate means "no rate configured" and is
    replaced by zero so that one role's bad rate never aborts the others.
    """
    if rate is not None and rate.is_finite():
        return rate, False

    logger.warning("rate_substituted_with_zero", extra={
        "role": role.value if role is not None else None,
        "raw_rate": None if rate is None else str(rate),
    })
    return _ZERO, True
