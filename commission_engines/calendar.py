"""
Module: commission_engines.calendar
Responsibility:
    Calendar arithmetic for commission scheduling: weekday classification,
    "Nth business day of month" resolution, month shifting and
    normalization of date-like values into one timezone-free frame.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import commission_kernel.

Invariants enforced:
    - Purity: no clock access, no I/O.
    - Every date handled here is a ``datetime.date``.  Aware datetimes are
      converted to UTC before the calendar date is taken; naive datetimes
      are read as UTC.  Local time never enters the computation.
    - Business days are Monday..Friday.  There is no holiday table.

Failure modes:
    - CalendarInvariantError when a month has fewer business days than
      requested.  This is a logic bug, never a recoverable condition.
    - ValueError for a non-positive business-day ordinal.

Usage:
    from commission_engines.calendar import nth_business_day_of_month

    nth_business_day_of_month(2024, 3, 5)   # date(2024, 3, 7)
"""

from __future__ import annotations

import calendar as _stdlib_calendar
from datetime import date, datetime, timedelta, timezone

from commission_kernel.exceptions import CalendarInvariantError
from commission_kernel.logging_config import get_logger

logger = get_logger("engines.calendar")

_ONE_DAY = timedelta(days=1)


def is_business_day(day: date) -> bool:
    """True iff ``day`` is Monday..Friday."""
    return day.weekday() < 5


def days_in_month(year: int, month: int) -> int:
    return _stdlib_calendar.monthrange(year, month)[1]


def shift_month(year: int, month: int, months: int) -> tuple[int, int]:
    """(year, month) moved by ``months`` whole months (may be negative)."""
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def add_months(day: date, months: int) -> date:
    """
    ``day`` moved by ``months`` whole months.

    The day of month is clipped to the target month's length
    (Jan 31 + 1 month -> Feb 28/29).
    """
    year, month = shift_month(day.year, day.month, months)
    return date(year, month, min(day.day, days_in_month(year, month)))


def nth_business_day_of_month(year: int, month: int, n: int) -> date:
    """
    The date on which the business-day count of the month reaches ``n``.

    Scans days 1..end of month in order.

    Raises:
        ValueError: n < 1.
        CalendarInvariantError: the month has fewer than ``n`` business days.
    """
    if n < 1:
        raise ValueError(f"business day ordinal must be >= 1, got {n}")

    count = 0
    for day_number in range(1, days_in_month(year, month) + 1):
        current = date(year, month, day_number)
        if is_business_day(current):
            count += 1
            if count == n:
                return current

    logger.error("business_day_not_found", extra={
        "year": year,
        "month": month,
        "requested": n,
        "available": count,
    })
    raise CalendarInvariantError(year, month, n, count)


def next_business_day(day: date) -> date:
    """First business day strictly after ``day``."""
    candidate = day + _ONE_DAY
    while not is_business_day(candidate):
        candidate += _ONE_DAY
    return candidate


def to_calendar_date(value: date | datetime) -> date:
    """
    Normalize a date-like value to a calendar date in the UTC frame.

    - ``date``: returned unchanged.
    - aware ``datetime``: converted to UTC, then its date.
    - naive ``datetime``: taken as UTC midnight-equivalent, its date.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"expected date or datetime, got {type(value).__name__}")
