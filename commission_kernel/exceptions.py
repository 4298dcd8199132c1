"""
Typed Exception Hierarchy for the Commission Engine.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Commission payments are money. Callers must be able to tell a rejected
input apart from a broken calendar invariant without parsing messages.

Every exception:
  1. Has a TYPED class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)

Example:
    try:
        investment = build_investment(record, rates, settings, clock)
    except InvalidDepositDateError as e:
        reject(code=e.code, field="deposit_date", raw=e.raw_value)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    CommissionError (base)
    |
    +-- InputError
    |   +-- InvalidDepositDateError
    |   +-- UnknownLiquidityError
    |
    +-- RateError
    |   +-- RateUnavailableError
    |
    +-- CalendarError
    |   +-- CalendarInvariantError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                          | When Raised
--------------|-------------------------------|--------------------------------------
Input         | INVALID_DEPOSIT_DATE          | Unparseable deposit date under REJECT
              | UNKNOWN_LIQUIDITY             | Liquidity label not recognised
--------------|-------------------------------|--------------------------------------
Rate          | RATE_UNAVAILABLE              | Rate lookup failed under REJECT
--------------|-------------------------------|--------------------------------------
Calendar      | CALENDAR_INVARIANT_VIOLATION  | Month lacks the requested business day
--------------|-------------------------------|--------------------------------------
Configuration | CONFIGURATION_ERROR           | YAML set missing or structurally bad

Input and rate errors are data-quality problems at the intake boundary; the
configured boundary policy decides whether they are raised or substituted.
Calendar errors are logic bugs and are never substituted.
"""


class CommissionError(Exception):
    """
    Base exception for all commission engine errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "COMMISSION_ERROR"


# Input-related exceptions


class InputError(CommissionError):
    """Base exception for malformed investment input."""

    code: str = "INPUT_ERROR"


class InvalidDepositDateError(InputError):
    """Deposit date could not be parsed into a calendar date."""

    code: str = "INVALID_DEPOSIT_DATE"

    def __init__(self, raw_value: object, investment_id: str | None = None):
        self.raw_value = repr(raw_value)
        self.investment_id = investment_id
        super().__init__(
            f"Invalid deposit date {raw_value!r}"
            + (f" for investment {investment_id}" if investment_id else "")
        )


class UnknownLiquidityError(InputError):
    """Liquidity label does not map to a known payout cadence."""

    code: str = "UNKNOWN_LIQUIDITY"

    def __init__(self, label: object):
        self.label = repr(label)
        super().__init__(f"Unknown liquidity: {label!r}")


# Rate-related exceptions


class RateError(CommissionError):
    """Base exception for rate resolution errors."""

    code: str = "RATE_ERROR"


class RateUnavailableError(RateError):
    """No usable rate could be resolved for a role."""

    code: str = "RATE_UNAVAILABLE"

    def __init__(self, role: str, role_type_id: str | None, reason: str):
        self.role = role
        self.role_type_id = role_type_id
        self.reason = reason
        super().__init__(
            f"Rate unavailable for role {role} "
            f"(role_type_id={role_type_id}): {reason}"
        )


# Calendar-related exceptions


class CalendarError(CommissionError):
    """Base exception for calendar errors."""

    code: str = "CALENDAR_ERROR"


class CalendarInvariantError(CalendarError):
    """
    A calendar computation broke an internal invariant.

    Signals a logic bug (e.g. asking for a business day a month cannot
    have). Never caught and never replaced with a substitute date.
    """

    code: str = "CALENDAR_INVARIANT_VIOLATION"

    def __init__(self, year: int, month: int, requested: int, available: int):
        self.year = year
        self.month = month
        self.requested = requested
        self.available = available
        super().__init__(
            f"{year:04d}-{month:02d} has {available} business days, "
            f"business day #{requested} requested"
        )


# Configuration-related exceptions


class ConfigurationError(CommissionError):
    """Configuration set is missing or structurally invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, message: str, source: str | None = None):
        self.source = source
        super().__init__(message if source is None else f"{source}: {message}")
