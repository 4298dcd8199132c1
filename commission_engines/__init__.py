"""
Module: commission_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    commission calculation engines.  This is the canonical import surface
    for commission_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import commission_kernel (and sibling engine modules).
    MUST NOT import commission_services or commission_config.

Invariants enforced:
    - Purity: engines never call ``datetime.now()`` or ``date.today()``.
      Dates are passed in as explicit parameters; services provide "today"
      through an injected clock.
    - Decimal-only arithmetic for amounts and rates.
    - Determinism: identical inputs always produce identical outputs.

Failure modes:
    - ValueError propagated from individual engines on invalid input.
    - CalendarInvariantError when a month lacks the requested business day.

Audit relevance:
    Top-level engine invocations are traced via ``@traced_engine`` (see
    ``commission_engines.tracer``), emitting COMMISSION_ENGINE_TRACE records
    with engine name, version, input fingerprint and duration.

Usage:
    from commission_engines import generate_breakdown, resolve_cutoff
    from commission_engines.projection import project_liquidity_returns
"""

from commission_kernel.logging_config import get_logger

logger = get_logger("engines")

from commission_engines.breakdown import (
    STANDARD_ROLE_POLICIES,
    Breakdown,
    RolePolicy,
    RoleStream,
    accrual_states,
    compound_cycle_payouts,
    generate_breakdown,
)
from commission_engines.calendar import (
    add_months,
    days_in_month,
    is_business_day,
    next_business_day,
    nth_business_day_of_month,
    shift_month,
    to_calendar_date,
)
from commission_engines.cutoff import (
    commission_window,
    current_cutoff,
    cutoff_sequence,
    kth_subsequent_cutoff,
    resolve_cutoff,
)
from commission_engines.eligibility import (
    commission_start,
    first_eligible_cutoff_index,
    is_eligible,
)
from commission_engines.projection import (
    DEFAULT_REDEMPTION_WINDOWS,
    LiquidityProjection,
    RedemptionWindow,
    project_liquidity_returns,
    redemption_window,
)
from commission_engines.proration import (
    DAY_COUNT_BASIS,
    counted_days,
    effective_rate,
    full_period_amount,
    prorate,
    prorated_share,
)
from commission_engines.schedule import (
    PAYMENT_BUSINESS_DAY,
    PaymentSchedule,
    TrailingPeriod,
    build_cyclic_schedule,
    build_monthly_schedule,
    build_payment_schedule,
    cycle_payout_indices,
    maturity_date,
    payment_due_date,
    trailing_partial,
)
from commission_engines.tracer import traced_engine

__all__ = [
    # Breakdown
    "Breakdown",
    "RolePolicy",
    "RoleStream",
    "STANDARD_ROLE_POLICIES",
    "accrual_states",
    "compound_cycle_payouts",
    "generate_breakdown",
    # Calendar
    "add_months",
    "days_in_month",
    "is_business_day",
    "next_business_day",
    "nth_business_day_of_month",
    "shift_month",
    "to_calendar_date",
    # Cutoff
    "commission_window",
    "current_cutoff",
    "cutoff_sequence",
    "kth_subsequent_cutoff",
    "resolve_cutoff",
    # Eligibility
    "commission_start",
    "first_eligible_cutoff_index",
    "is_eligible",
    # Projection
    "DEFAULT_REDEMPTION_WINDOWS",
    "LiquidityProjection",
    "RedemptionWindow",
    "project_liquidity_returns",
    "redemption_window",
    # Proration
    "DAY_COUNT_BASIS",
    "counted_days",
    "effective_rate",
    "full_period_amount",
    "prorate",
    "prorated_share",
    # Schedule
    "PAYMENT_BUSINESS_DAY",
    "PaymentSchedule",
    "TrailingPeriod",
    "build_cyclic_schedule",
    "build_monthly_schedule",
    "build_payment_schedule",
    "cycle_payout_indices",
    "maturity_date",
    "payment_due_date",
    "trailing_partial",
    # Tracer
    "traced_engine",
]
