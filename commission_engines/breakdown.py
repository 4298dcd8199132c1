"""
Module: commission_engines.breakdown
Responsibility:
    Combine cutoffs, eligibility, proration and schedules into the
    per-period commission table of every role, including compounding for
    multi-month investor cycles and the trailing partial period.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - One pipeline for all roles, parameterized by ``RolePolicy``:
      advisor and office are ungated and always monthly; the investor is
      gated by the payout-start waiting period and follows the declared
      liquidity.
    - Per period the accrual state moves BEFORE_ELIGIBILITY ->
      FIRST_ELIGIBLE_PERIOD -> STEADY_STATE, and the optional trailing row
      is TRAILING_PARTIAL.  The transition happens exactly at
      ``first_eligible_cutoff_index``; if that is None the stream stays
      BEFORE_ELIGIBILITY throughout.
    - The first eligible period is pro-rated from the deposit date (not
      from the end of the waiting period) to that period's cutoff.
    - Cyclic payouts restart from the original principal every cycle and
      compound month to month within the cycle; the payout is the sum of
      the cycle's growth, reported on the cycle's last index.
    - A missing or non-finite rate is replaced by zero for that role only.
      A role with no holder earns zero without being flagged.

Failure modes:
    - CalendarInvariantError propagated from schedule construction.

Usage:
    from commission_engines.breakdown import generate_breakdown

    breakdown = generate_breakdown(investment)
    for row in breakdown.rows:
        print(row.due_date, row.advisor_amount, row.investor_amount)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from commission_kernel.domain.values import (
    BreakdownRow,
    Investment,
    PeriodState,
    ProratedShare,
    Role,
    RoleSummary,
)
from commission_kernel.logging_config import get_logger
from commission_engines.eligibility import first_eligible_cutoff_index
from commission_engines.proration import (
    effective_rate,
    full_period_amount,
    prorate,
    prorated_share,
)
from commission_engines.schedule import (
    PaymentSchedule,
    build_payment_schedule,
    cycle_payout_indices,
)
from commission_engines.tracer import traced_engine

logger = get_logger("engines.breakdown")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class RolePolicy:
    """
    Role-specific rules applied by the shared breakdown pipeline.

    gated: the investment's payout-start waiting period applies.
    follows_liquidity: paid on the liquidity cycle instead of monthly.
    """

    role: Role
    gated: bool
    follows_liquidity: bool


STANDARD_ROLE_POLICIES: tuple[RolePolicy, ...] = (
    RolePolicy(Role.ADVISOR, gated=False, follows_liquidity=False),
    RolePolicy(Role.OFFICE, gated=False, follows_liquidity=False),
    RolePolicy(Role.INVESTOR, gated=True, follows_liquidity=True),
)


@dataclass(frozen=True)
class RoleStream:
    """
    Amounts owed to one role, one entry per payment event.

    Guarantees:
        - ``len(amounts) == len(states)`` == number of payment events.
        - ``first_period`` is None iff ``eligible_index`` is None.
    """

    role: Role
    rate: Decimal
    rate_substituted: bool
    cycle_months: int
    eligible_index: int | None
    first_period: ProratedShare | None
    monthly_amount: Decimal
    states: tuple[PeriodState, ...]
    amounts: tuple[Decimal, ...]

    @property
    def total(self) -> Decimal:
        return sum(self.amounts, _ZERO)

    def to_summary(self) -> RoleSummary:
        return RoleSummary(
            role=self.role,
            rate=self.rate,
            first_period=self.first_period,
            monthly_amount=self.monthly_amount,
            eligible_index=self.eligible_index,
            total_amount=self.total,
            rate_substituted=self.rate_substituted,
        )


@dataclass(frozen=True)
class Breakdown:
    """Per-role streams and the merged per-period table."""

    schedule: PaymentSchedule
    streams: tuple[RoleStream, ...]
    rows: tuple[BreakdownRow, ...]

    def stream_for(self, role: Role) -> RoleStream:
        for stream in self.streams:
            if stream.role is role:
                return stream
        raise KeyError(role)

    @property
    def summaries(self) -> tuple[RoleSummary, ...]:
        return tuple(stream.to_summary() for stream in self.streams)


def accrual_states(eligible_index: int | None, months: int) -> tuple[PeriodState, ...]:
    """Accrual state for each of ``months`` periods."""
    if eligible_index is None:
        return (PeriodState.BEFORE_ELIGIBILITY,) * months
    states: list[PeriodState] = []
    for i in range(months):
        if i < eligible_index:
            states.append(PeriodState.BEFORE_ELIGIBILITY)
        elif i == eligible_index:
            states.append(PeriodState.FIRST_ELIGIBLE_PERIOD)
        else:
            states.append(PeriodState.STEADY_STATE)
    return tuple(states)


def monthly_payouts(
    principal: Decimal,
    rate: Decimal,
    states: Sequence[PeriodState],
    first_period_days: int,
) -> list[Decimal]:
    """Simple (non-compounding) amount for each monthly period."""
    full = full_period_amount(principal, rate)
    amounts: list[Decimal] = []
    for state in states:
        if state is PeriodState.FIRST_ELIGIBLE_PERIOD:
            amounts.append(prorate(principal, rate, first_period_days))
        elif state is PeriodState.STEADY_STATE:
            amounts.append(full)
        else:
            amounts.append(_ZERO)
    return amounts


def compound_cycle_payouts(
    principal: Decimal,
    rate: Decimal,
    states: Sequence[PeriodState],
    first_period_days: int,
    cycle_months: int,
) -> list[Decimal]:
    """
    Cycle payouts with intra-cycle compounding.

    Every cycle starts again from ``principal``.  Each month grows the
    running balance (pro-rata growth for the first eligible period, no
    growth before eligibility) and the sum of the cycle's growth is paid
    on the cycle's payout index.
    """
    payouts = [_ZERO] * len(states)
    start = 0
    for end in cycle_payout_indices(len(states), cycle_months):
        balance = principal
        growth_sum = _ZERO
        for i in range(start, end + 1):
            state = states[i]
            if state is PeriodState.FIRST_ELIGIBLE_PERIOD:
                growth = prorate(balance, rate, first_period_days)
            elif state is PeriodState.STEADY_STATE:
                growth = balance * rate
            else:
                growth = _ZERO
            balance += growth
            growth_sum += growth
        payouts[end] = growth_sum
        start = end + 1
    return payouts


def build_role_stream(
    policy: RolePolicy,
    investment: Investment,
    schedule: PaymentSchedule,
) -> RoleStream:
    """Run the shared pipeline for one role."""
    if policy.role in investment.unassigned_roles:
        # No holder: nothing to pay and nothing was substituted.
        rate, substituted = _ZERO, False
    else:
        rate, substituted = effective_rate(investment.rate_for(policy.role), policy.role)
    months = schedule.commitment_months
    waiting_days = investment.payout_start_days if policy.gated else 0

    eligible_index = first_eligible_cutoff_index(
        investment.deposit_date,
        schedule.first_cutoff,
        waiting_days,
        months,
    )
    states = list(accrual_states(eligible_index, months))

    first_period: ProratedShare | None = None
    if eligible_index is not None:
        first_period = prorated_share(
            policy.role,
            investment.amount,
            rate,
            investment.deposit_date,
            schedule.cutoffs[eligible_index].cutoff_date,
        )
    first_days = first_period.days_counted if first_period is not None else 0

    cycle = investment.liquidity.cycle_months if policy.follows_liquidity else 1
    if cycle == 1:
        amounts = monthly_payouts(investment.amount, rate, states, first_days)
    else:
        amounts = compound_cycle_payouts(
            investment.amount, rate, states, first_days, cycle
        )

    if schedule.trailing is not None:
        if eligible_index is None:
            states.append(PeriodState.BEFORE_ELIGIBILITY)
            amounts.append(_ZERO)
        else:
            states.append(PeriodState.TRAILING_PARTIAL)
            amounts.append(prorate(investment.amount, rate, schedule.trailing.days))

    return RoleStream(
        role=policy.role,
        rate=rate,
        rate_substituted=substituted,
        cycle_months=cycle,
        eligible_index=eligible_index,
        first_period=first_period,
        monthly_amount=full_period_amount(investment.amount, rate),
        states=tuple(states),
        amounts=tuple(amounts),
    )


def merge_rows(
    schedule: PaymentSchedule,
    streams: Sequence[RoleStream],
) -> tuple[BreakdownRow, ...]:
    """One ``BreakdownRow`` per payment event."""
    by_role = {stream.role: stream.amounts for stream in streams}
    months = schedule.commitment_months

    def amount(role: Role, index: int) -> Decimal:
        amounts = by_role.get(role)
        return amounts[index] if amounts is not None else _ZERO

    rows: list[BreakdownRow] = []
    for index, due in enumerate(schedule.all_due_dates):
        rows.append(BreakdownRow(
            period_index=index,
            due_date=due,
            advisor_amount=amount(Role.ADVISOR, index),
            office_amount=amount(Role.OFFICE, index),
            investor_amount=amount(Role.INVESTOR, index),
            is_trailing=index >= months,
        ))
    return tuple(rows)


@traced_engine("breakdown", "1.0", fingerprint_fields=("investment",))
def generate_breakdown(
    investment: Investment,
    schedule: PaymentSchedule | None = None,
    policies: Sequence[RolePolicy] = STANDARD_ROLE_POLICIES,
) -> Breakdown:
    """
    Per-period commission table for ``investment``.

    Args:
        investment: Normalized investment with resolved rates.
        schedule: Precomputed schedule; built from the investment if None.
        policies: Role policies to run (one stream per policy).
    """
    if schedule is None:
        schedule = build_payment_schedule(
            investment.deposit_date, investment.commitment_months
        )

    streams = tuple(build_role_stream(p, investment, schedule) for p in policies)
    rows = merge_rows(schedule, streams)

    logger.debug("breakdown_generated", extra={
        "investment_id": investment.investment_id,
        "periods": len(rows),
        "trailing_days": schedule.trailing.days if schedule.trailing else 0,
        "investor_eligible_index": next(
            (s.eligible_index for s in streams if s.role is Role.INVESTOR), None
        ),
    })

    return Breakdown(schedule=schedule, streams=streams, rows=rows)
