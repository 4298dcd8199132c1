"""
commission_services.engine -- CommissionEngine orchestrator.

Responsibility:
    Compose the pure engines (cutoff -> eligibility -> proration/schedule
    -> breakdown) into one immutable ``CommissionResult`` per investment,
    and offer record-level entry points that run intake normalization and
    async rate resolution first.

Architecture position:
    Services -- orchestration over engines + kernel + config.
    Holds the configuration and the clock; the engines it calls hold
    neither.

Invariants enforced:
    - ``compute`` is a pure function of its ``Investment``: no clock, no
      configuration, no shared mutable state.  Safe to call from many
      threads at once.
    - ``len(monthly_breakdown) == len(payment_due_dates)``.
    - Intermediary roles are paid on the monthly schedule; the investor on
      the cyclic schedule of its liquidity.

Failure modes:
    - ValueError / TypeError for invalid investments.
    - InputError / RateUnavailableError from the record-level entry points
      under REJECT policies.
    - CalendarInvariantError, never caught.

Usage:
    engine = CommissionEngine(clock=SystemClock())
    result = engine.compute(investment)
    result.first_period_amount(Role.ADVISOR)
"""

from __future__ import annotations

from collections.abc import Mapping

from commission_config import CommissionConfig, get_active_config
from commission_config.schema import EngineSettings
from commission_engines.breakdown import generate_breakdown
from commission_engines.schedule import build_cyclic_schedule, build_payment_schedule
from commission_kernel.domain.clock import Clock, SystemClock
from commission_kernel.domain.values import (
    CommissionResult,
    Investment,
    InvestmentRecord,
    Role,
)
from commission_kernel.logging_config import LogContext, get_logger
from commission_services.intake import ResolvedRates, build_investment
from commission_services.rates import RateProvider, default_role_types, resolve_rates

logger = get_logger("services.engine")


class CommissionEngine:
    """
    Computes commission schedules and pro-rata amounts.

    Contract:
        Receives configuration and clock via constructor injection; both
        default to the active configuration and the system clock.
    Guarantees:
        - One fresh ``CommissionResult`` per call; nothing is cached.
    Non-goals:
        - Does not persist results or own rate storage.
    """

    def __init__(
        self,
        config: CommissionConfig | None = None,
        clock: Clock | None = None,
    ):
        self._config = config if config is not None else get_active_config()
        self._clock = clock or SystemClock()

    @property
    def config(self) -> CommissionConfig:
        return self._config

    @property
    def settings(self) -> EngineSettings:
        return self._config.settings

    @property
    def clock(self) -> Clock:
        return self._clock

    def compute(self, investment: Investment) -> CommissionResult:
        """Full commission result for a normalized investment."""
        with LogContext.bind(investment_id=investment.investment_id):
            schedule = build_payment_schedule(
                investment.deposit_date, investment.commitment_months
            )
            breakdown = generate_breakdown(investment, schedule)

            investor_dates = build_cyclic_schedule(
                schedule.due_dates, investment.liquidity.cycle_months
            )
            if schedule.trailing is not None:
                investor_dates += (schedule.trailing.due_date,)

            result = CommissionResult(
                investment=investment,
                cutoff=schedule.first_cutoff,
                payment_due_dates=schedule.all_due_dates,
                investor_due_dates=investor_dates,
                summaries=breakdown.summaries,
                monthly_breakdown=breakdown.rows,
            )

            logger.info("commission_computed", extra={
                "cutoff": result.cutoff.cutoff_date,
                "periods": len(result.monthly_breakdown),
                "liquidity": investment.liquidity,
                "investor_eligible": result.investor_eligible,
                "advisor_total": result.total_for(Role.ADVISOR),
                "office_total": result.total_for(Role.OFFICE),
                "investor_total": result.total_for(Role.INVESTOR),
            })
        return result

    def compute_record(
        self,
        record: InvestmentRecord,
        rates: ResolvedRates,
    ) -> CommissionResult:
        """Normalize ``record`` under the boundary policies, then compute."""
        return self.compute(build_investment(record, rates, self.settings, self._clock))

    async def compute_with_provider(
        self,
        record: InvestmentRecord,
        provider: RateProvider,
        role_types: Mapping[Role, str | None] | None = None,
    ) -> CommissionResult:
        """
        Resolve rates through ``provider`` first, then compute.

        ``role_types`` defaults to the roles held on ``record`` (see
        ``default_role_types``).
        """
        if role_types is None:
            role_types = default_role_types(record)
        rates = await resolve_rates(provider, record, role_types, self.settings)
        return self.compute_record(record, rates)
