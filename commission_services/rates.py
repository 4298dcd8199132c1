"""
commission_services.rates -- Rate lookup protocol and async resolution.

Responsibility:
    Resolve the monthly rate of every role on an investment before the
    engine runs.  Rates belong to an external collaborator consumed through
    the narrow ``RateProvider`` protocol; ``RentabilityRateProvider`` is the
    reference implementation over the configured rentability tables.

Architecture position:
    Services -- the only suspending step of a computation.  Completes (or
    times out) before the synchronous engines are invoked.

Invariants enforced:
    - Intermediary roles are looked up with MONTHLY liquidity; the investor
      with the investment's own liquidity.
    - Lookups for the three roles run concurrently, each bounded by the
      configured timeout.
    - Failures, timeouts and "no rate configured" are one outcome: rate
      unavailable.  ``missing_rate_policy`` decides: SUBSTITUTE leaves the
      rate unresolved (the engine uses zero and flags the role) with a
      WARNING log; REJECT raises ``RateUnavailableError``.

Failure modes:
    - RateUnavailableError under ``missing_rate_policy = REJECT``.
    - CancelledError propagates when the caller cancels resolution.

Usage:
    provider = RentabilityRateProvider(config)
    rates = await resolve_rates(provider, record, role_types, config.settings)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Mapping
from decimal import Decimal
from typing import Protocol, runtime_checkable

from commission_config.schema import CommissionConfig, EngineSettings
from commission_kernel.domain.results import BoundaryPolicy
from commission_kernel.domain.values import InvestmentRecord, Liquidity, Role
from commission_kernel.exceptions import RateUnavailableError
from commission_kernel.logging_config import LogContext, get_logger
from commission_services.intake import (
    ResolvedRates,
    parse_liquidity,
    resolve_commitment_months,
)

logger = get_logger("services.rates")


@runtime_checkable
class RateProvider(Protocol):
    """Source of per-role monthly rates (decimal fractions)."""

    async def get_rate(
        self,
        role_type_id: str,
        commitment_months: int,
        liquidity: Liquidity,
    ) -> Decimal | None:
        """Monthly rate for the role type, or None when not configured."""
        ...

    async def get_payout_start_days(self, role_type_id: str) -> int | None:
        """Payout-start waiting period for the role type, if configured."""
        ...


class RentabilityRateProvider:
    """
    Rate provider over the rentability tables of a ``CommissionConfig``.

    User type -> rentability; a fixed rentability returns its fixed rate,
    a matrix rentability the rate of the commitment period for the
    liquidity (falling back to the period's monthly rate).  Percentages
    are converted to decimal fractions.
    """

    def __init__(self, config: CommissionConfig):
        self._config = config

    async def get_rate(
        self,
        role_type_id: str,
        commitment_months: int,
        liquidity: Liquidity,
    ) -> Decimal | None:
        rentability = self._config.rentability_for_user_type(role_type_id)
        if rentability is None:
            return None
        return rentability.monthly_rate(commitment_months, liquidity)

    async def get_payout_start_days(self, role_type_id: str) -> int | None:
        rentability = self._config.rentability_for_user_type(role_type_id)
        if rentability is None:
            return None
        return rentability.payout_start_days


def default_role_types(record: InvestmentRecord) -> dict[Role, str]:
    """
    Role -> user type id for every role someone holds on ``record``.

    Holders are identified by the record's investor, advisor and office
    ids; each role maps to the user type of the same name.
    """
    return {
        role: role.value for role in Role if record.holder_for(role) is not None
    }


def lookup_liquidity(role: Role, investment_liquidity: Liquidity) -> Liquidity:
    """Liquidity a role's rate is looked up with."""
    return Liquidity.MONTHLY if role.is_intermediary else investment_liquidity


async def _bounded(awaitable: Awaitable, timeout: float | None):
    if timeout is None:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout)


def _unavailable_reason(outcome: object) -> str | None:
    if isinstance(outcome, asyncio.TimeoutError):
        return "timeout"
    if isinstance(outcome, Exception):
        return f"{type(outcome).__name__}: {outcome}"
    if outcome is None:
        return "no rate configured"
    if isinstance(outcome, Decimal) and not outcome.is_finite():
        return f"non-finite rate {outcome}"
    return None


async def resolve_rates(
    provider: RateProvider,
    record: InvestmentRecord,
    role_types: Mapping[Role, str | None],
    settings: EngineSettings,
    timeout: float | None = None,
) -> ResolvedRates:
    """
    Resolve the rates of every role on ``record``.

    Args:
        provider: Rate source.
        record: Investment record (commitment and liquidity are read from it,
            with the configured defaults for missing values).
        role_types: Role -> user type id holding that role on the record.
            A missing entry means no one holds the role; its rate stays
            unresolved without applying the missing-rate policy.
        settings: Engine settings (policy, defaults, timeout).
        timeout: Per-lookup timeout in seconds; defaults to
            ``settings.rate_timeout_seconds``.

    Raises:
        RateUnavailableError: a rate is unavailable under REJECT.
    """
    if timeout is None:
        timeout = settings.rate_timeout_seconds
    months = resolve_commitment_months(record, settings)
    parsed = parse_liquidity(record.liquidity)
    liquidity = parsed.value if parsed else settings.default_liquidity

    roles = tuple(Role)
    with LogContext.bind(investment_id=record.id):
        lookups = []
        for role in roles:
            role_type_id = role_types.get(role)
            if role_type_id is None:
                lookups.append(asyncio.sleep(0, result=None))
            else:
                lookups.append(_bounded(
                    provider.get_rate(role_type_id, months, lookup_liquidity(role, liquidity)),
                    timeout,
                ))
        investor_type = role_types.get(Role.INVESTOR)
        if investor_type is not None:
            lookups.append(_bounded(provider.get_payout_start_days(investor_type), timeout))
        else:
            lookups.append(asyncio.sleep(0, result=None))

        outcomes = await asyncio.gather(*lookups, return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome

        rates: dict[Role, Decimal | None] = {}
        substituted: set[Role] = set()
        unassigned: set[Role] = set()
        for role, outcome in zip(roles, outcomes):
            if role_types.get(role) is None:
                # Nobody holds the role on this investment.
                rates[role] = None
                unassigned.add(role)
                continue
            reason = _unavailable_reason(outcome)
            if reason is None:
                rates[role] = outcome  # type: ignore[assignment]
                continue
            if settings.missing_rate_policy is BoundaryPolicy.REJECT:
                error = RateUnavailableError(role.value, role_types.get(role), reason)
                if isinstance(outcome, Exception):
                    raise error from outcome
                raise error
            logger.warning("rate_unavailable_substituted", extra={
                "role": role.value,
                "role_type_id": role_types.get(role),
                "reason": reason,
            })
            rates[role] = None
            substituted.add(role)

        payout_outcome = outcomes[len(roles)]
        payout_start_days: int | None = None
        if isinstance(payout_outcome, Exception):
            logger.warning("payout_start_days_unavailable", extra={
                "role_type_id": investor_type,
                "reason": _unavailable_reason(payout_outcome),
            })
        elif payout_outcome is not None:
            payout_start_days = int(payout_outcome)

    return ResolvedRates(
        advisor_rate=rates[Role.ADVISOR],
        office_rate=rates[Role.OFFICE],
        investor_rate=rates[Role.INVESTOR],
        payout_start_days=payout_start_days,
        substituted=frozenset(substituted),
        unassigned=frozenset(unassigned),
    )
