"""
commission_services.intake -- Boundary normalization of investment records.

Responsibility:
    Turn a raw ``InvestmentRecord`` (ISO strings, datetimes, free-form
    liquidity labels, optional fields) plus resolved rates into the
    normalized ``Investment`` the engines consume.  Data-quality problems
    are detected here, as ``ParseResult`` failures, and resolved by the
    configured ``BoundaryPolicy``; calculation code never sees them.

Architecture position:
    Services -- boundary layer between the investment source and the pure
    engines.  The only place "today" is read (through an injected Clock)
    to substitute an unparseable deposit date.

Invariants enforced:
    - Every substitution (today for a bad date, the default liquidity for
      an unknown label) is logged at WARNING with the raw value.
    - Under REJECT the typed InputError is raised and nothing is computed.
    - Deposit dates are normalized to the UTC calendar frame.

Failure modes:
    - InvalidDepositDateError under ``invalid_date_policy = REJECT``.
    - UnknownLiquidityError under ``unknown_liquidity_policy = REJECT``.
    - ValueError / TypeError from ``Investment`` validation (non-positive
      amount, float amount...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from commission_config.schema import EngineSettings
from commission_engines.calendar import to_calendar_date
from commission_kernel.domain.clock import Clock
from commission_kernel.domain.results import BoundaryError, BoundaryPolicy, ParseResult
from commission_kernel.domain.values import Investment, InvestmentRecord, Liquidity, Role
from commission_kernel.exceptions import InvalidDepositDateError, UnknownLiquidityError
from commission_kernel.logging_config import get_logger

logger = get_logger("services.intake")


@dataclass(frozen=True)
class ResolvedRates:
    """
    Per-role monthly rates (decimal fractions) for one investment.

    ``None`` means no rate is configured; the engine substitutes zero.
    ``substituted`` lists roles whose rate was already replaced during
    resolution.  ``unassigned`` lists roles nobody holds on the record;
    they earn zero without being flagged.
    """

    advisor_rate: Decimal | None = None
    office_rate: Decimal | None = None
    investor_rate: Decimal | None = None
    payout_start_days: int | None = None
    substituted: frozenset[Role] = field(default_factory=frozenset)
    unassigned: frozenset[Role] = field(default_factory=frozenset)

    def rate_for(self, role: Role) -> Decimal | None:
        if role is Role.ADVISOR:
            return self.advisor_rate
        if role is Role.OFFICE:
            return self.office_rate
        return self.investor_rate


def _strip_time_suffix(text: str) -> str:
    for separator in ("T", " "):
        head, sep, _ = text.partition(separator)
        if sep:
            return head
    return text


def _parse_ymd(text: str) -> date | None:
    parts = text.split("-")
    if len(parts) != 3 or not all(p.isascii() and p.isdigit() for p in parts):
        return None
    year, month, day = (int(p) for p in parts)
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_deposit_date(value: Any) -> ParseResult[date]:
    """
    Parse a deposit date from a record.

    Accepts ``date``, ``datetime`` (normalized to the UTC calendar date)
    and strings ``YYYY-MM-DD`` with an optional ``T...`` or
    space-separated time suffix, which is ignored.  Month and day need
    not be zero-padded (``2024-1-5``).
    """
    if isinstance(value, (date, datetime)):
        return ParseResult.ok(to_calendar_date(value))
    if isinstance(value, str):
        parsed = _parse_ymd(_strip_time_suffix(value.strip()))
        if parsed is not None:
            return ParseResult.ok(parsed)
    return ParseResult.failure(BoundaryError(
        code=InvalidDepositDateError.code,
        message=f"Cannot parse deposit date from {value!r}",
        field="deposit_date",
        details={"raw_value": repr(value)},
    ))


def parse_liquidity(value: Any) -> ParseResult[Liquidity]:
    """Parse a liquidity label; ``None`` is reported as missing."""
    if value is None:
        return ParseResult.failure(BoundaryError(
            code="MISSING_LIQUIDITY",
            message="Liquidity not provided",
            field="liquidity",
        ))
    try:
        return ParseResult.ok(Liquidity.parse(value))
    except UnknownLiquidityError as exc:
        return ParseResult.failure(BoundaryError(
            code=exc.code,
            message=str(exc),
            field="liquidity",
            details={"raw_value": exc.label},
        ))


def resolve_deposit_date(
    record: InvestmentRecord,
    settings: EngineSettings,
    clock: Clock,
) -> date:
    result = parse_deposit_date(record.deposit_date)
    if result:
        return result.unwrap()
    if settings.invalid_date_policy is BoundaryPolicy.REJECT:
        raise InvalidDepositDateError(record.deposit_date, record.id)
    today = clock.today()
    logger.warning("deposit_date_substituted", extra={
        "investment_id": record.id,
        "raw_value": repr(record.deposit_date),
        "substitute": today.isoformat(),
    })
    return today


def resolve_liquidity(record: InvestmentRecord, settings: EngineSettings) -> Liquidity:
    result = parse_liquidity(record.liquidity)
    if result:
        return result.unwrap()
    if record.liquidity is None:
        return settings.default_liquidity
    if settings.unknown_liquidity_policy is BoundaryPolicy.REJECT:
        raise UnknownLiquidityError(record.liquidity)
    logger.warning("liquidity_substituted", extra={
        "investment_id": record.id,
        "raw_value": repr(record.liquidity),
        "substitute": settings.default_liquidity.value,
    })
    return settings.default_liquidity


def resolve_commitment_months(record: InvestmentRecord, settings: EngineSettings) -> int:
    if record.commitment_months is None:
        return settings.default_commitment_months
    return int(record.commitment_months)


def resolve_payout_start_days(
    record: InvestmentRecord,
    rates: ResolvedRates,
    settings: EngineSettings,
) -> int:
    """Record value, then the investor rentability's value, then the default."""
    if record.payout_start_days is not None:
        return int(record.payout_start_days)
    if rates.payout_start_days is not None:
        return rates.payout_start_days
    return settings.default_payout_start_days


def build_investment(
    record: InvestmentRecord,
    rates: ResolvedRates,
    settings: EngineSettings,
    clock: Clock,
) -> Investment:
    """
    Normalize ``record`` into an ``Investment``.

    Args:
        record: Raw record from the investment source.
        rates: Rates resolved for the record's roles.
        settings: Defaults and boundary policies.
        clock: Source of "today" for the invalid-date substitution.

    Raises:
        InvalidDepositDateError, UnknownLiquidityError: under REJECT.
        ValueError, TypeError: the normalized values are invalid.
    """
    investment = Investment(
        amount=record.amount,
        deposit_date=resolve_deposit_date(record, settings, clock),
        commitment_months=resolve_commitment_months(record, settings),
        liquidity=resolve_liquidity(record, settings),
        advisor_rate=rates.advisor_rate,
        office_rate=rates.office_rate,
        investor_rate=rates.investor_rate,
        payout_start_days=resolve_payout_start_days(record, rates, settings),
        investment_id=record.id,
        unassigned_roles=rates.unassigned,
    )
    logger.debug("investment_normalized", extra={
        "investment_id": record.id,
        "deposit_date": investment.deposit_date,
        "commitment_months": investment.commitment_months,
        "liquidity": investment.liquidity,
        "payout_start_days": investment.payout_start_days,
    })
    return investment
