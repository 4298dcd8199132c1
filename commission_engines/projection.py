"""
Module: commission_engines.projection
Responsibility:
    Whole-term return projections used when comparing liquidity options
    for the same principal, and the redemption window that applies to a
    commitment length.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Decimal-only arithmetic; integer exponents only, so every figure is
      exact for the context precision.
    - ``total_rescue_profit`` = full cycles x cycle profit + compound
      growth over the remainder months.  Each cycle is paid out and
      restarts from the principal.
    - Redemption windows snap up to the next configured commitment; a
      commitment beyond the largest configured one uses the largest.

Failure modes:
    - ValueError for non-positive months or cycle lengths, or an empty
      window table.

Usage:
    from commission_engines.projection import project_liquidity_returns

    p = project_liquidity_returns(Decimal("10000"), Decimal("0.02"), 12, 6)
    p.cycle_profit           # 10000 * (1.02**6 - 1)
    p.total_rescue_profit    # 2 * cycle_profit
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping

from commission_engines.tracer import traced_engine

_ONE = Decimal("1")

DEFAULT_REDEMPTION_WINDOWS: Mapping[int, int] = {
    3: 90,
    6: 180,
    12: 360,
    24: 720,
    36: 1080,
}


@dataclass(frozen=True)
class LiquidityProjection:
    """Projected investor returns of one (commitment, liquidity) scenario."""

    amount: Decimal
    monthly_rate: Decimal
    commitment_months: int
    cycle_months: int
    monthly_amount: Decimal
    cycle_profit: Decimal
    full_cycles: int
    remainder_months: int
    total_compound_profit: Decimal
    total_rescue_profit: Decimal

    @property
    def annualized_amount(self) -> Decimal:
        return self.monthly_amount * 12

    @property
    def simple_total(self) -> Decimal:
        """Non-compounded monthly amount over the whole commitment."""
        return self.monthly_amount * self.commitment_months


@dataclass(frozen=True)
class RedemptionWindow:
    """Days after which principal can be redeemed."""

    commitment_months: int
    window_months: int
    days: int


def compound_growth(amount: Decimal, monthly_rate: Decimal, months: int) -> Decimal:
    """``amount * ((1 + r) ** months - 1)``."""
    if months < 0:
        raise ValueError(f"months cannot be negative, got {months}")
    return amount * ((_ONE + monthly_rate) ** months - _ONE)


@traced_engine(
    "liquidity_projection",
    "1.0",
    fingerprint_fields=("amount", "monthly_rate", "commitment_months", "cycle_months"),
)
def project_liquidity_returns(
    amount: Decimal,
    monthly_rate: Decimal,
    commitment_months: int,
    cycle_months: int,
) -> LiquidityProjection:
    """
    Project the investor returns of a liquidity choice.

    Args:
        amount: Principal.
        monthly_rate: Investor monthly rate as a decimal fraction.
        commitment_months: Commitment length.
        cycle_months: Liquidity cycle length (1 for monthly).

    Returns:
        LiquidityProjection with per-cycle, compound and rescue totals.
    """
    if commitment_months < 1:
        raise ValueError(
            f"commitment_months must be positive, got {commitment_months}"
        )
    if cycle_months < 1:
        raise ValueError(f"cycle_months must be >= 1, got {cycle_months}")

    cycle_profit = compound_growth(amount, monthly_rate, cycle_months)
    full_cycles, remainder = divmod(commitment_months, cycle_months)

    rescue = cycle_profit * full_cycles
    if remainder:
        rescue += compound_growth(amount, monthly_rate, remainder)

    return LiquidityProjection(
        amount=amount,
        monthly_rate=monthly_rate,
        commitment_months=commitment_months,
        cycle_months=cycle_months,
        monthly_amount=amount * monthly_rate,
        cycle_profit=cycle_profit,
        full_cycles=full_cycles,
        remainder_months=remainder,
        total_compound_profit=compound_growth(amount, monthly_rate, commitment_months),
        total_rescue_profit=rescue,
    )


def redemption_window(
    commitment_months: int,
    windows: Mapping[int, int] = DEFAULT_REDEMPTION_WINDOWS,
) -> RedemptionWindow:
    """Redemption window for ``commitment_months``."""
    if not windows:
        raise ValueError("windows cannot be empty")
    if commitment_months < 1:
        raise ValueError(
            f"commitment_months must be positive, got {commitment_months}"
        )
    ordered = sorted(windows)
    chosen = next((m for m in ordered if m >= commitment_months), ordered[-1])
    return RedemptionWindow(
        commitment_months=commitment_months,
        window_months=chosen,
        days=windows[chosen],
    )
