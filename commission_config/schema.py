"""
Commission configuration schema.

Defines the human-authored configuration model: engine settings and
boundary policies, rentability tables (fixed rates or period/liquidity
matrices, in percent), user types binding a role to a rentability, and
redemption windows.  YAML fragments are parsed into these types by the
loader; ``get_active_config()`` returns the assembled ``CommissionConfig``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from commission_kernel.domain.results import BoundaryPolicy
from commission_kernel.domain.values import Liquidity

_HUNDRED = Decimal("100")

# ---------------------------------------------------------------------------
# Engine settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineSettings:
    """Defaults and boundary policies applied at the intake boundary."""

    default_commitment_months: int = 12
    default_liquidity: Liquidity = Liquidity.MONTHLY
    default_payout_start_days: int = 60
    invalid_date_policy: BoundaryPolicy = BoundaryPolicy.SUBSTITUTE
    unknown_liquidity_policy: BoundaryPolicy = BoundaryPolicy.SUBSTITUTE
    missing_rate_policy: BoundaryPolicy = BoundaryPolicy.SUBSTITUTE
    rate_timeout_seconds: float | None = 5.0


# ---------------------------------------------------------------------------
# Rentability tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RentabilityPeriodDef:
    """Monthly rates (percent) of one commitment length, per liquidity."""

    months: int
    rates: tuple[tuple[Liquidity, Decimal], ...] = ()

    def rate_percent(self, liquidity: Liquidity) -> Decimal | None:
        for key, value in self.rates:
            if key is liquidity:
                return value
        return None

    @property
    def liquidities(self) -> tuple[Liquidity, ...]:
        return tuple(key for key, _ in self.rates)


@dataclass(frozen=True)
class RentabilityDef:
    """A named rentability: either a fixed rate or a period matrix."""

    id: str
    title: str
    is_fixed: bool = False
    fixed_rate: Decimal | None = None
    payout_start_days: int | None = None
    periods: tuple[RentabilityPeriodDef, ...] = ()

    def period_for(self, months: int) -> RentabilityPeriodDef | None:
        for period in self.periods:
            if period.months == months:
                return period
        return None

    def monthly_rate(self, months: int, liquidity: Liquidity) -> Decimal | None:
        """
        Monthly rate as a decimal fraction, or None when not configured.

        A fixed rentability ignores the period and liquidity.  A matrix
        rentability falls back to the period's MONTHLY rate when the
        requested liquidity has no entry.  A commitment length with no
        period of its own uses the first period (in table order) that has
        a rate for the requested liquidity.
        """
        if self.is_fixed and self.fixed_rate is not None:
            return self.fixed_rate / _HUNDRED
        period = self.period_for(months)
        if period is None:
            percent = next(
                (p.rate_percent(liquidity) for p in self.periods
                 if p.rate_percent(liquidity) is not None),
                None,
            )
            return None if percent is None else percent / _HUNDRED
        percent = period.rate_percent(liquidity)
        if percent is None:
            percent = period.rate_percent(Liquidity.MONTHLY)
        if percent is None:
            return None
        return percent / _HUNDRED


@dataclass(frozen=True)
class UserTypeDef:
    """Binds a user type (role holder) to a rentability."""

    id: str
    name: str
    rentability_id: str | None = None


# ---------------------------------------------------------------------------
# Assembled configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CommissionConfig:
    """
    Assembled, validated configuration set.

    Guarantees:
        - Every ``UserTypeDef.rentability_id`` refers to a known rentability.
        - ``checksum`` is the SHA-256 of the canonical source document.
    """

    config_id: str
    version: int
    settings: EngineSettings
    rentabilities: tuple[RentabilityDef, ...] = ()
    user_types: tuple[UserTypeDef, ...] = ()
    redemption_windows: tuple[tuple[int, int], ...] = ()
    checksum: str = ""
    source_path: str | None = field(default=None, compare=False)

    def rentability(self, rentability_id: str) -> RentabilityDef | None:
        for rentability in self.rentabilities:
            if rentability.id == rentability_id:
                return rentability
        return None

    def user_type(self, user_type_id: str) -> UserTypeDef | None:
        for user_type in self.user_types:
            if user_type.id == user_type_id:
                return user_type
        return None

    def rentability_for_user_type(self, user_type_id: str) -> RentabilityDef | None:
        user_type = self.user_type(user_type_id)
        if user_type is None or user_type.rentability_id is None:
            return None
        return self.rentability(user_type.rentability_id)

    @property
    def redemption_window_map(self) -> dict[int, int]:
        return dict(self.redemption_windows)
