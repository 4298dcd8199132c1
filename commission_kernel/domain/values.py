"""
Domain values for the commission engine.

Responsibility:
    Immutable value objects exchanged between the intake boundary, the
    pure engines and result consumers: roles, liquidity cadences, the
    normalized ``Investment``, cutoff periods, pro-rata shares, breakdown
    rows and the final ``CommissionResult``.

Architecture position:
    Kernel > Domain -- pure, zero I/O. Imported by engines and services.

Invariants enforced:
    - Every value is a frozen dataclass or an enum.
    - ``Investment.deposit_date`` is a ``date``, never a ``datetime``; all
      calendar arithmetic happens in one timezone-free frame.
    - Monetary amounts and rates are ``Decimal``; floats are rejected.
    - ``CutoffPeriod.cutoff_date`` always falls on day 20.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from commission_kernel.exceptions import UnknownLiquidityError

CUTOFF_DAY = 20


class Role(str, Enum):
    """Stakeholder roles paid on an investment."""

    ADVISOR = "advisor"
    OFFICE = "office"
    INVESTOR = "investor"

    @property
    def is_intermediary(self) -> bool:
        return self is not Role.INVESTOR


class Liquidity(str, Enum):
    """Investor payout cadence."""

    MONTHLY = "monthly"
    SEMIANNUAL = "semiannual"
    ANNUAL = "annual"
    BIENNIAL = "biennial"
    TRIENNIAL = "triennial"

    @property
    def cycle_months(self) -> int:
        """Months between two investor payouts."""
        return _CYCLE_MONTHS[self]

    @classmethod
    def parse(cls, label: Liquidity | str) -> Liquidity:
        """
        Resolve a liquidity label from investment records.

        Accepts enum members, enum values and the English / Portuguese
        labels found in stored records (``"Mensal"``, ``"Semestral"``,
        ``"Semiannual"``, ``"anual"``...). Matching is case-insensitive.

        Raises:
            UnknownLiquidityError: label is not recognised.
        """
        if isinstance(label, Liquidity):
            return label
        if isinstance(label, str):
            found = _LIQUIDITY_ALIASES.get(label.strip().lower())
            if found is not None:
                return found
        raise UnknownLiquidityError(label)


_CYCLE_MONTHS: dict[Liquidity, int] = {
    Liquidity.MONTHLY: 1,
    Liquidity.SEMIANNUAL: 6,
    Liquidity.ANNUAL: 12,
    Liquidity.BIENNIAL: 24,
    Liquidity.TRIENNIAL: 36,
}

_LIQUIDITY_ALIASES: dict[str, Liquidity] = {
    "monthly": Liquidity.MONTHLY,
    "mensal": Liquidity.MONTHLY,
    "semiannual": Liquidity.SEMIANNUAL,
    "semi-annual": Liquidity.SEMIANNUAL,
    "semestral": Liquidity.SEMIANNUAL,
    "annual": Liquidity.ANNUAL,
    "anual": Liquidity.ANNUAL,
    "biennial": Liquidity.BIENNIAL,
    "bienal": Liquidity.BIENNIAL,
    "triennial": Liquidity.TRIENNIAL,
    "trienal": Liquidity.TRIENNIAL,
}


class PeriodState(str, Enum):
    """Accrual state of a role's stream at one period index."""

    BEFORE_ELIGIBILITY = "before_eligibility"
    FIRST_ELIGIBLE_PERIOD = "first_eligible_period"
    STEADY_STATE = "steady_state"
    TRAILING_PARTIAL = "trailing_partial"


def _require_decimal(name: str, value: Any) -> None:
    if not isinstance(value, Decimal):
        raise TypeError(f"{name} must be Decimal, got {type(value).__name__}")


@dataclass(frozen=True)
class Investment:
    """
    Normalized investment input for one engine invocation.

    Contract:
        Rates are already resolved by the rate-lookup collaborator.
        ``None`` or a non-finite rate means "no rate configured"; the
        engine substitutes zero for that role only.
        Roles in ``unassigned_roles`` have no holder on the investment:
        they earn zero and are not reported as substituted.
    Guarantees:
        - amount > 0, commitment_months > 0, payout_start_days >= 0.
        - deposit_date is a plain calendar date.
    """

    amount: Decimal
    deposit_date: date
    commitment_months: int
    liquidity: Liquidity
    advisor_rate: Decimal | None
    office_rate: Decimal | None
    investor_rate: Decimal | None
    payout_start_days: int = 0
    investment_id: str | None = None
    unassigned_roles: frozenset[Role] = frozenset()

    def __post_init__(self) -> None:
        _require_decimal("amount", self.amount)
        if not self.amount.is_finite() or self.amount <= 0:
            raise ValueError(f"amount must be positive, got {self.amount}")
        if isinstance(self.deposit_date, datetime) or not isinstance(self.deposit_date, date):
            raise ValueError("deposit_date must be a calendar date, not a datetime")
        if self.commitment_months <= 0:
            raise ValueError(
                f"commitment_months must be positive, got {self.commitment_months}"
            )
        if self.payout_start_days < 0:
            raise ValueError(
                f"payout_start_days cannot be negative, got {self.payout_start_days}"
            )
        if not isinstance(self.liquidity, Liquidity):
            raise TypeError("liquidity must be a Liquidity member")
        if not all(isinstance(r, Role) for r in self.unassigned_roles):
            raise TypeError("unassigned_roles must contain Role members")
        for attr in ("advisor_rate", "office_rate", "investor_rate"):
            rate = getattr(self, attr)
            if rate is None:
                continue
            _require_decimal(attr, rate)
            if rate.is_finite() and rate < 0:
                raise ValueError(f"{attr} cannot be negative, got {rate}")

    def rate_for(self, role: Role) -> Decimal | None:
        """Raw resolved rate for ``role`` (may be None or non-finite)."""
        if role is Role.ADVISOR:
            return self.advisor_rate
        if role is Role.OFFICE:
            return self.office_rate
        return self.investor_rate


@dataclass(frozen=True)
class CutoffPeriod:
    """The 20th-of-month boundary an accrual period closes on."""

    year: int
    month: int
    cutoff_date: date

    def __post_init__(self) -> None:
        if self.cutoff_date.day != CUTOFF_DAY:
            raise ValueError(
                f"cutoff_date must fall on day {CUTOFF_DAY}, got {self.cutoff_date}"
            )
        if (self.cutoff_date.year, self.cutoff_date.month) != (self.year, self.month):
            raise ValueError("cutoff_date does not match year/month")

    @classmethod
    def of(cls, year: int, month: int) -> CutoffPeriod:
        return cls(year=year, month=month, cutoff_date=date(year, month, CUTOFF_DAY))


@dataclass(frozen=True)
class ProratedShare:
    """Day-counted partial-period amount for one role."""

    role: Role
    days_counted: int
    amount: Decimal


@dataclass(frozen=True)
class BreakdownRow:
    """One payment event in the per-period commission table."""

    period_index: int
    due_date: date
    advisor_amount: Decimal
    office_amount: Decimal
    investor_amount: Decimal
    is_trailing: bool = False

    def amount_for(self, role: Role) -> Decimal:
        if role is Role.ADVISOR:
            return self.advisor_amount
        if role is Role.OFFICE:
            return self.office_amount
        return self.investor_amount

    @property
    def total(self) -> Decimal:
        return self.advisor_amount + self.office_amount + self.investor_amount


@dataclass(frozen=True)
class RoleSummary:
    """
    Per-role view of a computed breakdown.

    ``eligible_index is None`` means the role never became eligible within
    the commitment (investor waiting period longer than the commitment).
    That is a valid outcome, distinct from a failed computation.
    """

    role: Role
    rate: Decimal
    first_period: ProratedShare | None
    monthly_amount: Decimal
    eligible_index: int | None
    total_amount: Decimal
    rate_substituted: bool = False

    @property
    def is_eligible(self) -> bool:
        return self.eligible_index is not None


@dataclass(frozen=True)
class CommissionResult:
    """
    Immutable output of one engine invocation.

    Guarantees:
        - ``len(monthly_breakdown) == len(payment_due_dates)``.
        - ``len(monthly_breakdown)`` is ``commitment_months`` or one more
          when a trailing partial period exists.
    """

    investment: Investment
    cutoff: CutoffPeriod
    payment_due_dates: tuple[date, ...]
    investor_due_dates: tuple[date, ...]
    summaries: tuple[RoleSummary, ...]
    monthly_breakdown: tuple[BreakdownRow, ...]

    def summary_for(self, role: Role) -> RoleSummary:
        for summary in self.summaries:
            if summary.role is role:
                return summary
        raise KeyError(role)

    def first_period_amount(self, role: Role) -> Decimal:
        share = self.summary_for(role).first_period
        return share.amount if share is not None else Decimal("0")

    def monthly_amount(self, role: Role) -> Decimal:
        return self.summary_for(role).monthly_amount

    def total_for(self, role: Role) -> Decimal:
        return self.summary_for(role).total_amount

    @property
    def investor_eligible(self) -> bool:
        return self.summary_for(Role.INVESTOR).is_eligible

    @property
    def has_trailing_partial(self) -> bool:
        return bool(self.monthly_breakdown) and self.monthly_breakdown[-1].is_trailing


@dataclass(frozen=True)
class InvestmentRecord:
    """
    Raw investment record as received from the investment source.

    Dates may be ISO strings (``YYYY-MM-DD`` with an optional time suffix),
    ``date`` or ``datetime`` values; the intake boundary normalizes them.
    """

    id: str
    amount: Decimal
    deposit_date: Any
    investor_id: str | None = None
    commitment_months: int | None = None
    liquidity: str | Liquidity | None = None
    advisor_id: str | None = None
    office_id: str | None = None
    payout_start_days: int | None = None

    def holder_for(self, role: Role) -> str | None:
        """Id of whoever holds ``role`` on this record, if anyone."""
        if role is Role.ADVISOR:
            return self.advisor_id
        if role is Role.OFFICE:
            return self.office_id
        return self.investor_id
