"""Pure domain layer: values, boundary results and the clock abstraction."""

from commission_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from commission_kernel.domain.results import BoundaryError, BoundaryPolicy, ParseResult
from commission_kernel.domain.values import (
    CUTOFF_DAY,
    BreakdownRow,
    CommissionResult,
    CutoffPeriod,
    Investment,
    InvestmentRecord,
    Liquidity,
    PeriodState,
    ProratedShare,
    Role,
    RoleSummary,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "BoundaryError",
    "BoundaryPolicy",
    "ParseResult",
    "CUTOFF_DAY",
    "BreakdownRow",
    "CommissionResult",
    "CutoffPeriod",
    "Investment",
    "InvestmentRecord",
    "Liquidity",
    "PeriodState",
    "ProratedShare",
    "Role",
    "RoleSummary",
]
