"""
commission_services -- Package init and public API.

Responsibility:
    Orchestration services that compose the pure commission engines with
    configuration, an injected clock and the async rate provider.  This is
    the only layer that reads "today" or awaits external collaborators.

Architecture position:
    Services -- orchestration over engines + config + kernel.

    Dependency direction (enforced by tests/architecture/test_import_boundaries.py):
        commission_services/ -> commission_engines/  (allowed)
        commission_services/ -> commission_config/   (allowed)
        commission_services/ -> commission_kernel/   (allowed)
        commission_engines/  -> commission_services/ (FORBIDDEN)
        commission_kernel/   -> commission_services/ (FORBIDDEN)

Invariants enforced:
    - Layer isolation: kernel, engines and config never import this package.
    - DI transparency: configuration and clock are passed to
      ``CommissionEngine``; no service reads the wall clock directly.
"""

from commission_kernel.logging_config import get_logger

logger = get_logger("services")

from commission_services.batch import BatchFailure, BatchOutcome, compute_many
from commission_services.engine import CommissionEngine
from commission_services.intake import (
    ResolvedRates,
    build_investment,
    parse_deposit_date,
    parse_liquidity,
)
from commission_services.rates import (
    RateProvider,
    RentabilityRateProvider,
    default_role_types,
    resolve_rates,
)
from commission_services.reporting import (
    amount_paid_through,
    next_payment_index,
    next_role_payment,
    reporting_cutoff,
)

__all__ = [
    "BatchFailure",
    "BatchOutcome",
    "CommissionEngine",
    "RateProvider",
    "RentabilityRateProvider",
    "ResolvedRates",
    "amount_paid_through",
    "build_investment",
    "compute_many",
    "default_role_types",
    "next_payment_index",
    "next_role_payment",
    "parse_deposit_date",
    "parse_liquidity",
    "reporting_cutoff",
    "resolve_rates",
]
