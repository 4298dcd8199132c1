"""
Pytest fixtures for the commission engine test suite.

Provides:
- Structured logging configured for every test session
- Deterministic clock
- The shipped default configuration and an engine built on it
- An investment factory with the reference scenario's values as defaults
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from commission_config import get_active_config
from commission_kernel.domain.clock import DeterministicClock
from commission_kernel.domain.values import Investment, Liquidity
from commission_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from commission_services.engine import CommissionEngine


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture commission_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, engine):
            engine.compute(investment)
            logs = captured_logs()
            assert any(r["message"] == "commission_computed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("commission_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and configuration fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Clock fixed at 2024-06-15 noon UTC."""
    return DeterministicClock.on(date(2024, 6, 15))


@pytest.fixture(scope="session")
def default_config():
    """The shipped default configuration set."""
    return get_active_config()


@pytest.fixture
def engine(default_config, deterministic_clock):
    return CommissionEngine(config=default_config, clock=deterministic_clock)


# =============================================================================
# Investment factory
# =============================================================================


@pytest.fixture
def make_investment():
    """
    Build an ``Investment`` with the reference scenario as defaults.

    amount 100000, deposit 2024-01-10, 12 months, monthly, payout start 60,
    advisor 3%, office 1%, investor 2.1%.
    """

    def _make(**overrides) -> Investment:
        fields = dict(
            amount=Decimal("100000"),
            deposit_date=date(2024, 1, 10),
            commitment_months=12,
            liquidity=Liquidity.MONTHLY,
            advisor_rate=Decimal("0.03"),
            office_rate=Decimal("0.01"),
            investor_rate=Decimal("0.021"),
            payout_start_days=60,
            investment_id="inv-001",
        )
        fields.update(overrides)
        return Investment(**fields)

    return _make
