"""
Tests for day-counted proration.

Covers:
- Day counting from the day after the start through the end
- 30-day convention: 30 days equals one full period exactly
- Zero and negative day counts
- Zero substitution for missing or non-finite rates
"""

from datetime import date
from decimal import Decimal

import pytest

from commission_engines.proration import (
    counted_days,
    effective_rate,
    full_period_amount,
    prorate,
    prorated_share,
)
from commission_kernel.domain.values import Role


class TestCountedDays:
    def test_deposit_to_cutoff(self):
        assert counted_days(date(2024, 1, 10), date(2024, 1, 20)) == 10

    def test_across_leap_february(self):
        assert counted_days(date(2024, 1, 10), date(2024, 3, 20)) == 70

    def test_reversed_span_is_zero(self):
        assert counted_days(date(2024, 1, 20), date(2024, 1, 10)) == 0

    def test_same_day_is_zero(self):
        assert counted_days(date(2024, 1, 20), date(2024, 1, 20)) == 0


class TestProrate:
    """Tests for prorate."""

    def test_ten_days_at_three_percent(self):
        assert prorate(Decimal("100000"), Decimal("0.03"), 10) == Decimal("1000")

    def test_thirty_days_is_one_full_period(self):
        amount, rate = Decimal("12345.67"), Decimal("0.021")

        assert prorate(amount, rate, 30) == amount * rate

    def test_thirty_one_days_exceeds_full_period(self):
        amount, rate = Decimal("100000"), Decimal("0.03")

        assert prorate(amount, rate, 31) == Decimal("3100")

    def test_zero_days_is_zero(self):
        assert prorate(Decimal("100000"), Decimal("0.03"), 0) == Decimal("0")

    def test_negative_days_rejected(self):
        with pytest.raises(ValueError):
            prorate(Decimal("100000"), Decimal("0.03"), -1)

    def test_result_is_decimal(self):
        assert isinstance(prorate(Decimal("1"), Decimal("0.01"), 7), Decimal)


class TestProratedShare:
    def test_share_carries_role_and_days(self):
        share = prorated_share(
            Role.INVESTOR,
            Decimal("100000"),
            Decimal("0.021"),
            date(2024, 1, 10),
            date(2024, 3, 20),
        )

        assert share.role is Role.INVESTOR
        assert share.days_counted == 70
        assert share.amount == Decimal("4900")

    def test_full_period_amount(self):
        assert full_period_amount(Decimal("100000"), Decimal("0.01")) == Decimal("1000")


class TestEffectiveRate:
    """Tests for zero substitution of unusable rates."""

    def test_finite_rate_passes_through(self):
        assert effective_rate(Decimal("0.03")) == (Decimal("0.03"), False)

    def test_zero_rate_is_not_a_substitution(self):
        assert effective_rate(Decimal("0")) == (Decimal("0"), False)

    @pytest.mark.parametrize("rate", [None, Decimal("NaN"), Decimal("Infinity")])
    def test_unusable_rate_becomes_zero(self, rate):
        value, substituted = effective_rate(rate, Role.OFFICE)

        assert value == Decimal("0")
        assert substituted is True

    def test_substitution_logs_warning(self, captured_logs):
        effective_rate(None, Role.ADVISOR)

        records = [r for r in captured_logs() if r["message"] == "rate_substituted_with_zero"]
        assert len(records) == 1
        assert records[0]["level"] == "WARNING"
        assert records[0]["role"] == "advisor"
