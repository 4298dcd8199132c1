"""
Tests for the per-period breakdown.

Covers:
- Intermediary streams (ungated, monthly)
- Investor gating, pro-rata from the deposit date, steady state
- Cyclic compounding for semiannual liquidity
- Trailing partial row
- Never-eligible investor
- Zero substitution for a missing rate, isolated to one role
- Roles with no holder earn zero without being flagged
"""

from datetime import date
from decimal import Decimal

import pytest

from commission_engines.breakdown import (
    STANDARD_ROLE_POLICIES,
    RolePolicy,
    accrual_states,
    compound_cycle_payouts,
    generate_breakdown,
)
from commission_engines.projection import compound_growth
from commission_kernel.domain.values import Liquidity, PeriodState, Role


class TestAccrualStates:
    def test_transition_at_eligible_index(self):
        assert accrual_states(2, 4) == (
            PeriodState.BEFORE_ELIGIBILITY,
            PeriodState.BEFORE_ELIGIBILITY,
            PeriodState.FIRST_ELIGIBLE_PERIOD,
            PeriodState.STEADY_STATE,
        )

    def test_never_eligible(self):
        assert accrual_states(None, 3) == (PeriodState.BEFORE_ELIGIBILITY,) * 3


class TestRolePolicies:
    def test_standard_policies(self):
        policies = {p.role: p for p in STANDARD_ROLE_POLICIES}

        assert policies[Role.ADVISOR] == RolePolicy(Role.ADVISOR, gated=False, follows_liquidity=False)
        assert policies[Role.OFFICE] == RolePolicy(Role.OFFICE, gated=False, follows_liquidity=False)
        assert policies[Role.INVESTOR] == RolePolicy(Role.INVESTOR, gated=True, follows_liquidity=True)


class TestReferenceBreakdown:
    """Deposit 2024-01-10, 12 months, monthly, D+60."""

    def test_row_count_includes_trailing(self, make_investment):
        breakdown = generate_breakdown(make_investment())

        assert len(breakdown.rows) == 13
        assert breakdown.rows[-1].is_trailing
        assert not any(r.is_trailing for r in breakdown.rows[:-1])

    def test_advisor_stream(self, make_investment):
        advisor = generate_breakdown(make_investment()).stream_for(Role.ADVISOR)

        assert advisor.eligible_index == 0
        assert advisor.first_period.days_counted == 10
        assert advisor.amounts[0] == Decimal("1000")
        assert all(a == Decimal("3000") for a in advisor.amounts[1:12])
        assert advisor.amounts[12] == Decimal("2100")
        assert advisor.total == Decimal("36100")

    def test_investor_gated_until_march(self, make_investment):
        investor = generate_breakdown(make_investment()).stream_for(Role.INVESTOR)

        assert investor.eligible_index == 2
        assert investor.amounts[0] == 0
        assert investor.amounts[1] == 0
        assert investor.states[2] is PeriodState.FIRST_ELIGIBLE_PERIOD

    def test_investor_first_period_counts_from_deposit(self, make_investment):
        """70 days from Jan 10 to Mar 20, not 10 days from Mar 10."""
        investor = generate_breakdown(make_investment()).stream_for(Role.INVESTOR)

        assert investor.first_period.days_counted == 70
        assert investor.amounts[2] == Decimal("4900")

    def test_investor_total(self, make_investment):
        investor = generate_breakdown(make_investment()).stream_for(Role.INVESTOR)

        assert all(a == Decimal("2100") for a in investor.amounts[3:12])
        assert investor.amounts[12] == Decimal("1470")
        assert investor.total == Decimal("25270")

    def test_rows_match_streams(self, make_investment):
        breakdown = generate_breakdown(make_investment())
        office = breakdown.stream_for(Role.OFFICE)

        for row in breakdown.rows:
            assert row.office_amount == office.amounts[row.period_index]
            assert row.due_date == breakdown.schedule.all_due_dates[row.period_index]


class TestMonthlyInvestorSum:
    def test_sum_is_first_prorata_plus_full_periods(self, make_investment):
        investment = make_investment(payout_start_days=0, commitment_months=6)
        investor = generate_breakdown(investment).stream_for(Role.INVESTOR)

        rate, amount = investment.investor_rate, investment.amount
        expected = investor.first_period.amount + rate * amount * 5
        assert sum(investor.amounts[:6]) == expected


class TestSemiannualCompounding:
    """Deposit 2024-04-20: 30-day first period, no trailing row."""

    def _investor(self, make_investment, **overrides):
        fields = dict(
            deposit_date=date(2024, 4, 20),
            liquidity=Liquidity.SEMIANNUAL,
            investor_rate=Decimal("0.02"),
            payout_start_days=0,
        )
        fields.update(overrides)
        return generate_breakdown(make_investment(**fields)).stream_for(Role.INVESTOR)

    def test_zero_between_payouts(self, make_investment):
        investor = self._investor(make_investment)

        assert len(investor.amounts) == 12
        for i in (0, 1, 2, 3, 4, 6, 7, 8, 9, 10):
            assert investor.amounts[i] == 0

    def test_payout_is_compounded_cycle_growth(self, make_investment):
        investor = self._investor(make_investment)
        expected = compound_growth(Decimal("100000"), Decimal("0.02"), 6)

        assert investor.amounts[5] == expected
        assert investor.amounts[11] == expected

    def test_each_cycle_restarts_from_principal(self, make_investment):
        investor = self._investor(make_investment)
        assert investor.amounts[5] == investor.amounts[11]

    def test_intermediaries_stay_monthly(self, make_investment):
        breakdown = generate_breakdown(make_investment(
            deposit_date=date(2024, 4, 20),
            liquidity=Liquidity.SEMIANNUAL,
        ))

        advisor = breakdown.stream_for(Role.ADVISOR)
        assert advisor.cycle_months == 1
        assert all(a == Decimal("3000") for a in advisor.amounts)

    def test_gated_cycle_compounds_from_first_eligible_month(self):
        """Growth before eligibility is zero; first month is pro-rata."""
        states = (
            PeriodState.BEFORE_ELIGIBILITY,
            PeriodState.FIRST_ELIGIBLE_PERIOD,
            PeriodState.STEADY_STATE,
        )
        payouts = compound_cycle_payouts(Decimal("1000"), Decimal("0.1"), states, 15, 3)

        # month 2: 1000 * 0.1 * 15/30 = 50; month 3: 1050 * 0.1 = 105
        assert payouts == [Decimal("0"), Decimal("0"), Decimal("155")]


class TestNeverEligible:
    def test_investor_all_zero_including_trailing(self, make_investment):
        breakdown = generate_breakdown(make_investment(commitment_months=3, payout_start_days=120))
        investor = breakdown.stream_for(Role.INVESTOR)

        assert investor.eligible_index is None
        assert investor.first_period is None
        assert len(investor.amounts) == 4
        assert all(a == 0 for a in investor.amounts)
        assert investor.states[-1] is PeriodState.BEFORE_ELIGIBILITY

    def test_intermediaries_unaffected(self, make_investment):
        breakdown = generate_breakdown(make_investment(commitment_months=3, payout_start_days=120))

        assert breakdown.stream_for(Role.ADVISOR).total > 0


class TestMissingRate:
    def test_missing_office_rate_is_zero_and_flagged(self, make_investment):
        breakdown = generate_breakdown(make_investment(office_rate=None))
        summaries = {s.role: s for s in breakdown.summaries}

        assert summaries[Role.OFFICE].rate_substituted is True
        assert summaries[Role.OFFICE].total_amount == 0
        assert summaries[Role.ADVISOR].rate_substituted is False
        assert summaries[Role.ADVISOR].total_amount == Decimal("36100")

    def test_nan_rate_is_substituted(self, make_investment):
        breakdown = generate_breakdown(make_investment(investor_rate=Decimal("NaN")))

        assert breakdown.stream_for(Role.INVESTOR).rate == 0
        assert breakdown.stream_for(Role.INVESTOR).rate_substituted

    def test_unassigned_role_is_zero_and_not_flagged(self, make_investment, captured_logs):
        breakdown = generate_breakdown(make_investment(
            office_rate=None, unassigned_roles=frozenset({Role.OFFICE})
        ))
        office = breakdown.stream_for(Role.OFFICE)

        assert office.rate == 0
        assert office.rate_substituted is False
        assert office.total == 0
        assert breakdown.stream_for(Role.ADVISOR).total == Decimal("36100")
        assert not any(
            r["message"] == "rate_substituted_with_zero" for r in captured_logs()
        )

    def test_unassigned_role_ignores_any_rate(self, make_investment):
        breakdown = generate_breakdown(make_investment(
            unassigned_roles=frozenset({Role.ADVISOR})
        ))

        assert breakdown.stream_for(Role.ADVISOR).total == 0
        assert all(row.advisor_amount == 0 for row in breakdown.rows)


class TestTracing:
    def test_breakdown_emits_engine_trace(self, make_investment, captured_logs):
        generate_breakdown(make_investment())

        traces = [r for r in captured_logs() if r["message"] == "COMMISSION_ENGINE_TRACE"]
        assert any(t["engine_name"] == "breakdown" for t in traces)
        assert all(len(t["input_fingerprint"]) == 16 for t in traces if t["engine_name"] == "breakdown")

    def test_fingerprint_is_deterministic(self, make_investment, captured_logs):
        generate_breakdown(make_investment())
        generate_breakdown(make_investment())

        fingerprints = {
            r["input_fingerprint"]
            for r in captured_logs()
            if r["message"] == "COMMISSION_ENGINE_TRACE" and r["engine_name"] == "breakdown"
        }
        assert len(fingerprints) == 1
