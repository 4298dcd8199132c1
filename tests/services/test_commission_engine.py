"""
End-to-end tests for CommissionEngine.

Covers:
- The reference scenario (100000 deposited 2024-01-10, 12 months, D+60)
- Result shape invariants (row count, due dates, investor schedule)
- Record-level computation through intake
- Async computation through a rate provider
"""

from datetime import date
from decimal import Decimal

import pytest

from commission_kernel.domain.values import (
    InvestmentRecord,
    Liquidity,
    PeriodState,
    Role,
)
from commission_services.engine import CommissionEngine
from commission_services.intake import ResolvedRates
from commission_services.rates import RentabilityRateProvider

ROLE_TYPES = {Role.ADVISOR: "advisor", Role.OFFICE: "office", Role.INVESTOR: "investor"}


class TestReferenceScenario:
    """Reference scenario end to end."""

    def test_cutoff(self, engine, make_investment):
        result = engine.compute(make_investment())

        assert result.cutoff.cutoff_date == date(2024, 1, 20)

    def test_advisor_first_period(self, engine, make_investment):
        result = engine.compute(make_investment())
        share = result.summary_for(Role.ADVISOR).first_period

        assert share.days_counted == 10
        assert result.first_period_amount(Role.ADVISOR) == Decimal("1000")
        assert result.monthly_amount(Role.ADVISOR) == Decimal("3000")

    def test_investor_ineligible_in_january_and_february(self, engine, make_investment):
        result = engine.compute(make_investment())

        assert result.monthly_breakdown[0].investor_amount == 0
        assert result.monthly_breakdown[1].investor_amount == 0

    def test_investor_eligible_in_march_counting_from_deposit(self, engine, make_investment):
        result = engine.compute(make_investment())
        summary = result.summary_for(Role.INVESTOR)

        assert result.investor_eligible
        assert summary.eligible_index == 2
        assert summary.first_period.days_counted == 70
        assert result.monthly_breakdown[2].investor_amount == Decimal("4900")

    def test_totals(self, engine, make_investment):
        result = engine.compute(make_investment())

        assert result.total_for(Role.ADVISOR) == Decimal("36100")
        assert result.total_for(Role.INVESTOR) == Decimal("25270")

    def test_row_count_matches_due_dates(self, engine, make_investment):
        result = engine.compute(make_investment())

        assert len(result.monthly_breakdown) == len(result.payment_due_dates) == 13
        assert result.has_trailing_partial
        assert result.payment_due_dates[-1] == date(2025, 1, 8)

    def test_unknown_role_summary_raises(self, engine, make_investment):
        result = engine.compute(make_investment())
        stripped = type(result)(
            investment=result.investment,
            cutoff=result.cutoff,
            payment_due_dates=result.payment_due_dates,
            investor_due_dates=result.investor_due_dates,
            summaries=(),
            monthly_breakdown=result.monthly_breakdown,
        )

        with pytest.raises(KeyError):
            stripped.summary_for(Role.OFFICE)


class TestInvestorSchedule:
    def test_monthly_investor_follows_monthly_schedule(self, engine, make_investment):
        result = engine.compute(make_investment())
        assert result.investor_due_dates == result.payment_due_dates

    def test_semiannual_investor_dates(self, engine, make_investment):
        result = engine.compute(make_investment(
            deposit_date=date(2024, 4, 20),
            liquidity=Liquidity.SEMIANNUAL,
        ))

        assert len(result.payment_due_dates) == 12
        assert result.investor_due_dates == (
            result.payment_due_dates[5],
            result.payment_due_dates[11],
        )

    def test_trailing_date_appended_to_investor_dates(self, engine, make_investment):
        result = engine.compute(make_investment(liquidity=Liquidity.ANNUAL))

        assert result.investor_due_dates == (date(2025, 1, 7), date(2025, 1, 8))


class TestDeterminism:
    def test_same_input_same_result(self, engine, make_investment):
        assert engine.compute(make_investment()) == engine.compute(make_investment())

    def test_result_independent_of_clock(self, default_config, make_investment):
        from commission_kernel.domain.clock import DeterministicClock

        early = CommissionEngine(default_config, DeterministicClock.on(date(2020, 1, 1)))
        late = CommissionEngine(default_config, DeterministicClock.on(date(2030, 1, 1)))

        assert early.compute(make_investment()) == late.compute(make_investment())


class TestComputeRecord:
    """Tests for record-level computation."""

    def test_iso_string_with_time_suffix(self, engine):
        record = InvestmentRecord(
            id="inv-100",
            amount=Decimal("100000"),
            deposit_date="2024-01-10T15:42:00Z",
            commitment_months=12,
            liquidity="Mensal",
        )
        rates = ResolvedRates(
            advisor_rate=Decimal("0.03"),
            office_rate=Decimal("0.01"),
            investor_rate=Decimal("0.021"),
            payout_start_days=60,
        )

        result = engine.compute_record(record, rates)

        assert result.investment.deposit_date == date(2024, 1, 10)
        assert result.investment.investment_id == "inv-100"
        assert result.total_for(Role.INVESTOR) == Decimal("25270")

    def test_invalid_date_substitutes_clock_today(self, engine):
        record = InvestmentRecord(id="inv-101", amount=Decimal("5000"), deposit_date="garbage")

        result = engine.compute_record(record, ResolvedRates(advisor_rate=Decimal("0.03")))

        assert result.investment.deposit_date == date(2024, 6, 15)
        assert result.investment.commitment_months == 12


class TestComputeWithProvider:
    """Async computation through the configured rentability provider."""

    @pytest.mark.asyncio
    async def test_rates_from_default_config(self, engine):
        record = InvestmentRecord(
            id="inv-200",
            amount=Decimal("100000"),
            deposit_date=date(2024, 1, 10),
            commitment_months=12,
            liquidity="monthly",
        )

        result = await engine.compute_with_provider(
            record, RentabilityRateProvider(engine.config), ROLE_TYPES
        )

        assert result.summary_for(Role.ADVISOR).rate == Decimal("0.03")
        assert result.summary_for(Role.OFFICE).rate == Decimal("0.01")
        assert result.summary_for(Role.INVESTOR).rate == Decimal("0.021")
        assert result.investment.payout_start_days == 60
        assert result.total_for(Role.INVESTOR) == Decimal("25270")

    @pytest.mark.asyncio
    async def test_annual_investor_uses_annual_rate(self, engine):
        record = InvestmentRecord(
            id="inv-201",
            amount=Decimal("100000"),
            deposit_date=date(2024, 1, 10),
            commitment_months=12,
            liquidity="Anual",
        )

        result = await engine.compute_with_provider(
            record, RentabilityRateProvider(engine.config), ROLE_TYPES
        )

        assert result.summary_for(Role.INVESTOR).rate == Decimal("0.025")
        # intermediaries are looked up with monthly liquidity
        assert result.summary_for(Role.ADVISOR).rate == Decimal("0.03")
        investor_rows = [r for r in result.monthly_breakdown if r.investor_amount > 0]
        assert [r.period_index for r in investor_rows] == [11, 12]

    @pytest.mark.asyncio
    async def test_unheld_role_is_zero_and_not_flagged(self, engine, captured_logs):
        """An investment without an office pays the office nothing, silently."""
        record = InvestmentRecord(
            id="inv-202",
            amount=Decimal("100000"),
            deposit_date=date(2024, 1, 10),
            commitment_months=12,
            liquidity="monthly",
        )

        result = await engine.compute_with_provider(
            record,
            RentabilityRateProvider(engine.config),
            {Role.ADVISOR: "advisor", Role.INVESTOR: "investor"},
        )

        office = result.summary_for(Role.OFFICE)
        assert office.rate == 0
        assert office.rate_substituted is False
        assert office.total_amount == 0
        assert Role.OFFICE in result.investment.unassigned_roles
        assert result.total_for(Role.ADVISOR) == Decimal("36100")
        assert not any(
            r["message"] in ("rate_substituted_with_zero", "rate_unavailable_substituted")
            for r in captured_logs()
        )

    @pytest.mark.asyncio
    async def test_held_role_without_rate_is_flagged(self, engine):
        record = InvestmentRecord(
            id="inv-203",
            amount=Decimal("100000"),
            deposit_date=date(2024, 1, 10),
            commitment_months=12,
            liquidity="monthly",
        )

        result = await engine.compute_with_provider(
            record,
            RentabilityRateProvider(engine.config),
            {Role.ADVISOR: "advisor", Role.OFFICE: "nobody", Role.INVESTOR: "investor"},
        )

        office = result.summary_for(Role.OFFICE)
        assert office.rate_substituted is True
        assert office.total_amount == 0
        assert result.summary_for(Role.ADVISOR).rate_substituted is False

    @pytest.mark.asyncio
    async def test_role_types_default_to_record_holders(self, engine):
        record = InvestmentRecord(
            id="inv-204",
            amount=Decimal("100000"),
            deposit_date=date(2024, 1, 10),
            commitment_months=12,
            liquidity="monthly",
            investor_id="client-1",
            advisor_id="adv-7",
        )

        result = await engine.compute_with_provider(
            record, RentabilityRateProvider(engine.config)
        )

        assert result.summary_for(Role.ADVISOR).rate == Decimal("0.03")
        assert result.summary_for(Role.INVESTOR).rate == Decimal("0.021")
        assert result.summary_for(Role.OFFICE).rate_substituted is False
        assert result.total_for(Role.OFFICE) == 0

    @pytest.mark.asyncio
    async def test_unlisted_commitment_uses_first_matching_period(self, engine):
        record = InvestmentRecord(
            id="inv-205",
            amount=Decimal("100000"),
            deposit_date=date(2024, 1, 10),
            commitment_months=18,
            liquidity="monthly",
        )

        result = await engine.compute_with_provider(
            record, RentabilityRateProvider(engine.config), ROLE_TYPES
        )

        assert result.summary_for(Role.INVESTOR).rate == Decimal("0.018")
        assert result.summary_for(Role.INVESTOR).rate_substituted is False


class TestLogging:
    def test_computation_logged_with_investment_context(self, engine, make_investment, captured_logs):
        engine.compute(make_investment(investment_id="inv-log"))

        records = [r for r in captured_logs() if r["message"] == "commission_computed"]
        assert len(records) == 1
        assert records[0]["investment_id"] == "inv-log"
        assert Decimal(records[0]["advisor_total"]) == Decimal("36100")
