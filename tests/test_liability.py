"""
Tests for Liability Composer

End-to-end liability scenarios: base tax routing, minimum tax, penalty and
interest accrual, validation and rate changes.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from decimal import Decimal

import pytest

from conftest import FIXED_NOW, date_in_future, days_ago
from salone_tax import (
    InvalidTaxInput,
    LiabilityComposer,
    StaticRateConfig,
    TaxableFact,
    TaxCalculationResult,
    TaxKind,
    TaxpayerCategory,
    WithholdingCategory,
)


class TestTaxableFact:
    """Tests for input validation."""

    def test_normalizes_values(self, corporate_fact):
        fact = TaxableFact(**{**corporate_fact, "taxable_amount": 1000000, "annual_turnover": "5"})

        assert fact.taxable_amount == Decimal("1000000")
        assert fact.annual_turnover == Decimal("5")
        assert fact.tax_kind is TaxKind.INCOME_TAX
        assert fact.taxpayer_category is TaxpayerCategory.LARGE

    def test_datetime_due_date_reduced_to_date(self, corporate_fact):
        fact = TaxableFact(**{**corporate_fact, "due_date": datetime(2025, 3, 1, 17, 30)})
        assert fact.due_date == datetime(2025, 3, 1).date()

    @pytest.mark.parametrize("override,message", [
        ({"taxable_amount": Decimal("-1")}, "taxable_amount must be non-negative"),
        ({"annual_turnover": Decimal("-100")}, "annual_turnover must be non-negative"),
        ({"taxable_amount": None}, "taxable_amount is required"),
        ({"tax_kind": "stamp_duty"}, "Unknown tax kind"),
        ({"taxpayer_category": "giant"}, "Unknown taxpayer category"),
        ({"due_date": None}, "due_date is required"),
        ({"due_date": "2025-01-01"}, "due_date must be a date"),
        ({"withholding_category": "bribes"}, "Unknown withholding category"),
    ])
    def test_invalid_input_rejected(self, corporate_fact, override, message):
        with pytest.raises(InvalidTaxInput, match=message):
            TaxableFact(**{**corporate_fact, **override})

    def test_fact_is_immutable(self, corporate_fact):
        fact = TaxableFact(**corporate_fact)
        with pytest.raises(AttributeError):
            fact.taxable_amount = Decimal("1")


class TestLiabilityComposer:
    """Tests for the complete liability computation."""

    def test_corporate_ninety_days_late_with_minimum_tax(self, composer, corporate_fact):
        """Corporate filer, turnover 50M, 90 days late and unpaid."""
        fact = TaxableFact(**{
            **corporate_fact,
            "annual_turnover": Decimal("50000000"),
            "due_date": days_ago(90),
        })

        result = composer.calculate(fact)

        assert result.base_tax == Decimal("250000.00")
        assert result.minimum_tax == Decimal("250000.00")
        assert result.minimum_alternate_tax == Decimal("1500000.00")
        # penalty on the taxable amount, >60 days tier
        assert result.penalty == Decimal("150000.00")
        # interest on the applied base tax for 90 days at 15%
        assert result.interest == Decimal("9246.58")
        assert result.total_tax_liability == Decimal("409246.58")
        assert result.days_late == 90

    def test_corporate_on_time(self, composer, corporate_fact):
        fact = TaxableFact(**{**corporate_fact, "due_date": date_in_future()})

        result = composer.calculate(fact)

        assert result.base_tax == Decimal("250000.00")
        assert result.penalty == Decimal("0")
        assert result.interest == Decimal("0")
        assert result.total_tax_liability == result.base_tax
        assert result.days_late == 0

    def test_due_today_is_not_late(self, composer, corporate_fact):
        result = composer.calculate(TaxableFact(**corporate_fact))
        assert result.penalty == Decimal("0")

    def test_corporate_forty_five_days_late(self, composer, corporate_fact):
        fact = TaxableFact(**{**corporate_fact, "due_date": days_ago(45)})

        result = composer.calculate(fact)

        assert result.base_tax == Decimal("250000.00")
        assert result.penalty == Decimal("100000.00")
        assert result.interest == Decimal("4623.29")
        assert result.total_tax_liability == result.base_tax + result.penalty + result.interest

    def test_minimum_tax_override(self, composer, corporate_fact):
        fact = TaxableFact(**{
            **corporate_fact,
            "annual_turnover": Decimal("100000000"),
            "due_date": date_in_future(),
        })

        result = composer.calculate(fact)

        assert result.base_tax == Decimal("500000.00")
        assert result.minimum_tax == Decimal("500000.00")
        assert result.total_tax_liability == Decimal("500000.00")
        assert "minimum tax applied" in result.notes

    def test_mat_reported_but_not_applied(self, composer, corporate_fact):
        fact = TaxableFact(**{
            **corporate_fact,
            "annual_turnover": Decimal("20000000"),
            "due_date": date_in_future(),
        })

        result = composer.calculate(fact)

        assert result.minimum_alternate_tax == Decimal("600000.00")
        assert result.base_tax == Decimal("250000.00")

    def test_individual_ignores_turnover(self, composer, corporate_fact):
        fact = TaxableFact(**{
            **corporate_fact,
            "taxable_amount": Decimal("1200000"),
            "taxpayer_category": TaxpayerCategory.INDIVIDUAL,
            "is_individual": True,
            "annual_turnover": Decimal("100000000"),
            "due_date": date_in_future(),
        })

        result = composer.calculate(fact)

        assert result.base_tax == Decimal("90000.00")
        assert result.minimum_tax == Decimal("0")
        assert result.minimum_alternate_tax == Decimal("0")

    def test_gst_late_penalty_on_computed_tax(self, composer):
        """Non-income kinds charge the penalty on the computed tax."""
        fact = TaxableFact(
            taxable_amount=Decimal("1000000"),
            tax_kind=TaxKind.GST,
            taxpayer_category=TaxpayerCategory.MEDIUM,
            due_date=days_ago(45),
        )

        result = composer.calculate(fact)

        assert result.base_tax == Decimal("150000.00")
        assert result.penalty == Decimal("15000.00")
        assert result.interest == Decimal("2773.97")
        assert result.total_tax_liability == Decimal("167773.97")

    def test_gst_exempt_supply(self, composer):
        fact = TaxableFact(
            taxable_amount=Decimal("1000000"),
            tax_kind="gst",
            taxpayer_category="small",
            due_date=date_in_future(),
            gst_category="exempt",
        )
        assert composer.calculate(fact).total_tax_liability == Decimal("0")

    def test_payroll_tax(self, composer):
        fact = TaxableFact(
            taxable_amount=Decimal("1000000"),
            tax_kind=TaxKind.PAYROLL_TAX,
            taxpayer_category=TaxpayerCategory.INDIVIDUAL,
            due_date=date_in_future(),
            allowances=Decimal("200000"),
        )
        assert composer.calculate(fact).base_tax == Decimal("90000.00")

    def test_withholding_tax(self, composer):
        fact = TaxableFact(
            taxable_amount=Decimal("100000"),
            tax_kind=TaxKind.WITHHOLDING_TAX,
            taxpayer_category=TaxpayerCategory.SMALL,
            due_date=date_in_future(),
            withholding_category=WithholdingCategory.RENT,
        )
        assert composer.calculate(fact).base_tax == Decimal("10000.00")

    def test_calculation_timestamp_from_clock(self, composer, corporate_fact):
        result = composer.calculate(TaxableFact(**corporate_fact))
        assert result.calculation_date == FIXED_NOW

    def test_rejects_non_fact(self, composer):
        with pytest.raises(InvalidTaxInput, match="Expected a TaxableFact"):
            composer.calculate({"taxable_amount": 1})

    def test_total_tax_liability_convenience(self, composer):
        result = composer.total_tax_liability(
            "1000000", "income_tax", "large", days_ago(45), 0, False
        )

        assert isinstance(result, TaxCalculationResult)
        assert result.penalty == Decimal("100000.00")

    def test_rate_changes_visible_on_next_call(self, clock):
        rates = StaticRateConfig()
        composer = LiabilityComposer(rates, clock=clock)
        fact = TaxableFact(
            taxable_amount=Decimal("100000"),
            tax_kind=TaxKind.GST,
            taxpayer_category=TaxpayerCategory.SMALL,
            due_date=date_in_future(),
        )

        assert composer.calculate(fact).base_tax == Decimal("15000.00")
        rates.set_percent("Tax.GST.RatePercent", "18")
        assert composer.calculate(fact).base_tax == Decimal("18000.00")

    def test_failing_rate_provider_falls_back_to_defaults(self, clock, corporate_fact):
        class BrokenProvider:
            def get_percent(self, key, default):
                raise RuntimeError("settings store unavailable")

        composer = LiabilityComposer(BrokenProvider(), clock=clock)
        fact = TaxableFact(**{
            **corporate_fact,
            "annual_turnover": Decimal("50000000"),
            "due_date": days_ago(90),
        })

        assert composer.calculate(fact).total_tax_liability == Decimal("409246.58")

    def test_concurrent_calls_are_independent(self, composer, corporate_fact):
        facts = [
            TaxableFact(**{**corporate_fact, "taxable_amount": Decimal(n * 100000)})
            for n in range(1, 41)
        ]

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(composer.calculate, facts))

        assert [r.base_tax for r in results] == [
            (Decimal(n * 100000) * Decimal("0.25")).quantize(Decimal("0.01")) for n in range(1, 41)
        ]

    def test_result_to_dict(self, composer, corporate_fact):
        data = composer.calculate(TaxableFact(**corporate_fact)).to_dict()

        assert data["tax_kind"] == "income_tax"
        assert data["base_tax"] == "250000.00"
        assert data["total_tax_liability"] == "250000.00"
        assert data["calculation_date"] == FIXED_NOW.isoformat()

    def test_result_to_dict_inapplicable_amounts_have_cents(self, composer, corporate_fact):
        data = composer.calculate(TaxableFact(**corporate_fact)).to_dict()

        assert data["minimum_tax"] == "0.00"
        assert data["minimum_alternate_tax"] == "0.00"
        assert data["penalty"] == "0.00"
        assert data["interest"] == "0.00"
