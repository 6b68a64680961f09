"""
Tax Liability Composer

Combines base tax, minimum tax, late payment penalty and interest into a
single liability figure for one obligation.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable

from .brackets import BracketTable
from .models import (
    InvalidTaxInput,
    TaxableFact,
    TaxCalculationResult,
    TaxKind,
    TaxpayerCategory,
    ZERO,
)
from .penalty_calculator import PenaltyCalculator, utc_now
from .rates import RateProvider, StaticRateConfig
from .tax_calculator import TaxCalculator

logger = logging.getLogger(__name__)


def _income_tax(calculator: TaxCalculator, fact: TaxableFact) -> Decimal:
    return calculator.income_tax(fact.taxable_amount, fact.is_individual)


def _gst(calculator: TaxCalculator, fact: TaxableFact) -> Decimal:
    return calculator.gst(fact.taxable_amount, fact.gst_category)


def _withholding_tax(calculator: TaxCalculator, fact: TaxableFact) -> Decimal:
    return calculator.withholding_tax(fact.taxable_amount, fact.withholding_category, fact.is_resident)


def _payroll_tax(calculator: TaxCalculator, fact: TaxableFact) -> Decimal:
    return calculator.payroll_paye(fact.taxable_amount, fact.allowances)


BASE_TAX: dict[TaxKind, Callable[[TaxCalculator, TaxableFact], Decimal]] = {
    TaxKind.INCOME_TAX: _income_tax,
    TaxKind.GST: _gst,
    TaxKind.WITHHOLDING_TAX: _withholding_tax,
    TaxKind.PAYROLL_TAX: _payroll_tax,
}


class LiabilityComposer:
    """Computes the total liability for a taxable fact."""

    def __init__(
        self,
        rates: RateProvider | None = None,
        brackets: BracketTable | None = None,
        clock: Callable[[], datetime] | None = None
    ):
        """Initialize the composer.

        Args:
            rates: Provider of configurable percentages; statutory defaults when omitted
            brackets: Individual income tax bands
            clock: Returns the current UTC time, the evaluation point for lateness
        """
        self.rates = rates if rates is not None else StaticRateConfig()
        self.clock = clock or utc_now
        self.tax_calculator = TaxCalculator(self.rates, brackets)
        self.penalty_calculator = PenaltyCalculator(self.rates, self.clock)

    def calculate(self, fact: TaxableFact) -> TaxCalculationResult:
        """Compute base tax, penalty, interest and total liability.

        Args:
            fact: Validated taxable fact

        Returns:
            TaxCalculationResult stamped with the calculation time
        """
        if not isinstance(fact, TaxableFact):
            raise InvalidTaxInput(f"Expected a TaxableFact, got {type(fact).__name__}")

        result = TaxCalculationResult(tax_kind=fact.tax_kind)
        result.base_tax = BASE_TAX[fact.tax_kind](self.tax_calculator, fact)

        # Minimum tax applies to entity income tax only; MAT is reported, not applied
        if (
            fact.tax_kind == TaxKind.INCOME_TAX
            and not fact.is_individual
            and fact.annual_turnover > 0
        ):
            result.minimum_tax = self.tax_calculator.minimum_tax(fact.annual_turnover)
            result.minimum_alternate_tax = self.tax_calculator.minimum_alternate_tax(fact.annual_turnover)
            computed = result.base_tax
            result.base_tax = self.tax_calculator.applicable_tax(computed, result.minimum_tax)
            if result.minimum_tax > computed:
                result.notes.append("minimum tax applied")

        result.days_late = self.penalty_calculator.days_late(fact.due_date)
        if result.days_late > 0:
            # The penalty basis differs by kind on purpose: income tax is
            # penalised on the taxable amount, every other kind on the
            # computed tax. Do not unify the two without product sign-off.
            if fact.tax_kind == TaxKind.INCOME_TAX:
                penalty_base = fact.taxable_amount
            else:
                penalty_base = result.base_tax

            result.penalty = self.penalty_calculator.late_payment_penalty(penalty_base, result.days_late)
            result.interest = self.penalty_calculator.simple_interest(
                result.base_tax,
                result.days_late,
                self.penalty_calculator.annual_interest_rate,
            )
            result.notes.append(f"late payment: {result.days_late} days")

        result.total_tax_liability = result.base_tax + result.penalty + result.interest
        result.calculation_date = self.clock()

        logger.debug(
            f"{fact.tax_kind.value} liability: base={result.base_tax} "
            f"penalty={result.penalty} interest={result.interest} "
            f"total={result.total_tax_liability}"
        )
        return result

    def total_tax_liability(
        self,
        taxable_amount: Any,
        tax_kind: TaxKind | str,
        taxpayer_category: TaxpayerCategory | str,
        due_date: date | datetime,
        annual_turnover: Any = ZERO,
        is_individual: bool = False
    ) -> TaxCalculationResult:
        """Build a TaxableFact from plain arguments and calculate it."""
        fact = TaxableFact(
            taxable_amount=taxable_amount,
            tax_kind=tax_kind,
            taxpayer_category=taxpayer_category,
            due_date=due_date,
            is_individual=is_individual,
            annual_turnover=annual_turnover,
        )
        return self.calculate(fact)
