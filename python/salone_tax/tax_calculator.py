"""
Sierra Leone Tax Calculator Module

Handles base tax computations under the Finance Act 2024: progressive
individual income tax, flat corporate income tax, GST, withholding tax,
PAYE, and the turnover-based minimum taxes.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from . import rates as rate_keys
from .brackets import SLE_2024_BRACKETS, BandSlice, BracketTable
from .models import (
    GSTCategory,
    WithholdingCategory,
    ZERO,
    non_negative,
    round_money,
)
from .rates import RateProvider, StaticRateConfig, read_percent

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")

CORPORATE_INCOME_TAX_RATE = Decimal("0.25")

DEFAULT_WITHHOLDING_RATE = Decimal("0.15")

# Finance Act 2024 raised most categories from 10% to 15%
WITHHOLDING_RATES: dict[WithholdingCategory, Decimal] = {
    WithholdingCategory.DIVIDENDS: Decimal("0.15"),
    WithholdingCategory.MANAGEMENT_FEES: Decimal("0.15"),
    WithholdingCategory.PROFESSIONAL_FEES: Decimal("0.15"),
    WithholdingCategory.LOTTERY_WINNINGS: Decimal("0.15"),
    WithholdingCategory.ROYALTIES: Decimal("0.15"),
    WithholdingCategory.INTEREST: Decimal("0.15"),
    WithholdingCategory.RENT: Decimal("0.10"),
    WithholdingCategory.COMMISSIONS: Decimal("0.05"),
}


@dataclass
class IncomeTaxComputation:
    """Progressive income tax with its per-band breakdown."""

    taxable_income: Decimal
    tax_due: Decimal
    effective_rate: Decimal  # percent
    bands: list[BandSlice] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "taxable_income": str(self.taxable_income),
            "tax_due": str(self.tax_due),
            "effective_rate": str(self.effective_rate),
            "bands": [b.to_dict() for b in self.bands],
        }


class TaxCalculator:
    """Sierra Leone base tax calculator."""

    def __init__(
        self,
        rates: RateProvider | None = None,
        brackets: BracketTable | None = None
    ):
        """Initialize calculator.

        Args:
            rates: Provider of configurable percentages; statutory defaults when omitted
            brackets: Individual income tax bands; Finance Act 2024 bands when omitted
        """
        self.rates = rates if rates is not None else StaticRateConfig()
        self.brackets = brackets if brackets is not None else SLE_2024_BRACKETS

    # ==================== Configured Rates ====================

    def _fraction(self, key: str) -> Decimal:
        return read_percent(self.rates, key) / HUNDRED

    @property
    def gst_rate(self) -> Decimal:
        return self._fraction(rate_keys.GST_RATE)

    @property
    def annual_interest_rate(self) -> Decimal:
        return self._fraction(rate_keys.ANNUAL_INTEREST_RATE)

    @property
    def minimum_tax_rate(self) -> Decimal:
        return self._fraction(rate_keys.MINIMUM_TAX_RATE)

    @property
    def mat_rate(self) -> Decimal:
        return self._fraction(rate_keys.MAT_RATE)

    # ==================== Income Tax ====================

    def progressive_income_tax(
        self,
        taxable_income: Any,
        brackets: BracketTable | None = None
    ) -> Decimal:
        """Compute individual income tax band by band.

        Args:
            taxable_income: Taxable income (must be >= 0)
            brackets: Band table; the calculator's table when omitted

        Returns:
            Tax rounded to cents
        """
        table = brackets if brackets is not None else self.brackets
        return table.tax(taxable_income)

    def compute_income_tax_detail(self, taxable_income: Any) -> IncomeTaxComputation:
        """Compute individual income tax with the per-band breakdown."""
        income = non_negative(taxable_income, "taxable_income")
        tax_due = self.brackets.tax(income)
        effective_rate = (tax_due / income * HUNDRED) if income > 0 else ZERO

        return IncomeTaxComputation(
            taxable_income=income,
            tax_due=tax_due,
            effective_rate=round_money(effective_rate),
            bands=self.brackets.breakdown(income),
        )

    def flat_corporate_income_tax(self, taxable_income: Any) -> Decimal:
        """Corporate income tax: 25% flat for all companies."""
        income = non_negative(taxable_income, "taxable_income")
        return round_money(income * CORPORATE_INCOME_TAX_RATE)

    def income_tax(self, taxable_income: Any, is_individual: bool = False) -> Decimal:
        """Route income tax to the individual or corporate schedule."""
        if is_individual:
            return self.progressive_income_tax(taxable_income)
        return self.flat_corporate_income_tax(taxable_income)

    # ==================== GST ====================

    def gst(
        self,
        taxable_amount: Any,
        item_category: GSTCategory | str = GSTCategory.STANDARD
    ) -> Decimal:
        """Compute GST on a supply.

        Args:
            taxable_amount: Value of the supply
            item_category: standard, zero-rated or exempt; anything else is standard

        Returns:
            GST rounded to cents
        """
        amount = non_negative(taxable_amount, "taxable_amount")
        category = GSTCategory.parse(item_category)

        if category in (GSTCategory.EXEMPT, GSTCategory.ZERO_RATED):
            return round_money(ZERO)

        return round_money(amount * self.gst_rate)

    # ==================== Withholding Tax ====================

    def withholding_rate(self, category: WithholdingCategory | str | None) -> Decimal:
        """Rate for a withholding category, the default rate when unmapped."""
        if category is not None and not isinstance(category, WithholdingCategory):
            try:
                category = WithholdingCategory(category)
            except ValueError:
                logger.debug(f"Unmapped withholding category {category!r}, using default rate")
                return DEFAULT_WITHHOLDING_RATE
        return WITHHOLDING_RATES.get(category, DEFAULT_WITHHOLDING_RATE)

    def withholding_tax(
        self,
        amount: Any,
        category: WithholdingCategory | str | None,
        is_resident: bool = True
    ) -> Decimal:
        """Compute withholding tax on a payment.

        Args:
            amount: Gross payment
            category: Withholding category
            is_resident: Payee residency; no category currently has a non-resident rate

        Returns:
            Tax withheld rounded to cents
        """
        gross = non_negative(amount, "amount")
        return round_money(gross * self.withholding_rate(category))

    # ==================== PAYE ====================

    def payroll_paye(self, gross_salary: Any, allowances: Any = ZERO) -> Decimal:
        """PAYE uses the individual progressive schedule on salary plus allowances."""
        salary = non_negative(gross_salary, "gross_salary")
        extra = non_negative(allowances, "allowances")
        return self.progressive_income_tax(salary + extra)

    # ==================== Minimum Taxes ====================

    def minimum_tax(self, annual_turnover: Any) -> Decimal:
        """Turnover-based minimum tax (default 0.5% of turnover)."""
        turnover = non_negative(annual_turnover, "annual_turnover")
        return round_money(turnover * self.minimum_tax_rate)

    def minimum_alternate_tax(self, annual_turnover: Any) -> Decimal:
        """Minimum Alternate Tax, Finance Act 2023 (default 3% of turnover)."""
        turnover = non_negative(annual_turnover, "annual_turnover")
        return round_money(turnover * self.mat_rate)

    def applicable_tax(self, computed: Any, minimum: Any) -> Decimal:
        """The greater of computed income tax and minimum tax."""
        return max(
            non_negative(computed, "computed"),
            non_negative(minimum, "minimum"),
        )

    def applicable_tax_with_mat(self, computed: Any, minimum: Any, mat: Any) -> Decimal:
        """The greatest of computed income tax, minimum tax and MAT."""
        return max(
            self.applicable_tax(computed, minimum),
            non_negative(mat, "minimum_alternate_tax"),
        )
