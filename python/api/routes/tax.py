"""
Tax Calculation API Routes

Exposes the tax engine to the portal: liability, penalty assessment,
income tax breakdown and the rates in force.
"""

import logging
from datetime import date
from decimal import Decimal
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from salone_tax import (
    DEFAULT_RATES,
    GSTCategory,
    InvalidTaxInput,
    LiabilityComposer,
    PenaltyCalculator,
    TaxableFact,
    TaxCalculator,
    TaxKind,
    TaxpayerCategory,
    WithholdingCategory,
    YamlRateConfig,
)
from salone_tax.models import ZERO

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tax", tags=["tax"])


class LiabilityInput(BaseModel):
    """Input model for a liability calculation."""

    taxable_amount: Decimal
    tax_kind: TaxKind
    taxpayer_category: TaxpayerCategory
    due_date: date
    is_individual: bool = False
    annual_turnover: Decimal = ZERO
    gst_category: str = GSTCategory.STANDARD.value
    withholding_category: WithholdingCategory | None = None
    is_resident: bool = True
    allowances: Decimal = ZERO


class PenaltyInput(BaseModel):
    """Input model for a penalty assessment."""

    tax_liability: Decimal
    unpaid_amount: Decimal = ZERO
    filing_due_date: date
    payment_due_date: date
    filed_date: date | None = None
    paid_date: date | None = None
    as_of: date | None = None


@lru_cache
def get_rate_config() -> YamlRateConfig:
    """Rate configuration shared by all requests."""
    return YamlRateConfig()


def get_composer(rates: YamlRateConfig = Depends(get_rate_config)) -> LiabilityComposer:
    return LiabilityComposer(rates, rates.bracket_table())


@router.post("/liability")
async def calculate_liability(
    body: LiabilityInput,
    composer: LiabilityComposer = Depends(get_composer),
) -> dict:
    """Calculate total liability for one obligation.

    Args:
        body: Taxable fact
        composer: Liability composer

    Returns:
        TaxCalculationResult as a dict
    """
    try:
        fact = TaxableFact(**body.model_dump())
        result = composer.calculate(fact)
    except InvalidTaxInput as e:
        raise HTTPException(status_code=400, detail=str(e))

    return result.to_dict()


@router.post("/penalties")
async def assess_penalties(
    body: PenaltyInput,
    composer: LiabilityComposer = Depends(get_composer),
) -> dict:
    """Assess all penalties applicable to an obligation."""
    calculator: PenaltyCalculator = composer.penalty_calculator
    try:
        assessments = calculator.assess(**body.model_dump())
    except InvalidTaxInput as e:
        raise HTTPException(status_code=400, detail=str(e))

    total = sum((a.amount for a in assessments), ZERO)
    return {
        "penalties": [a.to_dict() for a in assessments],
        "total_penalty": str(total),
    }


@router.get("/income-tax")
async def income_tax(
    income: Decimal = Query(...),
    individual: bool = Query(True),
    composer: LiabilityComposer = Depends(get_composer),
) -> dict:
    """Income tax with the per-band breakdown for individuals."""
    calculator: TaxCalculator = composer.tax_calculator
    try:
        if individual:
            return calculator.compute_income_tax_detail(income).to_dict()
        tax_due = calculator.flat_corporate_income_tax(income)
    except InvalidTaxInput as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "taxable_income": str(income),
        "tax_due": str(tax_due),
        "bands": [],
    }


@router.get("/rates")
async def current_rates(
    rates: YamlRateConfig = Depends(get_rate_config),
) -> dict:
    """Percent rates currently in force."""
    return {key: str(rates.get_percent(key, default)) for key, default in DEFAULT_RATES.items()}
