"""
Sierra Leone Tax & Penalty Calculation Engine

Computes statutory tax, minimum tax, penalties and interest for a
taxpayer's obligations. Pure calculations: no persistence, no I/O beyond
reading configured rates.
"""

from .models import (
    InvalidTaxInput,
    TaxKind,
    TaxpayerCategory,
    GSTCategory,
    WithholdingCategory,
    PenaltyKind,
    TaxableFact,
    TaxCalculationResult,
    PenaltyAssessment,
    round_money,
)
from .brackets import Bracket, BracketTable, BandSlice, SLE_2024_BRACKETS
from .rates import (
    RateProvider,
    StaticRateConfig,
    YamlRateConfig,
    DEFAULT_RATES,
)
from .tax_calculator import TaxCalculator, IncomeTaxComputation, WITHHOLDING_RATES
from .penalty_calculator import PenaltyCalculator
from .liability import LiabilityComposer

__all__ = [
    # Models
    "InvalidTaxInput",
    "TaxKind",
    "TaxpayerCategory",
    "GSTCategory",
    "WithholdingCategory",
    "PenaltyKind",
    "TaxableFact",
    "TaxCalculationResult",
    "PenaltyAssessment",
    "round_money",
    # Brackets
    "Bracket",
    "BracketTable",
    "BandSlice",
    "SLE_2024_BRACKETS",
    # Rate configuration
    "RateProvider",
    "StaticRateConfig",
    "YamlRateConfig",
    "DEFAULT_RATES",
    # Calculators
    "TaxCalculator",
    "IncomeTaxComputation",
    "WITHHOLDING_RATES",
    "PenaltyCalculator",
    "LiabilityComposer",
]
