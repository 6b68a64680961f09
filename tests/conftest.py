"""
Pytest configuration and fixtures for tax engine tests.
"""

import sys
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

sys.path.insert(0, str(PROJECT_ROOT / "python"))

from salone_tax import (  # noqa: E402
    LiabilityComposer,
    PenaltyCalculator,
    StaticRateConfig,
    TaxCalculator,
)

# Evaluation instant used wherever "now" matters
FIXED_NOW = datetime(2025, 6, 30, 12, 0, tzinfo=timezone.utc)
TODAY = FIXED_NOW.date()


def days_ago(days: int) -> date:
    return TODAY - timedelta(days=days)


def date_in_future() -> date:
    return TODAY.replace(year=TODAY.year + 1)


@pytest.fixture
def config_dir() -> Path:
    """Return the config directory path."""
    return PROJECT_ROOT / "config"


@pytest.fixture
def clock():
    """Clock frozen at FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def rates() -> StaticRateConfig:
    """Empty rate config: every rate is the statutory default."""
    return StaticRateConfig()


@pytest.fixture
def calculator(rates) -> TaxCalculator:
    return TaxCalculator(rates)


@pytest.fixture
def penalty_calculator(rates, clock) -> PenaltyCalculator:
    return PenaltyCalculator(rates, clock)


@pytest.fixture
def composer(rates, clock) -> LiabilityComposer:
    return LiabilityComposer(rates, clock=clock)


@pytest.fixture
def corporate_fact() -> dict:
    """Keyword arguments for a corporate income tax fact, due today."""
    return {
        "taxable_amount": Decimal("1000000"),
        "tax_kind": "income_tax",
        "taxpayer_category": "large",
        "due_date": TODAY,
        "is_individual": False,
    }
