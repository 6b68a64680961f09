"""
Rate Configuration Module

Supplies the configurable percentage rates the engine consults. Rates are
stored as percent figures (15 means 15%) and every lookup degrades to the
statutory default instead of failing.
"""

import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Mapping, Protocol

import yaml

from .brackets import SLE_2024_BRACKETS, BracketTable
from .models import InvalidTaxInput

logger = logging.getLogger(__name__)

GST_RATE = "Tax.GST.RatePercent"
ANNUAL_INTEREST_RATE = "Tax.AnnualInterestRatePercent"
MINIMUM_TAX_RATE = "Tax.Income.MinimumTaxRatePercent"
MAT_RATE = "Tax.Income.MATRatePercent"

DEFAULT_RATES: dict[str, Decimal] = {
    GST_RATE: Decimal("15"),
    ANNUAL_INTEREST_RATE: Decimal("15"),
    MINIMUM_TAX_RATE: Decimal("0.5"),
    MAT_RATE: Decimal("3"),
}


class RateProvider(Protocol):
    """Read-only source of percentage rates."""

    def get_percent(self, key: str, default: Decimal) -> Decimal:
        """Return the configured percent for `key`, or `default`. Never raises."""
        ...


def parse_percent(value: Any) -> Decimal | None:
    """Parse a configured percent; None when unusable or negative."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip().rstrip("%"))
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite() or parsed < 0:
        return None
    return parsed


class StaticRateConfig:
    """Rate provider backed by an in-memory mapping."""

    def __init__(self, rates: Mapping[str, Any] | None = None):
        self._rates = dict(rates or {})

    def get_percent(self, key: str, default: Decimal) -> Decimal:
        parsed = parse_percent(self._rates.get(key))
        return default if parsed is None else parsed

    def set_percent(self, key: str, value: Any) -> None:
        """Change a rate; takes effect on the next calculation."""
        self._rates[key] = value


class YamlRateConfig:
    """Rate provider loading `tax_rates.yaml` from the config directory."""

    def __init__(self, config_dir: Path | str | None = None):
        """Initialize the provider.

        Args:
            config_dir: Path to configuration directory
        """
        self.config_dir = Path(config_dir) if config_dir else Path(__file__).parent.parent.parent / "config"
        self.reload()

    def reload(self) -> None:
        """(Re)load rate configuration."""
        config_file = self.config_dir / "tax_rates.yaml"
        self.config: dict = {}

        if config_file.exists():
            try:
                with open(config_file, encoding="utf-8") as f:
                    loaded = yaml.safe_load(f)
            except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
                logger.warning(f"Could not read {config_file}, using statutory defaults: {e}")
                loaded = None
            if isinstance(loaded, dict):
                self.config = loaded
            elif loaded is not None:
                logger.warning(f"Ignoring {config_file}: expected a mapping at top level")
        else:
            logger.info(f"No rate configuration at {config_file}, using statutory defaults")

        rates = self.config.get("rates") or {}
        self._rates = rates if isinstance(rates, dict) else {}

    def get_percent(self, key: str, default: Decimal) -> Decimal:
        if key not in self._rates:
            return default

        parsed = parse_percent(self._rates[key])
        if parsed is None:
            logger.warning(f"Invalid rate {self._rates[key]!r} for {key}, using default {default}")
            return default
        return parsed

    def bracket_table(self) -> BracketTable:
        """Income tax bands from config, or the 2024 statutory table.

        Returns:
            BracketTable
        """
        income_tax = self.config.get("income_tax")
        rows = income_tax.get("brackets") if isinstance(income_tax, dict) else None
        if not rows:
            return SLE_2024_BRACKETS
        if not isinstance(rows, list):
            logger.warning(f"Income tax brackets must be a list, got {rows!r}; using 2024 defaults")
            return SLE_2024_BRACKETS

        try:
            return BracketTable.from_config(rows)
        except (InvalidTaxInput, AttributeError, TypeError, InvalidOperation) as e:
            logger.warning(f"Invalid income tax brackets in config, using 2024 defaults: {e}")
            return SLE_2024_BRACKETS


def read_percent(provider: RateProvider | None, key: str) -> Decimal:
    """Look up a percent through a provider, shielding callers from provider errors."""
    default = DEFAULT_RATES[key]
    if provider is None:
        return default
    try:
        value = provider.get_percent(key, default)
    except Exception:
        # provider failures resolve to the statutory default
        return default
    parsed = parse_percent(value)
    return default if parsed is None else parsed
