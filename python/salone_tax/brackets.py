"""
Income Tax Bracket Tables

Progressive bands for individual income tax and PAYE, and the walk that
turns an income into tax.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, NamedTuple

from .models import InvalidTaxInput, ZERO, non_negative, round_money, to_decimal


class Bracket(NamedTuple):
    """A single band: income up to `threshold` (inclusive) taxed at `rate`."""

    threshold: Decimal | None  # None = no cap
    rate: Decimal


@dataclass(frozen=True)
class BandSlice:
    """The part of an income that fell into one band."""

    lower: Decimal
    upper: Decimal | None
    rate: Decimal
    taxable_amount: Decimal
    tax: Decimal

    def to_dict(self) -> dict:
        return {
            "lower": str(self.lower),
            "upper": str(self.upper) if self.upper is not None else None,
            "rate": str(self.rate),
            "taxable_amount": str(self.taxable_amount),
            "tax": str(self.tax),
        }


class BracketTable:
    """Immutable, validated ordered table of contiguous bands starting at 0."""

    def __init__(self, brackets: Iterable[Bracket]):
        self._brackets = tuple(
            Bracket(
                None if b.threshold is None else to_decimal(b.threshold, "bracket threshold"),
                to_decimal(b.rate, "bracket rate"),
            )
            for b in brackets
        )
        self._validate()

    def _validate(self) -> None:
        if not self._brackets:
            raise InvalidTaxInput("Bracket table must contain at least one band")

        previous = ZERO
        for index, bracket in enumerate(self._brackets):
            is_last = index == len(self._brackets) - 1
            if not ZERO <= bracket.rate <= 1:
                raise InvalidTaxInput(f"Bracket rate must be a fraction in [0, 1], got {bracket.rate}")
            if bracket.threshold is None:
                if not is_last:
                    raise InvalidTaxInput("Only the last bracket may be unbounded")
                continue
            if is_last:
                raise InvalidTaxInput("The last bracket must be unbounded")
            if bracket.threshold <= previous:
                raise InvalidTaxInput(
                    f"Bracket thresholds must be strictly increasing: {bracket.threshold} after {previous}"
                )
            previous = bracket.threshold

    @classmethod
    def from_config(cls, rows: list[dict[str, Any]]) -> "BracketTable":
        """Build a table from config rows of `{threshold, rate}`.

        Args:
            rows: Bands in ascending order; the last one has `threshold: null`

        Returns:
            Validated BracketTable
        """
        brackets = []
        for row in rows:
            threshold = row.get("threshold")
            brackets.append(Bracket(
                None if threshold is None else Decimal(str(threshold)),
                Decimal(str(row.get("rate", 0))),
            ))
        return cls(brackets)

    @property
    def brackets(self) -> tuple[Bracket, ...]:
        return self._brackets

    def __iter__(self):
        return iter(self._brackets)

    def __len__(self) -> int:
        return len(self._brackets)

    def __repr__(self) -> str:
        return f"BracketTable({list(self._brackets)!r})"

    def breakdown(self, income: Any) -> list[BandSlice]:
        """Split an income across the bands it reaches.

        Args:
            income: Taxable income (must be >= 0)

        Returns:
            One BandSlice per band with a non-zero taxable portion
        """
        remaining = non_negative(income, "taxable_income")
        slices: list[BandSlice] = []
        lower = ZERO

        for bracket in self._brackets:
            if remaining <= 0:
                break

            if bracket.threshold is None:
                portion = remaining
            else:
                portion = min(remaining, bracket.threshold - lower)

            slices.append(BandSlice(
                lower=lower,
                upper=bracket.threshold,
                rate=bracket.rate,
                taxable_amount=portion,
                tax=portion * bracket.rate,
            ))
            remaining -= portion
            if bracket.threshold is None:
                break
            lower = bracket.threshold

        return slices

    def tax(self, income: Any) -> Decimal:
        """Progressive tax on an income, rounded to cents once at the end."""
        return round_money(sum((s.tax for s in self.breakdown(income)), ZERO))


# Finance Act 2024 individual bands (SLE)
SLE_2024_BRACKETS = BracketTable((
    Bracket(Decimal("600000"), Decimal("0.00")),
    Bracket(Decimal("1200000"), Decimal("0.15")),
    Bracket(Decimal("1800000"), Decimal("0.20")),
    Bracket(Decimal("2400000"), Decimal("0.25")),
    Bracket(None, Decimal("0.30")),
))
