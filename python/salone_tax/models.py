"""
Tax Engine Models

Value objects shared by the tax, penalty and liability calculators.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0")


class InvalidTaxInput(ValueError):
    """Raised when a calculation is asked for with unusable input."""


class TaxKind(Enum):
    """Tax regimes handled by the engine."""
    INCOME_TAX = "income_tax"
    GST = "gst"
    WITHHOLDING_TAX = "withholding_tax"
    PAYROLL_TAX = "payroll_tax"  # PAYE


class TaxpayerCategory(Enum):
    """Taxpayer size classes."""
    INDIVIDUAL = "individual"
    MICRO = "micro"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class GSTCategory(Enum):
    """GST treatment of a supply."""
    STANDARD = "standard"
    ZERO_RATED = "zero-rated"
    EXEMPT = "exempt"

    @classmethod
    def parse(cls, value: "GSTCategory | str | None") -> "GSTCategory":
        """Parse a category, treating anything unrecognised as standard."""
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower().replace("_", "-")
        for member in cls:
            if member.value == normalized:
                return member
        return cls.STANDARD


class WithholdingCategory(Enum):
    """Payment categories subject to withholding tax."""
    DIVIDENDS = "dividends"
    MANAGEMENT_FEES = "management_fees"
    PROFESSIONAL_FEES = "professional_fees"
    LOTTERY_WINNINGS = "lottery_winnings"
    ROYALTIES = "royalties"
    INTEREST = "interest"
    RENT = "rent"
    COMMISSIONS = "commissions"


class PenaltyKind(Enum):
    """Penalty regimes."""
    LATE_FILING = "late_filing"
    LATE_PAYMENT = "late_payment"
    UNDER_DECLARATION = "under_declaration"
    NON_FILING = "non_filing"


def to_decimal(value: Any, name: str = "amount") -> Decimal:
    """Convert a number-like value to Decimal without going through float math.

    Args:
        value: int, str, float or Decimal
        name: Field name used in the error message

    Returns:
        Decimal value

    Raises:
        InvalidTaxInput: If the value is missing or not a finite number
    """
    if value is None or isinstance(value, bool):
        raise InvalidTaxInput(f"{name} is required")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            raise InvalidTaxInput(f"{name} is not a valid number: {value!r}")
    if not result.is_finite():
        raise InvalidTaxInput(f"{name} must be a finite number")
    return result


def non_negative(value: Any, name: str = "amount") -> Decimal:
    """Convert to Decimal and reject negative amounts."""
    result = to_decimal(value, name)
    if result < 0:
        raise InvalidTaxInput(f"{name} must be non-negative, got {result}")
    return result


def round_money(amount: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def as_date(value: Any, name: str = "date") -> date:
    """Normalize a date or datetime to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise InvalidTaxInput(f"{name} must be a date, got {value!r}")


def _coerce_enum(enum_cls: type[Enum], value: Any, name: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        valid = ", ".join(m.value for m in enum_cls)
        raise InvalidTaxInput(f"Unknown {name}: {value!r}. Must be one of: {valid}")


@dataclass(frozen=True)
class TaxableFact:
    """A taxpayer's facts for one obligation.

    `due_date` is compared against the evaluation clock; there is no
    actual filing or payment date at this level, so an obligation past its
    due date is always treated as outstanding.
    """

    taxable_amount: Decimal
    tax_kind: TaxKind
    taxpayer_category: TaxpayerCategory
    due_date: date
    is_individual: bool = False
    annual_turnover: Decimal = ZERO
    gst_category: GSTCategory = GSTCategory.STANDARD
    withholding_category: WithholdingCategory | None = None
    is_resident: bool = True
    allowances: Decimal = ZERO

    def __post_init__(self) -> None:
        # frozen: normalized values are written through object.__setattr__
        set_ = object.__setattr__
        set_(self, "taxable_amount", non_negative(self.taxable_amount, "taxable_amount"))
        set_(self, "annual_turnover", non_negative(self.annual_turnover or ZERO, "annual_turnover"))
        set_(self, "allowances", non_negative(self.allowances or ZERO, "allowances"))
        set_(self, "tax_kind", _coerce_enum(TaxKind, self.tax_kind, "tax kind"))
        set_(self, "taxpayer_category", _coerce_enum(
            TaxpayerCategory, self.taxpayer_category, "taxpayer category"
        ))
        set_(self, "gst_category", GSTCategory.parse(self.gst_category))
        if self.withholding_category is not None:
            set_(self, "withholding_category", _coerce_enum(
                WithholdingCategory, self.withholding_category, "withholding category"
            ))
        if self.due_date is None:
            raise InvalidTaxInput("due_date is required")
        set_(self, "due_date", as_date(self.due_date, "due_date"))


@dataclass
class TaxCalculationResult:
    """Liability for one obligation."""

    tax_kind: TaxKind
    base_tax: Decimal = ZERO
    minimum_tax: Decimal = ZERO
    minimum_alternate_tax: Decimal = ZERO
    penalty: Decimal = ZERO
    interest: Decimal = ZERO
    total_tax_liability: Decimal = ZERO
    days_late: int = 0
    calculation_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    notes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "tax_kind": self.tax_kind.value,
            "base_tax": str(round_money(self.base_tax)),
            "minimum_tax": str(round_money(self.minimum_tax)),
            "minimum_alternate_tax": str(round_money(self.minimum_alternate_tax)),
            "penalty": str(round_money(self.penalty)),
            "interest": str(round_money(self.interest)),
            "total_tax_liability": str(round_money(self.total_tax_liability)),
            "days_late": self.days_late,
            "calculation_date": self.calculation_date.isoformat(),
            "notes": list(self.notes),
        }


@dataclass
class PenaltyAssessment:
    """A single penalty found applicable to an obligation."""

    kind: PenaltyKind
    basis: Decimal
    days_late: int
    amount: Decimal
    rate: Decimal | None = None
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "basis": str(self.basis),
            "days_late": self.days_late,
            "rate": str(self.rate) if self.rate is not None else None,
            "amount": str(self.amount),
            "description": self.description,
        }
