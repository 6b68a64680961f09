"""
Penalty Calculator Module

Late filing, late payment, under-declaration and non-filing penalties,
plus simple interest on overdue tax.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable

from . import rates as rate_keys
from .models import (
    InvalidTaxInput,
    PenaltyAssessment,
    PenaltyKind,
    ZERO,
    as_date,
    non_negative,
    round_money,
    to_decimal,
)
from .rates import RateProvider, StaticRateConfig, read_percent

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = Decimal("365")

LATE_FILING_RATE = Decimal("0.05")
LATE_FILING_MINIMUM = Decimal("50000")

# (max days late, rate); the matching tier replaces the lower ones
LATE_PAYMENT_TIERS: tuple[tuple[int | None, Decimal], ...] = (
    (30, Decimal("0.05")),
    (60, Decimal("0.10")),
    (None, Decimal("0.15")),
)

UNDER_DECLARATION_RATE = Decimal("0.20")

NON_FILING_RATE = Decimal("0.20")
NON_FILING_MINIMUM = Decimal("2000")
NON_FILING_MAXIMUM = Decimal("100000")
NON_FILING_GRACE_DAYS = 30


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PenaltyCalculator:
    """Computes penalties and interest on overdue obligations."""

    def __init__(
        self,
        rates: RateProvider | None = None,
        clock: Callable[[], datetime] | None = None
    ):
        """Initialize the calculator.

        Args:
            rates: Provider of configurable percentages
            clock: Returns the current time; evaluation date for unfiled/unpaid obligations
        """
        self.rates = rates if rates is not None else StaticRateConfig()
        self.clock = clock or utc_now

    @property
    def annual_interest_rate(self) -> Decimal:
        return read_percent(self.rates, rate_keys.ANNUAL_INTEREST_RATE) / Decimal("100")

    def today(self) -> date:
        return as_date(self.clock(), "clock")

    # ==================== Lateness ====================

    def days_late(
        self,
        due_date: date | datetime,
        actual_date: date | datetime | None = None
    ) -> int:
        """Whole days between the due date and compliance, floored at zero.

        Args:
            due_date: Filing or payment due date
            actual_date: Date the obligation was met; today when not yet met

        Returns:
            Days late (0 when on time or not yet due)
        """
        if due_date is None:
            raise InvalidTaxInput("due_date is required")
        due = as_date(due_date, "due_date")
        evaluated = as_date(actual_date, "actual_date") if actual_date is not None else self.today()
        return max(0, (evaluated - due).days)

    # ==================== Penalties ====================

    def late_filing_penalty(self, tax_amount: Any) -> Decimal:
        """5% of the tax due, never less than the fixed floor."""
        amount = non_negative(tax_amount, "tax_amount")
        return round_money(max(amount * LATE_FILING_RATE, LATE_FILING_MINIMUM))

    @staticmethod
    def late_payment_rate(days_late: int) -> Decimal:
        """Rate of the tier a lateness falls into."""
        for max_days, rate in LATE_PAYMENT_TIERS:
            if max_days is None or days_late <= max_days:
                return rate
        return LATE_PAYMENT_TIERS[-1][1]

    def late_payment_penalty(self, unpaid_amount: Any, days_late: int) -> Decimal:
        """Tiered penalty applied to the whole unpaid amount.

        Args:
            unpaid_amount: Tax outstanding
            days_late: Days past the payment due date

        Returns:
            Penalty rounded to cents
        """
        amount = non_negative(unpaid_amount, "unpaid_amount")
        return round_money(amount * self.late_payment_rate(_days(days_late)))

    def under_declaration_penalty(self, additional_tax: Any) -> Decimal:
        amount = non_negative(additional_tax, "additional_tax")
        return round_money(amount * UNDER_DECLARATION_RATE)

    def non_filing_penalty(self, estimated_liability: Any) -> Decimal:
        """20% of the estimated liability, clamped to the statutory range."""
        amount = non_negative(estimated_liability, "estimated_liability")
        penalty = amount * NON_FILING_RATE
        penalty = min(max(penalty, NON_FILING_MINIMUM), NON_FILING_MAXIMUM)
        return round_money(penalty)

    def penalty(self, amount: Any, days_late: int, kind: PenaltyKind | str) -> Decimal:
        """Compute a penalty of the given kind.

        Args:
            amount: Penalty basis (tax due, unpaid tax, additional tax or estimated liability)
            days_late: Days late; only the late payment tiers use it
            kind: PenaltyKind

        Returns:
            Penalty rounded to cents
        """
        if not isinstance(kind, PenaltyKind):
            try:
                kind = PenaltyKind(kind)
            except ValueError:
                raise InvalidTaxInput(f"Unknown penalty kind: {kind!r}")

        if kind == PenaltyKind.LATE_FILING:
            return self.late_filing_penalty(amount)
        if kind == PenaltyKind.LATE_PAYMENT:
            return self.late_payment_penalty(amount, days_late)
        if kind == PenaltyKind.UNDER_DECLARATION:
            return self.under_declaration_penalty(amount)
        return self.non_filing_penalty(amount)

    # ==================== Interest ====================

    def simple_interest(
        self,
        principal: Any,
        days_late: int,
        annual_rate: Any = None
    ) -> Decimal:
        """Simple daily interest on an overdue amount.

        Args:
            principal: Amount outstanding
            days_late: Days overdue
            annual_rate: Annual rate as a fraction; the configured rate when omitted

        Returns:
            Interest rounded to cents (0 when not late)
        """
        amount = non_negative(principal, "principal")
        days = _days(days_late)
        if days <= 0:
            return round_money(ZERO)

        rate = self.annual_interest_rate if annual_rate is None else non_negative(annual_rate, "annual_rate")
        return round_money(amount * rate * days / DAYS_PER_YEAR)

    # ==================== Assessment ====================

    def assess(
        self,
        tax_liability: Any,
        unpaid_amount: Any,
        filing_due_date: date | datetime,
        payment_due_date: date | datetime,
        filed_date: date | datetime | None = None,
        paid_date: date | datetime | None = None,
        as_of: date | datetime | None = None
    ) -> list[PenaltyAssessment]:
        """Collect every penalty applicable to an obligation.

        Args:
            tax_liability: Tax assessed (or estimated when no return was filed)
            unpaid_amount: Part of the liability still unpaid
            filing_due_date: Return due date
            payment_due_date: Payment due date
            filed_date: Date the return was filed, None if not filed
            paid_date: Date payment was made, None if unpaid
            as_of: Evaluation date for unmet obligations; the clock's today when omitted

        Returns:
            List of PenaltyAssessment, empty when fully compliant
        """
        liability = non_negative(tax_liability, "tax_liability")
        unpaid = non_negative(unpaid_amount, "unpaid_amount")
        assessments: list[PenaltyAssessment] = []

        filing_days = self.days_late(filing_due_date, filed_date or as_of)
        if filing_days > 0:
            assessments.append(PenaltyAssessment(
                kind=PenaltyKind.LATE_FILING,
                basis=liability,
                days_late=filing_days,
                rate=LATE_FILING_RATE,
                amount=self.late_filing_penalty(liability),
                description=f"Late filing - {filing_days} days overdue",
            ))

        if unpaid > 0:
            payment_days = self.days_late(payment_due_date, paid_date or as_of)
            if payment_days > 0:
                assessments.append(PenaltyAssessment(
                    kind=PenaltyKind.LATE_PAYMENT,
                    basis=unpaid,
                    days_late=payment_days,
                    rate=self.late_payment_rate(payment_days),
                    amount=self.late_payment_penalty(unpaid, payment_days),
                    description=f"Late payment - {payment_days} days overdue",
                ))

        if filed_date is None:
            unfiled_days = self.days_late(filing_due_date, as_of)
            if unfiled_days > NON_FILING_GRACE_DAYS:
                assessments.append(PenaltyAssessment(
                    kind=PenaltyKind.NON_FILING,
                    basis=liability,
                    days_late=unfiled_days,
                    rate=NON_FILING_RATE,
                    amount=self.non_filing_penalty(liability),
                    description=f"Non-filing - {unfiled_days} days overdue",
                ))

        logger.debug(
            f"Assessed {len(assessments)} penalties on liability {liability} "
            f"(unpaid {unpaid}, filing {filing_days} days late)"
        )
        return assessments


def _days(days_late: Any) -> int:
    value = to_decimal(days_late, "days_late")
    if value != value.to_integral_value():
        raise InvalidTaxInput(f"days_late must be a whole number of days, got {days_late!r}")
    return int(value)
