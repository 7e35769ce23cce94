"""Data models for the mortgage calculator.

This module defines dataclasses for the inputs and results of every
calculator: plain amortization, extra-payment scenarios, refinancing,
rent-vs-buy and pre-approval. All records are frozen so a result can be
cached, compared by value or handed to another layer without being
mutated behind the engine's back.

Input records coerce their numeric fields to ``Decimal`` on construction
and reject values outside their documented range with ``InvalidInput``.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple

from .errors import InvalidInput
from .utils import to_decimal

ZERO = Decimal("0")


def _coerce_decimals(record, *names: str) -> None:
    for name in names:
        object.__setattr__(record, name, to_decimal(getattr(record, name), name))


def _coerce_int(record, name: str) -> int:
    value = getattr(record, name)
    if isinstance(value, bool):
        raise InvalidInput(f"{name} must be a whole number, got {value!r}")
    try:
        as_decimal = to_decimal(value, name)
    except InvalidInput:
        raise InvalidInput(f"{name} must be a whole number, got {value!r}") from None
    if as_decimal != as_decimal.to_integral_value():
        raise InvalidInput(f"{name} must be a whole number, got {value!r}")
    object.__setattr__(record, name, int(as_decimal))
    return int(as_decimal)


def _require_non_negative(record, *names: str) -> None:
    for name in names:
        if getattr(record, name) < 0:
            raise InvalidInput(f"{name} must not be negative")


def _require_rate(value: Decimal, name: str) -> None:
    if value < 0 or value > 100:
        raise InvalidInput(f"{name} must be between 0 and 100 percent")


@dataclass(frozen=True)
class LoanTerms:
    """A fixed-rate loan.

    Attributes
    ----------
    principal: Decimal
        Amount borrowed. Must be positive.
    annual_rate_percent: Decimal
        Nominal annual rate in percent (``6.5`` means 6.5 %).
    term_years: int
        Amortization period in whole years.
    """

    principal: Decimal
    annual_rate_percent: Decimal
    term_years: int

    def __post_init__(self) -> None:
        _coerce_decimals(self, "principal", "annual_rate_percent")
        _coerce_int(self, "term_years")
        if self.principal <= 0:
            raise InvalidInput("principal must be positive")
        _require_rate(self.annual_rate_percent, "annual_rate_percent")
        if self.term_years < 1:
            raise InvalidInput("term_years must be at least 1")

    @property
    def term_months(self) -> int:
        return self.term_years * 12


@dataclass(frozen=True)
class PaymentLineItem:
    """One row of an amortization schedule.

    ``principal_portion + interest_portion`` always equals
    ``total_payment``; ``extra_principal`` is the share of
    ``principal_portion`` that came from an extra payment.
    """

    payment_number: int
    payment_date: date
    principal_portion: Decimal
    interest_portion: Decimal
    total_payment: Decimal
    remaining_balance: Decimal
    extra_principal: Decimal = ZERO


@dataclass(frozen=True)
class ExtraPaymentScenario:
    """Extra principal a borrower plans to pay on top of the installment.

    Attributes
    ----------
    monthly_extra: Decimal
        Added to every payment.
    yearly_extra: Decimal
        Added once per loan anniversary (payments 13, 25, 37, ...).
    one_time_extra: Decimal
        Added once, with payment number ``one_time_payment_month``.
    one_time_payment_month: int
        Payment number receiving the one-time extra (1-based).
    name: str
        Free-form label shown next to the result.
    """

    monthly_extra: Decimal = ZERO
    yearly_extra: Decimal = ZERO
    one_time_extra: Decimal = ZERO
    one_time_payment_month: int = 1
    name: str = ""

    def __post_init__(self) -> None:
        _coerce_decimals(self, "monthly_extra", "yearly_extra", "one_time_extra")
        _coerce_int(self, "one_time_payment_month")
        _require_non_negative(self, "monthly_extra", "yearly_extra", "one_time_extra")
        if self.one_time_payment_month < 1:
            raise InvalidInput("one_time_payment_month must be at least 1")

    @property
    def has_extra(self) -> bool:
        return any((self.monthly_extra, self.yearly_extra, self.one_time_extra))


@dataclass(frozen=True)
class ExtraPaymentResult:
    scenario: ExtraPaymentScenario
    total_interest_paid: Decimal
    total_payments_made: int
    term_reduction_years: int
    term_reduction_months: int
    interest_savings: Decimal
    schedule: Tuple[PaymentLineItem, ...]


@dataclass(frozen=True)
class RefinanceInputs:
    """An existing loan and the refinance offer replacing it.

    Closing costs and cash out are rolled into the new principal, i.e. the
    borrower brings no cash to closing.
    """

    current_balance: Decimal
    current_rate_percent: Decimal
    current_term_remaining_years: int
    new_rate_percent: Decimal
    new_term_years: int
    closing_costs: Decimal = ZERO
    cash_out: Decimal = ZERO

    def __post_init__(self) -> None:
        _coerce_decimals(
            self,
            "current_balance",
            "current_rate_percent",
            "new_rate_percent",
            "closing_costs",
            "cash_out",
        )
        _coerce_int(self, "current_term_remaining_years")
        _coerce_int(self, "new_term_years")
        if self.current_balance <= 0:
            raise InvalidInput("current_balance must be positive")
        _require_rate(self.current_rate_percent, "current_rate_percent")
        _require_rate(self.new_rate_percent, "new_rate_percent")
        if self.current_term_remaining_years < 1 or self.new_term_years < 1:
            raise InvalidInput("loan terms must be at least 1 year")
        _require_non_negative(self, "closing_costs", "cash_out")


@dataclass(frozen=True)
class RefinanceResult:
    """Outcome of a refinance comparison.

    ``break_even_months`` is ``None`` when the new loan does not lower the
    monthly payment: the refinance never pays for itself. That is a valid
    result, not a failure. ``recommended`` is set when the payment drops and
    the costs are recouped within the configured break-even horizon.
    """

    current_monthly_payment: Decimal
    new_monthly_payment: Decimal
    new_loan_amount: Decimal
    monthly_savings: Decimal
    break_even_months: Optional[Decimal]
    current_total_interest: Decimal
    new_total_interest: Decimal
    total_interest_savings: Decimal
    recommended: bool

    @property
    def has_break_even(self) -> bool:
        return self.break_even_months is not None


@dataclass(frozen=True)
class RentVsBuyInputs:
    """Parameters of a rent-vs-buy projection.

    Growth and appreciation rates are annual percentages. Ownership costs
    (tax, insurance, maintenance) are annual amounts.
    """

    home_price: Decimal
    down_payment: Decimal
    annual_rate_percent: Decimal
    term_years: int
    monthly_rent: Decimal
    rent_growth_percent: Decimal = ZERO
    appreciation_percent: Decimal = ZERO
    annual_property_tax: Decimal = ZERO
    annual_insurance: Decimal = ZERO
    annual_maintenance: Decimal = ZERO
    closing_costs: Decimal = ZERO
    horizon_years: int = 10

    def __post_init__(self) -> None:
        _coerce_decimals(
            self,
            "home_price",
            "down_payment",
            "annual_rate_percent",
            "monthly_rent",
            "rent_growth_percent",
            "appreciation_percent",
            "annual_property_tax",
            "annual_insurance",
            "annual_maintenance",
            "closing_costs",
        )
        _coerce_int(self, "term_years")
        _coerce_int(self, "horizon_years")
        if self.home_price <= 0:
            raise InvalidInput("home_price must be positive")
        _require_non_negative(
            self,
            "down_payment",
            "monthly_rent",
            "annual_property_tax",
            "annual_insurance",
            "annual_maintenance",
            "closing_costs",
        )
        if self.down_payment > self.home_price:
            raise InvalidInput("down_payment cannot exceed home_price")
        _require_rate(self.annual_rate_percent, "annual_rate_percent")
        if self.rent_growth_percent <= -100 or self.appreciation_percent <= -100:
            raise InvalidInput("growth rates must be greater than -100 percent")
        if self.term_years < 1:
            raise InvalidInput("term_years must be at least 1")
        if self.horizon_years < 1:
            raise InvalidInput("horizon_years must be at least 1")

    @property
    def loan_amount(self) -> Decimal:
        return self.home_price - self.down_payment


@dataclass(frozen=True)
class YearlyComparisonPoint:
    year: int
    cumulative_rent_cost: Decimal
    cumulative_buy_cost: Decimal
    home_value: Decimal
    home_equity: Decimal
    net_buy_position: Decimal
    net_rent_position: Decimal
    is_buy_ahead_of_rent: bool


@dataclass(frozen=True)
class RentVsBuyResult:
    """Year-by-year comparison plus the first year buying pulls ahead.

    ``break_even_year`` is ``None`` when renting remains ahead for the whole
    horizon.
    """

    loan_amount: Decimal
    monthly_payment: Decimal
    points: Tuple[YearlyComparisonPoint, ...]
    break_even_year: Optional[int]

    @property
    def renting_remains_ahead(self) -> bool:
        return self.break_even_year is None


@dataclass(frozen=True)
class AffordabilityInputs:
    annual_income: Decimal
    monthly_debts: Decimal
    loan_amount: Decimal
    annual_rate_percent: Decimal
    term_years: int
    down_payment: Decimal = ZERO

    def __post_init__(self) -> None:
        _coerce_decimals(
            self,
            "annual_income",
            "monthly_debts",
            "loan_amount",
            "annual_rate_percent",
            "down_payment",
        )
        _coerce_int(self, "term_years")
        if self.annual_income <= 0:
            raise InvalidInput("annual_income must be positive")
        if self.loan_amount <= 0:
            raise InvalidInput("loan_amount must be positive")
        _require_non_negative(self, "monthly_debts", "down_payment")
        _require_rate(self.annual_rate_percent, "annual_rate_percent")
        if self.term_years < 1:
            raise InvalidInput("term_years must be at least 1")


@dataclass(frozen=True)
class AffordabilityResult:
    approved: bool
    max_qualifying_loan_amount: Decimal
    debt_to_income_ratio_percent: Decimal
    front_end_ratio_percent: Decimal
    monthly_payment: Decimal
    required_annual_income: Decimal
    loan_to_value_percent: Decimal
    explanation: str


@dataclass(frozen=True)
class MortgageCostInputs:
    """A loan plus the recurring monthly housing costs paid alongside it."""

    loan_amount: Decimal
    annual_rate_percent: Decimal
    term_years: int
    monthly_property_tax: Decimal = ZERO
    monthly_home_insurance: Decimal = ZERO
    monthly_pmi: Decimal = ZERO
    monthly_hoa: Decimal = ZERO
    start_date: Optional[date] = None

    def __post_init__(self) -> None:
        _coerce_decimals(
            self,
            "loan_amount",
            "annual_rate_percent",
            "monthly_property_tax",
            "monthly_home_insurance",
            "monthly_pmi",
            "monthly_hoa",
        )
        _coerce_int(self, "term_years")
        if self.loan_amount <= 0:
            raise InvalidInput("loan_amount must be positive")
        _require_rate(self.annual_rate_percent, "annual_rate_percent")
        if self.term_years < 1:
            raise InvalidInput("term_years must be at least 1")
        _require_non_negative(
            self,
            "monthly_property_tax",
            "monthly_home_insurance",
            "monthly_pmi",
            "monthly_hoa",
        )


@dataclass(frozen=True)
class PaymentBreakdown:
    """Monthly housing payment split into its components.

    ``total_payment`` and ``total_interest`` cover principal and interest
    only; escrowed costs are reported per month.
    """

    principal_and_interest: Decimal
    monthly_property_tax: Decimal
    monthly_home_insurance: Decimal
    monthly_pmi: Decimal
    monthly_hoa: Decimal
    monthly_payment: Decimal
    total_payment: Decimal
    total_interest: Decimal
    schedule: Tuple[PaymentLineItem, ...] = field(default_factory=tuple)
