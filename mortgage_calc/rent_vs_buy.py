"""Rent-vs-buy projection.

Simulates renting and owning side by side, one year at a time, and reports
the first year in which the owner's net position (equity minus everything
spent) beats the renter's (minus everything spent on rent).

Two principal-reduction methods are available:

``"monthly"``
    Runs the amortization engine's per-period loop, twelve periods per
    year. Matches the schedule produced by ``generate_schedule`` exactly.
``"annual_approximation"``
    The simplified yearly rollup used by earlier saved calculations:
    principal paid in a year is the year's payments minus one year of
    interest on the balance at the start of the year. It drifts slightly
    from the monthly schedule, and the last year of the term pays off
    whatever balance the approximation leaves.
"""

from __future__ import annotations

from decimal import Decimal
from itertools import islice
from typing import Iterable, List, Optional

from .data_models import (
    ZERO,
    LoanTerms,
    RentVsBuyInputs,
    RentVsBuyResult,
    YearlyComparisonPoint,
)
from .engine import amortize, compute_monthly_payment
from .errors import InvalidInput
from .utils import round_money

PRINCIPAL_METHODS = ("monthly", "annual_approximation")

HUNDRED = Decimal(100)


class _AnnualApproximation:
    def __init__(self, balance: Decimal, payment: Decimal, annual_rate: Decimal, term_years: int) -> None:
        self.balance = balance
        self.payment = payment
        self.annual_rate = annual_rate
        self.years_left = term_years

    def next_year(self):
        if self.balance <= 0 or self.years_left <= 0:
            return ZERO, ZERO
        self.years_left -= 1
        interest = self.balance * self.annual_rate
        paid = self.payment * 12
        principal_paid = paid - interest
        if self.years_left == 0 or principal_paid >= self.balance:
            # final year settles whatever the approximation left over
            paid = self.balance + interest
            principal_paid = self.balance
        self.balance -= principal_paid
        return paid, self.balance


class _MonthlyRollup:
    def __init__(self, loan: Optional[LoanTerms]) -> None:
        self.periods = amortize(loan) if loan is not None else iter(())
        self.balance = loan.principal if loan is not None else ZERO

    def next_year(self):
        paid = ZERO
        for period in islice(self.periods, 12):
            paid += period.total_payment
            self.balance = period.remaining_balance
        return paid, self.balance


def _loan_payment(inputs: RentVsBuyInputs) -> Decimal:
    if inputs.loan_amount <= 0:
        return ZERO
    return compute_monthly_payment(inputs.loan_amount, inputs.annual_rate_percent, inputs.term_years)


def project_rent_vs_buy(inputs: RentVsBuyInputs, principal_method: str = "monthly") -> List[YearlyComparisonPoint]:
    """Return one comparison point per year of ``inputs.horizon_years``."""
    if principal_method not in PRINCIPAL_METHODS:
        raise InvalidInput(f"principal_method must be one of {', '.join(PRINCIPAL_METHODS)}")

    loan_amount = inputs.loan_amount
    payment = _loan_payment(inputs)

    if principal_method == "monthly":
        loan = LoanTerms(loan_amount, inputs.annual_rate_percent, inputs.term_years) if loan_amount > 0 else None
        mortgage = _MonthlyRollup(loan)
    else:
        mortgage = _AnnualApproximation(loan_amount, payment, inputs.annual_rate_percent / HUNDRED, inputs.term_years)

    yearly_ownership = inputs.annual_property_tax + inputs.annual_insurance + inputs.annual_maintenance
    appreciation = 1 + inputs.appreciation_percent / HUNDRED
    rent_growth = 1 + inputs.rent_growth_percent / HUNDRED

    home_value = inputs.home_price
    current_rent = inputs.monthly_rent
    cumulative_rent = ZERO
    cumulative_buy = inputs.down_payment + inputs.closing_costs

    points: List[YearlyComparisonPoint] = []
    for year in range(1, inputs.horizon_years + 1):
        cumulative_rent += current_rent * 12

        mortgage_paid, remaining_balance = mortgage.next_year()
        cumulative_buy += mortgage_paid + yearly_ownership
        assert remaining_balance >= 0

        home_value *= appreciation
        home_equity = home_value - remaining_balance
        net_buy = home_equity - cumulative_buy
        net_rent = -cumulative_rent

        points.append(
            YearlyComparisonPoint(
                year=year,
                cumulative_rent_cost=round_money(cumulative_rent),
                cumulative_buy_cost=round_money(cumulative_buy),
                home_value=round_money(home_value),
                home_equity=round_money(home_equity),
                net_buy_position=round_money(net_buy),
                net_rent_position=round_money(net_rent),
                is_buy_ahead_of_rent=net_buy > net_rent,
            )
        )
        current_rent *= rent_growth
    return points


def find_break_even_year(points: Iterable[YearlyComparisonPoint]) -> Optional[int]:
    """First year buying is ahead of renting, or ``None`` if it never is."""
    for point in points:
        if point.is_buy_ahead_of_rent:
            return point.year
    return None


def compare_rent_vs_buy(inputs: RentVsBuyInputs, principal_method: str = "monthly") -> RentVsBuyResult:
    """Project ``inputs`` and report the break-even year alongside the points."""
    points = project_rent_vs_buy(inputs, principal_method)
    return RentVsBuyResult(
        loan_amount=round_money(inputs.loan_amount),
        monthly_payment=_loan_payment(inputs),
        points=tuple(points),
        break_even_year=find_break_even_year(points),
    )
