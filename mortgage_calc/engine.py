"""Core amortization engine for the mortgage calculator.

This module implements the financial logic shared by every calculator:
the fixed-rate annuity payment, the payment-by-payment amortization
schedule and the extra-payment simulation. The refinance, rent-vs-buy and
affordability modules all build on the functions defined here, so there is
exactly one implementation of the payment formula and of the per-period
loop.

All money is handled as ``Decimal`` and rounded to cents (half-up) at every
period, so the published rows add up exactly.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_DOWN, Decimal
from typing import Iterator, List, NamedTuple, Optional, Union

from .data_models import (
    ZERO,
    ExtraPaymentResult,
    ExtraPaymentScenario,
    LoanTerms,
    PaymentLineItem,
)
from .errors import InvalidInput
from .utils import Number, add_months, parse_date, round_money, to_decimal


class _Period(NamedTuple):
    number: int
    principal_portion: Decimal
    interest_portion: Decimal
    total_payment: Decimal
    remaining_balance: Decimal
    extra_principal: Decimal


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    """Convert an annual percentage rate into a monthly decimal rate."""
    return annual_rate_percent / Decimal(100) / Decimal(12)


def _annuity_payment(principal: Decimal, rate_per_month: Decimal, term: int) -> Decimal:
    """Return the unrounded annuity (equal installment) monthly payment.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``.
    """
    if rate_per_month == 0:
        return principal / Decimal(term)
    factor = (1 + rate_per_month) ** term
    return principal * (rate_per_month * factor) / (factor - 1)


def _extra_for(scenario: ExtraPaymentScenario, number: int) -> Decimal:
    extra = scenario.monthly_extra
    if number > 1 and (number - 1) % 12 == 0:
        extra += scenario.yearly_extra
    if number == scenario.one_time_payment_month:
        extra += scenario.one_time_extra
    return extra


def _coerce_start_date(start_date: Union[date, str]) -> date:
    if isinstance(start_date, date):
        return start_date
    if isinstance(start_date, str):
        return parse_date(start_date)
    raise InvalidInput(f"start_date must be a date, got {start_date!r}")


def amortize(loan: LoanTerms, scenario: Optional[ExtraPaymentScenario] = None) -> Iterator[_Period]:
    """Yield the periods of ``loan`` one at a time.

    Without a scenario exactly ``loan.term_months`` periods are produced.
    With a scenario, extra principal is added per its rules and iteration
    stops as soon as the balance reaches zero. The last scheduled period
    always takes the whole remaining balance so the loan ends at exactly
    zero regardless of rounding drift in earlier rows.
    """
    rate = monthly_rate(loan.annual_rate_percent)
    term = loan.term_months
    payment = round_money(_annuity_payment(loan.principal, rate, term))
    balance = round_money(loan.principal)

    for number in range(1, term + 1):
        interest = round_money(balance * rate)
        if number == term:
            scheduled = balance
        else:
            scheduled = min(payment - interest, balance)
        assert scheduled >= 0, "installment does not cover interest"

        principal_portion = scheduled
        if scenario is not None:
            principal_portion = min(scheduled + _extra_for(scenario, number), balance)
        balance -= principal_portion
        assert balance >= 0, "amortization drove the balance negative"

        yield _Period(
            number=number,
            principal_portion=principal_portion,
            interest_portion=interest,
            total_payment=principal_portion + interest,
            remaining_balance=balance,
            extra_principal=principal_portion - scheduled,
        )
        if scenario is not None and balance == 0:
            break


def _line_items(periods: Iterator[_Period], start_date: date) -> List[PaymentLineItem]:
    return [
        PaymentLineItem(
            payment_number=p.number,
            payment_date=add_months(start_date, p.number),
            principal_portion=p.principal_portion,
            interest_portion=p.interest_portion,
            total_payment=p.total_payment,
            remaining_balance=p.remaining_balance,
            extra_principal=p.extra_principal,
        )
        for p in periods
    ]


def compute_monthly_payment(principal: Number, annual_rate_percent: Number, term_years: int) -> Decimal:
    """Return the fixed monthly payment (principal and interest), in cents.

    Raises
    ------
    InvalidInput
        If ``principal`` or ``term_years`` is not positive or the rate is
        outside 0-100 %.
    """
    loan = LoanTerms(principal, annual_rate_percent, term_years)
    rate = monthly_rate(loan.annual_rate_percent)
    return round_money(_annuity_payment(loan.principal, rate, loan.term_months))


def generate_schedule(
    principal: Number,
    annual_rate_percent: Number,
    term_years: int,
    start_date: Union[date, str],
) -> List[PaymentLineItem]:
    """Build the full amortization schedule.

    Parameters
    ----------
    principal, annual_rate_percent, term_years:
        The loan, see ``LoanTerms``.
    start_date: date
        Loan origination date. Payment ``k`` is due ``k`` months later.

    Returns
    -------
    List[PaymentLineItem]
        Exactly ``term_years * 12`` rows. The last row's total payment is
        adjusted so that the remaining balance ends at exactly zero.
    """
    loan = LoanTerms(principal, annual_rate_percent, term_years)
    start = _coerce_start_date(start_date)
    return _line_items(amortize(loan), start)


def total_interest(principal: Number, annual_rate_percent: Number, term_years: int) -> Decimal:
    """Return the interest paid over the life of a plain schedule."""
    loan = LoanTerms(principal, annual_rate_percent, term_years)
    return sum((p.interest_portion for p in amortize(loan)), ZERO)


def simulate_extra_payments(
    principal: Number,
    annual_rate_percent: Number,
    term_years: int,
    scenario: ExtraPaymentScenario,
    start_date: Optional[Union[date, str]] = None,
) -> ExtraPaymentResult:
    """Amortize a loan while applying the extra payments of ``scenario``.

    Extra principal never pushes the balance below zero: once the loan is
    paid off the schedule simply ends, so only the extra actually needed is
    charged. ``start_date`` defaults to today.
    """
    if not isinstance(scenario, ExtraPaymentScenario):
        raise InvalidInput("scenario must be an ExtraPaymentScenario")
    loan = LoanTerms(principal, annual_rate_percent, term_years)
    start = _coerce_start_date(start_date) if start_date is not None else date.today()

    schedule = _line_items(amortize(loan, scenario), start)
    paid_interest = sum((row.interest_portion for row in schedule), ZERO)
    baseline_interest = sum((p.interest_portion for p in amortize(loan)), ZERO)

    payments_made = len(schedule)
    assert payments_made <= loan.term_months
    years_off, months_off = divmod(loan.term_months - payments_made, 12)

    return ExtraPaymentResult(
        scenario=scenario,
        total_interest_paid=paid_interest,
        total_payments_made=payments_made,
        term_reduction_years=years_off,
        term_reduction_months=months_off,
        interest_savings=baseline_interest - paid_interest,
        schedule=tuple(schedule),
    )


def principal_from_payment(payment: Number, annual_rate_percent: Number, term_years: int) -> Decimal:
    """Reverse the annuity formula to find the loan a payment supports.

    The result is rounded down to cents so the loan never needs more than
    ``payment`` per month.
    """
    target = to_decimal(payment, "payment")
    rate_percent = to_decimal(annual_rate_percent, "annual_rate_percent")
    if target < 0:
        raise InvalidInput("payment must not be negative")
    if rate_percent < 0 or rate_percent > 100:
        raise InvalidInput("annual_rate_percent must be between 0 and 100 percent")
    if int(term_years) < 1:
        raise InvalidInput("term_years must be at least 1")
    term = int(term_years) * 12
    rate = monthly_rate(rate_percent)
    if rate == 0:
        return round_money(target * term, ROUND_DOWN)
    factor = (1 + rate) ** term
    return round_money(target * (factor - 1) / (rate * factor), ROUND_DOWN)
