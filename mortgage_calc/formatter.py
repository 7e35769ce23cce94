"""Output helpers for the mortgage calculator.

This module renders schedules and calculator results in a tabular text
format for the command line. We rely only on built-in printing and string
formatting.
"""

from __future__ import annotations

from typing import Iterable

from .data_models import (
    AffordabilityResult,
    ExtraPaymentResult,
    PaymentBreakdown,
    PaymentLineItem,
    RefinanceResult,
    RentVsBuyResult,
)
from .refinance import break_even_years

RULE = "-" * 72


def print_schedule(schedule: Iterable[PaymentLineItem], show_extra: bool = False) -> None:
    """Print the amortization schedule as a simple table.

    Parameters
    ----------
    schedule: Iterable[PaymentLineItem]
        The schedule rows to print.
    show_extra: bool
        Whether to include the ``Extra`` column. Only extra-payment
        simulations have non-zero values there.
    """
    headers = ["Number", "Date", "Principal", "Interest", "Payment", "Balance"]
    if show_extra:
        headers.append("Extra")
    print("\t".join(headers))
    for row in schedule:
        cells = [
            str(row.payment_number),
            row.payment_date.isoformat(),
            f"{row.principal_portion:.2f}",
            f"{row.interest_portion:.2f}",
            f"{row.total_payment:.2f}",
            f"{row.remaining_balance:.2f}",
        ]
        if show_extra:
            cells.append(f"{row.extra_principal:.2f}")
        print("\t".join(cells))


def print_breakdown(result: PaymentBreakdown) -> None:
    print("Monthly payment")
    print(RULE)
    print(f"Principal & interest : {result.principal_and_interest:.2f}")
    if result.monthly_property_tax:
        print(f"Property tax         : {result.monthly_property_tax:.2f}")
    if result.monthly_home_insurance:
        print(f"Home insurance       : {result.monthly_home_insurance:.2f}")
    if result.monthly_pmi:
        print(f"PMI                  : {result.monthly_pmi:.2f}")
    if result.monthly_hoa:
        print(f"HOA                  : {result.monthly_hoa:.2f}")
    print(f"Total monthly        : {result.monthly_payment:.2f}")
    print(f"Total of payments    : {result.total_payment:.2f}")
    print(f"Total interest       : {result.total_interest:.2f}")
    print(RULE)


def print_extra_payments(result: ExtraPaymentResult) -> None:
    print(f"Extra payments{': ' + result.scenario.name if result.scenario.name else ''}")
    print(RULE)
    print(f"Payments made      : {result.total_payments_made}")
    print(f"Term reduction     : {result.term_reduction_years} years {result.term_reduction_months} months")
    print(f"Total interest     : {result.total_interest_paid:.2f}")
    print(f"Interest saved     : {result.interest_savings:.2f}")
    print(RULE)


def print_refinance(result: RefinanceResult) -> None:
    print("Refinance")
    print(RULE)
    print(f"Current payment    : {result.current_monthly_payment:.2f}")
    print(f"New payment        : {result.new_monthly_payment:.2f}")
    print(f"New loan amount    : {result.new_loan_amount:.2f}")
    print(f"Monthly savings    : {result.monthly_savings:.2f}")
    if result.has_break_even:
        print(f"Break-even         : {result.break_even_months} months ({break_even_years(result)} years)")
    else:
        print("Break-even         : never (no monthly savings)")
    print(f"Interest saved     : {result.total_interest_savings:.2f}")
    print(f"Recommendation     : {'refinance' if result.recommended else 'keep the current loan'}")
    print(RULE)


def print_rent_vs_buy(result: RentVsBuyResult) -> None:
    print(f"{'Year':>4s} {'Rent cost':>14s} {'Buy cost':>14s} {'Home value':>14s} {'Equity':>14s} {'Buy net':>14s}")
    for p in result.points:
        marker = " *" if p.is_buy_ahead_of_rent else ""
        print(
            f"{p.year:4d} {p.cumulative_rent_cost:14.2f} {p.cumulative_buy_cost:14.2f} "
            f"{p.home_value:14.2f} {p.home_equity:14.2f} {p.net_buy_position:14.2f}{marker}"
        )
    print(RULE)
    print(f"Loan amount        : {result.loan_amount:.2f}")
    print(f"Mortgage payment   : {result.monthly_payment:.2f}")
    if result.renting_remains_ahead:
        print("Break-even year    : none, renting remains ahead")
    else:
        print(f"Break-even year    : {result.break_even_year}")
    print(RULE)


def print_pre_approval(result: AffordabilityResult) -> None:
    print("Pre-approval")
    print(RULE)
    print(f"Decision           : {'approved' if result.approved else 'not approved'}")
    print(f"Monthly payment    : {result.monthly_payment:.2f}")
    print(f"Debt-to-income     : {result.debt_to_income_ratio_percent:.2f}%")
    print(f"Front-end ratio    : {result.front_end_ratio_percent:.2f}%")
    print(f"Loan-to-value      : {result.loan_to_value_percent:.2f}%")
    print(f"Max qualifying loan: {result.max_qualifying_loan_amount:.2f}")
    print(f"Required income    : {result.required_annual_income:.2f}")
    print(RULE)
    print(result.explanation)
