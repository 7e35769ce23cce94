"""Command-line interface for the mortgage calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute the monthly payment, full amortization
schedules, extra-payment scenarios, refinance and rent-vs-buy comparisons
and pre-approval checks. Schedules can be printed to the terminal or
exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import IO, Any, Dict, Iterable, List, Optional

import click

from .affordability import evaluate_pre_approval
from .breakdown import calculate_mortgage
from .config import load_thresholds
from .data_models import (
    AffordabilityInputs,
    ExtraPaymentScenario,
    MortgageCostInputs,
    PaymentLineItem,
    RefinanceInputs,
    RentVsBuyInputs,
)
from .engine import compute_monthly_payment, generate_schedule, simulate_extra_payments
from .errors import InvalidInput
from .formatter import (
    print_breakdown,
    print_extra_payments,
    print_pre_approval,
    print_refinance,
    print_rent_vs_buy,
    print_schedule,
)
from .refinance import analyze_refinance
from .rent_vs_buy import PRINCIPAL_METHODS, compare_rent_vs_buy
from .serialization import to_primitive
from .utils import parse_date, to_decimal

CSV_HEADER = [
    "Payment_Number",
    "Date",
    "Principal",
    "Interest",
    "Total_Payment",
    "Remaining_Balance",
]

MAX_PRINTED_ROWS = 120


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000") and shorthand with ``k``/``m`` suffixes
    (e.g., "500k" meaning 500_000).
    """
    value = value.strip().lower().replace(",", "")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        return to_decimal(value) * factor
    except InvalidInput:
        raise click.BadParameter(f"Invalid amount: {value}")


def _amount(ctx, param, value):
    if value is None:
        return None
    return parse_amount(value)


def _start_date(ctx, param, value):
    if value is None:
        return date.today()
    try:
        return parse_date(value)
    except InvalidInput as exc:
        raise click.BadParameter(str(exc))


def schedule_rows(schedule: Iterable[PaymentLineItem]) -> List[List[str]]:
    """Return schedule rows as plain strings, header excluded.

    Money is written without currency symbols or thousands separators so
    the export can be parsed back as numbers.
    """
    return [
        [
            str(row.payment_number),
            row.payment_date.isoformat(),
            f"{row.principal_portion:.2f}",
            f"{row.interest_portion:.2f}",
            f"{row.total_payment:.2f}",
            f"{row.remaining_balance:.2f}",
        ]
        for row in schedule
    ]


def write_schedule_csv(stream: IO[str], schedule: Iterable[PaymentLineItem]) -> None:
    writer = csv.writer(stream)
    writer.writerow(CSV_HEADER)
    writer.writerows(schedule_rows(schedule))


def export_to_csv(path: Path, schedule: Iterable[PaymentLineItem]) -> None:
    """Export schedule to a CSV file."""
    with path.open("w", newline="", encoding="utf-8") as f:
        write_schedule_csv(f, schedule)


def export_to_json(path: Path, schedule: Iterable[PaymentLineItem], summary: Dict[str, Any]) -> None:
    """Export schedule and summary to a JSON file."""
    records = [dict(zip(CSV_HEADER, [int(r[0]), r[1]] + [float(v) for v in r[2:]])) for r in schedule_rows(schedule)]
    data = {"summary": to_primitive(summary), "schedule": records}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def _export(output: str, schedule: List[PaymentLineItem], summary: Dict[str, Any]) -> None:
    path = Path(output)
    if path.suffix.lower() == ".json":
        export_to_json(path, schedule, summary)
    elif path.suffix.lower() == ".csv":
        export_to_csv(path, schedule)
    else:
        raise click.BadParameter("Unsupported output format; use .json or .csv")
    click.echo(f"Schedule exported to {path}")


def _print_long_schedule(schedule: List[PaymentLineItem], show_extra: bool = False) -> None:
    # Limit schedule length printed to avoid flooding the terminal
    if len(schedule) > MAX_PRINTED_ROWS:
        click.echo(f"Schedule has {len(schedule)} rows; showing first {MAX_PRINTED_ROWS} rows.")
        print_schedule(schedule[:MAX_PRINTED_ROWS], show_extra)
    else:
        print_schedule(schedule, show_extra)


def loan_options(func):
    """Attach the principal/rate/term options shared by the loan commands."""
    func = click.option("--term", "-t", "term", required=True, type=int, help="Loan term in years")(func)
    func = click.option("--rate", "-r", "rate", required=True, help="Annual interest rate (percent)")(func)
    func = click.option("--principal", "-p", "principal", required=True, callback=_amount, help="Loan amount")(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log calculation details to stderr")
def cli(verbose: bool) -> None:
    """A command-line mortgage calculator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
def payment(principal: Decimal, rate: str, term: int) -> None:
    """Print the monthly principal and interest payment."""
    try:
        click.echo(f"{compute_monthly_payment(principal, rate, term):.2f}")
    except InvalidInput as exc:
        raise click.BadParameter(str(exc))


@cli.command()
@loan_options
@click.option("--start-date", "-s", "start_date", callback=_start_date, help="Origination date (YYYY-MM[-DD]); defaults to today")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(principal: Decimal, rate: str, term: int, start_date: date, output: Optional[str]) -> None:
    """Compute and print the full amortization schedule."""
    try:
        rows = generate_schedule(principal, rate, term, start_date)
    except InvalidInput as exc:
        raise click.BadParameter(str(exc))
    if output:
        summary = {
            "monthly_payment": compute_monthly_payment(principal, rate, term),
            "total_interest": sum(r.interest_portion for r in rows),
            "payments": len(rows),
        }
        _export(output, rows, summary)
    else:
        _print_long_schedule(rows)


@cli.command()
@loan_options
@click.option("--monthly-extra", "monthly_extra", default="0", callback=_amount, help="Extra principal every month")
@click.option("--yearly-extra", "yearly_extra", default="0", callback=_amount, help="Extra principal on each loan anniversary")
@click.option("--one-time-extra", "one_time_extra", default="0", callback=_amount, help="Single extra principal payment")
@click.option("--one-time-month", "one_time_month", default=1, type=int, help="Payment number of the one-time extra")
@click.option("--start-date", "-s", "start_date", callback=_start_date, help="Origination date (YYYY-MM[-DD]); defaults to today")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.option("--show-schedule", is_flag=True, help="Print the shortened schedule as well")
def extra(
    principal: Decimal,
    rate: str,
    term: int,
    monthly_extra: Decimal,
    yearly_extra: Decimal,
    one_time_extra: Decimal,
    one_time_month: int,
    start_date: date,
    output: Optional[str],
    show_schedule: bool,
) -> None:
    """Simulate extra principal payments and report the savings."""
    try:
        scenario = ExtraPaymentScenario(
            monthly_extra=monthly_extra,
            yearly_extra=yearly_extra,
            one_time_extra=one_time_extra,
            one_time_payment_month=one_time_month,
        )
        result = simulate_extra_payments(principal, rate, term, scenario, start_date)
    except InvalidInput as exc:
        raise click.BadParameter(str(exc))
    rows = list(result.schedule)
    if output:
        summary = {k: v for k, v in to_primitive(result).items() if k != "schedule"}
        _export(output, rows, summary)
        return
    print_extra_payments(result)
    if show_schedule:
        _print_long_schedule(rows, show_extra=True)


@cli.command()
@loan_options
@click.option("--property-tax", default="0", callback=_amount, help="Monthly property tax")
@click.option("--insurance", default="0", callback=_amount, help="Monthly home insurance")
@click.option("--pmi", default="0", callback=_amount, help="Monthly private mortgage insurance")
@click.option("--hoa", default="0", callback=_amount, help="Monthly HOA dues")
def breakdown(
    principal: Decimal,
    rate: str,
    term: int,
    property_tax: Decimal,
    insurance: Decimal,
    pmi: Decimal,
    hoa: Decimal,
) -> None:
    """Print the full monthly housing payment."""
    try:
        result = calculate_mortgage(
            MortgageCostInputs(
                loan_amount=principal,
                annual_rate_percent=rate,
                term_years=term,
                monthly_property_tax=property_tax,
                monthly_home_insurance=insurance,
                monthly_pmi=pmi,
                monthly_hoa=hoa,
            )
        )
    except InvalidInput as exc:
        raise click.BadParameter(str(exc))
    print_breakdown(result)


@cli.command()
@click.option("--balance", required=True, callback=_amount, help="Current loan balance")
@click.option("--current-rate", required=True, help="Current annual rate (percent)")
@click.option("--remaining-years", required=True, type=int, help="Years left on the current loan")
@click.option("--new-rate", required=True, help="New annual rate (percent)")
@click.option("--new-term", required=True, type=int, help="New loan term in years")
@click.option("--closing-costs", default="0", callback=_amount, help="Closing costs rolled into the new loan")
@click.option("--cash-out", default="0", callback=_amount, help="Cash taken out at closing")
@click.option(
    "--max-break-even-years",
    default=None,
    help="Recommend the refinance only if it breaks even sooner (default from MORTGAGE_MAX_BREAK_EVEN_YEARS, else 5)",
)
def refinance(
    balance: Decimal,
    current_rate: str,
    remaining_years: int,
    new_rate: str,
    new_term: int,
    closing_costs: Decimal,
    cash_out: Decimal,
    max_break_even_years: Optional[str],
) -> None:
    """Compare the current loan against a refinance offer."""
    try:
        result = analyze_refinance(
            RefinanceInputs(
                current_balance=balance,
                current_rate_percent=current_rate,
                current_term_remaining_years=remaining_years,
                new_rate_percent=new_rate,
                new_term_years=new_term,
                closing_costs=closing_costs,
                cash_out=cash_out,
            ),
            max_break_even_years,
        )
    except InvalidInput as exc:
        raise click.BadParameter(str(exc))
    print_refinance(result)


@cli.command("rent-vs-buy")
@click.option("--home-price", required=True, callback=_amount, help="Purchase price")
@click.option("--down-payment", required=True, callback=_amount, help="Down payment")
@click.option("--rate", "-r", required=True, help="Annual mortgage rate (percent)")
@click.option("--term", "-t", default=30, type=int, help="Mortgage term in years")
@click.option("--rent", required=True, callback=_amount, help="Current monthly rent")
@click.option("--rent-growth", default="0", help="Annual rent increase (percent)")
@click.option("--appreciation", default="0", help="Annual home appreciation (percent)")
@click.option("--property-tax", default="0", callback=_amount, help="Annual property tax")
@click.option("--insurance", default="0", callback=_amount, help="Annual home insurance")
@click.option("--maintenance", default="0", callback=_amount, help="Annual maintenance")
@click.option("--closing-costs", default="0", callback=_amount, help="Closing costs paid at purchase")
@click.option("--years", default=10, type=int, help="Years to analyze")
@click.option("--method", type=click.Choice(PRINCIPAL_METHODS), default="monthly", help="Principal reduction method")
def rent_vs_buy(
    home_price: Decimal,
    down_payment: Decimal,
    rate: str,
    term: int,
    rent: Decimal,
    rent_growth: str,
    appreciation: str,
    property_tax: Decimal,
    insurance: Decimal,
    maintenance: Decimal,
    closing_costs: Decimal,
    years: int,
    method: str,
) -> None:
    """Project renting against buying year by year."""
    try:
        result = compare_rent_vs_buy(
            RentVsBuyInputs(
                home_price=home_price,
                down_payment=down_payment,
                annual_rate_percent=rate,
                term_years=term,
                monthly_rent=rent,
                rent_growth_percent=rent_growth,
                appreciation_percent=appreciation,
                annual_property_tax=property_tax,
                annual_insurance=insurance,
                annual_maintenance=maintenance,
                closing_costs=closing_costs,
                horizon_years=years,
            ),
            principal_method=method,
        )
    except InvalidInput as exc:
        raise click.BadParameter(str(exc))
    print_rent_vs_buy(result)


@cli.command()
@click.option("--income", required=True, callback=_amount, help="Gross annual income")
@click.option("--debts", default="0", callback=_amount, help="Monthly debt payments")
@loan_options
@click.option("--down-payment", "-d", default="0", callback=_amount, help="Down payment")
def preapproval(income: Decimal, debts: Decimal, principal: Decimal, rate: str, term: int, down_payment: Decimal) -> None:
    """Check whether a loan fits the DTI and front-end limits."""
    try:
        result = evaluate_pre_approval(
            AffordabilityInputs(
                annual_income=income,
                monthly_debts=debts,
                loan_amount=principal,
                annual_rate_percent=rate,
                term_years=term,
                down_payment=down_payment,
            ),
            load_thresholds(),
        )
    except InvalidInput as exc:
        raise click.BadParameter(str(exc))
    print_pre_approval(result)


if __name__ == "__main__":
    cli()
