"""Monthly housing payment breakdown (principal, interest, tax, insurance, PMI, HOA)."""

from __future__ import annotations

from datetime import date

from .data_models import ZERO, MortgageCostInputs, PaymentBreakdown
from .engine import compute_monthly_payment, generate_schedule
from .utils import round_money


def calculate_mortgage(inputs: MortgageCostInputs) -> PaymentBreakdown:
    """Return the full monthly payment and the loan's amortization schedule.

    The schedule starts at ``inputs.start_date`` or today when it is unset.
    Lifetime totals are taken from the schedule, so they include the final
    payment's rounding adjustment.
    """
    principal_and_interest = compute_monthly_payment(
        inputs.loan_amount, inputs.annual_rate_percent, inputs.term_years
    )
    start = inputs.start_date or date.today()
    schedule = generate_schedule(inputs.loan_amount, inputs.annual_rate_percent, inputs.term_years, start)
    total_payment = sum((row.total_payment for row in schedule), ZERO)
    escrow = inputs.monthly_property_tax + inputs.monthly_home_insurance + inputs.monthly_pmi + inputs.monthly_hoa

    return PaymentBreakdown(
        principal_and_interest=principal_and_interest,
        monthly_property_tax=round_money(inputs.monthly_property_tax),
        monthly_home_insurance=round_money(inputs.monthly_home_insurance),
        monthly_pmi=round_money(inputs.monthly_pmi),
        monthly_hoa=round_money(inputs.monthly_hoa),
        monthly_payment=round_money(principal_and_interest + escrow),
        total_payment=total_payment,
        total_interest=sum((row.interest_portion for row in schedule), ZERO),
        schedule=tuple(schedule),
    )
