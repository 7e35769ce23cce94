"""Refinance analysis.

Compares the remaining payments on an existing loan against a new loan
that rolls the closing costs and any cash out into its principal.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from .config import load_max_break_even_years
from .data_models import RefinanceInputs, RefinanceResult
from .engine import compute_monthly_payment, total_interest
from .errors import InvalidInput
from .utils import Number, round_money, to_decimal

TWELVE = Decimal(12)


def break_even_horizon(max_break_even_years: Optional[Number] = None) -> Decimal:
    """Validate a break-even horizon in years, falling back to the configured one."""
    if max_break_even_years is None:
        return load_max_break_even_years()
    horizon = to_decimal(max_break_even_years, "max_break_even_years")
    if horizon <= 0:
        raise InvalidInput("max_break_even_years must be positive")
    return horizon


def analyze_refinance(inputs: RefinanceInputs, max_break_even_years: Optional[Number] = None) -> RefinanceResult:
    """Return payment, break-even and lifetime interest comparison.

    The break-even point is the number of months of payment savings needed
    to recoup the closing costs and cash out. When the new payment is not
    lower than the current one there is no break-even and
    ``break_even_months`` is ``None``.

    The refinance is recommended when it breaks even in less than
    ``max_break_even_years`` (read from ``MORTGAGE_MAX_BREAK_EVEN_YEARS``
    when omitted, 5 by default).
    """
    horizon = break_even_horizon(max_break_even_years)

    new_loan_amount = inputs.current_balance + inputs.closing_costs + inputs.cash_out

    current_payment = compute_monthly_payment(
        inputs.current_balance, inputs.current_rate_percent, inputs.current_term_remaining_years
    )
    new_payment = compute_monthly_payment(new_loan_amount, inputs.new_rate_percent, inputs.new_term_years)
    monthly_savings = current_payment - new_payment

    break_even = None
    if monthly_savings > 0:
        rolled_in = inputs.closing_costs + inputs.cash_out
        break_even = round_money(rolled_in / monthly_savings)

    current_interest = total_interest(
        inputs.current_balance, inputs.current_rate_percent, inputs.current_term_remaining_years
    )
    new_interest = total_interest(new_loan_amount, inputs.new_rate_percent, inputs.new_term_years)

    return RefinanceResult(
        current_monthly_payment=current_payment,
        new_monthly_payment=new_payment,
        new_loan_amount=round_money(new_loan_amount),
        monthly_savings=monthly_savings,
        break_even_months=break_even,
        current_total_interest=current_interest,
        new_total_interest=new_interest,
        total_interest_savings=current_interest - new_interest,
        recommended=break_even is not None and break_even / TWELVE < horizon,
    )


def break_even_years(result: RefinanceResult) -> Decimal:
    """Express the break-even period in years (one decimal)."""
    if result.break_even_months is None:
        raise ValueError("refinance has no break-even point")
    return (result.break_even_months / TWELVE).quantize(Decimal("0.1"))
