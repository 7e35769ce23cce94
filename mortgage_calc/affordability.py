"""Pre-approval evaluation.

Applies the conforming-loan ratio heuristics: the housing payment may take
at most ``max_front_end_percent`` of gross monthly income, and housing plus
other debts at most ``max_debt_to_income_percent``. The limits come from
``UnderwritingThresholds`` (see ``config``).
"""

from __future__ import annotations

from decimal import ROUND_DOWN, ROUND_UP, Decimal
from typing import List, Optional

from .config import UnderwritingThresholds, load_thresholds
from .data_models import AffordabilityInputs, AffordabilityResult
from .engine import compute_monthly_payment, principal_from_payment
from .utils import CENT, round_money

HUNDRED = Decimal(100)
TWELVE = Decimal(12)


def _explain(dti: Decimal, front_end: Decimal, max_loan: Decimal, thresholds: UnderwritingThresholds) -> str:
    problems: List[str] = []
    if dti > thresholds.max_debt_to_income_percent:
        problems.append(
            f"Your debt-to-income ratio of {round_money(dti)}% exceeds the "
            f"{thresholds.max_debt_to_income_percent}% limit. Consider reducing debts or increasing income."
        )
    if front_end > thresholds.max_front_end_percent:
        problems.append(
            f"The housing payment would take {round_money(front_end)}% of gross monthly income, above the "
            f"{thresholds.max_front_end_percent}% limit. A loan of up to {max_loan:,.2f} stays within it."
        )
    if not problems:
        return "Congratulations! You likely qualify for this loan."
    return " ".join(problems)


def _max_front_end_loan(inputs: AffordabilityInputs, monthly_income: Decimal, limit_percent: Decimal) -> Decimal:
    """Largest loan, in cents, whose rounded payment stays within ``limit_percent``."""
    max_payment = round_money(monthly_income * limit_percent / HUNDRED, ROUND_DOWN)
    loan = principal_from_payment(max_payment, inputs.annual_rate_percent, inputs.term_years)
    # half-up rounding of the payment can still land a cent over the limit
    while loan > 0:
        payment = compute_monthly_payment(loan, inputs.annual_rate_percent, inputs.term_years)
        if payment / monthly_income * HUNDRED <= limit_percent:
            break
        loan -= CENT
    return loan


def evaluate_pre_approval(
    inputs: AffordabilityInputs, thresholds: Optional[UnderwritingThresholds] = None
) -> AffordabilityResult:
    """Decide whether the requested loan fits the borrower's income.

    Parameters
    ----------
    inputs: AffordabilityInputs
        Income, debts and the requested loan.
    thresholds: UnderwritingThresholds, optional
        Ratio limits. Read from the environment when omitted.

    Returns
    -------
    AffordabilityResult
        Ratios are reported rounded to two decimals; the decision itself is
        taken on the unrounded ratios. ``max_qualifying_loan_amount`` is the
        largest loan whose rounded payment stays within the front-end limit and
        ``required_annual_income`` the smallest income for which the
        requested loan passes both limits.
    """
    limits = thresholds if thresholds is not None else load_thresholds()

    payment = compute_monthly_payment(inputs.loan_amount, inputs.annual_rate_percent, inputs.term_years)
    monthly_income = inputs.annual_income / TWELVE
    dti = (inputs.monthly_debts + payment) / monthly_income * HUNDRED
    front_end = payment / monthly_income * HUNDRED

    approved = dti <= limits.max_debt_to_income_percent and front_end <= limits.max_front_end_percent

    max_loan = _max_front_end_loan(inputs, monthly_income, limits.max_front_end_percent)

    income_for_front_end = payment * TWELVE * HUNDRED / limits.max_front_end_percent
    income_for_dti = (payment + inputs.monthly_debts) * TWELVE * HUNDRED / limits.max_debt_to_income_percent
    required_income = round_money(max(income_for_front_end, income_for_dti), ROUND_UP)

    ltv = inputs.loan_amount / (inputs.loan_amount + inputs.down_payment) * HUNDRED

    return AffordabilityResult(
        approved=approved,
        max_qualifying_loan_amount=max_loan,
        debt_to_income_ratio_percent=round_money(dti),
        front_end_ratio_percent=round_money(front_end),
        monthly_payment=payment,
        required_annual_income=required_income,
        loan_to_value_percent=round_money(ltv),
        explanation=_explain(dti, front_end, max_loan, limits),
    )
