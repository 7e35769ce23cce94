from datetime import date
from decimal import Decimal

import pytest

from mortgage_calc.data_models import ExtraPaymentScenario
from mortgage_calc.engine import (
    compute_monthly_payment,
    generate_schedule,
    principal_from_payment,
    simulate_extra_payments,
    total_interest,
)
from mortgage_calc.errors import InvalidInput

START = date(2024, 1, 15)


def test_zero_rate_payment_is_exact():
    assert compute_monthly_payment(120000, 0, 10) == Decimal("1000.00")


def test_standard_payment():
    assert compute_monthly_payment(300000, 6.5, 30) == Decimal("1896.20")


@pytest.mark.parametrize(
    "principal, rate, term",
    [(0, 6.5, 30), (-1000, 6.5, 30), (100000, -0.5, 30), (100000, 6.5, 0), (100000, 101, 30)],
)
def test_invalid_loans_rejected(principal, rate, term):
    with pytest.raises(InvalidInput):
        compute_monthly_payment(principal, rate, term)
    with pytest.raises(InvalidInput):
        generate_schedule(principal, rate, term, START)


def test_payments_cover_principal():
    for principal, rate, term in [(300000, 6.5, 30), (150000, 3.25, 15), (5000, 12, 1)]:
        assert compute_monthly_payment(principal, rate, term) * term * 12 >= principal


def test_schedule_invariants():
    schedule = generate_schedule(300000, 6.5, 30, START)

    assert len(schedule) == 360
    assert [row.payment_number for row in schedule] == list(range(1, 361))
    assert schedule[-1].remaining_balance == Decimal("0")
    assert sum(row.principal_portion for row in schedule) == Decimal("300000.00")

    previous = Decimal("300000")
    for row in schedule:
        assert row.principal_portion + row.interest_portion == row.total_payment
        assert row.remaining_balance <= previous
        if row.principal_portion > 0:
            assert row.remaining_balance < previous
        assert row.remaining_balance >= 0
        previous = row.remaining_balance


def test_first_row_uses_full_payment():
    row = generate_schedule(300000, 6.5, 30, START)[0]
    assert row.interest_portion == Decimal("1625.00")
    assert row.principal_portion == Decimal("271.20")
    assert row.total_payment == Decimal("1896.20")
    assert row.remaining_balance == Decimal("299728.80")


def test_final_payment_absorbs_rounding():
    payment = compute_monthly_payment(12000, 6, 1)
    schedule = generate_schedule(12000, 6, 1, START)

    last = schedule[-1]
    assert last.principal_portion == schedule[-2].remaining_balance
    assert last.remaining_balance == Decimal("0")
    assert abs(last.total_payment - payment) <= Decimal("0.10")
    assert all(row.total_payment == payment for row in schedule[:-1])


def test_zero_rate_schedule():
    schedule = generate_schedule(120000, 0, 10, START)
    assert {row.total_payment for row in schedule} == {Decimal("1000.00")}
    assert {row.interest_portion for row in schedule} == {Decimal("0.00")}
    assert schedule[-1].remaining_balance == 0


def test_payment_dates_advance_monthly_and_clamp():
    schedule = generate_schedule(10000, 5, 1, date(2024, 1, 31))
    assert schedule[0].payment_date == date(2024, 2, 29)
    assert schedule[1].payment_date == date(2024, 3, 31)
    assert schedule[-1].payment_date == date(2025, 1, 31)


def test_start_date_accepts_strings():
    assert generate_schedule(10000, 5, 1, "2024-01") == generate_schedule(10000, 5, 1, date(2024, 1, 1))


def test_schedule_is_idempotent():
    first = generate_schedule(425000, 7.125, 30, START)
    second = generate_schedule(425000, 7.125, 30, START)
    assert first == second


def test_fifty_year_term():
    schedule = generate_schedule(500000, 6, 50, START)
    assert len(schedule) == 600
    assert schedule[-1].remaining_balance == 0


def test_total_interest_matches_schedule():
    schedule = generate_schedule(200000, 5, 20, START)
    assert total_interest(200000, 5, 20) == sum(row.interest_portion for row in schedule)
    assert total_interest(120000, 0, 10) == 0


def test_principal_from_payment_inverts_payment():
    payment = compute_monthly_payment(300000, 6.5, 30)
    assert abs(principal_from_payment(payment, 6.5, 30) - Decimal("300000")) < Decimal("1.5")
    assert principal_from_payment(1000, 0, 10) == Decimal("120000.00")


def test_no_extra_matches_plain_schedule():
    result = simulate_extra_payments(200000, 6, 30, ExtraPaymentScenario(), START)

    assert result.total_payments_made == 360
    assert result.interest_savings == 0
    assert (result.term_reduction_years, result.term_reduction_months) == (0, 0)
    assert list(result.schedule) == generate_schedule(200000, 6, 30, START)


def test_monthly_extra_shortens_loan():
    scenario = ExtraPaymentScenario(monthly_extra=Decimal("200"))
    result = simulate_extra_payments(200000, 6, 30, scenario, START)

    assert result.total_payments_made < 360
    assert len(result.schedule) == result.total_payments_made
    assert result.term_reduction_years * 12 + result.term_reduction_months == 360 - result.total_payments_made
    assert 0 <= result.term_reduction_months <= 11
    assert result.interest_savings > 0
    assert result.interest_savings == total_interest(200000, 6, 30) - result.total_interest_paid
    assert result.schedule[-1].remaining_balance == 0
    assert sum(row.principal_portion for row in result.schedule) == Decimal("200000.00")
    assert result.schedule[0].extra_principal == Decimal("200")


def test_yearly_extra_lands_on_anniversaries():
    scenario = ExtraPaymentScenario(yearly_extra=Decimal("1000"))
    schedule = simulate_extra_payments(200000, 6, 30, scenario, START).schedule

    assert schedule[0].extra_principal == 0
    assert schedule[11].extra_principal == 0
    assert schedule[12].extra_principal == Decimal("1000")
    assert schedule[24].extra_principal == Decimal("1000")
    assert schedule[13].extra_principal == 0


def test_one_time_extra_only_once():
    scenario = ExtraPaymentScenario(one_time_extra=Decimal("5000"), one_time_payment_month=6)
    schedule = simulate_extra_payments(100000, 5, 15, scenario, START).schedule

    extras = [row.extra_principal for row in schedule]
    assert extras[5] == Decimal("5000")
    assert sum(extras) == Decimal("5000")


def test_extra_larger_than_balance_pays_off_without_overcharging():
    scenario = ExtraPaymentScenario(one_time_extra=Decimal("50000"), one_time_payment_month=3)
    result = simulate_extra_payments(10000, 5, 1, scenario, START)

    assert result.total_payments_made == 3
    assert (result.term_reduction_years, result.term_reduction_months) == (0, 9)
    last = result.schedule[-1]
    assert last.remaining_balance == 0
    assert last.principal_portion == result.schedule[-2].remaining_balance
    assert last.extra_principal < Decimal("50000")
    assert last.total_payment == last.principal_portion + last.interest_portion


def test_scenario_rejects_negative_amounts():
    with pytest.raises(InvalidInput):
        ExtraPaymentScenario(monthly_extra=-1)
    with pytest.raises(InvalidInput):
        ExtraPaymentScenario(one_time_extra=100, one_time_payment_month=0)


def test_scenario_must_be_a_scenario():
    with pytest.raises(InvalidInput):
        simulate_extra_payments(100000, 5, 15, {"monthly_extra": 100}, START)
