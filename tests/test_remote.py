import json
from datetime import date
from decimal import Decimal

import httpx
import pytest

from mortgage_calc.affordability import evaluate_pre_approval
from mortgage_calc.config import UnderwritingThresholds
from mortgage_calc.data_models import (
    AffordabilityInputs,
    ExtraPaymentScenario,
    LoanTerms,
    RefinanceInputs,
    RentVsBuyInputs,
)
from mortgage_calc.engine import simulate_extra_payments
from mortgage_calc.errors import InvalidInput
from mortgage_calc.refinance import analyze_refinance
from mortgage_calc.remote import RemoteCalculator
from mortgage_calc.serialization import to_primitive
from mortgage_calc_web.app import create_app
from mortgage_calc_web.history_store import CalculationHistoryStore

THRESHOLDS = UnderwritingThresholds()

REFINANCE = RefinanceInputs(
    current_balance=350000,
    current_rate_percent=7.25,
    current_term_remaining_years=30,
    new_rate_percent=6.5,
    new_term_years=30,
    closing_costs=5000,
)

PRE_APPROVAL = AffordabilityInputs(
    annual_income=80000,
    monthly_debts=500,
    loan_amount=300000,
    annual_rate_percent=6.5,
    term_years=30,
    down_payment=75000,
)


def _calculator(handler):
    calls = []

    def recording(request):
        calls.append(request)
        return handler(request)

    client = httpx.Client(transport=httpx.MockTransport(recording), base_url="http://api.test/api")
    return RemoteCalculator("http://api.test/api", client=client, thresholds=THRESHOLDS), calls


def test_uses_remote_answer():
    remote_body = to_primitive(analyze_refinance(REFINANCE))
    remote_body["closing_costs_note"] = "ignored"
    remote_body["new_loan_amount"] = 1.0

    calculator, calls = _calculator(lambda request: httpx.Response(200, json=remote_body))
    result = calculator.analyze_refinance(REFINANCE)

    assert result.new_loan_amount == Decimal("1.0")
    assert len(calls) == 1
    assert calls[0].url.path == "/api/mortgage/refinance"


def _refused(request):
    raise httpx.ConnectError("connection refused", request=request)


@pytest.mark.parametrize(
    "handler",
    [
        _refused,
        lambda request: httpx.Response(500, json={"message": "boom"}),
        lambda request: httpx.Response(200, json={"unexpected": True}),
        lambda request: httpx.Response(200, text="<html>not json</html>"),
    ],
    ids=["connection-error", "server-error", "wrong-shape", "not-json"],
)
def test_falls_back_to_local_calculation(handler):
    calculator, calls = _calculator(handler)

    assert calculator.analyze_refinance(REFINANCE) == analyze_refinance(REFINANCE)
    assert calculator.evaluate_pre_approval(PRE_APPROVAL) == evaluate_pre_approval(PRE_APPROVAL, THRESHOLDS)
    assert len(calls) == 2


def test_invalid_input_fails_before_any_request():
    calculator, calls = _calculator(_refused)

    with pytest.raises(InvalidInput):
        calculator.simulate_extra_payments(LoanTerms(100000, 6, 10), {"monthly_extra": 100})
    with pytest.raises(InvalidInput):
        calculator.analyze_refinance(RefinanceInputs(0, 7, 30, 6, 30))
    assert calls == []


@pytest.fixture
def live_calculator(tmp_path):
    app = create_app(
        history_store=CalculationHistoryStore(f"sqlite:///{tmp_path / 'history.sqlite3'}"),
        thresholds=THRESHOLDS,
    )
    client = httpx.Client(transport=httpx.WSGITransport(app=app), base_url="http://testserver/api")
    with RemoteCalculator("http://testserver/api", client=client, thresholds=THRESHOLDS) as calculator:
        yield calculator
    client.close()


def test_remote_and_local_results_agree(live_calculator):
    assert live_calculator.evaluate_pre_approval(PRE_APPROVAL) == evaluate_pre_approval(PRE_APPROVAL, THRESHOLDS)
    assert live_calculator.analyze_refinance(REFINANCE) == analyze_refinance(REFINANCE)

    loan = LoanTerms(100000, 6, 10)
    scenario = ExtraPaymentScenario(monthly_extra=150, yearly_extra=1000, name="bonus")
    remote = live_calculator.simulate_extra_payments(loan, scenario, date(2024, 1, 1))
    assert remote == simulate_extra_payments(100000, 6, 10, scenario, date(2024, 1, 1))


def test_from_env(monkeypatch):
    monkeypatch.setenv("MORTGAGE_API_URL", "http://calc.internal/api")
    with RemoteCalculator.from_env() as calculator:
        assert str(calculator._client.base_url) == "http://calc.internal/api/"


def test_unknown_principal_method_fails_before_any_request():
    calculator, calls = _calculator(_refused)
    inputs = RentVsBuyInputs(
        home_price=400000,
        down_payment=80000,
        annual_rate_percent=6.8,
        term_years=30,
        monthly_rent=2500,
    )

    with pytest.raises(InvalidInput):
        calculator.compare_rent_vs_buy(inputs, "quarterly")
    with pytest.raises(InvalidInput):
        calculator.analyze_refinance(REFINANCE, max_break_even_years=0)
    assert calls == []


def test_refinance_sends_break_even_horizon():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(503)

    calculator, _ = _calculator(handler)
    result = calculator.analyze_refinance(REFINANCE, max_break_even_years=2)

    assert seen[0]["max_break_even_years"] == 2.0
    assert result == analyze_refinance(REFINANCE, 2)
    assert result.recommended is False
