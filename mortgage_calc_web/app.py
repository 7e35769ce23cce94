"""JSON API exposing the calculation engine over HTTP.

The endpoints accept the same field names as the engine's input records and
return the result records, so ``mortgage_calc.remote.RemoteCalculator`` can
use this app as its remote side and still fall back to local computation
transparently.

Environment:

``HISTORY_DATABASE_URL``
    SQLAlchemy URL of the calculation history store.
``FLASK_SECRET_KEY``
    Key used to sign the session cookie carrying the anonymous user token.
"""

import io
import logging
import os
from datetime import date
from typing import Optional
from uuid import uuid4

from flask import Flask, Response, jsonify, request, session

from mortgage_calc.affordability import evaluate_pre_approval
from mortgage_calc.breakdown import calculate_mortgage
from mortgage_calc.config import UnderwritingThresholds, load_thresholds
from mortgage_calc.data_models import (
    AffordabilityInputs,
    ExtraPaymentScenario,
    LoanTerms,
    MortgageCostInputs,
    RefinanceInputs,
    RentVsBuyInputs,
)
from mortgage_calc.engine import generate_schedule, simulate_extra_payments
from mortgage_calc.errors import InvalidInput
from mortgage_calc.main import write_schedule_csv
from mortgage_calc.refinance import analyze_refinance
from mortgage_calc.rent_vs_buy import compare_rent_vs_buy
from mortgage_calc.serialization import from_mapping, to_primitive
from mortgage_calc.utils import parse_date
from mortgage_calc_web.history_store import (
    CalculationHistoryStore,
    CalculationSnapshot,
    create_store_from_env,
)

logger = logging.getLogger(__name__)


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidInput("Request body must be a JSON object")
    return data


def _start_date(data: dict) -> date:
    value = data.get("start_date")
    if not value:
        return date.today()
    return parse_date(str(value))


def _loan_and_start(data: dict):
    loan = from_mapping(LoanTerms, data)
    return loan, _start_date(data)


def create_app(
    history_store: Optional[CalculationHistoryStore] = None,
    thresholds: Optional[UnderwritingThresholds] = None,
) -> Flask:
    """Build the Flask app.

    ``history_store`` and ``thresholds`` default to the environment
    configuration.
    """
    app = Flask(__name__)
    app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    store = history_store or create_store_from_env(os.environ.get("HISTORY_DATABASE_URL"))
    limits = thresholds or load_thresholds()

    @app.errorhandler(InvalidInput)
    def invalid_input(exc):
        logger.info("Rejected %s %s: %s", request.method, request.path, exc)
        return jsonify({"message": str(exc)}), 400

    @app.post("/api/mortgage/calculate")
    def calculate():
        inputs = from_mapping(MortgageCostInputs, _json_body())
        return jsonify(to_primitive(calculate_mortgage(inputs)))

    @app.post("/api/mortgage/schedule")
    def schedule():
        loan, start = _loan_and_start(_json_body())
        rows = generate_schedule(loan.principal, loan.annual_rate_percent, loan.term_years, start)
        return jsonify({"schedule": to_primitive(rows)})

    @app.post("/api/mortgage/schedule.csv")
    def schedule_csv():
        loan, start = _loan_and_start(_json_body())
        rows = generate_schedule(loan.principal, loan.annual_rate_percent, loan.term_years, start)
        buffer = io.StringIO()
        write_schedule_csv(buffer, rows)
        return Response(
            buffer.getvalue(),
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=amortization-schedule.csv"},
        )

    @app.post("/api/mortgage/extra-payments")
    def extra_payments():
        data = _json_body()
        loan, start = _loan_and_start(data)
        scenario = from_mapping(ExtraPaymentScenario, data.get("scenario") or {})
        result = simulate_extra_payments(
            loan.principal, loan.annual_rate_percent, loan.term_years, scenario, start
        )
        return jsonify(to_primitive(result))

    @app.post("/api/mortgage/refinance")
    def refinance():
        data = _json_body()
        inputs = from_mapping(RefinanceInputs, data)
        return jsonify(to_primitive(analyze_refinance(inputs, data.get("max_break_even_years"))))

    @app.post("/api/mortgage/rent-vs-buy")
    def rent_vs_buy():
        data = _json_body()
        inputs = from_mapping(RentVsBuyInputs, data)
        result = compare_rent_vs_buy(inputs, data.get("principal_method", "monthly"))
        return jsonify(to_primitive(result))

    @app.post("/api/mortgage/preapproval")
    def preapproval():
        inputs = from_mapping(AffordabilityInputs, _json_body())
        return jsonify(to_primitive(evaluate_pre_approval(inputs, limits)))

    @app.get("/api/history")
    def list_history():
        user_token = _ensure_user_token()
        return jsonify([s.to_dict() for s in store.list(user_token)])

    @app.post("/api/history")
    def save_history():
        user_token = _ensure_user_token()
        # id and timestamp are always assigned server-side
        data = {k: v for k, v in _json_body().items() if k not in ("id", "created_at")}
        snapshot = CalculationSnapshot.from_dict(data)
        store.save(user_token, snapshot)
        return jsonify(snapshot.to_dict()), 201

    @app.get("/api/history/<snapshot_id>")
    def load_history(snapshot_id):
        snapshot = store.load(_ensure_user_token(), snapshot_id)
        if snapshot is None:
            return jsonify({"message": "Calculation not found"}), 404
        return jsonify(snapshot.to_dict())

    @app.delete("/api/history/<snapshot_id>")
    def delete_history(snapshot_id):
        if not store.delete(_ensure_user_token(), snapshot_id):
            return jsonify({"message": "Calculation not found"}), 404
        return "", 204

    @app.delete("/api/history")
    def clear_history():
        store.clear(_ensure_user_token())
        return "", 204

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Starting mortgage calculator API...")
    create_app().run(port=5001)
