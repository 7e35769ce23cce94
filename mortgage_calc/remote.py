"""Client for a remote calculation API, with local fallback.

Every method first validates its input locally, then posts it to the
remote endpoint. If the request fails (connection error, timeout, non-2xx
status, or a body that does not decode into the expected record) the same
calculation is performed locally. Both paths produce the same record type
from the same input, so the caller never needs to know which one answered.

Environment:

``MORTGAGE_API_URL``
    Base URL used by ``RemoteCalculator.from_env``
    (default ``http://localhost:5001/api``).
"""

from __future__ import annotations

import logging
import os
from datetime import date
from typing import Any, Callable, Optional, Type, TypeVar, Union

import httpx

from .affordability import evaluate_pre_approval
from .breakdown import calculate_mortgage
from .config import UnderwritingThresholds, load_thresholds
from .data_models import (
    AffordabilityInputs,
    AffordabilityResult,
    ExtraPaymentResult,
    ExtraPaymentScenario,
    LoanTerms,
    MortgageCostInputs,
    PaymentBreakdown,
    RefinanceInputs,
    RefinanceResult,
    RentVsBuyInputs,
    RentVsBuyResult,
)
from .engine import simulate_extra_payments
from .errors import InvalidInput
from .refinance import analyze_refinance, break_even_horizon
from .rent_vs_buy import PRINCIPAL_METHODS, compare_rent_vs_buy
from .serialization import from_mapping, to_primitive
from .utils import Number

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:5001/api"

R = TypeVar("R")


class RemoteCalculator:
    """Calculation API client that degrades to local computation."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
        thresholds: Optional[UnderwritingThresholds] = None,
    ) -> None:
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self._owns_client = client is None
        self._thresholds = thresholds

    @classmethod
    def from_env(cls, **kwargs: Any) -> "RemoteCalculator":
        return cls(os.environ.get("MORTGAGE_API_URL", DEFAULT_API_URL), **kwargs)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "RemoteCalculator":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _call(self, path: str, payload: Any, result_type: Type[R], local: Callable[[], R]) -> R:
        try:
            response = self._client.post(path, json=payload)
            response.raise_for_status()
            return from_mapping(result_type, response.json())
        except httpx.HTTPError as exc:
            logger.warning("Remote calculation %s failed (%s); using local calculation", path, exc)
        except (ValueError, TypeError) as exc:
            # InvalidInput is a ValueError: the remote body did not decode into result_type
            logger.warning("Remote calculation %s returned an unusable body (%s); using local calculation", path, exc)
        return local()

    def calculate_mortgage(self, inputs: MortgageCostInputs) -> PaymentBreakdown:
        return self._call(
            "/mortgage/calculate", to_primitive(inputs), PaymentBreakdown, lambda: calculate_mortgage(inputs)
        )

    def simulate_extra_payments(
        self, loan: LoanTerms, scenario: ExtraPaymentScenario, start_date: Optional[Union[date, str]] = None
    ) -> ExtraPaymentResult:
        if not isinstance(scenario, ExtraPaymentScenario):
            raise InvalidInput("scenario must be an ExtraPaymentScenario")
        start = start_date or date.today()
        payload = dict(to_primitive(loan), scenario=to_primitive(scenario), start_date=to_primitive(start))
        return self._call(
            "/mortgage/extra-payments",
            payload,
            ExtraPaymentResult,
            lambda: simulate_extra_payments(
                loan.principal, loan.annual_rate_percent, loan.term_years, scenario, start
            ),
        )

    def analyze_refinance(
        self, inputs: RefinanceInputs, max_break_even_years: Optional[Number] = None
    ) -> RefinanceResult:
        horizon = break_even_horizon(max_break_even_years)
        payload = dict(to_primitive(inputs), max_break_even_years=to_primitive(horizon))
        return self._call(
            "/mortgage/refinance", payload, RefinanceResult, lambda: analyze_refinance(inputs, horizon)
        )

    def compare_rent_vs_buy(self, inputs: RentVsBuyInputs, principal_method: str = "monthly") -> RentVsBuyResult:
        if principal_method not in PRINCIPAL_METHODS:
            raise InvalidInput(f"principal_method must be one of {', '.join(PRINCIPAL_METHODS)}")
        payload = dict(to_primitive(inputs), principal_method=principal_method)
        return self._call(
            "/mortgage/rent-vs-buy",
            payload,
            RentVsBuyResult,
            lambda: compare_rent_vs_buy(inputs, principal_method),
        )

    def evaluate_pre_approval(self, inputs: AffordabilityInputs) -> AffordabilityResult:
        thresholds = self._thresholds or load_thresholds()
        return self._call(
            "/mortgage/preapproval",
            to_primitive(inputs),
            AffordabilityResult,
            lambda: evaluate_pre_approval(inputs, thresholds),
        )
