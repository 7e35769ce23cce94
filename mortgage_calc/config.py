"""Runtime configuration.

Underwriting and refinance thresholds are read from the environment so
that they can be tuned per deployment without a code change:

``MORTGAGE_MAX_DTI_PERCENT``
    Maximum back-end debt-to-income ratio (default 43).
``MORTGAGE_MAX_FRONT_END_PERCENT``
    Maximum front-end (housing payment to income) ratio (default 28).
``MORTGAGE_MAX_BREAK_EVEN_YEARS``
    Longest break-even period for which a refinance is recommended
    (default 5).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional

from .errors import InvalidInput
from .utils import to_decimal

DEFAULT_MAX_DTI_PERCENT = Decimal("43")
DEFAULT_MAX_FRONT_END_PERCENT = Decimal("28")
DEFAULT_MAX_BREAK_EVEN_YEARS = Decimal("5")


@dataclass(frozen=True)
class UnderwritingThresholds:
    """Ratio limits used by the pre-approval evaluator, in percent."""

    max_debt_to_income_percent: Decimal = DEFAULT_MAX_DTI_PERCENT
    max_front_end_percent: Decimal = DEFAULT_MAX_FRONT_END_PERCENT

    def __post_init__(self) -> None:
        for name in ("max_debt_to_income_percent", "max_front_end_percent"):
            value = to_decimal(getattr(self, name), name)
            if value <= 0 or value > 100:
                raise InvalidInput(f"{name} must be between 0 and 100 percent")
            object.__setattr__(self, name, value)


def load_thresholds(environ: Optional[Mapping[str, str]] = None) -> UnderwritingThresholds:
    """Build thresholds from environment variables, falling back to defaults."""
    env = os.environ if environ is None else environ
    return UnderwritingThresholds(
        max_debt_to_income_percent=env.get("MORTGAGE_MAX_DTI_PERCENT", DEFAULT_MAX_DTI_PERCENT),
        max_front_end_percent=env.get("MORTGAGE_MAX_FRONT_END_PERCENT", DEFAULT_MAX_FRONT_END_PERCENT),
    )


def load_max_break_even_years(environ: Optional[Mapping[str, str]] = None) -> Decimal:
    """Longest break-even period, in years, for which a refinance is recommended."""
    env = os.environ if environ is None else environ
    value = to_decimal(env.get("MORTGAGE_MAX_BREAK_EVEN_YEARS", DEFAULT_MAX_BREAK_EVEN_YEARS), "max_break_even_years")
    if value <= 0:
        raise InvalidInput("max_break_even_years must be positive")
    return value
