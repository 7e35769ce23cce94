"""Utility functions for the mortgage calculator.

This module provides helpers for turning user input into ``Decimal`` values,
rounding money to cents and handling calendar dates, including adding months
and parsing ISO or year-month strings to ``datetime.date`` instances.
"""

from __future__ import annotations

import calendar
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext
from typing import Union

from .errors import InvalidInput

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number, field: str = "value") -> Decimal:
    """Convert ``value`` into a finite ``Decimal``.

    Floats go through ``str`` so that ``0.1`` becomes ``Decimal("0.1")`` and
    not its binary expansion. Strings may contain thousands separators.

    Raises
    ------
    InvalidInput
        If the value is not numeric, is NaN or is infinite.
    """
    if isinstance(value, bool):
        raise InvalidInput(f"{field} must be a number, got {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).replace(",", "").strip())
        except (InvalidOperation, ValueError) as exc:
            raise InvalidInput(f"{field} must be a number, got {value!r}") from exc
    if not result.is_finite():
        raise InvalidInput(f"{field} must be finite, got {value!r}")
    return result


def round_money(value: Decimal, rounding: str = ROUND_HALF_UP) -> Decimal:
    """Round a monetary amount to cents (half-up unless told otherwise)."""
    return value.quantize(CENT, rounding=rounding)


def parse_date(value: str) -> date:
    """Parse ``YYYY-MM-DD`` or ``YYYY-MM`` into a ``date``.

    A year-month string yields the first day of that month.

    Raises
    ------
    InvalidInput
        If the string is not a valid date.
    """
    try:
        parts = [int(p) for p in value.strip().split("-")]
        if len(parts) == 2:
            return date(parts[0], parts[1], 1)
        if len(parts) == 3:
            return date(parts[0], parts[1], parts[2])
    except (AttributeError, ValueError) as exc:
        raise InvalidInput(f"Invalid date string: {value!r}") from exc
    raise InvalidInput(f"Invalid date string: {value!r}")


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)
