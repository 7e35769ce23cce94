"""Conversion between calculator records and JSON-ready primitives.

The HTTP endpoints, the remote client and the history store all exchange
records as plain dictionaries keyed by the dataclass field names, so a
request built for the remote API can be evaluated locally and vice versa.
"""

from __future__ import annotations

import dataclasses
import typing
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Mapping, Type, TypeVar

from .errors import InvalidInput
from .utils import parse_date, to_decimal

T = TypeVar("T")


def to_primitive(value: Any) -> Any:
    """Convert a record (or nested structure of records) to JSON types.

    Money becomes ``float`` and dates ISO ``YYYY-MM-DD`` strings.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_primitive(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [to_primitive(v) for v in value]
    if isinstance(value, dict):
        return {k: to_primitive(v) for k, v in value.items()}
    return value


def _convert(tp: Any, value: Any, name: str) -> Any:
    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    if origin is typing.Union:
        if value is None and type(None) in args:
            return None
        inner = [a for a in args if a is not type(None)]
        return _convert(inner[0], value, name)
    if origin in (tuple, list):
        if not isinstance(value, (list, tuple)):
            raise InvalidInput(f"{name} must be a list")
        return tuple(_convert(args[0], item, name) for item in value)
    if value is None:
        raise InvalidInput(f"{name} is required")
    if dataclasses.is_dataclass(tp):
        if not isinstance(value, Mapping):
            raise InvalidInput(f"{name} must be an object")
        return from_mapping(tp, value)
    if tp is Decimal:
        return to_decimal(value, name)
    if tp is bool:
        if not isinstance(value, bool):
            raise InvalidInput(f"{name} must be true or false")
        return value
    if tp is int:
        number = to_decimal(value, name)
        if number != number.to_integral_value():
            raise InvalidInput(f"{name} must be a whole number, got {value!r}")
        return int(number)
    if tp is date:
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            return parse_date(value)
        raise InvalidInput(f"{name} must be a date string")
    if tp is str:
        return str(value)
    return value


def from_mapping(record_type: Type[T], data: Mapping[str, Any]) -> T:
    """Build ``record_type`` from a mapping keyed by its field names.

    Missing optional fields take the dataclass default; unknown keys are
    ignored.

    Raises
    ------
    InvalidInput
        If ``data`` is not a mapping, a required field is missing or a value
        cannot be converted.
    """
    if not isinstance(data, Mapping):
        raise InvalidInput(f"{record_type.__name__} payload must be an object")
    hints = typing.get_type_hints(record_type)
    kwargs: Dict[str, Any] = {}
    for f in dataclasses.fields(record_type):
        if f.name not in data:
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                raise InvalidInput(f"{f.name} is required")
            continue
        kwargs[f.name] = _convert(hints[f.name], data[f.name], f.name)
    return record_type(**kwargs)
