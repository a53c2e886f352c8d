"""
Shared validation helpers for the exchanger rating engine and its MCP tools.

Keep these light-weight and reusable to avoid duplicated checks
across tools.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Type, TypeVar

E = TypeVar("E", bound=Enum)


class ValidationError(ValueError):
    pass


class TemperatureCrossError(ValidationError):
    """Terminal temperature difference is zero or negative."""

    def __init__(self, dt1: float, dt2: float):
        self.dt1 = dt1
        self.dt2 = dt2
        super().__init__(
            f"Temperature cross: dT1={dt1:.3f} K, dT2={dt2:.3f} K; both terminal differences must be > 0"
        )


def is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def require_positive(value: float, name: str) -> None:
    if value is None or not is_finite_number(value) or value <= 0:
        raise ValidationError(f"{name} must be > 0; got {value}")


def require_non_negative(value: float, name: str) -> None:
    if value is None or not is_finite_number(value) or value < 0:
        raise ValidationError(f"{name} must be >= 0; got {value}")


def require_open_range(value: float, name: str, low: float, high: float) -> None:
    if value is None or not is_finite_number(value) or not low < value < high:
        raise ValidationError(f"{name} must be between {low} and {high} (exclusive); got {value}")


def parse_enum(enum_cls: Type[E], value: Any, name: str) -> E:
    """Resolve a string (value or member name, case-insensitive) to an enum member."""
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    for member in enum_cls:
        if text.lower() in (str(member.value).lower(), member.name.lower()):
            return member
    choices = ", ".join(str(m.value) for m in enum_cls)
    raise ValidationError(f"{name} must be one of: {choices}; got {value!r}")
