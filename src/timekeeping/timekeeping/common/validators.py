from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def optional_text(value: Optional[str]) -> Optional[str]:
    v = (value or "").strip()
    return v or None


def require_decimal(value, field_name: str) -> Decimal:
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number")


def require_between(value: Decimal, field_name: str, low: Decimal, high: Decimal) -> Decimal:
    if value < low or value > high:
        raise ValidationError(f"{field_name} must be between {low} and {high}")
    return value


def require_enum(enum_cls: Type[E], value, field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())  # type: ignore[call-arg]
    except ValueError:
        raise ValidationError(f"{field_name} is not valid: {value!r}")
