from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)

EMAIL_RE = re.compile(r"^[\w.+-]+@[\w-]+(\.[\w-]+)*\.\w{2,}$")
USER_PHONE_RE = re.compile(r"^\+?[1-9]\d{1,14}$")
CONTACT_PHONE_RE = re.compile(r"^[+]?[(]?[0-9]{1,4}[)]?[-\s.]?[0-9]{1,15}$")


def require_non_empty(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Please provide {field_name}")
    return value.strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} cannot exceed {max_len} characters")
    return value


def optional_text(value: Any, field_name: str, max_len: int) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")
    value = value.strip()
    if not value:
        return None
    return require_max_length(value, field_name, max_len)


def strip_quotes(value: Any) -> Any:
    """Drop stray surrounding double quotes some clients send around form values."""
    if not isinstance(value, str):
        return value
    return value.strip().strip('"').strip()


def require_email(value: Any, *, required: bool = True) -> Optional[str]:
    value = strip_quotes(value)
    if not value:
        if required:
            raise ValidationError("Please provide an email")
        return None
    value = str(value).lower()
    if not EMAIL_RE.match(value):
        raise ValidationError("Please provide a valid email")
    return value


def require_phone(value: Any, *, pattern: re.Pattern = CONTACT_PHONE_RE, required: bool = False) -> Optional[str]:
    value = strip_quotes(value)
    if not value:
        if required:
            raise ValidationError("Please provide a phone number")
        return None
    value = str(value)
    if not pattern.match(value):
        raise ValidationError(f"{value} is not a valid phone number!")
    return value


def require_enum(enum_cls: Type[E], value: Any, field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(str(m.value) for m in enum_cls)
        raise ValidationError(f"`{value}` is not a valid {field_name} (allowed: {allowed})")


def require_non_negative(value: Any, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{field_name} must be a finite number")
    if number < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return number


def round_currency(value: Any) -> float:
    """Round a money value to 2 decimals, half away from zero.

    Rounding an already rounded value returns it unchanged.
    """
    try:
        amount = Decimal(str(value))
        if not amount.is_finite():
            raise ValidationError("Amount must be a finite number")
        return float(amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        raise ValidationError("Amount must be a number")
