from __future__ import annotations

from enum import Enum
from typing import Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_positive_int(value, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if number < 1:
        raise ValidationError(f"{field_name} must be at least 1")
    return number


def parse_enum(enum_cls: Type[E], value, field_name: str) -> E:
    """Coerce a raw string (or enum member) into ``enum_cls``."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value or "").strip().lower())
    except ValueError:
        allowed = ", ".join(repr(m.value) for m in enum_cls)
        raise ValidationError(f"Invalid {field_name}. Must be one of {allowed}")


def optional_text(value) -> Optional[str]:
    text = (value or "").strip() if isinstance(value, str) else value
    return text or None
