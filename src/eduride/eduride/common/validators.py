from __future__ import annotations

from typing import Any

from ..core.exceptions import ValidationError


def require_non_empty(value: Any, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"Missing required field: {field_name}")
    return str(value).strip()


def require_positive_int(value: Any, field_name: str, *, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if number < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return number


def require_id_list(value: Any, field_name: str) -> list[int]:
    if not isinstance(value, list) or not value:
        raise ValidationError(f"{field_name} must be a non-empty list")
    ids = []
    for item in value:
        if isinstance(item, bool):
            raise ValidationError(f"{field_name} must contain user ids")
        try:
            ids.append(int(item))
        except (TypeError, ValueError):
            raise ValidationError(f"{field_name} must contain user ids")
    return ids
