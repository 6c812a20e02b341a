from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_length_between(value: Optional[str], field_name: str, min_len: int, max_len: int) -> str:
    """Validate a required free-text field.

    Blank text counts as missing; the length bounds apply to the text as
    submitted so that stored values keep the user's wording.
    """
    require_non_empty(value, field_name)
    text = value or ""
    if len(text) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    if len(text) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return text


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return value


def require_id(value: Optional[int], field_name: str) -> int:
    if value is None:
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field_name} must be a positive integer")
    return value


def require_aware(value: Optional[datetime], field_name: str) -> Optional[datetime]:
    """Reject naive datetimes; every exchanged timestamp carries an offset."""
    if value is not None and (value.tzinfo is None or value.utcoffset() is None):
        raise ValidationError(f"{field_name} must include a UTC offset")
    return value
