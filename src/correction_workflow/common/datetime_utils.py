from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from ..core.exceptions import ValidationError


def now_local() -> datetime:
    """Current local time with its UTC offset.

    Note: Wrapped so tests can patch/mock it easier.
    """
    return datetime.now().astimezone()


def parse_iso_datetime(value: Optional[str], field_name: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp with explicit offset (``Z`` accepted)."""
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field_name} must be an ISO-8601 string")
    v = (value or "").strip()
    if not v:
        return None
    if v.endswith("Z"):
        v = v[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(v)
    except ValueError:
        raise ValidationError(f"{field_name} is not a valid ISO-8601 timestamp")
    if parsed.tzinfo is None:
        raise ValidationError(f"{field_name} must include a UTC offset")
    return parsed


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """MySQL DATETIME columns hold UTC without offset."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc)
