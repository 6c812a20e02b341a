from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType
from typing import Any

from .constants import (
    DEFAULT_MAX_BULK_SIZE,
    DEFAULT_MAX_PAGE_SIZE,
    DEFAULT_NOTE_MAX_LENGTH,
    DEFAULT_PAGE_SIZE,
    DEFAULT_REASON_MAX_LENGTH,
    DEFAULT_REASON_MIN_LENGTH,
)


@dataclass(frozen=True)
class WorkflowPolicy:
    """Business-rule limits shared by the request services."""

    max_bulk_size: int = DEFAULT_MAX_BULK_SIZE
    reason_min_length: int = DEFAULT_REASON_MIN_LENGTH
    reason_max_length: int = DEFAULT_REASON_MAX_LENGTH
    note_max_length: int = DEFAULT_NOTE_MAX_LENGTH
    default_page_size: int = DEFAULT_PAGE_SIZE
    max_page_size: int = DEFAULT_MAX_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.max_bulk_size <= 0:
            raise ValueError("max_bulk_size must be positive")
        if not 0 < self.reason_min_length <= self.reason_max_length:
            raise ValueError("reason length bounds are inconsistent")
        if not 0 < self.default_page_size <= self.max_page_size:
            raise ValueError("page size bounds are inconsistent")

    @classmethod
    def from_settings(cls, settings: ModuleType | Any) -> "WorkflowPolicy":
        return cls(
            max_bulk_size=int(getattr(settings, "MAX_BULK_SIZE", DEFAULT_MAX_BULK_SIZE)),
            reason_min_length=int(getattr(settings, "REASON_MIN_LENGTH", DEFAULT_REASON_MIN_LENGTH)),
            reason_max_length=int(getattr(settings, "REASON_MAX_LENGTH", DEFAULT_REASON_MAX_LENGTH)),
            note_max_length=int(getattr(settings, "NOTE_MAX_LENGTH", DEFAULT_NOTE_MAX_LENGTH)),
            default_page_size=int(getattr(settings, "DEFAULT_PAGE_SIZE", DEFAULT_PAGE_SIZE)),
            max_page_size=int(getattr(settings, "MAX_PAGE_SIZE", DEFAULT_MAX_PAGE_SIZE)),
        )
