from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role supplied by the identity context for authorization checks."""

    ADMIN = "admin"
    STAFF = "staff"


class RequestStatus(str, Enum):
    """Lifecycle of a correction request.

    PENDING is the only non-terminal state; every other value is final.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING

    def can_transition_to(self, target: "RequestStatus") -> bool:
        return self is RequestStatus.PENDING and target.is_terminal


class SortOrder(str, Enum):
    RECENT = "recent"
    OLDEST = "oldest"
    STATUS = "status"
