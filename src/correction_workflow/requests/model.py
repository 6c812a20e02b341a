from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

from ..attendance.model import AttendanceSnapshot
from ..core.enums import RequestStatus

_DECISION_FIELDS = {
    RequestStatus.APPROVED: ("approver_id", "approval_note", "approved_at"),
    RequestStatus.REJECTED: ("rejecter_id", "rejection_reason", "rejected_at"),
    RequestStatus.CANCELLED: ("cancellation_reason", "cancelled_at"),
}


@dataclass(frozen=True)
class NewCorrectionRequest:
    """Submission payload for a correction request."""

    requested_in_time: Optional[datetime]
    reason: Optional[str]
    attendance_record_id: Optional[int] = None
    requested_out_time: Optional[datetime] = None
    requested_break_start: Optional[datetime] = None
    requested_break_end: Optional[datetime] = None
    requested_night_shift: Optional[bool] = None


@dataclass(frozen=True)
class CorrectionRequest:
    """Domain entity: a proposed amendment to one attendance punch.

    ``original`` is the attendance state captured at submission time and is
    only used to detect conflicting edits at decision time. Transitions return
    new instances; decision fields belonging to another status must stay empty.
    """

    employee_id: int
    attendance_record_id: Optional[int]
    stamp_date: date
    original: AttendanceSnapshot
    requested: AttendanceSnapshot
    reason: str
    status: RequestStatus = RequestStatus.PENDING
    request_id: Optional[int] = None

    approver_id: Optional[int] = None
    approval_note: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejecter_id: Optional[int] = None
    rejection_reason: Optional[str] = None
    rejected_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        for status, names in _DECISION_FIELDS.items():
            if status is self.status:
                continue
            populated = [n for n in names if getattr(self, n) is not None]
            if populated:
                raise ValueError(
                    f"{', '.join(populated)} must be empty for a {self.status.value} request"
                )

    def _transition(self, target: RequestStatus, now: datetime, **fields) -> "CorrectionRequest":
        if not self.status.can_transition_to(target):
            raise ValueError(f"cannot move request from {self.status.value} to {target.value}")
        return replace(self, status=target, updated_at=now, **fields)

    def approve(self, *, approver_id: int, note: Optional[str], now: datetime) -> "CorrectionRequest":
        return self._transition(
            RequestStatus.APPROVED,
            now,
            approver_id=int(approver_id),
            approval_note=note,
            approved_at=now,
        )

    def reject(self, *, rejecter_id: int, reason: str, now: datetime) -> "CorrectionRequest":
        return self._transition(
            RequestStatus.REJECTED,
            now,
            rejecter_id=int(rejecter_id),
            rejection_reason=reason,
            rejected_at=now,
        )

    def cancel(self, *, reason: str, now: datetime) -> "CorrectionRequest":
        return self._transition(
            RequestStatus.CANCELLED,
            now,
            cancellation_reason=reason,
            cancelled_at=now,
        )
