from __future__ import annotations

import logging
from typing import Optional

from ..attendance.repository import AttendanceRecordGateway
from ..common.validators import require_id, require_length_between, require_max_length
from ..core.exceptions import ConflictError, NotFoundError
from ..core.policy import WorkflowPolicy
from .model import CorrectionRequest
from .repository import CorrectionRequestStore

logger = logging.getLogger(__name__)


def load_pending(store: CorrectionRequestStore, request_id: int) -> CorrectionRequest:
    """Fetch a request that can still be decided; call while holding its lock."""
    request = store.find_by_id(request_id)
    if not request:
        raise NotFoundError(f"request {request_id} not found")
    if request.status.is_terminal:
        logger.info("request %s already processed (%s)", request_id, request.status.value)
        raise ConflictError("request has already been processed")
    return request


class ApprovalService:
    """Administrator decisions on pending requests.

    Approval checks the attendance record against the snapshot taken at
    submission and applies the requested values under the record lock.
    The request lock is always taken before the record lock.
    """

    def __init__(
        self,
        store: CorrectionRequestStore,
        attendance: AttendanceRecordGateway,
        policy: Optional[WorkflowPolicy] = None,
    ):
        self._store = store
        self._attendance = attendance
        self._policy = policy or WorkflowPolicy()

    def approve_request(
        self,
        request_id: Optional[int],
        approver_id: Optional[int],
        note: Optional[str] = None,
    ) -> CorrectionRequest:
        approver_id = require_id(approver_id, "approver_id")
        note = require_max_length(note, "note", self._policy.note_max_length)
        request_id = require_id(request_id, "request_id")

        with self._store.locked(request_id):
            request = load_pending(self._store, request_id)
            record_id = request.attendance_record_id
            if record_id is None:
                raise NotFoundError(f"request {request_id} has no attendance record to update")

            with self._attendance.locked(record_id):
                current = self._attendance.read_snapshot(record_id)
                if current is None:
                    raise NotFoundError(f"attendance record {record_id} not found")
                if current != request.original:
                    logger.info("request %s is stale: attendance record %s changed", request_id, record_id)
                    raise ConflictError("attendance record has already changed")

                now = self._store.now()
                written = self._attendance.write_approved_values(
                    record_id,
                    request.requested,
                    updated_by=approver_id,
                    updated_at=now,
                )
                if not written:
                    raise NotFoundError(f"attendance record {record_id} not found")

                approved = self._store.save(request.approve(approver_id=approver_id, note=note, now=now))

        logger.info("request %s approved by %s", request_id, approver_id)
        return approved

    def reject_request(
        self,
        request_id: Optional[int],
        rejecter_id: Optional[int],
        reason: Optional[str],
    ) -> CorrectionRequest:
        rejecter_id = require_id(rejecter_id, "rejecter_id")
        reason = require_length_between(
            reason,
            "rejection reason",
            self._policy.reason_min_length,
            self._policy.reason_max_length,
        )
        request_id = require_id(request_id, "request_id")

        with self._store.locked(request_id):
            request = load_pending(self._store, request_id)
            rejected = self._store.save(
                request.reject(rejecter_id=rejecter_id, reason=reason, now=self._store.now())
            )

        logger.info("request %s rejected by %s", request_id, rejecter_id)
        return rejected
