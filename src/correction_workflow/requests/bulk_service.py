from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..common.validators import require_id, require_length_between, require_max_length
from ..core.exceptions import DomainError, ValidationError
from ..core.policy import WorkflowPolicy
from .approval_service import ApprovalService

logger = logging.getLogger(__name__)


@dataclass
class BulkOperationResult:
    success_count: int = 0
    failure_count: int = 0
    failed_ids: List[Any] = field(default_factory=list)

    def record_success(self) -> None:
        self.success_count += 1

    def record_failure(self, request_id: Any) -> None:
        self.failure_count += 1
        self.failed_ids.append(request_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "successCount": self.success_count,
            "failureCount": self.failure_count,
            "failedIds": list(self.failed_ids),
        }


class BulkOperationService:
    """Applies one decision to many requests, each independently.

    A failure on one id is recorded and the rest still run; successes are
    never rolled back.
    """

    def __init__(self, approvals: ApprovalService, policy: Optional[WorkflowPolicy] = None):
        self._approvals = approvals
        self._policy = policy or WorkflowPolicy()

    def _check_batch(self, request_ids: Optional[Iterable[Optional[int]]]) -> List[Optional[int]]:
        ids = list(request_ids or [])
        if not ids:
            raise ValidationError("request_ids must not be empty")
        if len(ids) > self._policy.max_bulk_size:
            raise ValidationError(f"at most {self._policy.max_bulk_size} requests can be processed at once")
        return ids

    def bulk_approve(
        self,
        request_ids: Optional[Iterable[Optional[int]]],
        approver_id: Optional[int],
        note: Optional[str] = None,
    ) -> BulkOperationResult:
        approver_id = require_id(approver_id, "approver_id")
        note = require_max_length(note, "note", self._policy.note_max_length)
        ids = self._check_batch(request_ids)

        result = BulkOperationResult()
        for request_id in ids:
            if request_id is None:
                continue
            try:
                self._approvals.approve_request(request_id, approver_id, note)
                result.record_success()
            except DomainError as e:
                logger.warning("bulk approve: request %s failed: %s", request_id, e)
                result.record_failure(request_id)

        logger.info(
            "bulk approve by %s: %s succeeded, %s failed",
            approver_id,
            result.success_count,
            result.failure_count,
        )
        return result

    def bulk_reject(
        self,
        request_ids: Optional[Iterable[Optional[int]]],
        rejecter_id: Optional[int],
        reason: Optional[str],
    ) -> BulkOperationResult:
        rejecter_id = require_id(rejecter_id, "rejecter_id")
        reason = require_length_between(
            reason,
            "rejection reason",
            self._policy.reason_min_length,
            self._policy.reason_max_length,
        )
        ids = self._check_batch(request_ids)

        result = BulkOperationResult()
        for request_id in ids:
            if request_id is None:
                continue
            try:
                self._approvals.reject_request(request_id, rejecter_id, reason)
                result.record_success()
            except DomainError as e:
                logger.warning("bulk reject: request %s failed: %s", request_id, e)
                result.record_failure(request_id)

        logger.info(
            "bulk reject by %s: %s succeeded, %s failed",
            rejecter_id,
            result.success_count,
            result.failure_count,
        )
        return result
