from __future__ import annotations

import logging
from typing import Optional

from ..common.validators import require_id, require_length_between
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError
from ..core.policy import WorkflowPolicy
from .model import CorrectionRequest
from .repository import CorrectionRequestStore

logger = logging.getLogger(__name__)


class CancellationService:
    def __init__(self, store: CorrectionRequestStore, policy: Optional[WorkflowPolicy] = None):
        self._store = store
        self._policy = policy or WorkflowPolicy()

    def cancel_request(
        self,
        request_id: Optional[int],
        employee_id: Optional[int],
        reason: Optional[str],
    ) -> CorrectionRequest:
        """Withdraw a pending request on behalf of its submitter.

        The attendance record is never touched.
        """
        employee_id = require_id(employee_id, "employee_id")
        request_id = require_id(request_id, "request_id")

        with self._store.locked(request_id):
            request = self._store.find_by_id(request_id)
            if not request:
                raise NotFoundError(f"request {request_id} not found")
            if request.employee_id != employee_id:
                raise AuthorizationError("only the submitter can cancel this request")
            if request.status.is_terminal:
                logger.info("request %s already processed (%s)", request_id, request.status.value)
                raise ConflictError("request has already been processed")
            reason = require_length_between(
                reason,
                "cancellation reason",
                self._policy.reason_min_length,
                self._policy.reason_max_length,
            )
            cancelled = self._store.save(request.cancel(reason=reason, now=self._store.now()))

        logger.info("request %s cancelled by employee %s", request_id, employee_id)
        return cancelled
