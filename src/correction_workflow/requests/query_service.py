from __future__ import annotations

from typing import Optional, Sequence, Tuple, Union

from ..common.validators import require_id
from ..core.constants import STATUS_ALIASES, STATUS_ALL
from ..core.enums import RequestStatus, Role, SortOrder
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.policy import WorkflowPolicy
from .model import CorrectionRequest
from .repository import CorrectionRequestStore


def normalize_status(value: Optional[str], *, default: Optional[RequestStatus] = None) -> Optional[RequestStatus]:
    """Map a UI status filter to a status; ``None`` means no filter.

    Blank falls back to ``default``; "ALL" disables filtering; "NEW" is an
    alias of PENDING.
    """
    if isinstance(value, RequestStatus):
        return value
    v = (value or "").strip().upper()
    if not v:
        return default
    if v == STATUS_ALL:
        return None
    v = STATUS_ALIASES.get(v, v)
    try:
        return RequestStatus(v)
    except ValueError:
        raise ValidationError(f"unknown status filter: {value}")


def normalize_sort(value: Union[str, SortOrder, None]) -> SortOrder:
    if isinstance(value, SortOrder):
        return value
    v = (value or "").strip().lower()
    if not v:
        return SortOrder.RECENT
    try:
        return SortOrder(v)
    except ValueError:
        raise ValidationError(f"unknown sort order: {value}")


class QueryService:
    """Read-side listings and detail lookups."""

    def __init__(self, store: CorrectionRequestStore, policy: Optional[WorkflowPolicy] = None):
        self._store = store
        self._policy = policy or WorkflowPolicy()

    def page_bounds(self, page: Optional[int], size: Optional[int]) -> Tuple[int, int]:
        """Return the clamped ``(page, size)``."""
        page = max(int(page or 0), 0)
        size = int(size or 0)
        if size <= 0:
            size = self._policy.default_page_size
        return page, min(size, self._policy.max_page_size)

    def get_for_employee(
        self,
        employee_id: Optional[int],
        status: Optional[str] = None,
        page: Optional[int] = 0,
        size: Optional[int] = None,
    ) -> Sequence[CorrectionRequest]:
        employee_id = require_id(employee_id, "employee_id")
        page, size = self.page_bounds(page, size)
        return self._store.find_page(
            employee_id=employee_id,
            status=normalize_status(status),
            sort=SortOrder.RECENT,
            offset=page * size,
            limit=size,
        )

    def count_for_employee(self, employee_id: Optional[int], status: Optional[str] = None) -> int:
        employee_id = require_id(employee_id, "employee_id")
        return self._store.count(employee_id=employee_id, status=normalize_status(status))

    def get_pending(
        self,
        page: Optional[int] = 0,
        size: Optional[int] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort: Union[str, SortOrder, None] = SortOrder.RECENT,
    ) -> Sequence[CorrectionRequest]:
        page, size = self.page_bounds(page, size)
        return self._store.find_page(
            status=normalize_status(status, default=RequestStatus.PENDING),
            search=(search or "").strip() or None,
            sort=normalize_sort(sort),
            offset=page * size,
            limit=size,
        )

    def count_pending(self, status: Optional[str] = None, search: Optional[str] = None) -> int:
        return self._store.count(
            status=normalize_status(status, default=RequestStatus.PENDING),
            search=(search or "").strip() or None,
        )

    def get_detail(
        self,
        request_id: Optional[int],
        *,
        viewer_id: Optional[int],
        viewer_role: Optional[Role],
    ) -> CorrectionRequest:
        request_id = require_id(request_id, "request_id")
        request = self._store.find_by_id(request_id)
        if not request:
            raise NotFoundError(f"request {request_id} not found")
        if viewer_role != Role.ADMIN and viewer_id != request.employee_id:
            raise AuthorizationError("you cannot view this request")
        return request
