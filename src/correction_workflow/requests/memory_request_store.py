from __future__ import annotations

import itertools
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.locks import KeyedLocks
from ..core.enums import RequestStatus, SortOrder
from ..core.exceptions import ConflictError
from ..employees.repository import EmployeeDirectory
from .model import CorrectionRequest
from .repository import CorrectionRequestStore


def pending_key(request: CorrectionRequest) -> Optional[tuple]:
    """Identity of the pending slot a request occupies, or None once finished."""
    if request.status is not RequestStatus.PENDING:
        return None
    if request.attendance_record_id is not None:
        return (request.employee_id, "record", request.attendance_record_id)
    return (request.employee_id, "date", request.stamp_date)


def _sort_key(sort: SortOrder) -> Callable[[CorrectionRequest], tuple]:
    def created(r: CorrectionRequest) -> float:
        return r.created_at.timestamp() if r.created_at else 0.0

    if sort is SortOrder.OLDEST:
        return lambda r: (created(r), r.request_id or 0)
    if sort is SortOrder.STATUS:
        return lambda r: (r.status.value, -created(r), -(r.request_id or 0))
    return lambda r: (-created(r), -(r.request_id or 0))


class InMemoryCorrectionRequestStore(CorrectionRequestStore):
    """Thread-safe store backed by a dict.

    A store-wide lock guards identity assignment and the pending-slot check;
    per-request re-entrant locks serialize decisions on one request.
    """

    def __init__(
        self,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        employees: Optional[EmployeeDirectory] = None,
    ):
        self._clock = clock or now_local
        self._employees = employees
        self._items: Dict[int, CorrectionRequest] = {}
        self._ids = itertools.count(1)
        self._guard = threading.RLock()
        self._locks = KeyedLocks()

    def now(self) -> datetime:
        return self._clock()

    def _assert_slot_free(self, request: CorrectionRequest) -> None:
        key = pending_key(request)
        if key is None:
            return
        for other in self._items.values():
            if other.request_id != request.request_id and pending_key(other) == key:
                raise ConflictError("A pending request already exists for this attendance record")

    def create(self, request: CorrectionRequest) -> CorrectionRequest:
        if request is None:
            raise ValueError("request must not be None")
        with self._guard:
            self._assert_slot_free(request)
            now = self.now()
            created = replace(request, request_id=next(self._ids), created_at=now, updated_at=now)
            self._items[created.request_id] = created
            return created

    def save(self, request: CorrectionRequest) -> CorrectionRequest:
        if request is None:
            raise ValueError("request must not be None")
        if request.request_id is None:
            return self.create(request)
        with self._guard:
            self._assert_slot_free(request)
            self._items[int(request.request_id)] = request
            return request

    def find_by_id(self, request_id: Optional[int]) -> Optional[CorrectionRequest]:
        if request_id is None:
            return None
        return self._items.get(int(request_id))

    def find_all(self) -> Sequence[CorrectionRequest]:
        with self._guard:
            return list(self._items.values())

    def find_pending_for(
        self,
        *,
        employee_id: int,
        attendance_record_id: Optional[int],
        stamp_date: date,
    ) -> Optional[CorrectionRequest]:
        if attendance_record_id is not None:
            key = (int(employee_id), "record", int(attendance_record_id))
        else:
            key = (int(employee_id), "date", stamp_date)
        for item in self.find_all():
            if pending_key(item) == key:
                return item
        return None

    def _matches(self, request: CorrectionRequest, search: Optional[str], names: Dict[int, Optional[str]]) -> bool:
        if not search:
            return True
        needle = search.lower()
        if needle in (request.reason or "").lower():
            return True
        if request.request_id is not None and needle in str(request.request_id):
            return True
        if self._employees is None:
            return False
        if request.employee_id not in names:
            names[request.employee_id] = self._employees.get_name(request.employee_id)
        name = names[request.employee_id]
        return name is not None and needle in name.lower()

    def _filtered(
        self,
        employee_id: Optional[int],
        status: Optional[RequestStatus],
        search: Optional[str],
    ) -> List[CorrectionRequest]:
        names: Dict[int, Optional[str]] = {}
        return [
            r
            for r in self.find_all()
            if (employee_id is None or r.employee_id == int(employee_id))
            and (status is None or r.status is status)
            and self._matches(r, search, names)
        ]

    def find_page(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
        search: Optional[str] = None,
        sort: SortOrder = SortOrder.RECENT,
        offset: int = 0,
        limit: int = 20,
    ) -> Sequence[CorrectionRequest]:
        rows = sorted(self._filtered(employee_id, status, search), key=_sort_key(sort))
        return rows[int(offset) : int(offset) + int(limit)]

    def count(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
        search: Optional[str] = None,
    ) -> int:
        return len(self._filtered(employee_id, status, search))

    @contextmanager
    def locked(self, request_id: int) -> Iterator[None]:
        with self._locks.hold(int(request_id)):
            yield
