from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus, SortOrder
from .model import CorrectionRequest


class CorrectionRequestStore(Protocol):
    """Persistence for correction requests plus the shared clock.

    ``locked(request_id)`` must be held around every check-then-write on one
    request so that two decisions on the same request cannot both succeed.
    """

    def now(self) -> datetime:
        raise NotImplementedError

    def create(self, request: CorrectionRequest) -> CorrectionRequest:
        """Assign identity and timestamps, then persist.

        Raises ConflictError when another PENDING request already exists for
        the same employee and attendance record (or date, without a record).
        """

        raise NotImplementedError

    def save(self, request: CorrectionRequest) -> CorrectionRequest:
        raise NotImplementedError

    def find_by_id(self, request_id: Optional[int]) -> Optional[CorrectionRequest]:
        raise NotImplementedError

    def find_all(self) -> Sequence[CorrectionRequest]:
        raise NotImplementedError

    def find_pending_for(
        self,
        *,
        employee_id: int,
        attendance_record_id: Optional[int],
        stamp_date: date,
    ) -> Optional[CorrectionRequest]:
        raise NotImplementedError

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
        raise NotImplementedError

    def count(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
        search: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def locked(self, request_id: int) -> AbstractContextManager[None]:
        raise NotImplementedError
