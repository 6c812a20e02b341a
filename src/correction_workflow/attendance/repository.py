from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import datetime
from typing import Optional, Protocol

from .model import AttendanceRecord, AttendanceSnapshot


class AttendanceRecordGateway(Protocol):
    """Access to the externally owned attendance records.

    The approval service reads a snapshot, compares it and writes the
    approved values while holding ``locked(attendance_id)``.
    """

    def get(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def read_snapshot(self, attendance_id: int) -> Optional[AttendanceSnapshot]:
        raise NotImplementedError

    def write_approved_values(
        self,
        attendance_id: int,
        values: AttendanceSnapshot,
        *,
        updated_by: int,
        updated_at: datetime,
    ) -> bool:
        """Apply the non-null fields of ``values``; other fields keep their current value."""

        raise NotImplementedError

    def locked(self, attendance_id: int) -> AbstractContextManager[None]:
        raise NotImplementedError
