from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, Iterator, Optional

from ..common.locks import KeyedLocks
from .model import AttendanceRecord, AttendanceSnapshot
from .repository import AttendanceRecordGateway


def merge_snapshot(current: AttendanceSnapshot, values: AttendanceSnapshot) -> AttendanceSnapshot:
    """Overlay the non-null fields of ``values`` onto ``current``."""
    return AttendanceSnapshot(
        in_time=values.in_time if values.in_time is not None else current.in_time,
        out_time=values.out_time if values.out_time is not None else current.out_time,
        break_start=values.break_start if values.break_start is not None else current.break_start,
        break_end=values.break_end if values.break_end is not None else current.break_end,
        night_shift=values.night_shift if values.night_shift is not None else current.night_shift,
    )


class InMemoryAttendanceRecords(AttendanceRecordGateway):
    def __init__(self):
        self._records: Dict[int, AttendanceRecord] = {}
        self._next_id = 1
        self._guard = threading.Lock()
        self._locks = KeyedLocks()

    def add(
        self,
        *,
        employee_id: int,
        stamp_date: date,
        snapshot: AttendanceSnapshot,
        attendance_id: Optional[int] = None,
    ) -> AttendanceRecord:
        with self._guard:
            rid = int(attendance_id) if attendance_id is not None else self._next_id
            self._next_id = max(self._next_id, rid + 1)
            record = AttendanceRecord(
                attendance_id=rid,
                employee_id=int(employee_id),
                stamp_date=stamp_date,
                snapshot=snapshot,
            )
            self._records[rid] = record
            return record

    def overwrite(self, attendance_id: int, snapshot: AttendanceSnapshot) -> None:
        """Edit a record directly, as the punch-recording path would."""
        with self.locked(attendance_id):
            record = self._records[int(attendance_id)]
            self._records[record.attendance_id] = replace(record, snapshot=snapshot)

    def get(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self._records.get(int(attendance_id))

    def read_snapshot(self, attendance_id: int) -> Optional[AttendanceSnapshot]:
        record = self.get(attendance_id)
        return record.snapshot if record else None

    def write_approved_values(
        self,
        attendance_id: int,
        values: AttendanceSnapshot,
        *,
        updated_by: int,
        updated_at: datetime,
    ) -> bool:
        with self.locked(attendance_id):
            record = self._records.get(int(attendance_id))
            if not record:
                return False
            self._records[record.attendance_id] = replace(
                record,
                snapshot=merge_snapshot(record.snapshot, values),
                updated_by=int(updated_by),
                updated_at=updated_at,
            )
            return True

    @contextmanager
    def locked(self, attendance_id: int) -> Iterator[None]:
        with self._locks.hold(int(attendance_id)):
            yield
