from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from ..common.datetime_utils import from_utc_naive, to_utc_naive
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import AttendanceRecord, AttendanceSnapshot
from .repository import AttendanceRecordGateway


def _as_bool(value) -> Optional[bool]:
    return None if value is None else bool(value)


class MySQLAttendanceRecords(AttendanceRecordGateway):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id, user_id, work_date,
                       in_time, out_time, break_start_time, break_end_time, is_night_shift,
                       updated_by, updated_at
                FROM attendance_records
                WHERE attendance_id=%s
                """,
                (int(attendance_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return AttendanceRecord(
                attendance_id=int(r["attendance_id"]),
                employee_id=int(r["user_id"]),
                stamp_date=r["work_date"],
                snapshot=AttendanceSnapshot(
                    in_time=from_utc_naive(r.get("in_time")),
                    out_time=from_utc_naive(r.get("out_time")),
                    break_start=from_utc_naive(r.get("break_start_time")),
                    break_end=from_utc_naive(r.get("break_end_time")),
                    night_shift=_as_bool(r.get("is_night_shift")),
                ),
                updated_by=r.get("updated_by"),
                updated_at=from_utc_naive(r.get("updated_at")),
            )

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET in_time=COALESCE(%s, in_time),
                    out_time=COALESCE(%s, out_time),
                    break_start_time=COALESCE(%s, break_start_time),
                    break_end_time=COALESCE(%s, break_end_time),
                    is_night_shift=COALESCE(%s, is_night_shift),
                    updated_by=%s,
                    updated_at=%s
                WHERE attendance_id=%s
                """,
                (
                    to_utc_naive(values.in_time),
                    to_utc_naive(values.out_time),
                    to_utc_naive(values.break_start),
                    to_utc_naive(values.break_end),
                    None if values.night_shift is None else int(values.night_shift),
                    int(updated_by),
                    to_utc_naive(updated_at),
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    @contextmanager
    def locked(self, attendance_id: int) -> Iterator[None]:
        with self._conn_factory.transaction():
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "SELECT attendance_id FROM attendance_records WHERE attendance_id=%s FOR UPDATE",
                    (int(attendance_id),),
                )
                fetchone(cur)
            yield
