from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

import mysql.connector

from ..attendance.model import AttendanceSnapshot
from ..common.datetime_utils import from_utc_naive, now_local, to_utc_naive
from ..core.enums import RequestStatus, SortOrder
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, like_pattern
from .model import CorrectionRequest
from .repository import CorrectionRequestStore

DUPLICATE_ENTRY = 1062

_COLUMNS = """
    r.request_id, r.employee_id, r.attendance_record_id, r.stamp_date, r.status,
    r.original_in_time, r.original_out_time, r.original_break_start_time,
    r.original_break_end_time, r.original_is_night_shift,
    r.requested_in_time, r.requested_out_time, r.requested_break_start_time,
    r.requested_break_end_time, r.requested_is_night_shift, r.reason,
    r.approver_id, r.approval_note, r.approved_at,
    r.rejecter_id, r.rejection_reason, r.rejected_at,
    r.cancellation_reason, r.cancelled_at,
    r.created_at, r.updated_at
"""

_ORDER_BY = {
    SortOrder.RECENT: "r.created_at DESC, r.request_id DESC",
    SortOrder.OLDEST: "r.created_at ASC, r.request_id ASC",
    SortOrder.STATUS: "r.status ASC, r.created_at DESC, r.request_id DESC",
}


def _flag(value) -> Optional[bool]:
    return None if value is None else bool(value)


def _flag_param(value: Optional[bool]) -> Optional[int]:
    return None if value is None else int(value)


def _snapshot(r: Dict[str, Any], prefix: str) -> AttendanceSnapshot:
    return AttendanceSnapshot(
        in_time=from_utc_naive(r.get(f"{prefix}_in_time")),
        out_time=from_utc_naive(r.get(f"{prefix}_out_time")),
        break_start=from_utc_naive(r.get(f"{prefix}_break_start_time")),
        break_end=from_utc_naive(r.get(f"{prefix}_break_end_time")),
        night_shift=_flag(r.get(f"{prefix}_is_night_shift")),
    )


def _to_entity(r: Dict[str, Any]) -> CorrectionRequest:
    return CorrectionRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        attendance_record_id=r.get("attendance_record_id"),
        stamp_date=r["stamp_date"],
        status=RequestStatus(r["status"]),
        original=_snapshot(r, "original"),
        requested=_snapshot(r, "requested"),
        reason=r["reason"],
        approver_id=r.get("approver_id"),
        approval_note=r.get("approval_note"),
        approved_at=from_utc_naive(r.get("approved_at")),
        rejecter_id=r.get("rejecter_id"),
        rejection_reason=r.get("rejection_reason"),
        rejected_at=from_utc_naive(r.get("rejected_at")),
        cancellation_reason=r.get("cancellation_reason"),
        cancelled_at=from_utc_naive(r.get("cancelled_at")),
        created_at=from_utc_naive(r["created_at"]),
        updated_at=from_utc_naive(r["updated_at"]),
    )


class MySQLCorrectionRequestStore(CorrectionRequestStore):
    def __init__(self, conn_factory: DatabaseConnection, *, clock: Optional[Callable[[], datetime]] = None):
        self._conn_factory = conn_factory
        self._clock = clock or now_local

    def now(self) -> datetime:
        return self._clock()

    def create(self, request: CorrectionRequest) -> CorrectionRequest:
        if request is None:
            raise ValueError("request must not be None")
        now = self.now()
        request = replace(request, created_at=now, updated_at=now)
        o, q = request.original, request.requested
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO correction_requests(
                        employee_id, attendance_record_id, stamp_date, status,
                        original_in_time, original_out_time, original_break_start_time,
                        original_break_end_time, original_is_night_shift,
                        requested_in_time, requested_out_time, requested_break_start_time,
                        requested_break_end_time, requested_is_night_shift, reason,
                        created_at, updated_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(request.employee_id),
                        request.attendance_record_id,
                        request.stamp_date,
                        request.status.value,
                        to_utc_naive(o.in_time),
                        to_utc_naive(o.out_time),
                        to_utc_naive(o.break_start),
                        to_utc_naive(o.break_end),
                        _flag_param(o.night_shift),
                        to_utc_naive(q.in_time),
                        to_utc_naive(q.out_time),
                        to_utc_naive(q.break_start),
                        to_utc_naive(q.break_end),
                        _flag_param(q.night_shift),
                        request.reason,
                        to_utc_naive(now),
                        to_utc_naive(now),
                    ),
                )
                return replace(request, request_id=int(cur.lastrowid))
        except mysql.connector.IntegrityError as e:
            if e.errno == DUPLICATE_ENTRY:
                raise ConflictError("A pending request already exists for this attendance record") from e
            raise

    def save(self, request: CorrectionRequest) -> CorrectionRequest:
        if request is None:
            raise ValueError("request must not be None")
        if request.request_id is None:
            return self.create(request)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE correction_requests
                SET status=%s,
                    approver_id=%s, approval_note=%s, approved_at=%s,
                    rejecter_id=%s, rejection_reason=%s, rejected_at=%s,
                    cancellation_reason=%s, cancelled_at=%s,
                    updated_at=%s
                WHERE request_id=%s
                """,
                (
                    request.status.value,
                    request.approver_id,
                    request.approval_note,
                    to_utc_naive(request.approved_at),
                    request.rejecter_id,
                    request.rejection_reason,
                    to_utc_naive(request.rejected_at),
                    request.cancellation_reason,
                    to_utc_naive(request.cancelled_at),
                    to_utc_naive(request.updated_at),
                    int(request.request_id),
                ),
            )
            return request

    def find_by_id(self, request_id: Optional[int]) -> Optional[CorrectionRequest]:
        if request_id is None:
            return None
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM correction_requests r WHERE r.request_id=%s",
                (int(request_id),),
            )
            r = fetchone(cur)
            return _to_entity(r) if r else None

    def find_all(self) -> Sequence[CorrectionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM correction_requests r ORDER BY {_ORDER_BY[SortOrder.RECENT]}")
            return [_to_entity(r) for r in fetchall(cur)]

    def find_pending_for(
        self,
        *,
        employee_id: int,
        attendance_record_id: Optional[int],
        stamp_date: date,
    ) -> Optional[CorrectionRequest]:
        if attendance_record_id is not None:
            clause, param = "r.attendance_record_id=%s", int(attendance_record_id)
        else:
            clause, param = "r.attendance_record_id IS NULL AND r.stamp_date=%s", stamp_date
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM correction_requests r
                WHERE r.employee_id=%s AND r.status=%s AND {clause}
                LIMIT 1
                """,
                (int(employee_id), RequestStatus.PENDING.value, param),
            )
            r = fetchone(cur)
            return _to_entity(r) if r else None

    @staticmethod
    def _where(
        employee_id: Optional[int],
        status: Optional[RequestStatus],
        search: Optional[str],
    ) -> Tuple[str, List[object]]:
        clauses = ["1=1"]
        params: List[object] = []

        if employee_id is not None:
            clauses.append("r.employee_id=%s")
            params.append(int(employee_id))
        if status is not None:
            clauses.append("r.status=%s")
            params.append(status.value)
        if search:
            pattern = like_pattern(search.lower())
            clauses.append(
                "(LOWER(r.reason) LIKE %s OR CAST(r.request_id AS CHAR) LIKE %s OR LOWER(u.full_name) LIKE %s)"
            )
            params.extend([pattern, pattern, pattern])

        return " AND ".join(clauses), params

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
        where, params = self._where(employee_id, status, search)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM correction_requests r
                LEFT JOIN users u ON u.user_id = r.employee_id
                WHERE {where}
                ORDER BY {_ORDER_BY[sort]}
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [_to_entity(r) for r in fetchall(cur)]

    def count(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
        search: Optional[str] = None,
    ) -> int:
        where, params = self._where(employee_id, status, search)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM correction_requests r
                LEFT JOIN users u ON u.user_id = r.employee_id
                WHERE {where}
                """,
                tuple(params),
            )
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    @contextmanager
    def locked(self, request_id: int) -> Iterator[None]:
        with self._conn_factory.transaction():
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "SELECT request_id FROM correction_requests WHERE request_id=%s FOR UPDATE",
                    (int(request_id),),
                )
                fetchone(cur)
            yield
