from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class AttendanceSnapshot:
    """The amendable fields of one attendance punch.

    Used both for the state read from the attendance store and for the values
    a correction request asks for. Equality is field-by-field, and aware
    datetimes compare by instant.
    """

    in_time: Optional[datetime] = None
    out_time: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None
    night_shift: Optional[bool] = None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's punch for one date (owned externally)."""

    attendance_id: int
    employee_id: int
    stamp_date: date
    snapshot: AttendanceSnapshot
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None
