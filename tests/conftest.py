from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta, timezone

import pytest
from flask import Flask

from correction_workflow.attendance.memory_attendance_repository import InMemoryAttendanceRecords
from correction_workflow.attendance.model import AttendanceSnapshot
from correction_workflow.container import build_in_memory_container
from correction_workflow.employees.repository import InMemoryEmployeeDirectory
from correction_workflow.requests.controller import register
from correction_workflow.requests.model import NewCorrectionRequest

TZ = timezone(timedelta(hours=9))
WORK_DATE = date(2026, 3, 10)

EMPLOYEE_ID = 100
OTHER_EMPLOYEE_ID = 200
ADMIN_ID = 1


def at(hour: int, minute: int = 0, day: int = 10) -> datetime:
    return datetime(2026, 3, day, hour, minute, tzinfo=TZ)


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FixedClock(at(20))


@pytest.fixture
def attendance():
    records = InMemoryAttendanceRecords()
    records.add(
        attendance_id=1,
        employee_id=EMPLOYEE_ID,
        stamp_date=WORK_DATE,
        snapshot=AttendanceSnapshot(in_time=at(9), out_time=at(18), night_shift=False),
    )
    records.add(
        attendance_id=2,
        employee_id=OTHER_EMPLOYEE_ID,
        stamp_date=WORK_DATE,
        snapshot=AttendanceSnapshot(in_time=at(10), out_time=at(19), night_shift=False),
    )
    records.add(
        attendance_id=3,
        employee_id=EMPLOYEE_ID,
        stamp_date=date(2026, 3, 9),
        snapshot=AttendanceSnapshot(in_time=at(9, day=9), out_time=at(17, day=9), night_shift=True),
    )
    return records


@pytest.fixture
def employees():
    return InMemoryEmployeeDirectory(
        {EMPLOYEE_ID: "Alice Tran", OTHER_EMPLOYEE_ID: "Bob Nguyen", ADMIN_ID: "Admin User"}
    )


@pytest.fixture
def container(clock, attendance, employees):
    return build_in_memory_container(clock=clock, attendance=attendance, employees=employees)


@pytest.fixture
def new_request():
    """Factory for a valid submission against attendance record 1."""
    base = NewCorrectionRequest(
        attendance_record_id=1,
        requested_in_time=at(8, 30),
        requested_out_time=at(18),
        reason="Forgot to punch in on arrival",
    )

    def make(**overrides) -> NewCorrectionRequest:
        return replace(base, **overrides)

    return make


@pytest.fixture
def app(container):
    flask_app = Flask(__name__)
    flask_app.secret_key = "test-secret"
    flask_app.config["TESTING"] = True
    register(flask_app, container)
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def do_login(user_id: int, role: str = "staff") -> None:
        with client.session_transaction() as sess:
            sess["user_id"] = user_id
            sess["role"] = role

    return do_login
