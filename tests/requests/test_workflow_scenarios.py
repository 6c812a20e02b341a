from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from correction_workflow.core.enums import RequestStatus
from correction_workflow.core.exceptions import ConflictError
from correction_workflow.requests.model import NewCorrectionRequest

TZ = timezone(timedelta(hours=9))


def at(hour, minute=0, day=10):
    return datetime(2026, 3, day, hour, minute, tzinfo=TZ)


def _submission():
    return NewCorrectionRequest(
        attendance_record_id=1,
        requested_in_time=at(9),
        requested_out_time=at(18),
        reason="family emergency, need correction",
    )


def test_submit_then_approve(container, attendance):
    created = container.registration_service.create_request(_submission(), 100)
    assert created.status == RequestStatus.PENDING

    approved = container.approval_service.approve_request(created.request_id, 200, "confirmed")

    assert approved.status == RequestStatus.APPROVED
    assert approved.approver_id == 200
    assert approved.approval_note == "confirmed"
    snapshot = attendance.read_snapshot(1)
    assert (snapshot.in_time, snapshot.out_time) == (at(9), at(18))

    with pytest.raises(ConflictError, match="already been processed"):
        container.approval_service.approve_request(created.request_id, 200, "confirmed")


def test_second_submission_while_pending(container):
    container.registration_service.create_request(_submission(), 100)

    with pytest.raises(ConflictError, match="pending request already exists"):
        container.registration_service.create_request(_submission(), 100)

    pending = [r for r in container.request_store.find_all() if r.status == RequestStatus.PENDING]
    assert len(pending) == 1
