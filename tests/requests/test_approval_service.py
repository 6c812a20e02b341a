from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from correction_workflow.attendance.model import AttendanceSnapshot
from correction_workflow.core.enums import RequestStatus
from correction_workflow.core.exceptions import ConflictError, NotFoundError, ValidationError

TZ = timezone(timedelta(hours=9))


def at(hour, minute=0, day=10):
    return datetime(2026, 3, day, hour, minute, tzinfo=TZ)


@pytest.fixture
def pending(container, new_request):
    return container.registration_service.create_request(new_request(), 100)


def test_approve_applies_requested_values(container, attendance, pending, clock):
    clock.advance(hours=1)

    approved = container.approval_service.approve_request(pending.request_id, 1, "Checked with the manager")

    assert approved.status == RequestStatus.APPROVED
    assert approved.approver_id == 1
    assert approved.approval_note == "Checked with the manager"
    assert approved.approved_at == clock.now
    assert approved.updated_at == clock.now
    assert approved.rejected_at is None and approved.cancelled_at is None
    assert container.request_store.find_by_id(pending.request_id) == approved

    record = attendance.get(1)
    assert record.snapshot.in_time == at(8, 30)
    assert record.snapshot.out_time == at(18)
    assert record.updated_by == 1
    assert record.updated_at == clock.now


def test_approve_writes_only_requested_fields(container, attendance, new_request):
    created = container.registration_service.create_request(
        new_request(requested_in_time=at(8, 45), requested_out_time=None), 100
    )

    container.approval_service.approve_request(created.request_id, 1)

    snapshot = attendance.read_snapshot(1)
    assert snapshot.in_time == at(8, 45)
    assert snapshot.out_time == at(18)
    assert snapshot.night_shift is False


def test_approve_requires_approver(container, pending):
    with pytest.raises(ValidationError):
        container.approval_service.approve_request(pending.request_id, None)
    assert container.request_store.find_by_id(pending.request_id).status == RequestStatus.PENDING


def test_approve_note_length(container, pending):
    with pytest.raises(ValidationError):
        container.approval_service.approve_request(pending.request_id, 1, "n" * 501)

    approved = container.approval_service.approve_request(pending.request_id, 1, "n" * 500)
    assert len(approved.approval_note) == 500


def test_approve_unknown_request(container):
    with pytest.raises(NotFoundError):
        container.approval_service.approve_request(999, 1)


def test_approve_twice_conflicts(container, pending):
    container.approval_service.approve_request(pending.request_id, 1)

    with pytest.raises(ConflictError, match="already been processed"):
        container.approval_service.approve_request(pending.request_id, 1)


def test_stale_record_blocks_approval(container, attendance, pending):
    edited = AttendanceSnapshot(in_time=at(9, 5), out_time=at(18), night_shift=False)
    attendance.overwrite(1, edited)

    with pytest.raises(ConflictError, match="already changed"):
        container.approval_service.approve_request(pending.request_id, 1)

    assert attendance.read_snapshot(1) == edited
    assert container.request_store.find_by_id(pending.request_id).status == RequestStatus.PENDING


def test_approve_without_attendance_record(container, new_request):
    created = container.registration_service.create_request(
        new_request(attendance_record_id=None, requested_out_time=None), 100
    )

    with pytest.raises(NotFoundError):
        container.approval_service.approve_request(created.request_id, 1)
    assert container.request_store.find_by_id(created.request_id).status == RequestStatus.PENDING


def test_reject_leaves_attendance_untouched(container, attendance, pending, clock):
    before = attendance.read_snapshot(1)

    rejected = container.approval_service.reject_request(pending.request_id, 1, "No evidence for this change")

    assert rejected.status == RequestStatus.REJECTED
    assert rejected.rejecter_id == 1
    assert rejected.rejection_reason == "No evidence for this change"
    assert rejected.rejected_at == clock.now
    assert rejected.approver_id is None
    assert attendance.read_snapshot(1) == before


def test_reject_reason_is_validated_before_lookup(container):
    with pytest.raises(ValidationError):
        container.approval_service.reject_request(999, 1, "too short")


def test_reject_requires_rejecter(container, pending):
    with pytest.raises(ValidationError):
        container.approval_service.reject_request(pending.request_id, None, "No evidence for this change")


def test_reject_unknown_request(container):
    with pytest.raises(NotFoundError):
        container.approval_service.reject_request(999, 1, "No evidence for this change")


def test_terminal_request_cannot_be_decided_again(container, pending):
    container.approval_service.reject_request(pending.request_id, 1, "No evidence for this change")

    with pytest.raises(ConflictError):
        container.approval_service.approve_request(pending.request_id, 1)
    with pytest.raises(ConflictError):
        container.cancellation_service.cancel_request(pending.request_id, 100, "Changed my mind about it")
    assert container.request_store.find_by_id(pending.request_id).status == RequestStatus.REJECTED


def test_concurrent_approvals_succeed_once(container, pending):
    def attempt(_):
        try:
            container.approval_service.approve_request(pending.request_id, 1)
            return "ok"
        except ConflictError:
            return "conflict"

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(attempt, range(16)))

    assert outcomes.count("ok") == 1
    assert outcomes.count("conflict") == 15


@pytest.mark.parametrize("length", [10, 500])
def test_rejection_reason_length_bounds_are_inclusive(container, pending, length):
    rejected = container.approval_service.reject_request(pending.request_id, 1, "r" * length)
    assert len(rejected.rejection_reason) == length


@pytest.mark.parametrize("length", [9, 501])
def test_rejection_reason_outside_bounds(container, pending, length):
    with pytest.raises(ValidationError):
        container.approval_service.reject_request(pending.request_id, 1, "r" * length)
    assert container.request_store.find_by_id(pending.request_id).status == RequestStatus.PENDING


def test_record_restored_to_original_values_still_approves(container, attendance, pending):
    original = attendance.read_snapshot(1)
    attendance.overwrite(1, AttendanceSnapshot(in_time=at(9, 5), out_time=at(18), night_shift=False))
    attendance.overwrite(1, original)

    approved = container.approval_service.approve_request(pending.request_id, 1)

    assert approved.status == RequestStatus.APPROVED
    assert attendance.read_snapshot(1).in_time == at(8, 30)


@pytest.mark.parametrize("bad_id", ["x", 0, -3, 1.5, True])
def test_invalid_ids_are_validation_errors(container, pending, bad_id):
    with pytest.raises(ValidationError):
        container.approval_service.approve_request(bad_id, 1)
    with pytest.raises(ValidationError):
        container.approval_service.approve_request(pending.request_id, bad_id)


def test_unknown_ids_leave_no_locks_behind(container):
    for request_id in range(5000, 5100):
        with pytest.raises(NotFoundError):
            container.approval_service.approve_request(request_id, 1)

    assert len(container.request_store._locks) == 0
    assert len(container.attendance_records._locks) == 0
