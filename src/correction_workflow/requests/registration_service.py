from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..attendance.model import AttendanceSnapshot
from ..attendance.repository import AttendanceRecordGateway
from ..common.validators import require_aware, require_id, require_length_between
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.policy import WorkflowPolicy
from .model import CorrectionRequest, NewCorrectionRequest
from .repository import CorrectionRequestStore

logger = logging.getLogger(__name__)


class RegistrationService:
    """Validates and records new correction requests."""

    def __init__(
        self,
        store: CorrectionRequestStore,
        attendance: AttendanceRecordGateway,
        policy: Optional[WorkflowPolicy] = None,
    ):
        self._store = store
        self._attendance = attendance
        self._policy = policy or WorkflowPolicy()

    def _validate_times(self, data: NewCorrectionRequest, now: datetime) -> None:
        in_time = require_aware(data.requested_in_time, "requested_in_time")
        out_time = require_aware(data.requested_out_time, "requested_out_time")
        break_start = require_aware(data.requested_break_start, "requested_break_start")
        break_end = require_aware(data.requested_break_end, "requested_break_end")

        if in_time is None:
            raise ValidationError("requested_in_time is required")
        if in_time > now:
            raise ValidationError("requested_in_time cannot be in the future")
        if out_time is not None and out_time <= in_time:
            raise ValidationError("requested_out_time must be after requested_in_time")

        if (break_start is None) != (break_end is None):
            raise ValidationError("break start and end must be provided together")
        if break_start is not None and break_end is not None:
            if break_end <= break_start:
                raise ValidationError("break end must be after break start")
            if break_start < in_time:
                raise ValidationError("break cannot start before requested_in_time")
            if out_time is not None and break_end > out_time:
                raise ValidationError("break cannot end after requested_out_time")

    def create_request(self, data: NewCorrectionRequest, employee_id: Optional[int]) -> CorrectionRequest:
        if data is None:
            raise ValidationError("request body is required")
        employee_id = require_id(employee_id, "employee_id")
        reason = require_length_between(
            data.reason,
            "reason",
            self._policy.reason_min_length,
            self._policy.reason_max_length,
        )
        now = self._store.now()
        self._validate_times(data, now)

        original = AttendanceSnapshot()
        record_date = None
        record_id = None
        if data.attendance_record_id is not None:
            record_id = require_id(data.attendance_record_id, "attendance_record_id")
            record = self._attendance.get(record_id)
            if not record:
                raise NotFoundError(f"attendance record {record_id} not found")
            if record.employee_id != employee_id:
                raise AuthorizationError("attendance record belongs to another employee")
            original = record.snapshot
            record_date = record.stamp_date

        if data.requested_in_time is not None:
            stamp_date = data.requested_in_time.date()
        else:
            stamp_date = record_date or now.date()

        existing = self._store.find_pending_for(
            employee_id=employee_id,
            attendance_record_id=record_id,
            stamp_date=stamp_date,
        )
        if existing:
            logger.info("duplicate pending request %s for employee %s", existing.request_id, employee_id)
            raise ConflictError("A pending request already exists for this attendance record")

        night_shift = data.requested_night_shift
        if night_shift is None:
            night_shift = original.night_shift

        created = self._store.create(
            CorrectionRequest(
                employee_id=employee_id,
                attendance_record_id=record_id,
                stamp_date=stamp_date,
                original=original,
                requested=AttendanceSnapshot(
                    in_time=data.requested_in_time,
                    out_time=data.requested_out_time,
                    break_start=data.requested_break_start,
                    break_end=data.requested_break_end,
                    night_shift=night_shift,
                ),
                reason=reason,
            )
        )
        logger.info("request %s created by employee %s", created.request_id, employee_id)
        return created
