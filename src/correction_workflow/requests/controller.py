from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..attendance.model import AttendanceSnapshot
from ..common.datetime_utils import parse_iso_datetime, to_iso
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, DomainError, NotFoundError, ValidationError
from .model import CorrectionRequest, NewCorrectionRequest

logger = logging.getLogger(__name__)

API_PREFIX = "/api/correction-requests"

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (AuthorizationError, 403),
    (ConflictError, 409),
)


def _snapshot_dict(s: AttendanceSnapshot) -> Dict[str, Any]:
    return {
        "inTime": to_iso(s.in_time),
        "outTime": to_iso(s.out_time),
        "breakStartTime": to_iso(s.break_start),
        "breakEndTime": to_iso(s.break_end),
        "isNightShift": s.night_shift,
    }


def request_to_dict(r: CorrectionRequest, employee_name: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": r.request_id,
        "employeeId": r.employee_id,
        "employeeName": employee_name,
        "attendanceRecordId": r.attendance_record_id,
        "stampDate": r.stamp_date.isoformat(),
        "status": r.status.value,
        "original": _snapshot_dict(r.original),
        "requested": _snapshot_dict(r.requested),
        "reason": r.reason,
        "approverId": r.approver_id,
        "approvalNote": r.approval_note,
        "approvedAt": to_iso(r.approved_at),
        "rejecterId": r.rejecter_id,
        "rejectionReason": r.rejection_reason,
        "rejectedAt": to_iso(r.rejected_at),
        "cancellationReason": r.cancellation_reason,
        "cancelledAt": to_iso(r.cancelled_at),
        "createdAt": to_iso(r.created_at),
        "updatedAt": to_iso(r.updated_at),
    }


def _optional_int(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer")
    return value


def _optional_bool(value: Any, field_name: str) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    raise ValidationError(f"{field_name} must be true or false")


def _optional_str(value: Any, field_name: str) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    raise ValidationError(f"{field_name} must be a string")


def parse_new_request(body: Dict[str, Any]) -> NewCorrectionRequest:
    return NewCorrectionRequest(
        attendance_record_id=_optional_int(body.get("attendanceRecordId"), "attendanceRecordId"),
        requested_in_time=parse_iso_datetime(body.get("requestedInTime"), "requestedInTime"),
        requested_out_time=parse_iso_datetime(body.get("requestedOutTime"), "requestedOutTime"),
        requested_break_start=parse_iso_datetime(body.get("requestedBreakStartTime"), "requestedBreakStartTime"),
        requested_break_end=parse_iso_datetime(body.get("requestedBreakEndTime"), "requestedBreakEndTime"),
        requested_night_shift=_optional_bool(body.get("requestedIsNightShift"), "requestedIsNightShift"),
        reason=_optional_str(body.get("reason"), "reason"),
    )


def register(app: Flask, container: Container) -> None:
    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"message": "authentication required"}), 401
            return view(*args, **kwargs)

        return wrapper

    def admin_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"message": "authentication required"}), 401
            if session.get("role") != Role.ADMIN.value:
                return jsonify({"message": "administrator role required"}), 403
            return view(*args, **kwargs)

        return wrapper

    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        for error_type, status in _STATUS_BY_ERROR:
            if isinstance(e, error_type):
                return jsonify({"message": str(e)}), status
        return jsonify({"message": str(e)}), 400

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        if isinstance(e, HTTPException):
            return e
        logger.exception("unhandled error on %s %s", request.method, request.path)
        return jsonify({"message": "internal server error"}), 500

    def _current_user_id() -> int:
        return int(session["user_id"])

    def _current_role() -> Optional[Role]:
        try:
            return Role(session.get("role"))
        except ValueError:
            return None

    def _body() -> Dict[str, Any]:
        body = request.get_json(silent=True)
        if body is None:
            return {}
        if not isinstance(body, dict):
            raise ValidationError("request body must be a JSON object")
        return body

    def _dump(r: CorrectionRequest) -> Dict[str, Any]:
        return request_to_dict(r, container.employees.get_name(r.employee_id))

    def _page_response(items, total: int, page: int, size: int):
        return jsonify(
            {
                "items": [_dump(r) for r in items],
                "totalCount": total,
                "page": page,
                "size": size,
            }
        )

    @app.route(API_PREFIX, methods=["POST"], endpoint="create_correction_request")
    @login_required
    def create_request():
        data = parse_new_request(_body())
        created = container.registration_service.create_request(data, _current_user_id())
        return jsonify(_dump(created)), 201

    @app.route(f"{API_PREFIX}/my-requests", methods=["GET"], endpoint="my_correction_requests")
    @login_required
    def my_requests():
        status = request.args.get("status")
        page, size = container.query_service.page_bounds(
            request.args.get("page", 0, type=int), request.args.get("size", None, type=int)
        )
        employee_id = _current_user_id()
        items = container.query_service.get_for_employee(employee_id, status, page, size)
        total = container.query_service.count_for_employee(employee_id, status)
        return _page_response(items, total, page, size)

    @app.route(f"{API_PREFIX}/pending", methods=["GET"], endpoint="pending_correction_requests")
    @admin_required
    def pending_requests():
        status = request.args.get("status")
        search = request.args.get("search")
        sort = request.args.get("sort")
        page, size = container.query_service.page_bounds(
            request.args.get("page", 0, type=int), request.args.get("size", None, type=int)
        )
        items = container.query_service.get_pending(page, size, status, search, sort)
        total = container.query_service.count_pending(status, search)
        return _page_response(items, total, page, size)

    @app.route(f"{API_PREFIX}/<int:request_id>", methods=["GET"], endpoint="correction_request_detail")
    @login_required
    def request_detail(request_id: int):
        found = container.query_service.get_detail(
            request_id, viewer_id=_current_user_id(), viewer_role=_current_role()
        )
        return jsonify(_dump(found))

    @app.route(f"{API_PREFIX}/<int:request_id>/approve", methods=["POST"], endpoint="approve_correction_request")
    @admin_required
    def approve_request(request_id: int):
        note = _optional_str(_body().get("note"), "note")
        approved = container.approval_service.approve_request(request_id, _current_user_id(), note)
        return jsonify(_dump(approved))

    @app.route(f"{API_PREFIX}/<int:request_id>/reject", methods=["POST"], endpoint="reject_correction_request")
    @admin_required
    def reject_request(request_id: int):
        reason = _optional_str(_body().get("reason"), "reason")
        rejected = container.approval_service.reject_request(request_id, _current_user_id(), reason)
        return jsonify(_dump(rejected))

    @app.route(f"{API_PREFIX}/<int:request_id>/cancel", methods=["POST"], endpoint="cancel_correction_request")
    @login_required
    def cancel_request(request_id: int):
        reason = _optional_str(_body().get("reason"), "reason")
        cancelled = container.cancellation_service.cancel_request(request_id, _current_user_id(), reason)
        return jsonify(_dump(cancelled))

    def _request_ids(body: Dict[str, Any]):
        ids = body.get("requestIds")
        if ids is None:
            return None
        if not isinstance(ids, list):
            raise ValidationError("requestIds must be a list")
        return [_optional_int(v, "requestIds") for v in ids]

    @app.route(f"{API_PREFIX}/bulk/approve", methods=["POST"], endpoint="bulk_approve_correction_requests")
    @admin_required
    def bulk_approve():
        body = _body()
        note = _optional_str(body.get("note"), "note")
        result = container.bulk_service.bulk_approve(_request_ids(body), _current_user_id(), note)
        return jsonify(result.to_dict())

    @app.route(f"{API_PREFIX}/bulk/reject", methods=["POST"], endpoint="bulk_reject_correction_requests")
    @admin_required
    def bulk_reject():
        body = _body()
        reason = _optional_str(body.get("reason"), "reason")
        result = container.bulk_service.bulk_reject(_request_ids(body), _current_user_id(), reason)
        return jsonify(result.to_dict())
