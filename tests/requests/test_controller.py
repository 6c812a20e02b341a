from __future__ import annotations

import pytest

from correction_workflow.attendance.model import AttendanceSnapshot

BASE = "/api/correction-requests"

PAYLOAD = {
    "attendanceRecordId": 1,
    "requestedInTime": "2026-03-10T08:30:00+09:00",
    "requestedOutTime": "2026-03-10T18:00:00+09:00",
    "reason": "Forgot to punch in on arrival",
}


def _create(client, login, payload=None):
    login(100)
    res = client.post(BASE, json=payload or PAYLOAD)
    assert res.status_code == 201, res.get_json()
    return res.get_json()


def test_requires_session(client):
    assert client.post(BASE, json=PAYLOAD).status_code == 401
    assert client.get(f"{BASE}/my-requests").status_code == 401
    assert client.get(f"{BASE}/pending").status_code == 401


def test_admin_routes_reject_staff(client, login):
    login(100)

    assert client.get(f"{BASE}/pending").status_code == 403
    assert client.post(f"{BASE}/1/approve", json={}).status_code == 403
    assert client.post(f"{BASE}/bulk/reject", json={"requestIds": [1]}).status_code == 403


def test_create_returns_serialized_request(client, login):
    body = _create(client, login)

    assert body["status"] == "PENDING"
    assert body["employeeId"] == 100
    assert body["employeeName"] == "Alice Tran"
    assert body["stampDate"] == "2026-03-10"
    assert body["requested"]["inTime"] == "2026-03-10T08:30:00+09:00"
    assert body["original"]["inTime"] == "2026-03-10T09:00:00+09:00"
    assert body["original"]["isNightShift"] is False
    assert body["createdAt"] == "2026-03-10T20:00:00+09:00"


def test_create_accepts_utc_suffix(client, login):
    body = _create(client, login, dict(PAYLOAD, requestedInTime="2026-03-09T23:30:00Z", requestedOutTime=None))

    assert body["requested"]["inTime"] == "2026-03-09T23:30:00+00:00"


@pytest.mark.parametrize(
    "payload",
    [
        dict(PAYLOAD, reason="short"),
        dict(PAYLOAD, requestedInTime="2026-03-10T08:30:00"),
        dict(PAYLOAD, requestedInTime="yesterday"),
        dict(PAYLOAD, reason=12345678901),
        dict(PAYLOAD, attendanceRecordId="abc"),
        dict(PAYLOAD, attendanceRecordId=1.9),
        dict(PAYLOAD, attendanceRecordId=0),
    ],
)
def test_invalid_input_is_400(client, login, payload):
    login(100)
    res = client.post(BASE, json=payload)

    assert res.status_code == 400
    assert res.get_json()["message"]


def test_error_statuses(client, login):
    login(100)
    assert client.post(BASE, json=dict(PAYLOAD, attendanceRecordId=99)).status_code == 404
    assert client.post(BASE, json=dict(PAYLOAD, attendanceRecordId=2)).status_code == 403
    assert client.post(BASE, json=PAYLOAD).status_code == 201
    assert client.post(BASE, json=PAYLOAD).status_code == 409


def test_my_requests_lists_own_requests(client, login):
    created = _create(client, login)
    login(200)
    client.post(BASE, json=dict(PAYLOAD, attendanceRecordId=2, requestedInTime="2026-03-10T09:30:00+09:00"))

    login(100)
    body = client.get(f"{BASE}/my-requests?status=ALL&size=0").get_json()

    assert body["totalCount"] == 1
    assert body["page"] == 0
    assert body["size"] == 20
    assert [r["id"] for r in body["items"]] == [created["id"]]


def test_unknown_status_filter_is_400(client, login):
    login(100)

    assert client.get(f"{BASE}/my-requests?status=DONE").status_code == 400


def test_detail_access(client, login):
    created = _create(client, login)
    url = f"{BASE}/{created['id']}"

    assert client.get(url).status_code == 200
    login(200)
    assert client.get(url).status_code == 403
    login(1, "admin")
    assert client.get(url).get_json()["id"] == created["id"]
    assert client.get(f"{BASE}/999").status_code == 404


def test_approval_flow(client, login, attendance):
    created = _create(client, login)

    login(1, "admin")
    pending = client.get(f"{BASE}/pending?search=alice").get_json()
    assert [r["id"] for r in pending["items"]] == [created["id"]]

    res = client.post(f"{BASE}/{created['id']}/approve", json={"note": "Confirmed with the team lead"})
    assert res.status_code == 200
    assert res.get_json()["status"] == "APPROVED"
    assert res.get_json()["approverId"] == 1
    assert attendance.read_snapshot(1).in_time.isoformat() == "2026-03-10T08:30:00+09:00"

    again = client.post(f"{BASE}/{created['id']}/approve", json={})
    assert again.status_code == 409
    assert client.get(f"{BASE}/pending").get_json()["totalCount"] == 0


def test_stale_approval_is_409(client, login, attendance):
    created = _create(client, login)
    attendance.overwrite(1, AttendanceSnapshot(night_shift=True))

    login(1, "admin")
    res = client.post(f"{BASE}/{created['id']}/approve")

    assert res.status_code == 409
    assert attendance.read_snapshot(1) == AttendanceSnapshot(night_shift=True)


def test_reject_and_cancel(client, login):
    created = _create(client, login)

    res = client.post(f"{BASE}/{created['id']}/cancel", json={"reason": "Submitted by mistake"})
    assert res.status_code == 200
    assert res.get_json()["status"] == "CANCELLED"

    login(1, "admin")
    res = client.post(f"{BASE}/{created['id']}/reject", json={"reason": "Nothing to review here"})
    assert res.status_code == 409


def test_cancel_by_other_employee_is_403(client, login):
    created = _create(client, login)

    login(200)
    res = client.post(f"{BASE}/{created['id']}/cancel", json={"reason": "Submitted by mistake"})

    assert res.status_code == 403


def test_bulk_approve(client, login):
    created = _create(client, login)

    login(1, "admin")
    res = client.post(f"{BASE}/bulk/approve", json={"requestIds": [created["id"], 999, None]})

    assert res.status_code == 200
    assert res.get_json() == {"successCount": 1, "failureCount": 1, "failedIds": [999]}


def test_bulk_validation_errors(client, login):
    login(1, "admin")

    assert client.post(f"{BASE}/bulk/approve", json={"requestIds": []}).status_code == 400
    assert client.post(f"{BASE}/bulk/approve", json={"requestIds": "1,2"}).status_code == 400
    assert client.post(f"{BASE}/bulk/reject", json={"requestIds": [1], "reason": "short"}).status_code == 400
    assert client.post(f"{BASE}/bulk/approve", json={"requestIds": list(range(1, 52))}).status_code == 400


def test_unexpected_error_is_500(client, login, container, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(container.query_service, "get_for_employee", boom)
    login(100)

    res = client.get(f"{BASE}/my-requests")

    assert res.status_code == 500
    assert res.get_json() == {"message": "internal server error"}


def test_bulk_rejects_fractional_ids(client, login):
    login(1, "admin")

    res = client.post(f"{BASE}/bulk/approve", json={"requestIds": [1.9]})

    assert res.status_code == 400
