from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace

import pytest

from src.eduride.eduride.attendance.service import AttendanceQueryService
from src.eduride.eduride.attendance.tracker import AttendanceSessionTracker
from src.eduride.eduride.core.enums import PaymentStatus
from src.eduride.eduride.main import create_app
from src.eduride.eduride.notifications.dispatcher import GuardianNotificationDispatcher
from src.eduride.eduride.scans.service import AccessDecisionService
from tests.fakes import (
    InMemoryAttendance,
    InMemoryBuses,
    InMemoryEvents,
    InMemoryNotifications,
    InMemoryUsers,
    RecordingDelivery,
    make_bus,
    make_guardian,
    make_student,
)

ADMIN = {"X-API-Key": "test-admin-key"}


class FakeDelivery(RecordingDelivery):
    def __init__(self):
        super().__init__()
        self.retried = []

    def retry_failed(self, *, limit=100):
        self.retried.append(limit)
        return 2


def build_container(access_service=None):
    users = InMemoryUsers(
        make_student(10, tag="T1"),
        make_student(11, tag="T2", payment_status=PaymentStatus.PENDING),
        make_guardian(),
    )
    buses = InMemoryBuses(make_bus(1, "B1"), make_bus(2, "B2"))
    attendance = InMemoryAttendance()
    events = InMemoryEvents()
    delivery = FakeDelivery()
    dispatcher = GuardianNotificationDispatcher(users, InMemoryNotifications(), delivery)
    return SimpleNamespace(
        buses_repo=buses,
        dispatcher=dispatcher,
        access_service=access_service
        or AccessDecisionService(users, buses, AttendanceSessionTracker(attendance), dispatcher, events=events),
        attendance_service=AttendanceQueryService(attendance, buses),
        events_repo=events,
        delivery=delivery,
    )


@pytest.fixture()
def container():
    return build_container()


@pytest.fixture()
def client(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container=container)
    return app.test_client()


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


def test_entry_then_exit(client):
    first = client.post("/api/rfid", json={"uid": "T1", "busId": "B1", "timestamp": "2026-02-01T09:00:00"})
    second = client.post("/api/rfid", json={"tagId": "T1", "busId": "B1", "timestamp": "2026-02-01T17:00:00"})

    assert first.status_code == 201
    assert first.get_json()["allowEntry"] is True
    assert first.get_json()["doorAction"] == "open"
    assert first.get_json()["student"]["lastScan"]["result"] == "entry"
    assert second.status_code == 201
    assert second.get_json()["attendance"]["status"] == "complete"
    assert second.get_json()["attendance"]["id"] == first.get_json()["attendance"]["id"]


def test_fee_pending_is_payment_required(client):
    resp = client.post("/api/rfid", json={"uid": "T2", "busId": "B1"})

    body = resp.get_json()
    assert resp.status_code == 402
    assert body["allowEntry"] is False
    assert body["doorAction"] == "locked"
    assert body["student"]["paymentStatus"] == "pending"
    assert "attendance" not in body


@pytest.mark.parametrize(
    "payload,status",
    [
        ({"uid": "NOPE", "busId": "B1"}, 404),
        ({"uid": "T1", "busId": "B9"}, 404),
        ({"uid": "T1", "busId": "B2"}, 400),
        ({"busId": "B1"}, 400),
        ({"uid": "T1", "busId": "B1", "timestamp": "yesterday"}, 400),
    ],
)
def test_rejected_scans(client, payload, status):
    resp = client.post("/api/rfid", json=payload)

    assert resp.status_code == status
    assert resp.get_json()["message"]


@pytest.mark.parametrize("body", ['["T1", "B1"]', '"T1"', "42", "not json"])
def test_body_that_is_not_an_object_is_a_bad_request(client, body):
    resp = client.post("/api/rfid", data=body, content_type="application/json")

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Missing required field: uid"


def test_unexpected_failure_is_a_generic_server_error(monkeypatch):
    class Exploding:
        def handle_scan(self, *args, **kwargs):
            raise RuntimeError("db gone")

    monkeypatch.setenv("APP_ENV", "testing")
    client = create_app(container=build_container(access_service=Exploding())).test_client()

    resp = client.post("/api/rfid", json={"uid": "T1", "busId": "B1"})

    assert resp.status_code == 500
    assert resp.get_json() == {"message": "Server error"}


@pytest.mark.parametrize(
    "path",
    ["/api/rfid/student/10", "/api/rfid/bus/B1", "/api/rfid/today", "/api/rfid/events"],
)
def test_read_endpoints_require_api_key(client, path):
    assert client.get(path).status_code == 403
    assert client.get(path, headers={"X-API-Key": "wrong"}).status_code == 403


def test_student_attendance(client):
    client.post("/api/rfid", json={"uid": "T1", "busId": "B1", "timestamp": "2026-02-01T09:00:00"})

    resp = client.get("/api/rfid/student/10", headers=ADMIN)

    assert resp.status_code == 200
    assert [r["busId"] for r in resp.get_json()] == ["B1"]


def test_bus_attendance_unknown_bus(client):
    assert client.get("/api/rfid/bus/B9", headers=ADMIN).status_code == 404


def test_report_requires_dates(client):
    resp = client.get("/api/rfid/report?startDate=2026-02-01", headers=ADMIN)

    assert resp.status_code == 400


def test_report_rejects_bad_date(client):
    resp = client.get("/api/rfid/report?startDate=2026-02-01&endDate=02/03/2026", headers=ADMIN)

    assert resp.status_code == 400


def test_report(client):
    client.post("/api/rfid", json={"uid": "T1", "busId": "B1", "timestamp": "2026-02-01T09:00:00"})

    resp = client.get("/api/rfid/report?startDate=2026-02-01&endDate=2026-02-01&busId=B1", headers=ADMIN)

    assert resp.status_code == 200
    assert len(resp.get_json()) == 1


def test_events_are_polled_after_cursor(client):
    client.post("/api/rfid", json={"uid": "T1", "busId": "B1", "timestamp": "2026-02-01T09:00:00"})
    client.post("/api/rfid", json={"uid": "T2", "busId": "B1", "timestamp": "2026-02-01T09:01:00"})

    first = client.get("/api/rfid/events", headers=ADMIN).get_json()
    rest = client.get(f"/api/rfid/events?after={first['events'][0]['id']}", headers=ADMIN).get_json()

    assert [e["type"] for e in first["events"]] == ["scan.entry", "scan.denied"]
    assert first["lastId"] == 2
    assert [e["type"] for e in rest["events"]] == ["scan.denied"]
    assert rest["events"][0]["payload"]["lastScan"]["doorAction"] == "locked"


def test_events_limit_must_be_a_number(client):
    assert client.get("/api/rfid/events?limit=many", headers=ADMIN).status_code == 400


def test_events_empty_keeps_cursor(client):
    body = client.get("/api/rfid/events?after=7", headers=ADMIN).get_json()

    assert body == {"events": [], "lastId": 7}


def test_retry_notifications_command(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container=container)

    result = app.test_cli_runner().invoke(args=["retry-notifications", "--limit", "5"])

    assert result.exit_code == 0
    assert "Retried 2 failed notifications" in result.output
    assert container.delivery.retried == [5]


def test_broadcast_requires_api_key(client):
    resp = client.post("/api/notifications/broadcast", json={"userIds": [20], "type": "delay", "message": "late"})

    assert resp.status_code == 403


def test_broadcast_queues_for_known_users(client, container):
    resp = client.post(
        "/api/notifications/broadcast",
        json={"userIds": [20, 999], "type": "delay", "message": "Bus B1 is 15 minutes late", "busId": "B1"},
        headers=ADMIN,
    )

    body = resp.get_json()
    assert resp.status_code == 201
    assert body["message"] == "Broadcast notification sent to 1 recipients"
    assert container.delivery.enqueued == body["notificationIds"]


@pytest.mark.parametrize(
    "payload,status",
    [
        ({"userIds": [], "type": "delay", "message": "x"}, 400),
        ({"userIds": ["abc"], "type": "delay", "message": "x"}, 400),
        ({"userIds": [20], "type": "entry", "message": "x"}, 400),
        ({"userIds": [20], "type": "delay", "message": " "}, 400),
        ({"userIds": [20], "type": "emergency", "message": "x", "busId": "B9"}, 404),
    ],
)
def test_broadcast_rejects_bad_requests(client, payload, status):
    resp = client.post("/api/notifications/broadcast", json=payload, headers=ADMIN)

    assert resp.status_code == status
