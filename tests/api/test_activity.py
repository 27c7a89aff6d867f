from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from tests.conftest import Seeded, seed_app_student


def _body(seeded: Seeded, kind: str, **extra) -> dict:
    body = {
        "user_id": str(seeded.user.id),
        "course_id": str(seeded.course.id),
        "assignment_id": str(seeded.assignment.id),
        "kind": kind,
    }
    body.update(extra)
    return body


def test_submit_planning_returns_201_with_event(client: TestClient) -> None:
    seeded = seed_app_student()
    resp = client.post("/v1/activity", json=_body(seeded, "Planning", occurred_at=1000))
    assert resp.status_code == 201
    data = resp.json()
    assert data["user_id"] == str(seeded.user.id)
    assert data["assignment_id"] == str(seeded.assignment.id)
    assert data["occurred_at"] == 1000
    assert data["data"] == {"kind": "Planning"}
    assert data["id"]


def test_submit_worked_on_carries_duration(client: TestClient) -> None:
    seeded = seed_app_student()
    resp = client.post(
        "/v1/activity", json=_body(seeded, "WorkedOn", duration_secs=1500)
    )
    assert resp.status_code == 201
    assert resp.json()["data"] == {"kind": "WorkedOn", "duration_secs": 1500}


def test_submit_sets_rate_limit_headers(client: TestClient) -> None:
    seeded = seed_app_student()
    resp = client.post("/v1/activity", json=_body(seeded, "Planning"))
    assert resp.status_code == 201
    assert "x-ratelimit-limit" in resp.headers
    assert "x-ratelimit-remaining" in resp.headers


# ---- error mapping ----


def test_unknown_assignment_is_404(client: TestClient) -> None:
    seeded = seed_app_student()
    body = _body(seeded, "Planning")
    body["assignment_id"] = str(uuid4())
    resp = client.post("/v1/activity", json=body)
    assert resp.status_code == 404
    assert resp.json()["detail"]["error"] == "invalid_reference"
    assert client.get(f"/v1/users/{seeded.user.id}/activity").json() == []


def test_unknown_kind_is_422(client: TestClient) -> None:
    seeded = seed_app_student()
    resp = client.post("/v1/activity", json=_body(seeded, "Started"))
    assert resp.status_code == 422
    assert resp.json()["detail"]["error"] == "invalid_payload"


def test_worked_on_without_duration_is_422(client: TestClient) -> None:
    seeded = seed_app_student()
    resp = client.post("/v1/activity", json=_body(seeded, "WorkedOn"))
    assert resp.status_code == 422
    assert resp.json()["detail"]["error"] == "invalid_payload"


@pytest.mark.parametrize("duration", [True, "600", 2**70])
def test_non_integer_or_oversized_duration_is_422(
    client: TestClient, duration
) -> None:
    seeded = seed_app_student()
    resp = client.post(
        "/v1/activity", json=_body(seeded, "WorkedOn", duration_secs=duration)
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["error"] == "invalid_payload"
    assert client.get(f"/v1/users/{seeded.user.id}/activity").json() == []


@pytest.mark.parametrize("occurred_at", [True, "1700000000", 2**63])
def test_non_integer_or_oversized_occurred_at_is_422(
    client: TestClient, occurred_at
) -> None:
    seeded = seed_app_student()
    resp = client.post(
        "/v1/activity", json=_body(seeded, "Planning", occurred_at=occurred_at)
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["error"] == "invalid_payload"


def test_malformed_uuid_is_rejected_by_validation(client: TestClient) -> None:
    resp = client.post(
        "/v1/activity",
        json={
            "user_id": "not-a-uuid",
            "course_id": str(uuid4()),
            "assignment_id": str(uuid4()),
            "kind": "Planning",
        },
    )
    assert resp.status_code == 422


def test_missing_status_record_is_500(client: TestClient) -> None:
    seeded = seed_app_student()
    client.delete(f"/v1/users/{seeded.user.id}/status")
    resp = client.post("/v1/activity", json=_body(seeded, "Planning"))
    assert resp.status_code == 500
    assert resp.json()["detail"]["error"] == "unknown_user"


def test_idempotency_replay_and_conflict(client: TestClient) -> None:
    seeded = seed_app_student()
    body = _body(seeded, "WorkedOn", duration_secs=60, idempotency_key="abc")

    first = client.post("/v1/activity", json=body)
    second = client.post("/v1/activity", json=body)
    assert first.status_code == 201
    assert second.status_code == 201
    assert second.json()["id"] == first.json()["id"]

    body["duration_secs"] = 120
    conflict = client.post("/v1/activity", json=body)
    assert conflict.status_code == 409
    assert conflict.json()["detail"]["error"] == "idempotency_conflict"

    status = client.get(f"/v1/users/{seeded.user.id}/status").json()
    assert status["stats"]["secs_worked"] == 60


# ---- history ----


def test_history_lists_events_in_append_order(client: TestClient) -> None:
    seeded = seed_app_student()
    ids = [
        client.post("/v1/activity", json=_body(seeded, kind, **extra)).json()["id"]
        for kind, extra in (
            ("Planning", {}),
            ("WorkedOn", {"duration_secs": 10}),
            ("Completed", {}),
        )
    ]
    resp = client.get(f"/v1/users/{seeded.user.id}/activity")
    assert resp.status_code == 200
    assert [e["id"] for e in resp.json()] == ids


def test_history_for_unknown_user_is_empty(client: TestClient) -> None:
    resp = client.get(f"/v1/users/{uuid4()}/activity")
    assert resp.status_code == 200
    assert resp.json() == []
