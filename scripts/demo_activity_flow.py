"""Demo: a student plans, works on and completes an assignment.

Runs against the in-memory storage through FastAPI's TestClient, so no
database or Redis is needed.

Run with:
    python scripts/demo_activity_flow.py
"""

from __future__ import annotations

import json

from fastapi.testclient import TestClient

from app.api.dependencies import reference_repo
from app.main import app
from app.models.reference import Assignment, Course, User


def main() -> None:
    client = TestClient(app)

    # ── Seed reference data (normally owned by other services) ─────
    user = User.new(username="demo-student", first_name="Demo", last_name="Student")
    course = Course.new(name="Introduction to Astronomy")
    assignment = Assignment.new(course_id=course.id, name="Observe Jupiter")
    reference_repo.add_user(user)
    reference_repo.add_course(course)
    reference_repo.add_assignment(assignment)
    reference_repo.enroll(user.id, course.id)

    r = client.post(f"/v1/users/{user.id}/status")
    print(f"1. POST /v1/users/{{id}}/status    -> {r.status_code}  (status record created)")

    base = {
        "user_id": str(user.id),
        "course_id": str(course.id),
        "assignment_id": str(assignment.id),
    }

    # ── Activity ────────────────────────────────────────────────────
    r = client.post("/v1/activity", json={**base, "kind": "Planning"})
    print(f"2. POST /v1/activity Planning     -> {r.status_code}")

    r = client.post(
        "/v1/activity",
        json={**base, "kind": "WorkedOn", "duration_secs": 1500, "idempotency_key": "w1"},
    )
    print(f"3. POST /v1/activity WorkedOn     -> {r.status_code}  (25 minutes)")

    r = client.post(
        "/v1/activity",
        json={**base, "kind": "WorkedOn", "duration_secs": 1500, "idempotency_key": "w1"},
    )
    print(f"4. POST /v1/activity (retry)      -> {r.status_code}  (same event, not counted)")

    r = client.post("/v1/activity", json={**base, "kind": "Completed"})
    print(f"5. POST /v1/activity Completed    -> {r.status_code}")

    # ── Derived state ───────────────────────────────────────────────
    r = client.get(f"/v1/users/{user.id}/status")
    print(f"6. GET  /v1/users/{{id}}/status     -> {r.status_code}")
    print(json.dumps(r.json(), indent=2))

    r = client.get(f"/v1/users/{user.id}/activity")
    kinds = [e["data"]["kind"] for e in r.json()]
    print(f"7. GET  /v1/users/{{id}}/activity   -> {r.status_code}  {kinds}")

    r = client.get(f"/v1/users/{user.id}/status/audit")
    print(f"8. GET  /v1/users/{{id}}/status/audit -> consistent={r.json()['consistent']}")


if __name__ == "__main__":
    main()
