from __future__ import annotations

import datetime
from collections.abc import Mapping
from uuid import UUID

from app.models.activity import (
    ActivityData,
    ActivityEvent,
    ActivityKind,
    Completed,
    Planning,
    WorkedOn,
)
from app.repos.reference_repo import ReferenceRepo
from app.services.errors import InvalidPayload, InvalidReference


# activity_events.occurred_at and user_status.secs_worked are BIGINT.
INT64_MAX = 2**63 - 1


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


def parse_activity_data(kind: str, payload: Mapping[str, object] | None) -> ActivityData:
    """Build the tagged payload for ``kind``.

    Raises InvalidPayload for an unknown kind or a missing, non-integer or
    out-of-range WorkedOn duration.
    """
    try:
        parsed_kind = ActivityKind(kind)
    except ValueError:
        raise InvalidPayload(f"unknown activity kind {kind!r}") from None

    if parsed_kind is ActivityKind.PLANNING:
        return Planning()
    if parsed_kind is ActivityKind.COMPLETED:
        return Completed()

    duration = (payload or {}).get("duration_secs")
    if duration is None:
        raise InvalidPayload("WorkedOn requires duration_secs")
    return WorkedOn(duration_secs=_bounded_int("duration_secs", duration))


def _bounded_int(name: str, value: object) -> int:
    # bool is an int subclass; True is not a number of seconds.
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidPayload(f"{name} must be an integer (got {value!r})")
    if value < 0:
        raise InvalidPayload(f"{name} must be non-negative (got {value})")
    if value > INT64_MAX:
        raise InvalidPayload(f"{name} must be at most {INT64_MAX} (got {value})")
    return value


async def validate_activity(
    references: ReferenceRepo,
    *,
    user_id: UUID,
    course_id: UUID,
    assignment_id: UUID,
    kind: str,
    payload: Mapping[str, object] | None = None,
    occurred_at: object = None,
    idempotency_key: str | None = None,
    require_enrollment: bool = True,
) -> ActivityEvent:
    """Check a candidate activity and return the event ready for appending.

    Payload shape is checked before any lookup.  No side effects.
    """
    data = parse_activity_data(kind, payload)

    at = _now() if occurred_at is None else _bounded_int("occurred_at", occurred_at)

    if idempotency_key is not None and not idempotency_key.strip():
        raise InvalidPayload("idempotency_key must be non-empty when given")

    if await references.get_user(user_id) is None:
        raise InvalidReference("user", user_id)
    if await references.get_course(course_id) is None:
        raise InvalidReference("course", course_id)

    assignment = await references.get_assignment(assignment_id)
    if assignment is None:
        raise InvalidReference("assignment", assignment_id)
    if assignment.course_id != course_id:
        raise InvalidReference(
            "assignment", assignment_id, f"does not belong to course {course_id}"
        )

    if require_enrollment and not await references.is_enrolled(user_id, course_id):
        raise InvalidReference("course", course_id, f"has no enrollment for user {user_id}")

    return ActivityEvent.new(
        user_id=user_id,
        course_id=course_id,
        assignment_id=assignment_id,
        occurred_at=at,
        data=data,
        idempotency_key=idempotency_key,
    )
