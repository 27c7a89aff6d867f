"""Derived-state projector for the activity ledger.

Each appended ActivityEvent maps to exactly one StatusDelta, and each
delta is a local transformation of the owning user's UserStatus:

  Planning   add to planning                           (no stats)
  WorkedOn   remove from planning, add to in_progress   secs_worked += d
  Completed  remove from in_progress, add to completed  assignments_completed += 1

Set membership is idempotent.  The counters are not: every WorkedOn adds
its duration and every Completed adds one, even when the assignment is
already in the destination set.  Progression is not enforced either, so
a Planning event for a completed assignment re-adds it to planning and
leaves it in completed.

Everything here is pure; storage decides when and under which lock the
result is written.  A RecordWork that would push secs_worked past the
BIGINT column range raises InvalidPayload.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from uuid import UUID

from app.models.activity import ActivityEvent, Completed, Planning, WorkedOn
from app.models.status import Stats, UserStatus
from app.services.activity_validator import INT64_MAX
from app.services.errors import InvalidPayload


@dataclass(frozen=True, slots=True)
class MarkPlanning:
    assignment_id: UUID


@dataclass(frozen=True, slots=True)
class RecordWork:
    assignment_id: UUID
    duration_secs: int


@dataclass(frozen=True, slots=True)
class MarkCompleted:
    assignment_id: UUID


StatusDelta = MarkPlanning | RecordWork | MarkCompleted


def delta_for(event: ActivityEvent) -> StatusDelta:
    data = event.data
    if isinstance(data, Planning):
        return MarkPlanning(event.assignment_id)
    if isinstance(data, WorkedOn):
        return RecordWork(event.assignment_id, data.duration_secs)
    if isinstance(data, Completed):
        return MarkCompleted(event.assignment_id)
    raise TypeError(f"unhandled activity payload {data!r}")


def apply_delta(status: UserStatus, delta: StatusDelta) -> UserStatus:
    """Return the status that results from applying one delta."""
    if isinstance(delta, MarkPlanning):
        return replace(
            status,
            assignments_planning=status.assignments_planning | {delta.assignment_id},
        )

    if isinstance(delta, RecordWork):
        secs_worked = status.stats.secs_worked + delta.duration_secs
        if secs_worked > INT64_MAX:
            raise InvalidPayload(
                f"duration_secs {delta.duration_secs} would overflow secs_worked "
                f"for user {status.user_id}"
            )
        return replace(
            status,
            assignments_planning=status.assignments_planning - {delta.assignment_id},
            assignments_in_progress=(
                status.assignments_in_progress | {delta.assignment_id}
            ),
            stats=replace(
                status.stats,
                secs_worked=secs_worked,
            ),
        )

    if isinstance(delta, MarkCompleted):
        # Counted per event, not per distinct assignment.
        return replace(
            status,
            assignments_in_progress=(
                status.assignments_in_progress - {delta.assignment_id}
            ),
            assignments_completed=(
                status.assignments_completed | {delta.assignment_id}
            ),
            stats=replace(
                status.stats,
                assignments_completed=status.stats.assignments_completed + 1,
            ),
        )

    raise TypeError(f"unhandled status delta {delta!r}")


def project(status: UserStatus, event: ActivityEvent) -> UserStatus:
    if event.user_id != status.user_id:
        raise ValueError(
            f"event {event.id} belongs to user {event.user_id}, "
            f"not {status.user_id}"
        )
    return apply_delta(status, delta_for(event))


def replay(user_id: UUID, events: Iterable[ActivityEvent]) -> UserStatus:
    """Fold a user's events, in ledger order, over an empty status.

    Audit/recovery only; the write path applies one delta per append.
    """
    status = UserStatus(user_id=user_id, stats=Stats())
    for event in events:
        status = project(status, event)
    return status
