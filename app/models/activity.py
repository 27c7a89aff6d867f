from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID, uuid4


class ActivityKind(StrEnum):
    """Wire names of the activity variants."""

    PLANNING = "Planning"
    WORKED_ON = "WorkedOn"
    COMPLETED = "Completed"


@dataclass(frozen=True, slots=True)
class Planning:
    """The user is planning to do an assignment."""

    kind = ActivityKind.PLANNING


@dataclass(frozen=True, slots=True)
class WorkedOn:
    """The user worked on an assignment for ``duration_secs`` seconds."""

    duration_secs: int

    kind = ActivityKind.WORKED_ON


@dataclass(frozen=True, slots=True)
class Completed:
    """The user completed an assignment."""

    kind = ActivityKind.COMPLETED


ActivityData = Planning | WorkedOn | Completed


@dataclass(frozen=True, slots=True)
class ActivityEvent:
    """One entry in the write-once activity ledger."""

    id: UUID
    user_id: UUID
    course_id: UUID
    assignment_id: UUID
    occurred_at: int  # epoch seconds, not monotonic across the ledger
    data: ActivityData
    idempotency_key: str | None = None

    @property
    def kind(self) -> ActivityKind:
        return self.data.kind

    @staticmethod
    def new(
        *,
        user_id: UUID,
        course_id: UUID,
        assignment_id: UUID,
        occurred_at: int,
        data: ActivityData,
        idempotency_key: str | None = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            id=uuid4(),
            user_id=user_id,
            course_id=course_id,
            assignment_id=assignment_id,
            occurred_at=occurred_at,
            data=data,
            idempotency_key=idempotency_key,
        )


def data_to_payload(data: ActivityData) -> dict[str, object]:
    """Serialize the tagged payload as ``{"kind": ..., **fields}``."""
    if isinstance(data, WorkedOn):
        return {"kind": data.kind.value, "duration_secs": data.duration_secs}
    return {"kind": data.kind.value}


def data_from_payload(payload: dict[str, object]) -> ActivityData:
    """Inverse of data_to_payload for rows read back from storage."""
    kind = ActivityKind(payload["kind"])
    if kind is ActivityKind.WORKED_ON:
        return WorkedOn(duration_secs=int(payload["duration_secs"]))  # type: ignore[call-overload]
    if kind is ActivityKind.COMPLETED:
        return Completed()
    return Planning()
