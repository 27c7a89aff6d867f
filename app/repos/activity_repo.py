from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol
from uuid import UUID

from app.models.activity import ActivityEvent


class ActivityLedger(Protocol):
    """Append-only event log, the source of truth for user activity."""

    async def append(self, event: ActivityEvent) -> UUID: ...
    async def get_by_idempotency_key(
        self, user_id: UUID, key: str
    ) -> ActivityEvent | None: ...
    def list_by_user(self, user_id: UUID) -> AsyncIterator[ActivityEvent]: ...


class InMemoryActivityLedger:
    def __init__(self) -> None:
        self._events: list[ActivityEvent] = []
        self._ids: set[UUID] = set()
        # Idempotency keys are scoped per user.
        self._by_key: dict[tuple[UUID, str], ActivityEvent] = {}

    async def append(self, event: ActivityEvent) -> UUID:
        self.check_new(event)
        return self.record(event)

    def check_new(self, event: ActivityEvent) -> None:
        if event.id in self._ids:
            raise ValueError("event id already recorded")
        if (
            event.idempotency_key is not None
            and (event.user_id, event.idempotency_key) in self._by_key
        ):
            raise ValueError("idempotency key already recorded")

    def record(self, event: ActivityEvent) -> UUID:
        """Synchronous append; callers run check_new first."""
        self._events.append(event)
        self._ids.add(event.id)
        if event.idempotency_key is not None:
            self._by_key[(event.user_id, event.idempotency_key)] = event
        return event.id

    async def get_by_idempotency_key(
        self, user_id: UUID, key: str
    ) -> ActivityEvent | None:
        return self._by_key.get((user_id, key))

    async def list_by_user(self, user_id: UUID) -> AsyncIterator[ActivityEvent]:
        # Bound the walk at call time so an iteration never sees events
        # appended after it started.
        end = len(self._events)
        for index in range(end):
            event = self._events[index]
            if event.user_id == user_id:
                yield event

    def __len__(self) -> int:
        return len(self._events)

    def clear(self) -> None:
        self._events.clear()
        self._ids.clear()
        self._by_key.clear()
