from __future__ import annotations

from typing import Protocol
from uuid import UUID

from app.models.status import UserStatus
from app.services.errors import UnknownUser
from app.services.projector import StatusDelta, apply_delta


class UserStatusStore(Protocol):
    async def get(self, user_id: UUID) -> UserStatus: ...
    async def create(self, user_id: UUID) -> UserStatus: ...
    async def remove(self, user_id: UUID) -> bool: ...
    async def apply_delta(self, user_id: UUID, delta: StatusDelta) -> UserStatus: ...


class InMemoryUserStatusStore:
    """Per-user status records.

    apply_delta is a read-modify-write with no await between the read and
    the write; cross-statement serialization per user is the unit of
    work's job.
    """

    def __init__(self) -> None:
        self._store: dict[UUID, UserStatus] = {}

    async def get(self, user_id: UUID) -> UserStatus:
        status = self._store.get(user_id)
        if status is None:
            raise UnknownUser(user_id)
        return status

    async def create(self, user_id: UUID) -> UserStatus:
        existing = self._store.get(user_id)
        if existing is not None:
            return existing
        status = UserStatus.empty(user_id)
        self._store[user_id] = status
        return status

    async def remove(self, user_id: UUID) -> bool:
        return self._store.pop(user_id, None) is not None

    async def apply_delta(self, user_id: UUID, delta: StatusDelta) -> UserStatus:
        updated = apply_delta(await self.get(user_id), delta)
        self._store[user_id] = updated
        return updated

    def put(self, status: UserStatus) -> None:
        self._store[status.user_id] = status

    def discard(self, user_id: UUID) -> None:
        self._store.pop(user_id, None)

    def clear(self) -> None:
        self._store.clear()
