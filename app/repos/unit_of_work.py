"""Unit of work: the append + projection transaction.

An activity is recorded by appending it to the ledger and applying its
delta to the owning user's status.  Both writes go through one
StoreSession opened with ``begin(user_id)``:

    async with uow.begin(event.user_id) as s:
        await s.ledger.append(event)
        await s.statuses.apply_delta(event.user_id, delta)

Leaving the block normally commits both writes; an exception discards
both.  ``begin`` also serializes sessions for the same user, and only for
that user.

InMemoryUnitOfWork   per-user asyncio.Lock, writes staged until commit
SqlUnitOfWork        one PostgreSQL transaction, user_status row lock
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.activity import ActivityEvent
from app.models.status import UserStatus
from app.repos.activity_repo import ActivityLedger, InMemoryActivityLedger
from app.repos.pg_activity_repo import PgActivityLedger
from app.repos.pg_reference_repo import PgReferenceRepo
from app.repos.pg_status_repo import PgUserStatusStore
from app.repos.reference_repo import InMemoryReferenceRepo, ReferenceRepo
from app.repos.status_repo import InMemoryUserStatusStore, UserStatusStore
from app.services.errors import StorageFailure, UnknownUser
from app.services.projector import StatusDelta, apply_delta

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StoreSession:
    references: ReferenceRepo
    ledger: ActivityLedger
    statuses: UserStatusStore


class UnitOfWork(Protocol):
    def begin(self, user_id: UUID) -> AbstractAsyncContextManager[StoreSession]: ...
    def snapshot(self) -> AbstractAsyncContextManager[StoreSession]: ...


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class _StagedLedger:
    """Buffers appends; reads see committed events plus this session's own."""

    def __init__(self, base: InMemoryActivityLedger) -> None:
        self._base = base
        self.pending: list[ActivityEvent] = []

    async def append(self, event: ActivityEvent) -> UUID:
        self.pending.append(event)
        return event.id

    async def get_by_idempotency_key(
        self, user_id: UUID, key: str
    ) -> ActivityEvent | None:
        for event in self.pending:
            if event.user_id == user_id and event.idempotency_key == key:
                return event
        return await self._base.get_by_idempotency_key(user_id, key)

    async def list_by_user(self, user_id: UUID) -> AsyncIterator[ActivityEvent]:
        async for event in self._base.list_by_user(user_id):
            yield event
        for event in list(self.pending):
            if event.user_id == user_id:
                yield event


class _StagedStatusStore:
    """Buffers status writes; None in ``pending`` marks a removal."""

    def __init__(self, base: InMemoryUserStatusStore) -> None:
        self._base = base
        self.pending: dict[UUID, UserStatus | None] = {}

    async def get(self, user_id: UUID) -> UserStatus:
        if user_id in self.pending:
            status = self.pending[user_id]
            if status is None:
                raise UnknownUser(user_id)
            return status
        return await self._base.get(user_id)

    async def create(self, user_id: UUID) -> UserStatus:
        try:
            return await self.get(user_id)
        except UnknownUser:
            status = UserStatus.empty(user_id)
            self.pending[user_id] = status
            return status

    async def remove(self, user_id: UUID) -> bool:
        try:
            await self.get(user_id)
        except UnknownUser:
            return False
        self.pending[user_id] = None
        return True

    async def apply_delta(self, user_id: UUID, delta: StatusDelta) -> UserStatus:
        updated = apply_delta(await self.get(user_id), delta)
        self.pending[user_id] = updated
        return updated


class InMemoryUnitOfWork:
    """In-memory storage for dev/test; single process only."""

    def __init__(
        self,
        references: InMemoryReferenceRepo,
        ledger: InMemoryActivityLedger | None = None,
        statuses: InMemoryUserStatusStore | None = None,
    ) -> None:
        self.references = references
        self.ledger = ledger if ledger is not None else InMemoryActivityLedger()
        self.statuses = statuses if statuses is not None else InMemoryUserStatusStore()
        # A lock lives only while some session holds or awaits it.
        self._locks: weakref.WeakValueDictionary[UUID, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, user_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    def is_locked(self, user_id: UUID) -> bool:
        lock = self._locks.get(user_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def begin(self, user_id: UUID) -> AsyncIterator[StoreSession]:
        lock = self._lock_for(user_id)
        async with lock:
            ledger = _StagedLedger(self.ledger)
            statuses = _StagedStatusStore(self.statuses)
            yield StoreSession(self.references, ledger, statuses)

            # Commit.  Nothing below awaits, so readers never observe an
            # event without its status update or the reverse.
            for event in ledger.pending:
                self.ledger.check_new(event)
            for event in ledger.pending:
                self.ledger.record(event)
            for uid, status in statuses.pending.items():
                if status is None:
                    self.statuses.discard(uid)
                else:
                    self.statuses.put(status)

    @asynccontextmanager
    async def snapshot(self) -> AsyncIterator[StoreSession]:
        yield StoreSession(self.references, self.ledger, self.statuses)

    def clear(self) -> None:
        self.ledger.clear()
        self.statuses.clear()
        self._locks.clear()


# ---------------------------------------------------------------------------
# PostgreSQL
# ---------------------------------------------------------------------------


class SqlUnitOfWork:
    """PostgreSQL storage.

    Every session is one transaction.  begin() takes the user's
    user_status row lock first, so the idempotency lookup, the append and
    the projection for one user never interleave with another session for
    the same user.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except (DBAPIError, OSError) as e:
            logger.exception("Database transaction failed")
            raise StorageFailure("activity storage unavailable") from e

    @asynccontextmanager
    async def begin(self, user_id: UUID) -> AsyncIterator[StoreSession]:
        async with self._transaction() as session:
            statuses = PgUserStatusStore(session)
            await statuses.lock(user_id)
            yield StoreSession(
                PgReferenceRepo(session), PgActivityLedger(session), statuses
            )

    @asynccontextmanager
    async def snapshot(self) -> AsyncIterator[StoreSession]:
        async with self._transaction() as session:
            yield StoreSession(
                PgReferenceRepo(session),
                PgActivityLedger(session),
                PgUserStatusStore(session),
            )
