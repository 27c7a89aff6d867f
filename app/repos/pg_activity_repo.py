"""PostgreSQL implementation of ActivityLedger."""

from __future__ import annotations

from collections.abc import AsyncIterator
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import ActivityEventRow
from app.models.activity import ActivityEvent, data_from_payload, data_to_payload


class PgActivityLedger:
    """Satisfies the ActivityLedger Protocol.

    Only INSERT and SELECT are issued against activity_events; rows are
    never updated or deleted.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(self, event: ActivityEvent) -> UUID:
        self._session.add(_event_to_row(event))
        await self._session.flush()
        return event.id

    async def get_by_idempotency_key(
        self, user_id: UUID, key: str
    ) -> ActivityEvent | None:
        stmt = select(ActivityEventRow).where(
            ActivityEventRow.user_id == user_id,
            ActivityEventRow.idempotency_key == key,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_event(row)

    async def list_by_user(self, user_id: UUID) -> AsyncIterator[ActivityEvent]:
        stmt = (
            select(ActivityEventRow)
            .where(ActivityEventRow.user_id == user_id)
            .order_by(ActivityEventRow.seq)
            .execution_options(yield_per=500)
        )
        rows = await self._session.stream_scalars(stmt)
        async for row in rows:
            yield _row_to_event(row)


def _event_to_row(event: ActivityEvent) -> ActivityEventRow:
    return ActivityEventRow(
        id=event.id,
        user_id=event.user_id,
        course_id=event.course_id,
        assignment_id=event.assignment_id,
        occurred_at=event.occurred_at,
        kind=event.kind.value,
        payload=data_to_payload(event.data),
        idempotency_key=event.idempotency_key,
    )


def _row_to_event(row: ActivityEventRow) -> ActivityEvent:
    return ActivityEvent(
        id=row.id,
        user_id=row.user_id,
        course_id=row.course_id,
        assignment_id=row.assignment_id,
        occurred_at=row.occurred_at,
        data=data_from_payload({**row.payload, "kind": row.kind}),
        idempotency_key=row.idempotency_key,
    )
