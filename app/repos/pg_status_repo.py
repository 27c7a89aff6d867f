"""PostgreSQL implementation of UserStatusStore."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import UserStatusRow
from app.models.status import Stats, UserStatus
from app.services.errors import UnknownUser
from app.services.projector import StatusDelta, apply_delta


class PgUserStatusStore:
    """Satisfies the UserStatusStore Protocol.

    apply_delta reads the row with SELECT ... FOR UPDATE, so two
    transactions touching the same user serialize on that row while other
    users proceed in parallel.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: UUID) -> UserStatus:
        row = await self._session.get(UserStatusRow, user_id, populate_existing=True)
        if row is None:
            raise UnknownUser(user_id)
        return _row_to_status(row)

    async def lock(self, user_id: UUID) -> None:
        """Take the user's row lock for the rest of the transaction, if the
        row exists."""
        stmt = (
            select(UserStatusRow.user_id)
            .where(UserStatusRow.user_id == user_id)
            .with_for_update()
        )
        await self._session.execute(stmt)

    async def create(self, user_id: UUID) -> UserStatus:
        stmt = (
            insert(UserStatusRow)
            .values(
                user_id=user_id,
                assignments_planning=[],
                assignments_in_progress=[],
                assignments_completed=[],
                secs_worked=0,
                stats_assignments_completed=0,
            )
            .on_conflict_do_nothing(index_elements=[UserStatusRow.user_id])
        )
        await self._session.execute(stmt)
        return await self.get(user_id)

    async def remove(self, user_id: UUID) -> bool:
        stmt = delete(UserStatusRow).where(UserStatusRow.user_id == user_id)
        result = await self._session.execute(stmt)
        return result.rowcount > 0  # type: ignore[attr-defined]

    async def apply_delta(self, user_id: UUID, delta: StatusDelta) -> UserStatus:
        stmt = (
            select(UserStatusRow)
            .where(UserStatusRow.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            raise UnknownUser(user_id)

        updated = apply_delta(_row_to_status(row), delta)

        # Sorted so the stored arrays are deterministic.
        row.assignments_planning = sorted(updated.assignments_planning)
        row.assignments_in_progress = sorted(updated.assignments_in_progress)
        row.assignments_completed = sorted(updated.assignments_completed)
        row.secs_worked = updated.stats.secs_worked
        row.stats_assignments_completed = updated.stats.assignments_completed
        await self._session.flush()
        return updated


def _row_to_status(row: UserStatusRow) -> UserStatus:
    return UserStatus(
        user_id=row.user_id,
        assignments_planning=frozenset(row.assignments_planning or ()),
        assignments_in_progress=frozenset(row.assignments_in_progress or ()),
        assignments_completed=frozenset(row.assignments_completed or ()),
        stats=Stats(
            secs_worked=row.secs_worked,
            assignments_completed=row.stats_assignments_completed,
        ),
    )
