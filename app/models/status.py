from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Stats:
    secs_worked: int = 0
    assignments_completed: int = 0


@dataclass(frozen=True, slots=True)
class UserStatus:
    """Read model derived from activity_events.

    The three sets are true sets: membership is idempotent.  The stats are
    event-counted and are not.
    """

    user_id: UUID
    assignments_planning: frozenset[UUID] = field(default_factory=frozenset)
    assignments_in_progress: frozenset[UUID] = field(default_factory=frozenset)
    assignments_completed: frozenset[UUID] = field(default_factory=frozenset)
    stats: Stats = field(default_factory=Stats)

    @staticmethod
    def empty(user_id: UUID) -> UserStatus:
        return UserStatus(user_id=user_id)
