"""Activity submission and derived-state reads.

Submission sequence:
  validate (references + payload, no writes)
  -> begin(user)                      per-user serialization
  -> idempotency lookup               same key + same activity = replay
  -> append event to ledger
  -> apply projector delta to the user's status
  -> commit both, or neither

Replaying the whole ledger never happens on this path; audit_user_status
does it on demand to check the stored projection.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from uuid import UUID

from app.core.metrics import (
    ACTIVITY_COMMIT_DURATION,
    ACTIVITY_EVENTS,
    ACTIVITY_REJECTIONS,
)
from app.models.activity import ActivityEvent
from app.models.status import UserStatus
from app.repos.unit_of_work import StoreSession, UnitOfWork
from app.services.activity_validator import validate_activity
from app.services.errors import (
    ActivityError,
    IdempotencyConflict,
    InvalidReference,
    UnknownUser,
)
from app.services.projector import delta_for, replay

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StatusAudit:
    user_id: UUID
    consistent: bool
    replayed_events: int
    stored: UserStatus
    replayed: UserStatus


def _same_activity(a: ActivityEvent, b: ActivityEvent) -> bool:
    # occurred_at is excluded: a retry without an explicit timestamp gets
    # a fresh "now".
    return (
        a.user_id == b.user_id
        and a.course_id == b.course_id
        and a.assignment_id == b.assignment_id
        and a.data == b.data
    )


class ActivityService:
    def __init__(self, uow: UnitOfWork, *, enforce_enrollment: bool = True) -> None:
        self._uow = uow
        self._enforce_enrollment = enforce_enrollment

    async def submit_activity(
        self,
        user_id: UUID,
        course_id: UUID,
        assignment_id: UUID,
        kind: str,
        payload: Mapping[str, object] | None = None,
        *,
        occurred_at: int | None = None,
        idempotency_key: str | None = None,
    ) -> ActivityEvent:
        """Record one activity and update the user's status atomically.

        Returns the recorded event (its id is the ledger identity).  When
        ``idempotency_key`` matches an earlier submission of the same
        activity, that earlier event is returned and nothing is written.
        """
        try:
            async with self._uow.snapshot() as s:
                candidate = await validate_activity(
                    s.references,
                    user_id=user_id,
                    course_id=course_id,
                    assignment_id=assignment_id,
                    kind=kind,
                    payload=payload,
                    occurred_at=occurred_at,
                    idempotency_key=idempotency_key,
                    require_enrollment=self._enforce_enrollment,
                )

            start = time.monotonic()
            async with self._uow.begin(user_id) as s:
                event, created = await self._record(s, candidate)
            ACTIVITY_COMMIT_DURATION.observe(time.monotonic() - start)
        except ActivityError as e:
            self._report_rejection(e, user_id=user_id)
            raise

        if not created:
            logger.info(
                "Idempotent replay id=%s user=%s key=%s",
                event.id,
                user_id,
                idempotency_key,
                extra={"user_id": str(user_id), "activity_id": str(event.id)},
            )
            return event

        ACTIVITY_EVENTS.labels(kind=event.kind.value).inc()
        logger.info(
            "Recorded activity id=%s user=%s assignment=%s kind=%s",
            event.id,
            user_id,
            assignment_id,
            event.kind.value,
            extra={
                "user_id": str(user_id),
                "activity_id": str(event.id),
                "kind": event.kind.value,
            },
        )
        return event

    async def _record(
        self, s: StoreSession, candidate: ActivityEvent
    ) -> tuple[ActivityEvent, bool]:
        key = candidate.idempotency_key
        if key is not None:
            existing = await s.ledger.get_by_idempotency_key(candidate.user_id, key)
            if existing is not None:
                if not _same_activity(existing, candidate):
                    raise IdempotencyConflict(key)
                return existing, False

        await s.ledger.append(candidate)
        await s.statuses.apply_delta(candidate.user_id, delta_for(candidate))
        return candidate, True

    def _report_rejection(self, e: ActivityError, *, user_id: UUID) -> None:
        ACTIVITY_REJECTIONS.labels(reason=e.code).inc()
        if isinstance(e, UnknownUser):
            logger.error(
                "Consistency fault: %s",
                e,
                extra={"user_id": str(user_id)},
            )
        else:
            logger.warning(
                "Rejected activity user=%s code=%s: %s",
                user_id,
                e.code,
                e,
                extra={"user_id": str(user_id)},
            )

    async def get_user_status(self, user_id: UUID) -> UserStatus:
        async with self._uow.snapshot() as s:
            if await s.references.get_user(user_id) is None:
                raise InvalidReference("user", user_id)
            try:
                return await s.statuses.get(user_id)
            except UnknownUser as e:
                logger.error("Consistency fault: %s", e, extra={"user_id": str(user_id)})
                raise

    async def list_activity(self, user_id: UUID) -> AsyncIterator[ActivityEvent]:
        """Yield the user's events in ledger order.

        Lazy and finite; call again for a fresh pass.  Events outlive the
        user record, so a deleted user's history is still listed.
        """
        async with self._uow.snapshot() as s:
            async for event in s.ledger.list_by_user(user_id):
                yield event

    async def audit_user_status(self, user_id: UUID) -> StatusAudit:
        """Replay the user's ledger and compare it with the stored status.

        Runs under the user's lock so no append lands between the two reads.
        """
        async with self._uow.begin(user_id) as s:
            stored = await s.statuses.get(user_id)
            events = [e async for e in s.ledger.list_by_user(user_id)]

        replayed = replay(user_id, events)
        consistent = replayed == stored
        if not consistent:
            logger.error(
                "Status drift user=%s events=%d stored=%s replayed=%s",
                user_id,
                len(events),
                stored,
                replayed,
                extra={"user_id": str(user_id)},
            )
        return StatusAudit(
            user_id=user_id,
            consistent=consistent,
            replayed_events=len(events),
            stored=stored,
            replayed=replayed,
        )

    # --- user lifecycle hooks (called by the account service) ---

    async def on_user_created(self, user_id: UUID) -> UserStatus:
        """Create the user's empty status record.  Safe to redeliver."""
        async with self._uow.begin(user_id) as s:
            if await s.references.get_user(user_id) is None:
                raise InvalidReference("user", user_id)
            status = await s.statuses.create(user_id)
        logger.info("Status record ready user=%s", user_id, extra={"user_id": str(user_id)})
        return status

    async def on_user_deleted(self, user_id: UUID) -> bool:
        """Drop the user's status record.  Ledger entries are kept."""
        async with self._uow.begin(user_id) as s:
            removed = await s.statuses.remove(user_id)
        if removed:
            logger.info("Status record removed user=%s", user_id, extra={"user_id": str(user_id)})
        return removed
