from __future__ import annotations

from uuid import UUID


class ActivityError(Exception):
    """Base class for every rejection the activity core reports."""

    code = "activity_error"


class InvalidReference(ActivityError):
    """A referenced user, course or assignment is absent or inconsistent."""

    code = "invalid_reference"

    def __init__(self, entity: str, ref_id: UUID, reason: str = "not found") -> None:
        self.entity = entity
        self.ref_id = ref_id
        self.reason = reason
        super().__init__(f"{entity} {ref_id} {reason}")


class InvalidPayload(ActivityError):
    """Kind-specific data is missing or out of range."""

    code = "invalid_payload"


class UnknownUser(ActivityError):
    """A valid user has no status record.

    Status records are created by the user lifecycle hook, so this is an
    internal consistency fault rather than caller error.
    """

    code = "unknown_user"

    def __init__(self, user_id: UUID) -> None:
        self.user_id = user_id
        super().__init__(f"no status record for user {user_id}")


class StorageFailure(ActivityError):
    """Underlying persistence is unavailable; safe to retry."""

    code = "storage_failure"


class IdempotencyConflict(ActivityError):
    """An idempotency key was reused for a different activity."""

    code = "idempotency_conflict"

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"idempotency key {key!r} reused with a different payload")
