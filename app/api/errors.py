"""Translate activity-core exceptions into HTTP errors.

Every rejection carries a stable error code so callers can tell the
kinds apart without parsing messages:

  invalid_reference     404
  invalid_payload       422
  idempotency_conflict  409
  unknown_user          500  (internal consistency fault)
  storage_failure       503  (retryable, with Retry-After)
"""

from __future__ import annotations

from typing import NoReturn

from fastapi import HTTPException, status

from app.services.errors import (
    ActivityError,
    IdempotencyConflict,
    InvalidPayload,
    InvalidReference,
    StorageFailure,
    UnknownUser,
)

_STORAGE_RETRY_AFTER_SECS = 1

_STATUS_BY_ERROR: dict[type[ActivityError], int] = {
    InvalidReference: status.HTTP_404_NOT_FOUND,
    InvalidPayload: status.HTTP_422_UNPROCESSABLE_CONTENT,
    IdempotencyConflict: status.HTTP_409_CONFLICT,
    UnknownUser: status.HTTP_500_INTERNAL_SERVER_ERROR,
    StorageFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def raise_http(e: ActivityError) -> NoReturn:
    headers = None
    if isinstance(e, StorageFailure):
        headers = {"Retry-After": str(_STORAGE_RETRY_AFTER_SECS)}
    raise HTTPException(
        status_code=_STATUS_BY_ERROR.get(
            type(e), status.HTTP_500_INTERNAL_SERVER_ERROR
        ),
        detail={"error": e.code, "message": str(e)},
        headers=headers,
    ) from None
