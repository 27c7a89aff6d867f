"""Activity ingestion and history endpoints.

  POST /v1/activity                     record Planning | WorkedOn | Completed
  GET  /v1/users/{user_id}/activity     the user's ledger, in append order

The payload is tagged by ``kind`` with kind-specific fields alongside it:

  {"user_id": ..., "course_id": ..., "assignment_id": ...,
   "kind": "WorkedOn", "duration_secs": 1500}
"""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, Field

from app.api.dependencies import get_activity_service
from app.api.errors import raise_http
from app.api.ratelimit import enforce_rate_limit
from app.models.activity import ActivityEvent, data_to_payload
from app.services.activity_service import ActivityService
from app.services.errors import ActivityError

router = APIRouter(tags=["activity"])


class ActivityIn(BaseModel):
    user_id: UUID
    course_id: UUID
    assignment_id: UUID
    kind: str  # Planning|WorkedOn|Completed
    # Passed through unconverted; the validator rejects bools, strings and
    # out-of-range values as invalid_payload.
    duration_secs: Any = None  # WorkedOn only
    occurred_at: Any = None  # epoch seconds; defaults to now
    idempotency_key: str | None = Field(default=None, max_length=255)


class ActivityOut(BaseModel):
    id: str
    user_id: str
    course_id: str
    assignment_id: str
    occurred_at: int
    data: dict[str, str | int]


def _to_out(event: ActivityEvent) -> ActivityOut:
    return ActivityOut(
        id=str(event.id),
        user_id=str(event.user_id),
        course_id=str(event.course_id),
        assignment_id=str(event.assignment_id),
        occurred_at=event.occurred_at,
        data=data_to_payload(event.data),
    )


@router.post(
    "/v1/activity",
    response_model=ActivityOut,
    status_code=status.HTTP_201_CREATED,
)
async def submit_activity(
    body: ActivityIn,
    request: Request,
    response: Response,
    service: Annotated[ActivityService, Depends(get_activity_service)],
) -> ActivityOut:
    await enforce_rate_limit(request, response, user_id=body.user_id)

    payload = None
    if body.duration_secs is not None:
        payload = {"duration_secs": body.duration_secs}

    try:
        event = await service.submit_activity(
            body.user_id,
            body.course_id,
            body.assignment_id,
            body.kind,
            payload,
            occurred_at=body.occurred_at,
            idempotency_key=body.idempotency_key,
        )
    except ActivityError as e:
        raise_http(e)

    return _to_out(event)


@router.get("/v1/users/{user_id}/activity", response_model=list[ActivityOut])
async def list_activity(
    user_id: UUID,
    service: Annotated[ActivityService, Depends(get_activity_service)],
) -> list[ActivityOut]:
    try:
        return [_to_out(e) async for e in service.list_activity(user_id)]
    except ActivityError as e:
        raise_http(e)
