"""User status (derived state) endpoints.

  GET    /v1/users/{user_id}/status         current status sets + stats
  GET    /v1/users/{user_id}/status/audit   replay the ledger and compare
  POST   /v1/users/{user_id}/status         account created  -> empty record
  DELETE /v1/users/{user_id}/status         account deleted  -> drop record

The POST/DELETE pair is the lifecycle hook the account service calls; it
is the only way a status record comes into or goes out of existence.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from app.api.dependencies import get_activity_service
from app.api.errors import raise_http
from app.models.status import UserStatus
from app.services.activity_service import ActivityService
from app.services.errors import ActivityError

router = APIRouter(prefix="/v1/users", tags=["status"])


class StatsOut(BaseModel):
    secs_worked: int
    assignments_completed: int


class UserStatusOut(BaseModel):
    user_id: str
    assignments_planning: list[str]
    assignments_in_progress: list[str]
    assignments_completed: list[str]
    stats: StatsOut


class StatusAuditOut(BaseModel):
    user_id: str
    consistent: bool
    replayed_events: int
    stored: UserStatusOut
    replayed: UserStatusOut


def _ids(ids: frozenset[UUID]) -> list[str]:
    return sorted(str(i) for i in ids)


def _to_out(s: UserStatus) -> UserStatusOut:
    return UserStatusOut(
        user_id=str(s.user_id),
        assignments_planning=_ids(s.assignments_planning),
        assignments_in_progress=_ids(s.assignments_in_progress),
        assignments_completed=_ids(s.assignments_completed),
        stats=StatsOut(
            secs_worked=s.stats.secs_worked,
            assignments_completed=s.stats.assignments_completed,
        ),
    )


@router.get("/{user_id}/status", response_model=UserStatusOut)
async def get_user_status(
    user_id: UUID,
    service: Annotated[ActivityService, Depends(get_activity_service)],
) -> UserStatusOut:
    try:
        return _to_out(await service.get_user_status(user_id))
    except ActivityError as e:
        raise_http(e)


@router.get("/{user_id}/status/audit", response_model=StatusAuditOut)
async def audit_user_status(
    user_id: UUID,
    service: Annotated[ActivityService, Depends(get_activity_service)],
) -> StatusAuditOut:
    try:
        audit = await service.audit_user_status(user_id)
    except ActivityError as e:
        raise_http(e)

    return StatusAuditOut(
        user_id=str(audit.user_id),
        consistent=audit.consistent,
        replayed_events=audit.replayed_events,
        stored=_to_out(audit.stored),
        replayed=_to_out(audit.replayed),
    )


@router.post(
    "/{user_id}/status",
    response_model=UserStatusOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_user_status(
    user_id: UUID,
    service: Annotated[ActivityService, Depends(get_activity_service)],
) -> UserStatusOut:
    try:
        return _to_out(await service.on_user_created(user_id))
    except ActivityError as e:
        raise_http(e)


@router.delete("/{user_id}/status", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user_status(
    user_id: UUID,
    service: Annotated[ActivityService, Depends(get_activity_service)],
) -> Response:
    try:
        await service.on_user_deleted(user_id)
    except ActivityError as e:
        raise_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
