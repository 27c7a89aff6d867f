"""Read-only lookups over the reference data (users, courses, students).

The entities are owned by other services; these routes only expose what
the activity core can already see through its reference repo.
"""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from app.api.dependencies import get_unit_of_work
from app.api.errors import raise_http
from app.repos.unit_of_work import UnitOfWork
from app.services.errors import ActivityError, InvalidReference

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["reference"])


class UserOut(BaseModel):
    id: str
    username: str
    first_name: str
    last_name: str
    university_id: str | None = None
    major_id: str | None = None
    grad_year: int | None = None


class CourseOut(BaseModel):
    id: str
    name: str


def _opt(value: UUID | None) -> str | None:
    return str(value) if value is not None else None


@router.get("/users/{user_id}", response_model=UserOut)
async def get_user(
    user_id: UUID,
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)],
) -> UserOut:
    try:
        async with uow.snapshot() as store:
            user = await store.references.get_user(user_id)
    except ActivityError as e:
        raise_http(e)

    if user is None:
        raise_http(InvalidReference("user", user_id))
    return UserOut(
        id=str(user.id),
        username=user.username,
        first_name=user.first_name,
        last_name=user.last_name,
        university_id=_opt(user.university_id),
        major_id=_opt(user.major_id),
        grad_year=user.grad_year,
    )


@router.get("/universities/{university_id}/students", response_model=list[str])
async def list_students(
    university_id: UUID,
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)],
) -> list[str]:
    try:
        async with uow.snapshot() as store:
            students = await store.references.list_students(university_id)
    except ActivityError as e:
        raise_http(e)
    return [str(s) for s in students]


@router.get("/courses", response_model=list[CourseOut])
async def search_courses(
    uow: Annotated[UnitOfWork, Depends(get_unit_of_work)],
    q: Annotated[str, Query(min_length=1, max_length=100)],
) -> list[CourseOut]:
    try:
        async with uow.snapshot() as store:
            courses = await store.references.search_courses(q)
    except ActivityError as e:
        raise_http(e)

    logger.debug("Course search q=%r matches=%d", q, len(courses))
    return [CourseOut(id=str(c.id), name=c.name) for c in courses]
