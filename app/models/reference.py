"""Reference entities owned by collaborator services.

The activity core reads these for validation and lookups but never
mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class User:
    id: UUID
    username: str
    first_name: str
    last_name: str
    university_id: UUID | None = None
    major_id: UUID | None = None
    grad_year: int | None = None

    @staticmethod
    def new(
        *,
        username: str,
        first_name: str = "",
        last_name: str = "",
        university_id: UUID | None = None,
        major_id: UUID | None = None,
        grad_year: int | None = None,
    ) -> User:
        return User(
            id=uuid4(),
            username=username,
            first_name=first_name,
            last_name=last_name,
            university_id=university_id,
            major_id=major_id,
            grad_year=grad_year,
        )


@dataclass(frozen=True, slots=True)
class Course:
    """Courses are independent of university; the same course can be
    shared by students at different schools."""

    id: UUID
    name: str

    @staticmethod
    def new(*, name: str) -> Course:
        return Course(id=uuid4(), name=name)


@dataclass(frozen=True, slots=True)
class Assignment:
    id: UUID
    course_id: UUID
    name: str

    @staticmethod
    def new(*, course_id: UUID, name: str) -> Assignment:
        return Assignment(id=uuid4(), course_id=course_id, name=name)
