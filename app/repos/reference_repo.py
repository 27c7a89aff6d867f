from __future__ import annotations

from typing import Protocol
from uuid import UUID

from app.models.reference import Assignment, Course, User


class ReferenceRepo(Protocol):
    async def get_user(self, user_id: UUID) -> User | None: ...
    async def get_course(self, course_id: UUID) -> Course | None: ...
    async def get_assignment(self, assignment_id: UUID) -> Assignment | None: ...
    async def is_enrolled(self, user_id: UUID, course_id: UUID) -> bool: ...
    async def list_students(self, university_id: UUID) -> list[UUID]: ...
    async def search_courses(self, query: str) -> list[Course]: ...


class InMemoryReferenceRepo:
    """Reference data for dev/test.

    The add_*/enroll/remove_user methods stand in for the collaborator
    services that own these entities; the activity core only calls the
    read side.
    """

    def __init__(self) -> None:
        self._users: dict[UUID, User] = {}
        self._courses: dict[UUID, Course] = {}
        self._assignments: dict[UUID, Assignment] = {}
        self._enrollments: set[tuple[UUID, UUID]] = set()

    async def get_user(self, user_id: UUID) -> User | None:
        return self._users.get(user_id)

    async def get_course(self, course_id: UUID) -> Course | None:
        return self._courses.get(course_id)

    async def get_assignment(self, assignment_id: UUID) -> Assignment | None:
        return self._assignments.get(assignment_id)

    async def is_enrolled(self, user_id: UUID, course_id: UUID) -> bool:
        return (user_id, course_id) in self._enrollments

    async def list_students(self, university_id: UUID) -> list[UUID]:
        return [u.id for u in self._users.values() if u.university_id == university_id]

    async def search_courses(self, query: str) -> list[Course]:
        needle = query.strip().lower()
        matches = [c for c in self._courses.values() if needle in c.name.lower()]
        return sorted(matches, key=lambda c: c.name)

    # --- collaborator side ---

    def add_user(self, user: User) -> None:
        if any(u.username == user.username for u in self._users.values()):
            raise ValueError("username already exists")
        self._users[user.id] = user

    def remove_user(self, user_id: UUID) -> bool:
        self._enrollments = {e for e in self._enrollments if e[0] != user_id}
        return self._users.pop(user_id, None) is not None

    def add_course(self, course: Course) -> None:
        self._courses[course.id] = course

    def add_assignment(self, assignment: Assignment) -> None:
        if assignment.course_id not in self._courses:
            raise KeyError("course not found")
        self._assignments[assignment.id] = assignment

    def enroll(self, user_id: UUID, course_id: UUID) -> None:
        if user_id not in self._users:
            raise KeyError("user not found")
        if course_id not in self._courses:
            raise KeyError("course not found")
        self._enrollments.add((user_id, course_id))

    def clear(self) -> None:
        self._users.clear()
        self._courses.clear()
        self._assignments.clear()
        self._enrollments.clear()
