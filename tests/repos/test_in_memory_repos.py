from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest

from app.models.reference import Assignment, Course, User
from app.repos.reference_repo import InMemoryReferenceRepo
from app.repos.status_repo import InMemoryUserStatusStore
from app.services.errors import UnknownUser


def test_add_user_rejects_duplicate_username(references: InMemoryReferenceRepo) -> None:
    references.add_user(User.new(username="ada"))
    with pytest.raises(ValueError, match="username already exists"):
        references.add_user(User.new(username="ada"))


def test_add_assignment_requires_course(references: InMemoryReferenceRepo) -> None:
    with pytest.raises(KeyError):
        references.add_assignment(Assignment.new(course_id=uuid4(), name="x"))


def test_enroll_requires_user_and_course(references: InMemoryReferenceRepo) -> None:
    course = Course.new(name="Physics")
    references.add_course(course)
    with pytest.raises(KeyError):
        references.enroll(uuid4(), course.id)


def test_remove_user_drops_enrollments(references: InMemoryReferenceRepo) -> None:
    user = User.new(username="ada")
    course = Course.new(name="Physics")
    references.add_user(user)
    references.add_course(course)
    references.enroll(user.id, course.id)

    assert references.remove_user(user.id) is True
    assert asyncio.run(references.is_enrolled(user.id, course.id)) is False
    assert references.remove_user(user.id) is False


def test_list_students_filters_by_university(references: InMemoryReferenceRepo) -> None:
    uni = uuid4()
    ada = User.new(username="ada", university_id=uni)
    references.add_user(ada)
    references.add_user(User.new(username="grace", university_id=uuid4()))
    references.add_user(User.new(username="alan"))
    assert asyncio.run(references.list_students(uni)) == [ada.id]


def test_search_courses_case_insensitive_sorted(references: InMemoryReferenceRepo) -> None:
    for name in ("Organic Chemistry", "Intro to Chemistry", "Algebra"):
        references.add_course(Course.new(name=name))
    names = [c.name for c in asyncio.run(references.search_courses("CHEM"))]
    assert names == ["Intro to Chemistry", "Organic Chemistry"]


def test_status_store_get_unknown_raises() -> None:
    store = InMemoryUserStatusStore()
    with pytest.raises(UnknownUser):
        asyncio.run(store.get(uuid4()))


def test_status_store_create_is_idempotent() -> None:
    store = InMemoryUserStatusStore()
    user = uuid4()
    first = asyncio.run(store.create(user))
    assert asyncio.run(store.create(user)) is first
    assert asyncio.run(store.remove(user)) is True
    assert asyncio.run(store.remove(user)) is False
