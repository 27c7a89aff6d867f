from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import activity_service, reference_repo, unit_of_work
from app.api.ratelimit import _rate_limiter
from app.main import app
from app.models.reference import Assignment, Course, User
from app.repos.reference_repo import InMemoryReferenceRepo
from app.repos.unit_of_work import InMemoryUnitOfWork
from app.services.activity_service import ActivityService

# Ensure repo root is on sys.path so `import app` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def reset_reference_data() -> None:
    reference_repo.clear()


@pytest.fixture(autouse=True)
def reset_activity_state() -> None:
    """Clear the ledger, status records and user locks between tests."""
    if isinstance(unit_of_work, InMemoryUnitOfWork):
        unit_of_work.clear()


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> None:
    """Clear rate limit buckets between tests so limits don't bleed."""
    if hasattr(_rate_limiter, "_buckets"):
        _rate_limiter._buckets.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


# ---------------------------------------------------------------------------
# Fresh stores for service/repo tests
# ---------------------------------------------------------------------------


@pytest.fixture
def references() -> InMemoryReferenceRepo:
    return InMemoryReferenceRepo()


@pytest.fixture
def uow(references: InMemoryReferenceRepo) -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork(references)


@pytest.fixture
def service(uow: InMemoryUnitOfWork) -> ActivityService:
    return ActivityService(uow)


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Seeded:
    user: User
    course: Course
    assignment: Assignment


def seed_student(
    references: InMemoryReferenceRepo,
    *,
    username: str = "ada",
    course_name: str = "Linear Algebra",
    enroll: bool = True,
) -> Seeded:
    """Add a user, a course with one assignment, and (optionally) enroll."""
    user = User.new(username=username, first_name="Ada", last_name="Lovelace")
    course = Course.new(name=course_name)
    assignment = Assignment.new(course_id=course.id, name="Problem Set 1")
    references.add_user(user)
    references.add_course(course)
    references.add_assignment(assignment)
    if enroll:
        references.enroll(user.id, course.id)
    return Seeded(user=user, course=course, assignment=assignment)


def seed_app_student(**kwargs) -> Seeded:
    """seed_student against the app singletons, status record included."""
    seeded = seed_student(reference_repo, **kwargs)
    asyncio.run(activity_service.on_user_created(seeded.user.id))
    return seeded
