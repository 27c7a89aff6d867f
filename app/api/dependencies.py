"""Storage and service wiring for the route handlers.

Same conditional pattern as app/db/engine.py: PostgreSQL when
DATABASE_URL is configured, otherwise module-level in-memory singletons
that tests reset between cases.
"""

from __future__ import annotations

import logging

from app.core.config import SETTINGS
from app.db.engine import async_session_factory
from app.repos.reference_repo import InMemoryReferenceRepo
from app.repos.unit_of_work import InMemoryUnitOfWork, SqlUnitOfWork, UnitOfWork
from app.services.activity_service import ActivityService

logger = logging.getLogger(__name__)

# --- Module-level singletons ---

reference_repo = InMemoryReferenceRepo()

if async_session_factory is not None:
    unit_of_work: UnitOfWork = SqlUnitOfWork(async_session_factory)
else:
    unit_of_work = InMemoryUnitOfWork(reference_repo)

activity_service = ActivityService(
    unit_of_work, enforce_enrollment=SETTINGS.enforce_enrollment
)


def get_activity_service() -> ActivityService:
    """FastAPI dependency; override in tests via app.dependency_overrides."""
    return activity_service


def get_unit_of_work() -> UnitOfWork:
    return unit_of_work
