"""PostgreSQL implementation of ReferenceRepo (read side only)."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import AssignmentRow, CourseRow, EnrollmentRow, UserRow
from app.models.reference import Assignment, Course, User

_SEARCH_LIMIT = 50


class PgReferenceRepo:
    """Satisfies the ReferenceRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_user(self, user_id: UUID) -> User | None:
        row = await self._session.get(UserRow, user_id)
        if row is None:
            return None
        return _row_to_user(row)

    async def get_course(self, course_id: UUID) -> Course | None:
        row = await self._session.get(CourseRow, course_id)
        if row is None:
            return None
        return Course(id=row.id, name=row.name)

    async def get_assignment(self, assignment_id: UUID) -> Assignment | None:
        row = await self._session.get(AssignmentRow, assignment_id)
        if row is None:
            return None
        return Assignment(id=row.id, course_id=row.course_id, name=row.name)

    async def is_enrolled(self, user_id: UUID, course_id: UUID) -> bool:
        stmt = select(EnrollmentRow.user_id).where(
            EnrollmentRow.user_id == user_id,
            EnrollmentRow.course_id == course_id,
        )
        return (await self._session.execute(stmt)).first() is not None

    async def list_students(self, university_id: UUID) -> list[UUID]:
        stmt = select(UserRow.id).where(UserRow.university_id == university_id)
        return list((await self._session.scalars(stmt)).all())

    async def search_courses(self, query: str) -> list[Course]:
        stmt = (
            select(CourseRow)
            .where(CourseRow.name.ilike(f"%{_escape_like(query.strip())}%", escape="\\"))
            .order_by(CourseRow.name)
            .limit(_SEARCH_LIMIT)
        )
        rows = (await self._session.scalars(stmt)).all()
        return [Course(id=r.id, name=r.name) for r in rows]


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_user(row: UserRow) -> User:
    return User(
        id=row.id,
        username=row.username,
        first_name=row.first_name or "",
        last_name=row.last_name or "",
        university_id=row.university_id,
        major_id=row.major_id,
        grad_year=row.grad_year,
    )
