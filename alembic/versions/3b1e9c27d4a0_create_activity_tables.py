"""create reference, activity ledger and user status tables

Revision ID: 3b1e9c27d4a0
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b1e9c27d4a0"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_UUID = postgresql.UUID(as_uuid=True)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", _UUID, primary_key=True),
        sa.Column("username", sa.String(length=64), nullable=False, unique=True),
        sa.Column("first_name", sa.String(length=255), nullable=False),
        sa.Column("last_name", sa.String(length=255), nullable=False),
        sa.Column("university_id", _UUID, nullable=True),
        sa.Column("major_id", _UUID, nullable=True),
        sa.Column("grad_year", sa.Integer(), nullable=True),
    )
    op.create_index("ix_users_university_id", "users", ["university_id"])

    op.create_table(
        "courses",
        sa.Column("id", _UUID, primary_key=True),
        sa.Column("name", sa.String(length=500), nullable=False),
    )

    op.create_table(
        "assignments",
        sa.Column("id", _UUID, primary_key=True),
        sa.Column(
            "course_id", _UUID, sa.ForeignKey("courses.id"), nullable=False
        ),
        sa.Column("name", sa.String(length=500), nullable=False),
    )

    op.create_table(
        "enrollments",
        sa.Column("user_id", _UUID, sa.ForeignKey("users.id"), primary_key=True),
        sa.Column(
            "course_id", _UUID, sa.ForeignKey("courses.id"), primary_key=True
        ),
    )

    op.create_table(
        "activity_events",
        sa.Column("id", _UUID, primary_key=True),
        sa.Column(
            "seq",
            sa.BigInteger(),
            sa.Identity(always=True),
            nullable=False,
            unique=True,
        ),
        sa.Column("user_id", _UUID, nullable=False),
        sa.Column("course_id", _UUID, nullable=False),
        sa.Column("assignment_id", _UUID, nullable=False),
        sa.Column("occurred_at", sa.BigInteger(), nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("payload", postgresql.JSONB(), nullable=False),
        sa.Column("idempotency_key", sa.String(length=255), nullable=True),
        sa.UniqueConstraint(
            "user_id", "idempotency_key", name="uq_activity_events_user_key"
        ),
    )
    op.create_index(
        "ix_activity_events_user_seq", "activity_events", ["user_id", "seq"]
    )

    op.create_table(
        "user_status",
        sa.Column("user_id", _UUID, primary_key=True),
        sa.Column("assignments_planning", postgresql.ARRAY(_UUID), nullable=False),
        sa.Column(
            "assignments_in_progress", postgresql.ARRAY(_UUID), nullable=False
        ),
        sa.Column("assignments_completed", postgresql.ARRAY(_UUID), nullable=False),
        sa.Column("secs_worked", sa.BigInteger(), nullable=False),
        sa.Column("stats_assignments_completed", sa.Integer(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("user_status")
    op.drop_index("ix_activity_events_user_seq", table_name="activity_events")
    op.drop_table("activity_events")
    op.drop_table("enrollments")
    op.drop_table("assignments")
    op.drop_table("courses")
    op.drop_index("ix_users_university_id", table_name="users")
    op.drop_table("users")
