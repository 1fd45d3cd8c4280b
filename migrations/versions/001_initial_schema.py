"""Create profile, extension and teacher sub-record tables.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

Tables:
- profiles: one per identity (id = identity id)
- teacher_profiles / student_profiles / parent_profiles: one-to-one extensions
- teacher_experiences / teacher_educations: teacher sub-records
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        sa.UUID(),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _owner_fk(column: str, target: str) -> sa.Column:
    return sa.Column(
        column,
        sa.UUID(),
        sa.ForeignKey(target, ondelete="CASCADE"),
        nullable=False,
    )


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def _string_array(name: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.JSONB(),
        nullable=False,
        server_default=sa.text("'[]'::jsonb"),
    )


def upgrade() -> None:
    # gen_random_uuid() for extension and sub-record keys
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    # Profile ids come from the identity provider; no server default
    op.create_table(
        "profiles",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("user_type", sa.String(20), nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "user_type IN ('teacher', 'student', 'parent', 'admin')",
            name="ck_profiles_user_type",
        ),
    )
    op.create_index("idx_profiles_user_type", "profiles", ["user_type"])

    op.create_table(
        "teacher_profiles",
        _uuid_pk(),
        _owner_fk("user_id", "profiles.id"),
        _string_array("subject"),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("fee", sa.String(100), nullable=False),
        sa.Column("about", sa.Text(), nullable=False),
        _string_array("tags"),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("reviews_count", sa.Integer(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.UniqueConstraint("user_id", name="uq_teacher_profiles_user_id"),
    )
    # Subject browse filter (jsonb containment)
    op.create_index(
        "idx_teacher_profiles_subject",
        "teacher_profiles",
        ["subject"],
        postgresql_using="gin",
    )

    op.create_table(
        "student_profiles",
        _uuid_pk(),
        _owner_fk("user_id", "profiles.id"),
        sa.Column("grade", sa.String(50), nullable=True),
        _string_array("interests"),
        _timestamp("created_at"),
        sa.UniqueConstraint("user_id", name="uq_student_profiles_user_id"),
    )

    op.create_table(
        "parent_profiles",
        _uuid_pk(),
        _owner_fk("user_id", "profiles.id"),
        sa.Column("children_count", sa.Integer(), nullable=False, server_default="1"),
        _string_array("children_grades"),
        _timestamp("created_at"),
        sa.UniqueConstraint("user_id", name="uq_parent_profiles_user_id"),
        sa.CheckConstraint(
            "children_count >= 1",
            name="ck_parent_profiles_children_count",
        ),
    )

    op.create_table(
        "teacher_experiences",
        _uuid_pk(),
        _owner_fk("teacher_id", "teacher_profiles.id"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("institution", sa.String(255), nullable=False),
        sa.Column("period", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _timestamp("created_at"),
    )
    op.create_index(
        "idx_teacher_experiences_teacher_id", "teacher_experiences", ["teacher_id"]
    )

    op.create_table(
        "teacher_educations",
        _uuid_pk(),
        _owner_fk("teacher_id", "teacher_profiles.id"),
        sa.Column("degree", sa.String(255), nullable=False),
        sa.Column("institution", sa.String(255), nullable=False),
        sa.Column("year", sa.String(20), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _timestamp("created_at"),
    )
    op.create_index(
        "idx_teacher_educations_teacher_id", "teacher_educations", ["teacher_id"]
    )


def downgrade() -> None:
    op.drop_index("idx_teacher_educations_teacher_id", table_name="teacher_educations")
    op.drop_table("teacher_educations")
    op.drop_index("idx_teacher_experiences_teacher_id", table_name="teacher_experiences")
    op.drop_table("teacher_experiences")
    op.drop_table("parent_profiles")
    op.drop_table("student_profiles")
    op.drop_index("idx_teacher_profiles_subject", table_name="teacher_profiles")
    op.drop_table("teacher_profiles")
    op.drop_index("idx_profiles_user_type", table_name="profiles")
    op.drop_table("profiles")
