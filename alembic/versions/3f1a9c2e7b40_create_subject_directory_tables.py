"""create subject directory tables

Revision ID: 3f1a9c2e7b40
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1a9c2e7b40"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create specialists, users, subjects, their link tables and courses."""
    op.create_table(
        "specialists",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        *_timestamps(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "is_active", sa.Boolean(), server_default=sa.true(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id", name="pk_specialists"),
        sa.UniqueConstraint("name", name="uq_specialists_name"),
        sa.UniqueConstraint("slug", name="uq_specialists_slug"),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        *_timestamps(),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("fullname", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "user_specialists",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("specialist_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_user_specialists_user_id",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["specialist_id"],
            ["specialists.id"],
            name="fk_user_specialists_specialist_id",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint(
            "user_id", "specialist_id", name="pk_user_specialists"
        ),
    )

    op.create_table(
        "subjects",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        *_timestamps(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("credits", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "is_active", sa.Boolean(), server_default=sa.true(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id", name="pk_subjects"),
        sa.UniqueConstraint("name", name="uq_subjects_name"),
        sa.UniqueConstraint("code", name="uq_subjects_code"),
        sa.UniqueConstraint("slug", name="uq_subjects_slug"),
        sa.CheckConstraint("credits > 0", name="ck_subject_credits_positive"),
    )
    op.create_index("ix_subjects_is_active", "subjects", ["is_active"])
    op.create_index("ix_subjects_created_at", "subjects", ["created_at"])
    # Full-text index backing the listing search
    op.execute(
        "CREATE INDEX ix_subjects_search ON subjects USING gin "
        "(to_tsvector('simple'::regconfig, name || ' ' || coalesce(description, '')))"
    )

    op.create_table(
        "subject_specialists",
        sa.Column("subject_id", sa.Integer(), nullable=False),
        sa.Column("specialist_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["subject_id"],
            ["subjects.id"],
            name="fk_subject_specialists_subject_id",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["specialist_id"],
            ["specialists.id"],
            name="fk_subject_specialists_specialist_id",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint(
            "subject_id", "specialist_id", name="pk_subject_specialists"
        ),
    )
    op.create_index(
        "ix_subject_specialists_specialist_id",
        "subject_specialists",
        ["specialist_id"],
    )

    op.create_table(
        "subject_prerequisites",
        sa.Column("subject_id", sa.Integer(), nullable=False),
        sa.Column("prerequisite_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["subject_id"],
            ["subjects.id"],
            name="fk_subject_prerequisites_subject_id",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["prerequisite_id"],
            ["subjects.id"],
            name="fk_subject_prerequisites_prerequisite_id",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint(
            "subject_id", "prerequisite_id", name="pk_subject_prerequisites"
        ),
        sa.CheckConstraint(
            "subject_id <> prerequisite_id", name="ck_subject_prerequisite_not_self"
        ),
    )
    op.create_index(
        "ix_subject_prerequisites_prerequisite_id",
        "subject_prerequisites",
        ["prerequisite_id"],
    )

    op.create_table(
        "courses",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        *_timestamps(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("subject_id", sa.Integer(), nullable=True),
        sa.Column(
            "is_published", sa.Boolean(), server_default=sa.false(), nullable=False
        ),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(
            ["subject_id"],
            ["subjects.id"],
            name="fk_courses_subject_id",
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_courses"),
    )
    op.create_index("ix_courses_title", "courses", ["title"])
    op.create_index("ix_courses_code", "courses", ["code"])
    op.create_index("ix_courses_subject_id", "courses", ["subject_id"])


def downgrade() -> None:
    """Drop all subject directory tables."""
    op.drop_index("ix_courses_subject_id", table_name="courses")
    op.drop_index("ix_courses_code", table_name="courses")
    op.drop_index("ix_courses_title", table_name="courses")
    op.drop_table("courses")

    op.drop_index(
        "ix_subject_prerequisites_prerequisite_id", table_name="subject_prerequisites"
    )
    op.drop_table("subject_prerequisites")
    op.drop_index(
        "ix_subject_specialists_specialist_id", table_name="subject_specialists"
    )
    op.drop_table("subject_specialists")

    op.execute("DROP INDEX IF EXISTS ix_subjects_search")
    op.drop_index("ix_subjects_created_at", table_name="subjects")
    op.drop_index("ix_subjects_is_active", table_name="subjects")
    op.drop_table("subjects")

    op.drop_table("user_specialists")
    op.drop_index("ix_users_role", table_name="users")
    op.drop_table("users")
    op.drop_table("specialists")
