"""Enrollment import schema: people, enrollment profiles and software progress."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20261017_01_enrollment_import"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "people",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("email_normalized", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=10), nullable=True),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="student"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("password_hash", sa.String(length=255), nullable=False, server_default=""),
    )
    op.create_index("ix_people_email_normalized", "people", ["email_normalized"], unique=True)
    op.create_index("ix_people_phone", "people", ["phone"], unique=True)

    op.create_table(
        "enrollment_profiles",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("person_id", sa.String(length=36), sa.ForeignKey("people.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("enrollment_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("software_list", sa.JSON(), nullable=False),
        sa.Column("finished_batches", sa.JSON(), nullable=False),
        sa.Column("current_batches", sa.JSON(), nullable=False),
        sa.Column("pending_batches", sa.JSON(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
    )

    op.create_table(
        "software_progress",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("person_id", sa.String(length=36), sa.ForeignKey("people.id", ondelete="CASCADE"), nullable=False),
        sa.Column("software_name", sa.String(length=128), nullable=False),
        sa.Column("software_key", sa.String(length=128), nullable=False),
        sa.Column("software_code", sa.String(length=16), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="not-started"),
        sa.Column("enrollment_date", sa.Date(), nullable=True),
        sa.Column("course_name", sa.Text(), nullable=True),
        sa.Column("course_type", sa.Text(), nullable=True),
        sa.Column("student_status", sa.Text(), nullable=True),
        sa.Column("batch_timing", sa.Text(), nullable=True),
        sa.Column("batch_start_date", sa.Date(), nullable=True),
        sa.Column("batch_end_date", sa.Date(), nullable=True),
        sa.Column("faculty_name", sa.String(length=255), nullable=True),
        sa.Column("schedule", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.UniqueConstraint("person_id", "software_key", name="uq_software_progress_person_software"),
    )
    op.create_index("ix_software_progress_person", "software_progress", ["person_id"])


def downgrade() -> None:
    op.drop_index("ix_software_progress_person", table_name="software_progress")
    op.drop_table("software_progress")
    op.drop_table("enrollment_profiles")
    op.drop_index("ix_people_phone", table_name="people")
    op.drop_index("ix_people_email_normalized", table_name="people")
    op.drop_table("people")
