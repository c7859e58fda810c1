# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial schema for the driving school core.

Creates tables for:
- Enrollment requests and student authorization records
- Lessons and lesson bookings
- Exams and exam registrations
- Student lesson statistics
- Idempotency keys

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-01-15
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=False),
        server_default=sa.text("gen_random_uuid()"),
        primary_key=True,
    )


def _timestamp_column(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    )


def upgrade() -> None:
    """Create all driving school core tables."""

    # =========================================================================
    # ENROLLMENT
    # =========================================================================

    op.create_table(
        "enrollment_requests",
        _id_column(),
        sa.Column("student_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        # 'pending', 'approved', 'rejected'
        sa.Column("message", sa.Text, nullable=True),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column("processed_by", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_enrollment_requests_status",
        ),
    )
    op.create_index("ix_enrollment_requests_student_id", "enrollment_requests", ["student_id"])
    op.create_index(
        "ix_enrollment_requests_school_status",
        "enrollment_requests",
        ["school_id", "status"],
    )
    op.create_index(
        "uq_enrollment_requests_pending",
        "enrollment_requests",
        ["student_id", "school_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "students",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("authorized", sa.Boolean, nullable=False, server_default="false"),
        sa.Column(
            "enrollment_request_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("enrollment_requests.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("enrollment_date", sa.DateTime(timezone=True), nullable=True),
        # Profile, maintained by the school directory
        sa.Column("name", sa.String(200), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("date_of_birth", sa.Date, nullable=True),
        sa.Column("license_number", sa.String(50), nullable=True),
        sa.Column("profile_photo_url", sa.Text, nullable=True),
        sa.Column("emergency_contact", sa.String(200), nullable=True),
        sa.Column("emergency_phone", sa.String(30), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
        sa.UniqueConstraint("user_id", "school_id", name="uq_students_user_school"),
    )
    op.create_index("ix_students_school_id", "students", ["school_id"])

    # =========================================================================
    # LESSONS
    # =========================================================================

    op.create_table(
        "lessons",
        _id_column(),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("instructor_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("type", sa.String(30), nullable=False),
        # 'CODE', 'MANOEUVRE', 'PARC'
        sa.Column("date_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer, nullable=False),
        sa.Column("capacity", sa.Integer, nullable=False, server_default="1"),
        sa.Column("current_bookings", sa.Integer, nullable=False, server_default="0"),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="scheduled"),
        # 'scheduled', 'completed', 'cancelled'
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
        sa.CheckConstraint("capacity >= 1", name="ck_lessons_capacity_positive"),
        sa.CheckConstraint(
            "current_bookings >= 0 AND current_bookings <= capacity",
            name="ck_lessons_bookings_within_capacity",
        ),
        sa.CheckConstraint("duration_minutes >= 1", name="ck_lessons_duration_positive"),
    )
    op.create_index("ix_lessons_school_id", "lessons", ["school_id"])
    op.create_index("ix_lessons_instructor_id", "lessons", ["instructor_id"])
    op.create_index("ix_lessons_date_time", "lessons", ["date_time"])

    op.create_table(
        "lesson_bookings",
        _id_column(),
        sa.Column(
            "lesson_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("lessons.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "student_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("attended", sa.Boolean, nullable=True),
        sa.Column("feedback", sa.Text, nullable=True),
        sa.Column("rating", sa.SmallInteger, nullable=True),
        sa.Column("paid", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=True),
        _timestamp_column("created_at"),
        sa.UniqueConstraint("lesson_id", "student_id", name="uq_lesson_bookings_lesson_student"),
        sa.CheckConstraint(
            "rating IS NULL OR rating BETWEEN 1 AND 5",
            name="ck_lesson_bookings_rating",
        ),
    )
    op.create_index("ix_lesson_bookings_lesson_id", "lesson_bookings", ["lesson_id"])
    op.create_index("ix_lesson_bookings_student_id", "lesson_bookings", ["student_id"])

    # =========================================================================
    # EXAMS
    # =========================================================================

    op.create_table(
        "exams",
        _id_column(),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        # 'theory', 'practical'
        sa.Column("date_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
    )
    op.create_index("ix_exams_school_id", "exams", ["school_id"])

    op.create_table(
        "exam_registrations",
        _id_column(),
        sa.Column(
            "exam_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("exams.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "student_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("result", sa.String(20), nullable=True),
        # 'passed', 'failed', 'absent'
        sa.Column("score", sa.Numeric(5, 2), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("paid", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=True),
        _timestamp_column("created_at"),
    )
    op.create_index("ix_exam_registrations_exam_id", "exam_registrations", ["exam_id"])
    op.create_index("ix_exam_registrations_student_id", "exam_registrations", ["student_id"])

    # =========================================================================
    # PROGRESS
    # =========================================================================

    op.create_table(
        "student_lesson_stats",
        _id_column(),
        sa.Column("student_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("completed_lessons", sa.Integer, nullable=False, server_default="0"),
        sa.Column("completed_theory_lessons", sa.Integer, nullable=False, server_default="0"),
        sa.Column("completed_practical_lessons", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_lesson_date", sa.DateTime(timezone=True), nullable=True),
        _timestamp_column("updated_at"),
        sa.UniqueConstraint(
            "student_id",
            "school_id",
            name="uq_student_lesson_stats_student_school",
        ),
    )

    op.create_table(
        "idempotency_keys",
        _id_column(),
        sa.Column("scope", sa.String(50), nullable=False),
        sa.Column("key", sa.String(255), nullable=False),
        sa.Column("resource_id", sa.String(64), nullable=True),
        sa.Column("response", postgresql.JSONB, nullable=False, server_default="{}"),
        _timestamp_column("created_at"),
        sa.UniqueConstraint("scope", "key", name="uq_idempotency_keys_scope_key"),
    )


def downgrade() -> None:
    """Drop all driving school core tables."""
    # Drop in reverse order to handle foreign keys
    op.drop_table("idempotency_keys")
    op.drop_table("student_lesson_stats")
    op.drop_table("exam_registrations")
    op.drop_table("exams")
    op.drop_table("lesson_bookings")
    op.drop_table("lessons")
    op.drop_table("students")
    op.drop_table("enrollment_requests")
