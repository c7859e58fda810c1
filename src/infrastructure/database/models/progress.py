# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson progress counters and idempotency ledger."""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, UUIDPrimaryKeyMixin
from src.utils.datetime import utc_now


class StudentLessonStats(UUIDPrimaryKeyMixin, Base):
    """Completed-lesson counters for one student at one school.

    Incremented only by attended completion events.
    """

    __tablename__ = "student_lesson_stats"
    __table_args__ = (
        UniqueConstraint("student_id", "school_id", name="uq_student_lesson_stats_student_school"),
    )

    student_id: Mapped[str] = mapped_column(postgresql.UUID(as_uuid=False), nullable=False)
    school_id: Mapped[str] = mapped_column(postgresql.UUID(as_uuid=False), nullable=False)
    completed_lessons: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_theory_lessons: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_practical_lessons: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_lesson_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )


class IdempotencyKey(UUIDPrimaryKeyMixin, Base):
    """Caller-supplied key recorded alongside a non-idempotent mutation.

    A replay with the same (scope, key) returns ``response`` instead of
    repeating the mutation.
    """

    __tablename__ = "idempotency_keys"
    __table_args__ = (
        UniqueConstraint("scope", "key", name="uq_idempotency_keys_scope_key"),
    )

    scope: Mapped[str] = mapped_column(String(50), nullable=False)
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    resource_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    response: Mapped[dict[str, Any]] = mapped_column(postgresql.JSONB, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
