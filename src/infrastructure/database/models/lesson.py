# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson and lesson booking tables."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.common import LessonStatus
from src.utils.datetime import utc_now


class Lesson(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A scheduled lesson instance with a fixed seat capacity.

    ``current_bookings`` is only ever changed through the seat
    reservation statements of the lesson repository.
    """

    __tablename__ = "lessons"
    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_lessons_capacity_positive"),
        CheckConstraint(
            "current_bookings >= 0 AND current_bookings <= capacity",
            name="ck_lessons_bookings_within_capacity",
        ),
        CheckConstraint("duration_minutes >= 1", name="ck_lessons_duration_positive"),
    )

    school_id: Mapped[str] = mapped_column(postgresql.UUID(as_uuid=False), nullable=False, index=True)
    instructor_id: Mapped[str] = mapped_column(postgresql.UUID(as_uuid=False), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    date_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    current_bookings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=LessonStatus.SCHEDULED.value,
    )


class LessonBooking(UUIDPrimaryKeyMixin, Base):
    """A student's seat in a lesson.

    ``attended`` is tri-state: None until attendance is marked.
    """

    __tablename__ = "lesson_bookings"
    __table_args__ = (
        UniqueConstraint("lesson_id", "student_id", name="uq_lesson_bookings_lesson_student"),
        CheckConstraint("rating IS NULL OR rating BETWEEN 1 AND 5", name="ck_lesson_bookings_rating"),
    )

    lesson_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("lessons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    attended: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)

    # Payment
    paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    payment_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
