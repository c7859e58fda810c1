# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models for the record store."""

from src.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    generate_uuid,
)
from src.infrastructure.database.models.enrollment import EnrollmentRequest, Student
from src.infrastructure.database.models.exam import Exam, ExamRegistration
from src.infrastructure.database.models.lesson import Lesson, LessonBooking
from src.infrastructure.database.models.progress import IdempotencyKey, StudentLessonStats

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "generate_uuid",
    "EnrollmentRequest",
    "Student",
    "Lesson",
    "LessonBooking",
    "Exam",
    "ExamRegistration",
    "StudentLessonStats",
    "IdempotencyKey",
]
