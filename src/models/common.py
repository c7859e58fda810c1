# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared enums and base model configuration."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class EnrollmentRequestStatus(str, Enum):
    """Lifecycle of an enrollment request.

    PENDING is the only non-terminal state.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not EnrollmentRequestStatus.PENDING


class LessonStatus(str, Enum):
    """Lesson lifecycle states."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class LessonType(str, Enum):
    """Lesson types offered by driving schools.

    CODE is the highway-code theory lesson; MANOEUVRE and PARC are
    practical lessons.
    """

    CODE = "CODE"
    MANOEUVRE = "MANOEUVRE"
    PARC = "PARC"


class ExamType(str, Enum):
    """Exam categories gated by lesson progress."""

    THEORY = "theory"
    PRACTICAL = "practical"


class ExamResult(str, Enum):
    """Exam outcomes recorded by the exam subsystem."""

    PASSED = "passed"
    FAILED = "failed"
    ABSENT = "absent"


class ORMModel(BaseModel):
    """Base for response models built from ORM rows."""

    model_config = ConfigDict(from_attributes=True)
