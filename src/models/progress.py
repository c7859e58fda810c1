# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson progress accounting and exam eligibility models."""

from datetime import datetime

from pydantic import BaseModel

from src.models.common import ORMModel


class LessonCompletedRequest(BaseModel):
    """A single completion event for a student at a school."""

    school_id: str
    lesson_type: str
    attended: bool


class StudentLessonStatsResponse(ORMModel):
    """Accumulated per-student, per-school lesson counters."""

    id: str
    student_id: str
    school_id: str
    completed_lessons: int
    completed_theory_lessons: int
    completed_practical_lessons: int
    last_lesson_date: datetime | None = None


class ExamEligibility(BaseModel):
    """Outcome of an exam eligibility check.

    ``reason`` is populated only when the student is not eligible.
    """

    eligible: bool
    required_lessons: int
    completed_lessons: int
    reason: str | None = None
