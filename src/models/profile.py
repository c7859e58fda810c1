# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student profile, history and financial summary models."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel

from src.models.common import ORMModel


class StudentProfile(BaseModel):
    """Complete student profile for instructors."""

    # Basic info
    id: str
    user_id: str
    school_id: str
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    date_of_birth: date | None = None
    license_number: str | None = None
    profile_photo_url: str | None = None
    enrollment_date: datetime | None = None

    # Emergency contact
    emergency_contact: str | None = None
    emergency_phone: str | None = None

    # Stats
    total_lessons: int = 0
    completed_lessons: int = 0
    total_exams: int = 0
    passed_exams: int = 0

    notes: str | None = None


class LessonHistory(BaseModel):
    """One booked lesson in a student's history."""

    id: str
    lesson_id: str
    lesson_type: str
    date_time: datetime
    duration: int
    instructor_id: str
    attended: bool | None = None
    feedback: str | None = None
    rating: int | None = None
    paid: bool = False
    amount: Decimal | None = None
    payment_date: datetime | None = None
    payment_method: str | None = None


class ExamHistory(BaseModel):
    """One exam registration in a student's history."""

    id: str
    exam_id: str
    exam_type: str
    date_time: datetime
    result: str | None = None
    score: Decimal | None = None
    notes: str | None = None
    paid: bool = False
    amount: Decimal | None = None
    payment_date: datetime | None = None
    payment_method: str | None = None


class FinancialSummary(BaseModel):
    """Payments received and outstanding for a student at a school.

    There is no separate overdue concept: ``total_due`` equals
    ``total_pending``.
    """

    total_revenue: Decimal = Decimal("0")
    total_pending: Decimal = Decimal("0")
    total_due: Decimal = Decimal("0")
    lessons_revenue: Decimal = Decimal("0")
    exams_revenue: Decimal = Decimal("0")
    lessons_pending: Decimal = Decimal("0")
    exams_pending: Decimal = Decimal("0")
    last_payment_date: datetime | None = None


class MarkPaidRequest(BaseModel):
    """Payment recorded against a booking or exam registration."""

    amount: Decimal
    payment_method: str


class ExamRegistrationResponse(ORMModel):
    """Exam registration as stored, including payment fields."""

    id: str
    exam_id: str
    student_id: str
    result: str | None = None
    score: Decimal | None = None
    notes: str | None = None
    paid: bool = False
    amount: Decimal | None = None
    payment_method: str | None = None
    payment_date: datetime | None = None
    created_at: datetime
