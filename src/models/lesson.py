# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson and lesson booking models."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from src.models.common import LessonStatus, ORMModel


class LessonCreateRequest(BaseModel):
    """Data required to schedule a lesson.

    Business validation (future date, capacity, duration) is performed by
    the lesson service so failures surface as typed domain errors.
    """

    school_id: str
    instructor_id: str
    type: str
    date_time: datetime
    duration_minutes: int
    capacity: int = 1
    price: Decimal = Decimal("0")


class LessonUpdateRequest(BaseModel):
    """Changes to a scheduled lesson. Unset fields are left untouched."""

    instructor_id: str | None = None
    type: str | None = None
    date_time: datetime | None = None
    duration_minutes: int | None = None
    capacity: int | None = None
    price: Decimal | None = None


class LessonFilters(BaseModel):
    """Optional filters for lesson listing."""

    school_id: str | None = None
    instructor_id: str | None = None
    type: str | None = None
    status: LessonStatus | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None


class LessonResponse(ORMModel):
    """Scheduled lesson with its booking counter."""

    id: str
    school_id: str
    instructor_id: str
    type: str
    date_time: datetime
    duration_minutes: int
    capacity: int
    current_bookings: int
    price: Decimal
    status: LessonStatus


class LessonAvailability(BaseModel):
    """Whether a lesson currently accepts bookings."""

    lesson_id: str
    available: bool
    remaining_seats: int


class MarkAttendanceRequest(BaseModel):
    """Attendance outcome recorded by staff.

    Rating bounds are enforced by the booking service.
    """

    attended: bool
    feedback: str | None = None
    rating: int | None = None


class BookingResponse(ORMModel):
    """Lesson booking held by a student."""

    id: str
    lesson_id: str
    student_id: str
    attended: bool | None = None
    feedback: str | None = None
    rating: int | None = None
    paid: bool = False
    amount: Decimal | None = None
    payment_method: str | None = None
    payment_date: datetime | None = None
    created_at: datetime
