# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Record store contracts used by the domain services.

Services never talk to a database engine directly. They open a
transaction on a :class:`RecordStore` and work through the repositories
of the yielded :class:`StoreSession`. Everything done through one
session commits together or not at all.

Repositories return ORM entities from
``src.infrastructure.database.models``; mutating methods receive the
entity previously loaded in the same session.

Example:
    async with store.transaction() as tx:
        lesson = await tx.lessons.get(lesson_id, for_update=True)
        if await tx.lessons.reserve_seat(lesson):
            await tx.bookings.create(lesson_id=lesson.id, student_id=student_id)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from src.infrastructure.database.models import (
    EnrollmentRequest,
    Exam,
    ExamRegistration,
    IdempotencyKey,
    Lesson,
    LessonBooking,
    Student,
    StudentLessonStats,
)
from src.models.lesson import LessonFilters


class StudentRepository(ABC):
    """Authorization records (one per user and school)."""

    @abstractmethod
    async def get(self, student_id: str) -> Student | None:
        """Get a student record by its own identity."""

    @abstractmethod
    async def find_by_user_and_school(self, user_id: str, school_id: str) -> Student | None:
        """Get the record for a (user, school) pair."""

    @abstractmethod
    async def list_by_school(self, school_id: str) -> list[Student]:
        """List records of a school, newest first."""

    @abstractmethod
    async def create(
        self,
        *,
        user_id: str,
        school_id: str,
        authorized: bool,
        enrollment_request_id: str | None,
        enrollment_date: datetime,
    ) -> Student:
        """Insert a record.

        Raises:
            AlreadyEnrolledError: If a record already exists for the pair.
        """

    @abstractmethod
    async def update_notes(self, student: Student, notes: str) -> Student:
        """Replace the instructor notes of a record."""


class EnrollmentRequestRepository(ABC):
    """Enrollment requests."""

    @abstractmethod
    async def get(self, request_id: str, *, for_update: bool = False) -> EnrollmentRequest | None:
        """Get a request, optionally locking its row."""

    @abstractmethod
    async def find_latest(self, student_id: str, school_id: str) -> EnrollmentRequest | None:
        """Get the most recently created request for the pair."""

    @abstractmethod
    async def find_pending(self, student_id: str, school_id: str) -> EnrollmentRequest | None:
        """Get the pending request for the pair, if any."""

    @abstractmethod
    async def list_by_student(self, student_id: str) -> list[EnrollmentRequest]:
        """List a student's requests, newest first."""

    @abstractmethod
    async def list_by_school(self, school_id: str, status: str | None = None) -> list[EnrollmentRequest]:
        """List a school's requests, newest first."""

    @abstractmethod
    async def create(self, *, student_id: str, school_id: str, message: str | None) -> EnrollmentRequest:
        """Insert a pending request.

        Raises:
            RequestAlreadyPendingError: If a pending request already exists.
        """

    @abstractmethod
    async def mark_processed(
        self,
        request: EnrollmentRequest,
        *,
        status: str,
        processed_by: str,
        processed_at: datetime,
        rejection_reason: str | None = None,
    ) -> EnrollmentRequest:
        """Move a pending request to a terminal status."""


class LessonRepository(ABC):
    """Lessons and their seat counters."""

    @abstractmethod
    async def get(self, lesson_id: str, *, for_update: bool = False) -> Lesson | None:
        """Get a lesson, optionally locking its row."""

    @abstractmethod
    async def list(self, filters: LessonFilters) -> list[Lesson]:
        """List lessons matching the filters, soonest first."""

    @abstractmethod
    async def create(
        self,
        *,
        school_id: str,
        instructor_id: str,
        type: str,
        date_time: datetime,
        duration_minutes: int,
        capacity: int,
        price: Decimal,
    ) -> Lesson:
        """Insert a scheduled lesson with no bookings."""

    @abstractmethod
    async def update(self, lesson: Lesson, changes: dict[str, Any]) -> Lesson:
        """Apply column changes to a lesson.

        ``current_bookings`` and ``status`` are never part of ``changes``.
        """

    @abstractmethod
    async def set_status(self, lesson: Lesson, status: str) -> Lesson:
        """Change the lesson status."""

    @abstractmethod
    async def delete(self, lesson: Lesson) -> None:
        """Delete a lesson."""

    @abstractmethod
    async def reserve_seat(self, lesson: Lesson) -> bool:
        """Atomically take one seat.

        Increments ``current_bookings`` only if the lesson is scheduled
        and ``current_bookings < capacity``, then refreshes ``lesson``
        with the stored counter.

        Returns:
            True if a seat was taken, False otherwise.
        """

    @abstractmethod
    async def release_seat(self, lesson: Lesson) -> None:
        """Give back one seat, never going below zero."""


class BookingRepository(ABC):
    """Lesson bookings, including their payment fields."""

    @abstractmethod
    async def get(self, booking_id: str, *, for_update: bool = False) -> LessonBooking | None:
        """Get a booking, optionally locking its row."""

    @abstractmethod
    async def find_by_lesson_and_student(self, lesson_id: str, student_id: str) -> LessonBooking | None:
        """Get the booking for a (lesson, student) pair."""

    @abstractmethod
    async def list_by_lesson(self, lesson_id: str) -> list[LessonBooking]:
        """List bookings of a lesson, newest first."""

    @abstractmethod
    async def list_by_student(self, student_id: str) -> list[LessonBooking]:
        """List bookings of a student, newest first."""

    @abstractmethod
    async def list_history(self, student_id: str, school_id: str) -> list[tuple[LessonBooking, Lesson]]:
        """List a student's bookings at a school with their lessons, latest lesson first."""

    @abstractmethod
    async def create(self, *, lesson_id: str, student_id: str) -> LessonBooking:
        """Insert a booking.

        Raises:
            DuplicateBookingError: If the pair is already booked.
        """

    @abstractmethod
    async def delete(self, booking: LessonBooking) -> None:
        """Delete a booking."""

    @abstractmethod
    async def update_attendance(
        self,
        booking: LessonBooking,
        *,
        attended: bool,
        feedback: str | None,
        rating: int | None,
    ) -> LessonBooking:
        """Overwrite the attendance outcome of a booking."""

    @abstractmethod
    async def mark_paid(
        self,
        booking: LessonBooking,
        *,
        amount: Decimal,
        payment_method: str,
        paid_at: datetime,
    ) -> LessonBooking:
        """Record a payment against a booking."""


class ExamRegistrationRepository(ABC):
    """Exam registrations (written by the exam subsystem)."""

    @abstractmethod
    async def get(self, registration_id: str, *, for_update: bool = False) -> ExamRegistration | None:
        """Get a registration, optionally locking its row."""

    @abstractmethod
    async def list_history(self, student_id: str, school_id: str) -> list[tuple[ExamRegistration, Exam]]:
        """List a student's registrations at a school with their exams, latest exam first."""

    @abstractmethod
    async def mark_paid(
        self,
        registration: ExamRegistration,
        *,
        amount: Decimal,
        payment_method: str,
        paid_at: datetime,
    ) -> ExamRegistration:
        """Record a payment against a registration."""


class LessonStatsRepository(ABC):
    """Per-student, per-school completed-lesson counters."""

    @abstractmethod
    async def get(self, student_id: str, school_id: str) -> StudentLessonStats | None:
        """Get the counters row for the pair."""

    @abstractmethod
    async def increment(
        self,
        student_id: str,
        school_id: str,
        *,
        theory: int,
        practical: int,
        completed_at: datetime,
    ) -> StudentLessonStats:
        """Upsert the row, adding one completed lesson.

        Args:
            student_id: Student record identity.
            school_id: School identity.
            theory: 1 if the lesson counts as theory, else 0.
            practical: 1 if the lesson counts as practical, else 0.
            completed_at: Value stored as ``last_lesson_date``.
        """


class IdempotencyRepository(ABC):
    """Ledger of caller-supplied idempotency keys."""

    @abstractmethod
    async def get(self, scope: str, key: str) -> IdempotencyKey | None:
        """Get a recorded key."""

    @abstractmethod
    async def record(
        self,
        scope: str,
        key: str,
        *,
        resource_id: str | None,
        response: dict[str, Any],
    ) -> IdempotencyKey:
        """Record a key with the result of the mutation it guarded.

        Raises:
            DuplicateRequestError: If the key was recorded concurrently.
        """


@dataclass
class StoreSession:
    """Repositories bound to a single store transaction."""

    students: StudentRepository
    enrollment_requests: EnrollmentRequestRepository
    lessons: LessonRepository
    bookings: BookingRepository
    exam_registrations: ExamRegistrationRepository
    stats: LessonStatsRepository
    idempotency: IdempotencyRepository


class RecordStore(ABC):
    """Handle on the relational store, injected into every service."""

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[StoreSession]:
        """Open a transaction.

        The yielded session commits when the block exits normally and
        rolls back when it raises.
        """
