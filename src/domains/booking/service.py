# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Booking service: seats in lessons under capacity constraints.

This module provides the BookingService class for:
- Booking a student into a lesson
- Cancelling a booking before attendance is recorded
- Recording attendance, feedback and rating

Every booking and cancellation locks the lesson row first and changes
``current_bookings`` only through the store's conditional seat
statements, so concurrent bookings on one lesson never exceed capacity.
"""

from __future__ import annotations

import logging

from src.domains.access import Actor, ensure_staff
from src.domains.errors import (
    AttendanceAlreadyMarkedError,
    BookingNotFoundError,
    DuplicateBookingError,
    InvalidRatingError,
    LessonFullError,
    LessonNotAvailableError,
    LessonNotFoundError,
    StudentNotAuthorizedError,
    StudentNotFoundError,
)
from src.domains.idempotency import IdempotencyScope, find_replay, remember
from src.domains.store import RecordStore
from src.infrastructure.events import EventBus, EventTypes
from src.models.common import LessonStatus
from src.models.lesson import BookingResponse, MarkAttendanceRequest

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class BookingService:
    """Service for booking lessons and recording attendance.

    Attributes:
        store: Record store.
        event_bus: Bus notified after each committed change.
    """

    def __init__(self, store: RecordStore, event_bus: EventBus | None = None) -> None:
        """Initialize booking service.

        Args:
            store: Record store shared by all services.
            event_bus: Event bus for post-commit notifications.
        """
        self.store = store
        self.event_bus = event_bus or EventBus()

    async def book_lesson(
        self,
        lesson_id: str,
        student_id: str,
        idempotency_key: str | None = None,
    ) -> BookingResponse:
        """Book a seat in a lesson.

        Checks run in this order: lesson exists, student exists, student
        authorized at the lesson's school, lesson scheduled, seat free,
        no existing booking. The seat is then taken and the booking
        inserted in the same transaction.

        Args:
            lesson_id: Lesson to book.
            student_id: Student record (not user) identity.
            idempotency_key: Optional caller key; a replay returns the
                booking created by the first call.

        Returns:
            The created booking.

        Raises:
            LessonNotFoundError: If the lesson does not exist.
            StudentNotFoundError: If the student record does not exist.
            StudentNotAuthorizedError: If the student may not book at the school.
            LessonNotAvailableError: If the lesson is not scheduled.
            LessonFullError: If no seat is left.
            DuplicateBookingError: If the student already holds a booking.
        """
        async with self.store.transaction() as tx:
            lesson = await tx.lessons.get(lesson_id, for_update=True)
            if lesson is None:
                raise LessonNotFoundError()

            # Looked up under the lesson lock so a concurrent replay waits
            # for the first call to commit.
            replay = await find_replay(
                tx, IdempotencyScope.BOOK_LESSON, idempotency_key, BookingResponse
            )
            if replay is not None:
                return replay

            student = await tx.students.get(student_id)
            if student is None:
                raise StudentNotFoundError()
            if not student.authorized:
                raise StudentNotAuthorizedError()
            if student.school_id != lesson.school_id:
                raise StudentNotAuthorizedError(
                    "Student is not enrolled at the school giving this lesson"
                )

            if lesson.status != LessonStatus.SCHEDULED.value:
                raise LessonNotAvailableError()
            if lesson.current_bookings >= lesson.capacity:
                logger.warning(
                    "Booking refused, lesson full: lesson=%s, student=%s, capacity=%d",
                    lesson_id,
                    student_id,
                    lesson.capacity,
                )
                raise LessonFullError()

            existing = await tx.bookings.find_by_lesson_and_student(lesson_id, student_id)
            if existing is not None:
                raise DuplicateBookingError()

            if not await tx.lessons.reserve_seat(lesson):
                logger.warning(
                    "Booking refused, seat taken concurrently: lesson=%s, student=%s",
                    lesson_id,
                    student_id,
                )
                raise LessonFullError()

            booking = await tx.bookings.create(lesson_id=lesson_id, student_id=student_id)
            response = BookingResponse.model_validate(booking)
            await remember(
                tx, IdempotencyScope.BOOK_LESSON, idempotency_key, response.id, response
            )
            school_id = lesson.school_id
            seats_taken = lesson.current_bookings
            capacity = lesson.capacity

        logger.info(
            "Lesson booked: booking=%s, lesson=%s, student=%s, seats=%d/%d",
            response.id,
            lesson_id,
            student_id,
            seats_taken,
            capacity,
        )
        await self.event_bus.publish(
            EventTypes.Booking.CREATED,
            {"booking_id": response.id, "lesson_id": lesson_id, "student_id": student_id},
            school_id=school_id,
        )
        return response

    async def cancel_booking(
        self,
        booking_id: str,
        idempotency_key: str | None = None,
    ) -> BookingResponse:
        """Cancel a booking whose attendance has not been marked.

        The booking is deleted and its seat released, never taking the
        counter below zero.

        Args:
            booking_id: Booking to cancel.
            idempotency_key: Optional caller key; a replay is a no-op
                returning the booking as it was when cancelled.

        Returns:
            Snapshot of the cancelled booking.

        Raises:
            BookingNotFoundError: If the booking does not exist.
            AttendanceAlreadyMarkedError: If attendance is recorded.
        """
        async with self.store.transaction() as tx:
            replay = await find_replay(
                tx, IdempotencyScope.CANCEL_BOOKING, idempotency_key, BookingResponse
            )
            if replay is not None:
                return replay

            booking = await tx.bookings.get(booking_id)
            if booking is None:
                raise BookingNotFoundError()

            # Lesson row before booking row, same order as book_lesson.
            lesson = await tx.lessons.get(booking.lesson_id, for_update=True)
            booking = await tx.bookings.get(booking_id, for_update=True)
            if booking is None:
                replay = await find_replay(
                    tx, IdempotencyScope.CANCEL_BOOKING, idempotency_key, BookingResponse
                )
                if replay is not None:
                    return replay
                raise BookingNotFoundError()
            if booking.attended is not None:
                raise AttendanceAlreadyMarkedError()

            response = BookingResponse.model_validate(booking)
            await tx.bookings.delete(booking)
            if lesson is not None:
                await tx.lessons.release_seat(lesson)
            await remember(
                tx, IdempotencyScope.CANCEL_BOOKING, idempotency_key, booking_id, response
            )
            school_id = lesson.school_id if lesson is not None else None

        logger.info(
            "Booking cancelled: booking=%s, lesson=%s, student=%s",
            booking_id,
            response.lesson_id,
            response.student_id,
        )
        await self.event_bus.publish(
            EventTypes.Booking.CANCELLED,
            {
                "booking_id": booking_id,
                "lesson_id": response.lesson_id,
                "student_id": response.student_id,
            },
            school_id=school_id,
        )
        return response

    async def mark_attendance(
        self,
        booking_id: str,
        request: MarkAttendanceRequest,
        marked_by: Actor,
    ) -> BookingResponse:
        """Record attendance, feedback and rating for a booking.

        Re-marking overwrites the previous values. Lesson statistics are
        not touched; see ProgressService.record_booking_completion.

        Args:
            booking_id: Booking to mark.
            request: Attendance outcome.
            marked_by: Staff member recording attendance.

        Returns:
            The updated booking.

        Raises:
            ForbiddenRoleError: If the actor is not staff.
            BookingNotFoundError: If the booking does not exist.
            InvalidRatingError: If a rating is given outside 1..5.
        """
        ensure_staff(marked_by)

        async with self.store.transaction() as tx:
            booking = await tx.bookings.get(booking_id, for_update=True)
            if booking is None:
                raise BookingNotFoundError()
            if request.rating is not None and not MIN_RATING <= request.rating <= MAX_RATING:
                raise InvalidRatingError()

            previous = booking.attended
            await tx.bookings.update_attendance(
                booking,
                attended=request.attended,
                feedback=request.feedback,
                rating=request.rating,
            )
            response = BookingResponse.model_validate(booking)

        if previous is not None:
            logger.info(
                "Attendance re-marked: booking=%s, attended=%s (was %s), by=%s",
                booking_id,
                request.attended,
                previous,
                marked_by.user_id,
            )
        else:
            logger.info(
                "Attendance marked: booking=%s, attended=%s, by=%s",
                booking_id,
                request.attended,
                marked_by.user_id,
            )
        await self.event_bus.publish(
            EventTypes.Booking.ATTENDANCE_MARKED,
            {
                "booking_id": booking_id,
                "lesson_id": response.lesson_id,
                "student_id": response.student_id,
                "attended": request.attended,
                "marked_by": marked_by.user_id,
            },
        )
        return response

    async def get_booking(self, booking_id: str) -> BookingResponse:
        """Get a booking by ID.

        Raises:
            BookingNotFoundError: If the booking does not exist.
        """
        async with self.store.transaction() as tx:
            booking = await tx.bookings.get(booking_id)
            if booking is None:
                raise BookingNotFoundError()
            return BookingResponse.model_validate(booking)

    async def list_lesson_bookings(self, lesson_id: str) -> list[BookingResponse]:
        async with self.store.transaction() as tx:
            bookings = await tx.bookings.list_by_lesson(lesson_id)
            return [BookingResponse.model_validate(b) for b in bookings]

    async def list_student_bookings(self, student_id: str) -> list[BookingResponse]:
        async with self.store.transaction() as tx:
            bookings = await tx.bookings.list_by_student(student_id)
            return [BookingResponse.model_validate(b) for b in bookings]
