# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Booking service."""

import asyncio

import pytest

from src.domains.errors import (
    AttendanceAlreadyMarkedError,
    BookingNotFoundError,
    DuplicateBookingError,
    ForbiddenRoleError,
    InvalidIdempotencyKeyError,
    InvalidRatingError,
    LessonFullError,
    LessonNotAvailableError,
    LessonNotFoundError,
    StudentNotAuthorizedError,
    StudentNotFoundError,
)
from src.infrastructure.events import EventTypes
from src.models.common import LessonStatus
from src.models.lesson import MarkAttendanceRequest


class TestBookLesson:
    """Tests for booking a lesson."""

    @pytest.mark.asyncio
    async def test_book_takes_a_seat(self, booking_service, lesson, student, published):
        """Test a booking is created and the counter incremented."""
        booking = await booking_service.book_lesson(lesson.id, student.id)

        assert booking.lesson_id == lesson.id
        assert booking.student_id == student.id
        assert booking.attended is None
        assert booking.paid is False
        assert lesson.current_bookings == 1
        assert published[-1].event_type == EventTypes.Booking.CREATED
        assert published[-1].school_id == lesson.school_id

    @pytest.mark.asyncio
    async def test_second_student_gets_lesson_full(self, booking_service, store, lesson, student, school_id):
        """Test a single-seat lesson refuses the second student."""
        other = store.insert_student(school_id=school_id)
        await booking_service.book_lesson(lesson.id, student.id)

        with pytest.raises(LessonFullError):
            await booking_service.book_lesson(lesson.id, other.id)

        assert lesson.current_bookings == 1
        assert len(store.tables["lesson_bookings"]) == 1

    @pytest.mark.asyncio
    async def test_lesson_not_found(self, booking_service, student):
        """Test booking an unknown lesson fails."""
        with pytest.raises(LessonNotFoundError):
            await booking_service.book_lesson("missing", student.id)

    @pytest.mark.asyncio
    async def test_student_not_found(self, booking_service, lesson):
        """Test booking for an unknown student fails."""
        with pytest.raises(StudentNotFoundError):
            await booking_service.book_lesson(lesson.id, "missing")

    @pytest.mark.asyncio
    async def test_unauthorized_student(self, booking_service, store, lesson, school_id):
        """Test a student without authorization cannot book."""
        pending = store.insert_student(school_id=school_id, authorized=False)

        with pytest.raises(StudentNotAuthorizedError):
            await booking_service.book_lesson(lesson.id, pending.id)

        assert lesson.current_bookings == 0

    @pytest.mark.asyncio
    async def test_student_of_other_school(self, booking_service, store, lesson, other_school_id):
        """Test authorization at another school does not allow booking."""
        outsider = store.insert_student(school_id=other_school_id, authorized=True)

        with pytest.raises(StudentNotAuthorizedError):
            await booking_service.book_lesson(lesson.id, outsider.id)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [LessonStatus.CANCELLED.value, LessonStatus.COMPLETED.value])
    async def test_lesson_not_scheduled(self, booking_service, store, student, school_id, status):
        """Test only scheduled lessons accept bookings."""
        closed = store.insert_lesson(school_id=school_id, status=status)

        with pytest.raises(LessonNotAvailableError):
            await booking_service.book_lesson(closed.id, student.id)

    @pytest.mark.asyncio
    async def test_duplicate_booking(self, booking_service, store, student, school_id):
        """Test a student cannot book the same lesson twice."""
        group = store.insert_lesson(school_id=school_id, capacity=4)
        await booking_service.book_lesson(group.id, student.id)

        with pytest.raises(DuplicateBookingError):
            await booking_service.book_lesson(group.id, student.id)

        assert group.current_bookings == 1

    @pytest.mark.asyncio
    async def test_idempotent_replay_returns_first_booking(self, booking_service, store, lesson, student, published):
        """Test replaying a key returns the original booking without side effects."""
        first = await booking_service.book_lesson(lesson.id, student.id, idempotency_key="req-1")
        replay = await booking_service.book_lesson(lesson.id, student.id, idempotency_key="req-1")

        assert replay == first
        assert lesson.current_bookings == 1
        assert len(store.tables["lesson_bookings"]) == 1
        assert len(published) == 1

    @pytest.mark.asyncio
    async def test_oversized_idempotency_key(self, booking_service, store, lesson, student):
        """Test a key longer than the key column is refused before booking."""
        with pytest.raises(InvalidIdempotencyKeyError):
            await booking_service.book_lesson(lesson.id, student.id, idempotency_key="k" * 256)

        assert lesson.current_bookings == 0
        assert store.tables["lesson_bookings"] == {}

    @pytest.mark.asyncio
    async def test_key_at_column_length_is_accepted(self, booking_service, lesson, student):
        """Test a key of exactly the column length works."""
        key = "k" * 255

        first = await booking_service.book_lesson(lesson.id, student.id, idempotency_key=key)
        replay = await booking_service.book_lesson(lesson.id, student.id, idempotency_key=key)

        assert replay == first


class TestConcurrentBooking:
    """Tests for capacity under concurrent bookings."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("attempts", [2, 10])
    async def test_exactly_one_wins_single_seat(self, booking_service, store, lesson, school_id, attempts):
        """Test N concurrent bookings of a one-seat lesson yield one success."""
        students = [store.insert_student(school_id=school_id) for _ in range(attempts)]

        results = await asyncio.gather(
            *(booking_service.book_lesson(lesson.id, s.id) for s in students),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, BaseException)]
        failures = [r for r in results if isinstance(r, BaseException)]
        assert len(successes) == 1
        assert len(failures) == attempts - 1
        assert all(isinstance(f, LessonFullError) for f in failures)
        assert lesson.current_bookings == 1

    @pytest.mark.asyncio
    async def test_counter_never_exceeds_capacity(self, booking_service, store, school_id):
        """Test concurrent bookings fill a lesson exactly to capacity."""
        group = store.insert_lesson(school_id=school_id, capacity=3)
        students = [store.insert_student(school_id=school_id) for _ in range(8)]

        results = await asyncio.gather(
            *(booking_service.book_lesson(group.id, s.id) for s in students),
            return_exceptions=True,
        )

        assert sum(1 for r in results if not isinstance(r, BaseException)) == 3
        assert group.current_bookings == 3
        assert len(store.tables["lesson_bookings"]) == 3


class TestCancelBooking:
    """Tests for cancelling bookings."""

    @pytest.mark.asyncio
    async def test_cancel_restores_counter(self, booking_service, store, lesson, student, published):
        """Test cancelling before attendance frees the seat."""
        booking = await booking_service.book_lesson(lesson.id, student.id)

        cancelled = await booking_service.cancel_booking(booking.id)

        assert cancelled.id == booking.id
        assert lesson.current_bookings == 0
        assert booking.id not in store.tables["lesson_bookings"]
        assert published[-1].event_type == EventTypes.Booking.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_after_attendance_fails(self, booking_service, lesson, student, instructor):
        """Test a booking with attendance is a historical fact."""
        booking = await booking_service.book_lesson(lesson.id, student.id)
        await booking_service.mark_attendance(booking.id, MarkAttendanceRequest(attended=False), instructor)

        with pytest.raises(AttendanceAlreadyMarkedError):
            await booking_service.cancel_booking(booking.id)

        assert lesson.current_bookings == 1

    @pytest.mark.asyncio
    async def test_cancel_not_found(self, booking_service):
        """Test cancelling an unknown booking fails."""
        with pytest.raises(BookingNotFoundError):
            await booking_service.cancel_booking("missing")

    @pytest.mark.asyncio
    async def test_cancel_floors_counter_at_zero(self, booking_service, store, school_id, student):
        """Test a drifted counter never goes negative."""
        drifted = store.insert_lesson(school_id=school_id, current_bookings=0)
        booking = store.insert_booking(lesson_id=drifted.id, student_id=student.id)

        await booking_service.cancel_booking(booking.id)

        assert drifted.current_bookings == 0

    @pytest.mark.asyncio
    async def test_cancel_replay_is_noop(self, booking_service, store, school_id, student):
        """Test replaying a cancellation does not release a second seat."""
        group = store.insert_lesson(school_id=school_id, capacity=3)
        other = store.insert_student(school_id=school_id)
        booking = await booking_service.book_lesson(group.id, student.id)
        await booking_service.book_lesson(group.id, other.id)

        first = await booking_service.cancel_booking(booking.id, idempotency_key="cancel-1")
        replay = await booking_service.cancel_booking(booking.id, idempotency_key="cancel-1")

        assert replay == first
        assert group.current_bookings == 1

    @pytest.mark.asyncio
    async def test_rebook_after_cancel(self, booking_service, lesson, student):
        """Test the freed seat can be booked again."""
        booking = await booking_service.book_lesson(lesson.id, student.id)
        await booking_service.cancel_booking(booking.id)

        again = await booking_service.book_lesson(lesson.id, student.id)

        assert again.id != booking.id
        assert lesson.current_bookings == 1


class TestMarkAttendance:
    """Tests for recording attendance."""

    @pytest.mark.asyncio
    async def test_mark_attendance(self, booking_service, lesson, student, instructor, published):
        """Test attendance, feedback and rating are stored."""
        booking = await booking_service.book_lesson(lesson.id, student.id)

        marked = await booking_service.mark_attendance(
            booking.id,
            MarkAttendanceRequest(attended=True, feedback="Good mirror checks", rating=4),
            instructor,
        )

        assert marked.attended is True
        assert marked.feedback == "Good mirror checks"
        assert marked.rating == 4
        assert published[-1].event_type == EventTypes.Booking.ATTENDANCE_MARKED

    @pytest.mark.asyncio
    async def test_remark_overwrites(self, booking_service, lesson, student, instructor):
        """Test re-marking replaces the previous outcome."""
        booking = await booking_service.book_lesson(lesson.id, student.id)
        await booking_service.mark_attendance(
            booking.id, MarkAttendanceRequest(attended=False, feedback="No show"), instructor
        )

        marked = await booking_service.mark_attendance(
            booking.id, MarkAttendanceRequest(attended=True, rating=5), instructor
        )

        assert marked.attended is True
        assert marked.feedback is None
        assert marked.rating == 5

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rating", [0, 6, -1])
    async def test_invalid_rating(self, booking_service, lesson, student, instructor, rating):
        """Test ratings outside 1..5 are refused."""
        booking = await booking_service.book_lesson(lesson.id, student.id)

        with pytest.raises(InvalidRatingError):
            await booking_service.mark_attendance(
                booking.id, MarkAttendanceRequest(attended=True, rating=rating), instructor
            )

    @pytest.mark.asyncio
    async def test_mark_attendance_not_found(self, booking_service, instructor):
        """Test marking an unknown booking fails."""
        with pytest.raises(BookingNotFoundError):
            await booking_service.mark_attendance(
                "missing", MarkAttendanceRequest(attended=True), instructor
            )

    @pytest.mark.asyncio
    async def test_mark_attendance_requires_staff(self, booking_service, lesson, student, student_actor):
        """Test students cannot mark attendance."""
        booking = await booking_service.book_lesson(lesson.id, student.id)

        with pytest.raises(ForbiddenRoleError):
            await booking_service.mark_attendance(
                booking.id, MarkAttendanceRequest(attended=True), student_actor
            )

    @pytest.mark.asyncio
    async def test_mark_attendance_leaves_stats_alone(self, booking_service, store, lesson, student, instructor):
        """Test attendance marking does not record progress."""
        booking = await booking_service.book_lesson(lesson.id, student.id)

        await booking_service.mark_attendance(booking.id, MarkAttendanceRequest(attended=True), instructor)

        assert store.tables["student_lesson_stats"] == {}


class TestBookingQueries:
    """Tests for reading bookings."""

    @pytest.mark.asyncio
    async def test_get_and_list(self, booking_service, store, school_id, student):
        """Test bookings can be read by id, lesson and student."""
        first = store.insert_lesson(school_id=school_id)
        second = store.insert_lesson(school_id=school_id)
        a = await booking_service.book_lesson(first.id, student.id)
        b = await booking_service.book_lesson(second.id, student.id)

        assert (await booking_service.get_booking(a.id)).id == a.id
        assert [x.id for x in await booking_service.list_lesson_bookings(first.id)] == [a.id]
        assert [x.id for x in await booking_service.list_student_bookings(student.id)] == [b.id, a.id]

    @pytest.mark.asyncio
    async def test_get_booking_not_found(self, booking_service):
        """Test reading an unknown booking fails."""
        with pytest.raises(BookingNotFoundError):
            await booking_service.get_booking("missing")
