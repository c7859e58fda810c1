# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson and lesson booking repositories.

Seat counters are changed with single conditional UPDATE statements so
``current_bookings`` can never exceed ``capacity`` or drop below zero,
whatever the interleaving of concurrent transactions.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.attributes import set_committed_value

from src.domains.errors import DuplicateBookingError
from src.domains.store import BookingRepository, LessonRepository
from src.infrastructure.database.models import Lesson, LessonBooking
from src.infrastructure.database.repositories.base import (
    SQLAlchemyRepository,
    constraint_violated,
    is_uuid,
    require_uuid,
)
from src.models.common import LessonStatus
from src.models.lesson import LessonFilters

BOOKING_LESSON_STUDENT_CONSTRAINT = "uq_lesson_bookings_lesson_student"


class SQLAlchemyLessonRepository(SQLAlchemyRepository, LessonRepository):
    """Lessons stored in ``lessons``."""

    async def get(self, lesson_id: str, *, for_update: bool = False) -> Lesson | None:
        if not is_uuid(lesson_id):
            return None
        query = select(Lesson).where(Lesson.id == lesson_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list(self, filters: LessonFilters) -> list[Lesson]:
        scoped_ids = [i for i in (filters.school_id, filters.instructor_id) if i]
        if not is_uuid(*scoped_ids):
            return []
        query = select(Lesson)
        if filters.school_id:
            query = query.where(Lesson.school_id == filters.school_id)
        if filters.instructor_id:
            query = query.where(Lesson.instructor_id == filters.instructor_id)
        if filters.type:
            query = query.where(Lesson.type == filters.type)
        if filters.status:
            query = query.where(Lesson.status == filters.status.value)
        if filters.date_from:
            query = query.where(Lesson.date_time >= filters.date_from)
        if filters.date_to:
            query = query.where(Lesson.date_time <= filters.date_to)
        query = query.order_by(Lesson.date_time.asc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

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
        require_uuid(school_id=school_id, instructor_id=instructor_id)
        lesson = Lesson(
            school_id=school_id,
            instructor_id=instructor_id,
            type=type,
            date_time=date_time,
            duration_minutes=duration_minutes,
            capacity=capacity,
            current_bookings=0,
            price=price,
            status=LessonStatus.SCHEDULED.value,
        )
        self.db.add(lesson)
        await self.db.flush()
        return lesson

    async def update(self, lesson: Lesson, changes: dict[str, Any]) -> Lesson:
        require_uuid(instructor_id=changes.get("instructor_id"))
        for field, value in changes.items():
            setattr(lesson, field, value)
        await self.db.flush()
        return lesson

    async def set_status(self, lesson: Lesson, status: str) -> Lesson:
        lesson.status = status
        await self.db.flush()
        return lesson

    async def delete(self, lesson: Lesson) -> None:
        await self.db.delete(lesson)
        await self.db.flush()

    async def reserve_seat(self, lesson: Lesson) -> bool:
        stmt = (
            update(Lesson)
            .where(
                Lesson.id == lesson.id,
                Lesson.status == LessonStatus.SCHEDULED.value,
                Lesson.current_bookings < Lesson.capacity,
            )
            .values(current_bookings=Lesson.current_bookings + 1)
            .returning(Lesson.current_bookings)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        current = result.scalar_one_or_none()
        if current is None:
            return False
        set_committed_value(lesson, "current_bookings", current)
        return True

    async def release_seat(self, lesson: Lesson) -> None:
        stmt = (
            update(Lesson)
            .where(Lesson.id == lesson.id)
            .values(current_bookings=func.greatest(Lesson.current_bookings - 1, 0))
            .returning(Lesson.current_bookings)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        current = result.scalar_one_or_none()
        if current is not None:
            set_committed_value(lesson, "current_bookings", current)


class SQLAlchemyBookingRepository(SQLAlchemyRepository, BookingRepository):
    """Bookings stored in ``lesson_bookings``."""

    async def get(self, booking_id: str, *, for_update: bool = False) -> LessonBooking | None:
        if not is_uuid(booking_id):
            return None
        query = select(LessonBooking).where(LessonBooking.id == booking_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_by_lesson_and_student(self, lesson_id: str, student_id: str) -> LessonBooking | None:
        if not is_uuid(lesson_id, student_id):
            return None
        query = select(LessonBooking).where(
            LessonBooking.lesson_id == lesson_id,
            LessonBooking.student_id == student_id,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_by_lesson(self, lesson_id: str) -> list[LessonBooking]:
        if not is_uuid(lesson_id):
            return []
        query = (
            select(LessonBooking)
            .where(LessonBooking.lesson_id == lesson_id)
            .order_by(LessonBooking.created_at.desc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_by_student(self, student_id: str) -> list[LessonBooking]:
        if not is_uuid(student_id):
            return []
        query = (
            select(LessonBooking)
            .where(LessonBooking.student_id == student_id)
            .order_by(LessonBooking.created_at.desc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_history(self, student_id: str, school_id: str) -> list[tuple[LessonBooking, Lesson]]:
        if not is_uuid(student_id, school_id):
            return []
        query = (
            select(LessonBooking, Lesson)
            .join(Lesson, Lesson.id == LessonBooking.lesson_id)
            .where(
                LessonBooking.student_id == student_id,
                Lesson.school_id == school_id,
            )
            .order_by(Lesson.date_time.desc())
        )
        result = await self.db.execute(query)
        return [(booking, lesson) for booking, lesson in result.all()]

    async def create(self, *, lesson_id: str, student_id: str) -> LessonBooking:
        require_uuid(lesson_id=lesson_id, student_id=student_id)
        booking = LessonBooking(lesson_id=lesson_id, student_id=student_id, paid=False)
        self.db.add(booking)
        try:
            await self.db.flush()
        except IntegrityError as e:
            if constraint_violated(e, BOOKING_LESSON_STUDENT_CONSTRAINT):
                raise DuplicateBookingError() from e
            raise
        return booking

    async def delete(self, booking: LessonBooking) -> None:
        await self.db.delete(booking)
        await self.db.flush()

    async def update_attendance(
        self,
        booking: LessonBooking,
        *,
        attended: bool,
        feedback: str | None,
        rating: int | None,
    ) -> LessonBooking:
        booking.attended = attended
        booking.feedback = feedback
        booking.rating = rating
        await self.db.flush()
        return booking

    async def mark_paid(
        self,
        booking: LessonBooking,
        *,
        amount: Decimal,
        payment_method: str,
        paid_at: datetime,
    ) -> LessonBooking:
        booking.paid = True
        booking.amount = amount
        booking.payment_method = payment_method
        booking.payment_date = paid_at
        await self.db.flush()
        return booking
