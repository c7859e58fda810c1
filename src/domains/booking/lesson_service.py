# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson scheduling service.

Lessons are created by staff with a fixed seat capacity. The seat
counter itself is owned by the booking engine and never written here.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from src.domains.access import Actor, ensure_staff
from src.domains.errors import (
    InvalidLessonError,
    LessonHasBookingsError,
    LessonNotAvailableError,
    LessonNotFoundError,
)
from src.domains.store import RecordStore
from src.infrastructure.events import EventBus, EventTypes
from src.models.common import LessonStatus
from src.models.lesson import (
    LessonAvailability,
    LessonCreateRequest,
    LessonFilters,
    LessonResponse,
    LessonUpdateRequest,
)
from src.utils.datetime import ensure_utc, is_in_past

logger = logging.getLogger(__name__)


def _validate_schedule(
    date_time: datetime | None,
    duration_minutes: int | None,
    capacity: int | None,
    price: Decimal | None,
) -> None:
    if date_time is not None and is_in_past(date_time):
        raise InvalidLessonError("Lesson date must be in the future")
    if capacity is not None and capacity < 1:
        raise InvalidLessonError("Capacity must be at least 1")
    if duration_minutes is not None and duration_minutes < 1:
        raise InvalidLessonError("Duration must be at least 1 minute")
    if price is not None and price < 0:
        raise InvalidLessonError("Price cannot be negative")


class LessonService:
    """Service for scheduling lessons.

    Attributes:
        store: Record store.
        event_bus: Bus notified after each committed change.
    """

    def __init__(self, store: RecordStore, event_bus: EventBus | None = None) -> None:
        self.store = store
        self.event_bus = event_bus or EventBus()

    async def create_lesson(self, request: LessonCreateRequest, actor: Actor) -> LessonResponse:
        """Schedule a new lesson.

        Args:
            request: Lesson data.
            actor: Staff member creating the lesson.

        Returns:
            The scheduled lesson with no bookings.

        Raises:
            ForbiddenRoleError: If the actor is not staff.
            InvalidLessonError: If the date is past, the type is empty, or
                capacity, duration or price is out of range.
        """
        ensure_staff(actor)
        if not request.type.strip():
            raise InvalidLessonError("Lesson type is required")
        _validate_schedule(
            request.date_time,
            request.duration_minutes,
            request.capacity,
            request.price,
        )

        async with self.store.transaction() as tx:
            lesson = await tx.lessons.create(
                school_id=request.school_id,
                instructor_id=request.instructor_id,
                type=request.type.strip(),
                date_time=ensure_utc(request.date_time),
                duration_minutes=request.duration_minutes,
                capacity=request.capacity,
                price=request.price,
            )
            response = LessonResponse.model_validate(lesson)

        logger.info(
            "Lesson created: lesson=%s, school=%s, type=%s, capacity=%d, by=%s",
            response.id,
            response.school_id,
            response.type,
            response.capacity,
            actor.user_id,
        )
        await self.event_bus.publish(
            EventTypes.Lesson.CREATED,
            {"lesson_id": response.id, "instructor_id": response.instructor_id},
            school_id=response.school_id,
        )
        return response

    async def get_lesson(self, lesson_id: str) -> LessonResponse:
        """Get a lesson by ID.

        Raises:
            LessonNotFoundError: If the lesson does not exist.
        """
        async with self.store.transaction() as tx:
            lesson = await tx.lessons.get(lesson_id)
            if lesson is None:
                raise LessonNotFoundError()
            return LessonResponse.model_validate(lesson)

    async def list_lessons(self, filters: LessonFilters | None = None) -> list[LessonResponse]:
        async with self.store.transaction() as tx:
            lessons = await tx.lessons.list(filters or LessonFilters())
            return [LessonResponse.model_validate(lesson) for lesson in lessons]

    async def update_lesson(
        self,
        lesson_id: str,
        request: LessonUpdateRequest,
        actor: Actor,
    ) -> LessonResponse:
        """Change a scheduled lesson.

        Capacity can be lowered only down to the number of seats already
        booked.

        Raises:
            ForbiddenRoleError: If the actor is not staff.
            LessonNotFoundError: If the lesson does not exist.
            LessonNotAvailableError: If the lesson is not scheduled.
            InvalidLessonError: If a changed value is out of range.
        """
        ensure_staff(actor)
        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        if "type" in changes:
            changes["type"] = changes["type"].strip()
            if not changes["type"]:
                raise InvalidLessonError("Lesson type is required")
        if "date_time" in changes:
            changes["date_time"] = ensure_utc(changes["date_time"])
        _validate_schedule(
            changes.get("date_time"),
            changes.get("duration_minutes"),
            changes.get("capacity"),
            changes.get("price"),
        )

        async with self.store.transaction() as tx:
            lesson = await tx.lessons.get(lesson_id, for_update=True)
            if lesson is None:
                raise LessonNotFoundError()
            if lesson.status != LessonStatus.SCHEDULED.value:
                raise LessonNotAvailableError("Cannot update non-scheduled lesson")
            if "capacity" in changes and changes["capacity"] < lesson.current_bookings:
                raise InvalidLessonError(
                    f"Capacity cannot be lower than current bookings ({lesson.current_bookings})"
                )

            await tx.lessons.update(lesson, changes)
            response = LessonResponse.model_validate(lesson)

        logger.info(
            "Lesson updated: lesson=%s, fields=%s, by=%s",
            lesson_id,
            ", ".join(sorted(changes)),
            actor.user_id,
        )
        return response

    async def cancel_lesson(self, lesson_id: str, actor: Actor) -> LessonResponse:
        """Cancel a lesson that nobody has booked.

        Raises:
            ForbiddenRoleError: If the actor is not staff.
            LessonNotFoundError: If the lesson does not exist.
            LessonNotAvailableError: If the lesson is not scheduled.
            LessonHasBookingsError: If any seat is booked.
        """
        ensure_staff(actor)

        async with self.store.transaction() as tx:
            lesson = await tx.lessons.get(lesson_id, for_update=True)
            if lesson is None:
                raise LessonNotFoundError()
            if lesson.status != LessonStatus.SCHEDULED.value:
                raise LessonNotAvailableError(f"Lesson is already {lesson.status}")
            if lesson.current_bookings > 0:
                raise LessonHasBookingsError()

            await tx.lessons.set_status(lesson, LessonStatus.CANCELLED.value)
            response = LessonResponse.model_validate(lesson)

        logger.info("Lesson cancelled: lesson=%s, by=%s", lesson_id, actor.user_id)
        await self.event_bus.publish(
            EventTypes.Lesson.CANCELLED,
            {"lesson_id": lesson_id, "cancelled_by": actor.user_id},
            school_id=response.school_id,
        )
        return response

    async def complete_lesson(self, lesson_id: str, actor: Actor) -> LessonResponse:
        """Mark a scheduled lesson as held.

        Raises:
            ForbiddenRoleError: If the actor is not staff.
            LessonNotFoundError: If the lesson does not exist.
            LessonNotAvailableError: If the lesson is not scheduled.
        """
        ensure_staff(actor)

        async with self.store.transaction() as tx:
            lesson = await tx.lessons.get(lesson_id, for_update=True)
            if lesson is None:
                raise LessonNotFoundError()
            if lesson.status != LessonStatus.SCHEDULED.value:
                raise LessonNotAvailableError(f"Lesson is already {lesson.status}")

            await tx.lessons.set_status(lesson, LessonStatus.COMPLETED.value)
            response = LessonResponse.model_validate(lesson)

        logger.info("Lesson completed: lesson=%s, by=%s", lesson_id, actor.user_id)
        await self.event_bus.publish(
            EventTypes.Lesson.COMPLETED,
            {"lesson_id": lesson_id, "completed_by": actor.user_id},
            school_id=response.school_id,
        )
        return response

    async def delete_lesson(self, lesson_id: str, actor: Actor) -> None:
        """Delete a lesson that nobody has booked.

        Raises:
            ForbiddenRoleError: If the actor is not staff.
            LessonNotFoundError: If the lesson does not exist.
            LessonHasBookingsError: If any seat is booked.
        """
        ensure_staff(actor)

        async with self.store.transaction() as tx:
            lesson = await tx.lessons.get(lesson_id, for_update=True)
            if lesson is None:
                raise LessonNotFoundError()
            if lesson.current_bookings > 0:
                raise LessonHasBookingsError("Cannot delete lesson with bookings")
            await tx.lessons.delete(lesson)

        logger.info("Lesson deleted: lesson=%s, by=%s", lesson_id, actor.user_id)

    async def check_availability(self, lesson_id: str) -> LessonAvailability:
        """Report whether a lesson is scheduled and has a free seat.

        Raises:
            LessonNotFoundError: If the lesson does not exist.
        """
        async with self.store.transaction() as tx:
            lesson = await tx.lessons.get(lesson_id)
            if lesson is None:
                raise LessonNotFoundError()

            remaining = max(lesson.capacity - lesson.current_bookings, 0)
            return LessonAvailability(
                lesson_id=lesson.id,
                available=lesson.status == LessonStatus.SCHEDULED.value and remaining > 0,
                remaining_seats=remaining,
            )
