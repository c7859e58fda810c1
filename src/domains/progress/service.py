# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Progress service for attendance-driven lesson accounting.

This module provides the ProgressService class for:
- Recording completed lessons into per-student, per-school counters
- Recording the completion of a marked booking exactly once
- Reading the accumulated counters

Counters only ever grow, and only for attended lessons. Lesson types are
classified into theory and practical buckets; other types count toward
the total only.
"""

from __future__ import annotations

import logging
import unicodedata
from enum import Enum

from src.domains.errors import (
    AttendanceNotMarkedError,
    BookingNotFoundError,
    DuplicateRequestError,
    LessonNotFoundError,
    StatsNotFoundError,
)
from src.domains.idempotency import IdempotencyScope, find_replay, remember
from src.domains.store import RecordStore, StoreSession
from src.infrastructure.events import EventBus, EventTypes
from src.models.common import LessonType
from src.models.progress import LessonCompletedRequest, StudentLessonStatsResponse
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class LessonCategory(str, Enum):
    """Eligibility bucket a lesson type counts toward."""

    THEORY = "theory"
    PRACTICAL = "practical"
    OTHER = "other"


def _normalize(lesson_type: str) -> str:
    # "œ" has no canonical decomposition
    text = lesson_type.strip().replace("œ", "oe").replace("Œ", "OE")
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


_CATEGORIES = {
    _normalize(LessonType.CODE.value): LessonCategory.THEORY,
    _normalize(LessonType.MANOEUVRE.value): LessonCategory.PRACTICAL,
    _normalize(LessonType.PARC.value): LessonCategory.PRACTICAL,
}


def classify_lesson_type(lesson_type: str) -> LessonCategory:
    """Classify a lesson type, ignoring case and accents.

    >>> classify_lesson_type("CODE")
    <LessonCategory.THEORY: 'theory'>
    >>> classify_lesson_type("Manœuvre")
    <LessonCategory.PRACTICAL: 'practical'>
    """
    return _CATEGORIES.get(_normalize(lesson_type), LessonCategory.OTHER)


def booking_completion_key(booking_id: str) -> str:
    return f"booking-completion:{booking_id}"


class ProgressService:
    """Service for lesson progress accounting.

    Attributes:
        store: Record store.
        event_bus: Bus notified after each committed increment.
    """

    def __init__(self, store: RecordStore, event_bus: EventBus | None = None) -> None:
        self.store = store
        self.event_bus = event_bus or EventBus()

    async def record_lesson_completion(
        self,
        student_id: str,
        request: LessonCompletedRequest,
        idempotency_key: str | None = None,
    ) -> StudentLessonStatsResponse:
        """Record one completed lesson for a student at a school.

        A no-show (``attended=False``) changes nothing and returns the
        current counters. An attended lesson adds one to
        ``completed_lessons`` and to the bucket its type classifies into,
        creating the counters row on first use.

        Args:
            student_id: Student record identity.
            request: Completion event.
            idempotency_key: Optional caller key; a replay returns the
                counters recorded by the first call.

        Returns:
            The counters after the event.

        Raises:
            StatsNotFoundError: If a no-show is the student's first event.
            InvalidIdempotencyKeyError: If the key is blank or too long.
            DuplicateRequestError: If the key was taken concurrently and
                its result cannot be read back.
        """
        try:
            async with self.store.transaction() as tx:
                replay = await find_replay(
                    tx,
                    IdempotencyScope.LESSON_COMPLETION,
                    idempotency_key,
                    StudentLessonStatsResponse,
                )
                if replay is not None:
                    return replay

                response, incremented = await self._apply(
                    tx,
                    student_id,
                    request.school_id,
                    request.lesson_type,
                    request.attended,
                )
                await remember(
                    tx,
                    IdempotencyScope.LESSON_COMPLETION,
                    idempotency_key,
                    response.id,
                    response,
                )
        except DuplicateRequestError:
            # A concurrent call with the same key committed first.
            async with self.store.transaction() as tx:
                replay = await find_replay(
                    tx,
                    IdempotencyScope.LESSON_COMPLETION,
                    idempotency_key,
                    StudentLessonStatsResponse,
                )
            if replay is None:
                raise
            logger.info(
                "Lesson completion replayed after concurrent commit: student=%s, key=%s",
                student_id,
                idempotency_key,
            )
            return replay

        if incremented:
            await self._publish_completed(response, request.lesson_type)
        return response

    async def record_booking_completion(self, booking_id: str) -> StudentLessonStatsResponse:
        """Record the outcome of a marked booking.

        Each booking contributes at most once: the attended completion is
        stored under a key derived from the booking, so re-marking the
        booking and calling again changes nothing.

        Raises:
            BookingNotFoundError: If the booking does not exist.
            AttendanceNotMarkedError: If attendance has not been recorded.
            LessonNotFoundError: If the booked lesson no longer exists.
            StatsNotFoundError: If a no-show is the student's first event.
        """
        key = booking_completion_key(booking_id)

        async with self.store.transaction() as tx:
            booking = await tx.bookings.get(booking_id, for_update=True)
            if booking is None:
                raise BookingNotFoundError()

            # Replay check runs under the booking lock.
            replay = await find_replay(
                tx,
                IdempotencyScope.LESSON_COMPLETION,
                key,
                StudentLessonStatsResponse,
            )
            if replay is not None:
                return replay

            if booking.attended is None:
                raise AttendanceNotMarkedError()
            lesson = await tx.lessons.get(booking.lesson_id)
            if lesson is None:
                raise LessonNotFoundError()

            response, incremented = await self._apply(
                tx,
                booking.student_id,
                lesson.school_id,
                lesson.type,
                booking.attended,
            )
            # No-shows are not recorded so a later attended re-mark still counts.
            if incremented:
                await remember(
                    tx,
                    IdempotencyScope.LESSON_COMPLETION,
                    key,
                    booking_id,
                    response,
                )
            lesson_type = lesson.type

        if incremented:
            await self._publish_completed(response, lesson_type, booking_id=booking_id)
        return response

    async def get_stats(self, student_id: str, school_id: str) -> StudentLessonStatsResponse:
        """Get a student's counters at a school.

        Raises:
            StatsNotFoundError: If no lesson has been recorded yet.
        """
        async with self.store.transaction() as tx:
            stats = await tx.stats.get(student_id, school_id)
            if stats is None:
                raise StatsNotFoundError()
            return StudentLessonStatsResponse.model_validate(stats)

    async def _apply(
        self,
        tx: StoreSession,
        student_id: str,
        school_id: str,
        lesson_type: str,
        attended: bool,
    ) -> tuple[StudentLessonStatsResponse, bool]:
        if not attended:
            stats = await tx.stats.get(student_id, school_id)
            if stats is None:
                raise StatsNotFoundError()
            return StudentLessonStatsResponse.model_validate(stats), False

        category = classify_lesson_type(lesson_type)
        stats = await tx.stats.increment(
            student_id,
            school_id,
            theory=int(category is LessonCategory.THEORY),
            practical=int(category is LessonCategory.PRACTICAL),
            completed_at=utc_now(),
        )
        response = StudentLessonStatsResponse.model_validate(stats)

        logger.info(
            "Lesson completion recorded: student=%s, school=%s, type=%s, category=%s, total=%d",
            student_id,
            school_id,
            lesson_type,
            category.value,
            response.completed_lessons,
        )
        return response, True

    async def _publish_completed(
        self,
        stats: StudentLessonStatsResponse,
        lesson_type: str,
        booking_id: str | None = None,
    ) -> None:
        await self.event_bus.publish(
            EventTypes.Progress.LESSON_COMPLETED,
            {
                "student_id": stats.student_id,
                "lesson_type": lesson_type,
                "booking_id": booking_id,
                "completed_lessons": stats.completed_lessons,
                "completed_theory_lessons": stats.completed_theory_lessons,
                "completed_practical_lessons": stats.completed_practical_lessons,
            },
            school_id=stats.school_id,
        )
