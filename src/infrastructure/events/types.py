# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Centralized event type definitions for DrivingSchool Core.

Every event is published after the transaction that caused it has
committed. Payloads carry identifiers only; subscribers load whatever
else they need.
"""


class EventTypes:
    """All event types organized by domain."""

    class Enrollment:
        """Enrollment request lifecycle."""

        REQUEST_CREATED = "enrollment.request.created"
        REQUEST_APPROVED = "enrollment.request.approved"
        REQUEST_REJECTED = "enrollment.request.rejected"

    class Lesson:
        """Lesson scheduling."""

        CREATED = "lesson.created"
        CANCELLED = "lesson.cancelled"
        COMPLETED = "lesson.completed"

    class Booking:
        """Lesson booking and attendance."""

        CREATED = "booking.created"
        CANCELLED = "booking.cancelled"
        ATTENDANCE_MARKED = "booking.attendance.marked"

    class Progress:
        """Lesson progress accounting."""

        LESSON_COMPLETED = "progress.lesson.completed"

    class Payment:
        """Payments recorded against bookings and exam registrations."""

        LESSON_RECORDED = "payment.lesson.recorded"
        EXAM_RECORDED = "payment.exam.recorded"


class EventPatterns:
    """Wildcard patterns for subscribing to groups of events."""

    ALL_ENROLLMENT = "enrollment.*"
    ALL_LESSON = "lesson.*"
    ALL_BOOKING = "booking.*"
    ALL_PROGRESS = "progress.*"
    ALL_PAYMENT = "payment.*"

    # Cross-domain
    ALL_CANCELLED = "*.cancelled"

    ALL = "*"
