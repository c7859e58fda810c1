# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Booking domain package.

This package provides lesson scheduling and the booking engine:
- LessonService: create, update, cancel, complete and delete lessons
- BookingService: book seats under capacity, cancel bookings, mark attendance
"""

from src.domains.booking.lesson_service import LessonService
from src.domains.booking.service import BookingService

__all__ = [
    "BookingService",
    "LessonService",
]
