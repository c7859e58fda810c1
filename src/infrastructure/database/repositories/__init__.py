# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy repositories implementing the record store contracts."""

from src.infrastructure.database.repositories.enrollment import (
    SQLAlchemyEnrollmentRequestRepository,
    SQLAlchemyStudentRepository,
)
from src.infrastructure.database.repositories.exam import SQLAlchemyExamRegistrationRepository
from src.infrastructure.database.repositories.lesson import (
    SQLAlchemyBookingRepository,
    SQLAlchemyLessonRepository,
)
from src.infrastructure.database.repositories.progress import (
    SQLAlchemyIdempotencyRepository,
    SQLAlchemyLessonStatsRepository,
)
from src.infrastructure.database.repositories.store import (
    SQLAlchemyRecordStore,
    build_store_session,
)

__all__ = [
    "SQLAlchemyRecordStore",
    "build_store_session",
    "SQLAlchemyStudentRepository",
    "SQLAlchemyEnrollmentRequestRepository",
    "SQLAlchemyLessonRepository",
    "SQLAlchemyBookingRepository",
    "SQLAlchemyExamRegistrationRepository",
    "SQLAlchemyLessonStatsRepository",
    "SQLAlchemyIdempotencyRepository",
]
