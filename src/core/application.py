# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Process-level container for DrivingSchool Core.

CoreApplication builds the database handle, record store, event bus and
every domain service by explicit injection. The process entry point owns
its lifecycle:

    async with CoreApplication(get_settings()) as app:
        booking = await app.bookings.book_lesson(lesson_id, student_id)
"""

import logging
from types import TracebackType

from src.core.config import Settings, get_settings
from src.domains.booking import BookingService, LessonService
from src.domains.enrollment import EnrollmentService
from src.domains.profile import ProfileService
from src.domains.progress import ProgressService
from src.domains.verification import VerificationService
from src.infrastructure.database import Database
from src.infrastructure.database.repositories import SQLAlchemyRecordStore
from src.infrastructure.events import EventBus
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


class CoreApplication:
    """Wires the store, event bus and domain services.

    Attributes:
        settings: Application settings.
        database: Async engine and session factory.
        store: Transactional record store over the database.
        event_bus: Bus the services publish state changes to.
        enrollment: Enrollment request workflow.
        lessons: Lesson scheduling.
        bookings: Booking engine.
        progress: Lesson progress accounting.
        verification: Enrollment and exam eligibility checks.
        profiles: Profile and financial aggregation.
    """

    def __init__(self, settings: Settings | None = None, event_bus: EventBus | None = None) -> None:
        self.settings = settings or get_settings()
        self.database = Database(self.settings.database)
        self.store = SQLAlchemyRecordStore(
            self.database,
            lock_timeout_ms=self.settings.booking.lock_timeout_ms,
        )
        self.event_bus = event_bus or EventBus()

        self.enrollment = EnrollmentService(self.store, self.event_bus, self.settings.booking)
        self.lessons = LessonService(self.store, self.event_bus)
        self.bookings = BookingService(self.store, self.event_bus)
        self.progress = ProgressService(self.store, self.event_bus)
        self.verification = VerificationService(self.store)
        self.profiles = ProfileService(self.store, self.event_bus)

    async def start(self) -> None:
        """Configure logging and open the database engine."""
        setup_logging(self.settings)
        logger.info(
            "Starting DrivingSchool Core: environment=%s, debug=%s",
            self.settings.environment,
            self.settings.debug,
        )
        await self.database.connect()

    async def close(self) -> None:
        """Dispose the database engine."""
        await self.database.close()
        logger.info("DrivingSchool Core stopped")

    async def __aenter__(self) -> "CoreApplication":
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
