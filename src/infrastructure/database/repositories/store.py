# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy implementation of the record store."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.store import RecordStore, StoreSession
from src.infrastructure.database.connection import Database
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


def build_store_session(db: AsyncSession) -> StoreSession:
    """Bind every repository to one AsyncSession."""
    return StoreSession(
        students=SQLAlchemyStudentRepository(db),
        enrollment_requests=SQLAlchemyEnrollmentRequestRepository(db),
        lessons=SQLAlchemyLessonRepository(db),
        bookings=SQLAlchemyBookingRepository(db),
        exam_registrations=SQLAlchemyExamRegistrationRepository(db),
        stats=SQLAlchemyLessonStatsRepository(db),
        idempotency=SQLAlchemyIdempotencyRepository(db),
    )


class SQLAlchemyRecordStore(RecordStore):
    """Record store backed by PostgreSQL.

    Each transaction runs in its own AsyncSession. When ``lock_timeout_ms``
    is set, row-lock waits longer than that fail with a DatabaseError
    instead of blocking indefinitely.

    Attributes:
        database: Connected database handle.
        lock_timeout_ms: PostgreSQL lock_timeout for each transaction, 0 to disable.
    """

    def __init__(self, database: Database, lock_timeout_ms: int = 0) -> None:
        self.database = database
        self.lock_timeout_ms = lock_timeout_ms

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[StoreSession]:
        async with self.database.session() as db:
            if self.lock_timeout_ms:
                await db.execute(text(f"SET LOCAL lock_timeout = {int(self.lock_timeout_ms)}"))
            yield build_store_session(db)
