# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson statistics and idempotency key repositories."""

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import IntegrityError

from src.domains.errors import DuplicateRequestError
from src.domains.store import IdempotencyRepository, LessonStatsRepository
from src.infrastructure.database.models import (
    IdempotencyKey,
    StudentLessonStats,
    generate_uuid,
)
from src.infrastructure.database.repositories.base import (
    SQLAlchemyRepository,
    constraint_violated,
    is_uuid,
    require_uuid,
)

STATS_STUDENT_SCHOOL_CONSTRAINT = "uq_student_lesson_stats_student_school"
IDEMPOTENCY_SCOPE_KEY_CONSTRAINT = "uq_idempotency_keys_scope_key"


class SQLAlchemyLessonStatsRepository(SQLAlchemyRepository, LessonStatsRepository):
    """Counters stored in ``student_lesson_stats``."""

    async def get(self, student_id: str, school_id: str) -> StudentLessonStats | None:
        if not is_uuid(student_id, school_id):
            return None
        query = select(StudentLessonStats).where(
            StudentLessonStats.student_id == student_id,
            StudentLessonStats.school_id == school_id,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def increment(
        self,
        student_id: str,
        school_id: str,
        *,
        theory: int,
        practical: int,
        completed_at: datetime,
    ) -> StudentLessonStats:
        require_uuid(student_id=student_id, school_id=school_id)
        # ON CONFLICT (student_id, school_id) DO UPDATE
        stmt = insert(StudentLessonStats).values(
            id=generate_uuid(),
            student_id=student_id,
            school_id=school_id,
            completed_lessons=1,
            completed_theory_lessons=theory,
            completed_practical_lessons=practical,
            last_lesson_date=completed_at,
            updated_at=completed_at,
        )
        stmt = stmt.on_conflict_do_update(
            constraint=STATS_STUDENT_SCHOOL_CONSTRAINT,
            set_={
                "completed_lessons": StudentLessonStats.completed_lessons + 1,
                "completed_theory_lessons": (
                    StudentLessonStats.completed_theory_lessons
                    + stmt.excluded.completed_theory_lessons
                ),
                "completed_practical_lessons": (
                    StudentLessonStats.completed_practical_lessons
                    + stmt.excluded.completed_practical_lessons
                ),
                "last_lesson_date": stmt.excluded.last_lesson_date,
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(StudentLessonStats)

        result = await self.db.execute(
            stmt,
            execution_options={"populate_existing": True},
        )
        return result.scalar_one()


class SQLAlchemyIdempotencyRepository(SQLAlchemyRepository, IdempotencyRepository):
    """Keys stored in ``idempotency_keys``."""

    async def get(self, scope: str, key: str) -> IdempotencyKey | None:
        query = select(IdempotencyKey).where(
            IdempotencyKey.scope == scope,
            IdempotencyKey.key == key,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def record(
        self,
        scope: str,
        key: str,
        *,
        resource_id: str | None,
        response: dict[str, Any],
    ) -> IdempotencyKey:
        entry = IdempotencyKey(
            scope=scope,
            key=key,
            resource_id=resource_id,
            response=response,
        )
        self.db.add(entry)
        try:
            await self.db.flush()
        except IntegrityError as e:
            if constraint_violated(e, IDEMPOTENCY_SCOPE_KEY_CONSTRAINT):
                raise DuplicateRequestError() from e
            raise
        return entry
