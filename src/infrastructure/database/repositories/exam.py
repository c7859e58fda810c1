# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam registration repository."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import select

from src.domains.store import ExamRegistrationRepository
from src.infrastructure.database.models import Exam, ExamRegistration
from src.infrastructure.database.repositories.base import SQLAlchemyRepository, is_uuid


class SQLAlchemyExamRegistrationRepository(SQLAlchemyRepository, ExamRegistrationRepository):
    """Registrations stored in ``exam_registrations``."""

    async def get(self, registration_id: str, *, for_update: bool = False) -> ExamRegistration | None:
        if not is_uuid(registration_id):
            return None
        query = select(ExamRegistration).where(ExamRegistration.id == registration_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_history(self, student_id: str, school_id: str) -> list[tuple[ExamRegistration, Exam]]:
        if not is_uuid(student_id, school_id):
            return []
        query = (
            select(ExamRegistration, Exam)
            .join(Exam, Exam.id == ExamRegistration.exam_id)
            .where(
                ExamRegistration.student_id == student_id,
                Exam.school_id == school_id,
            )
            .order_by(Exam.date_time.desc())
        )
        result = await self.db.execute(query)
        return [(registration, exam) for registration, exam in result.all()]

    async def mark_paid(
        self,
        registration: ExamRegistration,
        *,
        amount: Decimal,
        payment_method: str,
        paid_at: datetime,
    ) -> ExamRegistration:
        registration.paid = True
        registration.amount = amount
        registration.payment_method = payment_method
        registration.payment_date = paid_at
        await self.db.flush()
        return registration
