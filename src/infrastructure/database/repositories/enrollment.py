# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment request and student record repositories."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from src.domains.errors import AlreadyEnrolledError, RequestAlreadyPendingError
from src.domains.store import EnrollmentRequestRepository, StudentRepository
from src.infrastructure.database.models import EnrollmentRequest, Student
from src.infrastructure.database.repositories.base import (
    SQLAlchemyRepository,
    constraint_violated,
    is_uuid,
    require_uuid,
)
from src.models.common import EnrollmentRequestStatus

PENDING_REQUEST_INDEX = "uq_enrollment_requests_pending"
STUDENT_USER_SCHOOL_CONSTRAINT = "uq_students_user_school"


class SQLAlchemyEnrollmentRequestRepository(SQLAlchemyRepository, EnrollmentRequestRepository):
    """Enrollment requests stored in ``enrollment_requests``."""

    async def get(self, request_id: str, *, for_update: bool = False) -> EnrollmentRequest | None:
        if not is_uuid(request_id):
            return None
        query = select(EnrollmentRequest).where(EnrollmentRequest.id == request_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_latest(self, student_id: str, school_id: str) -> EnrollmentRequest | None:
        if not is_uuid(student_id, school_id):
            return None
        query = (
            select(EnrollmentRequest)
            .where(
                EnrollmentRequest.student_id == student_id,
                EnrollmentRequest.school_id == school_id,
            )
            .order_by(EnrollmentRequest.created_at.desc())
            .limit(1)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_pending(self, student_id: str, school_id: str) -> EnrollmentRequest | None:
        if not is_uuid(student_id, school_id):
            return None
        query = select(EnrollmentRequest).where(
            EnrollmentRequest.student_id == student_id,
            EnrollmentRequest.school_id == school_id,
            EnrollmentRequest.status == EnrollmentRequestStatus.PENDING.value,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_by_student(self, student_id: str) -> list[EnrollmentRequest]:
        if not is_uuid(student_id):
            return []
        query = (
            select(EnrollmentRequest)
            .where(EnrollmentRequest.student_id == student_id)
            .order_by(EnrollmentRequest.created_at.desc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_by_school(self, school_id: str, status: str | None = None) -> list[EnrollmentRequest]:
        if not is_uuid(school_id):
            return []
        query = select(EnrollmentRequest).where(EnrollmentRequest.school_id == school_id)
        if status is not None:
            query = query.where(EnrollmentRequest.status == status)
        query = query.order_by(EnrollmentRequest.created_at.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create(self, *, student_id: str, school_id: str, message: str | None) -> EnrollmentRequest:
        require_uuid(student_id=student_id, school_id=school_id)
        request = EnrollmentRequest(
            student_id=student_id,
            school_id=school_id,
            status=EnrollmentRequestStatus.PENDING.value,
            message=message,
        )
        self.db.add(request)
        try:
            await self.db.flush()
        except IntegrityError as e:
            if constraint_violated(e, PENDING_REQUEST_INDEX):
                raise RequestAlreadyPendingError() from e
            raise
        return request

    async def mark_processed(
        self,
        request: EnrollmentRequest,
        *,
        status: str,
        processed_by: str,
        processed_at: datetime,
        rejection_reason: str | None = None,
    ) -> EnrollmentRequest:
        require_uuid(processed_by=processed_by)
        request.status = status
        request.processed_by = processed_by
        request.processed_at = processed_at
        request.rejection_reason = rejection_reason
        await self.db.flush()
        return request


class SQLAlchemyStudentRepository(SQLAlchemyRepository, StudentRepository):
    """Authorization records stored in ``students``."""

    async def get(self, student_id: str) -> Student | None:
        if not is_uuid(student_id):
            return None
        query = select(Student).where(Student.id == student_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_by_user_and_school(self, user_id: str, school_id: str) -> Student | None:
        if not is_uuid(user_id, school_id):
            return None
        query = select(Student).where(
            Student.user_id == user_id,
            Student.school_id == school_id,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_by_school(self, school_id: str) -> list[Student]:
        if not is_uuid(school_id):
            return []
        query = (
            select(Student)
            .where(Student.school_id == school_id)
            .order_by(Student.created_at.desc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create(
        self,
        *,
        user_id: str,
        school_id: str,
        authorized: bool,
        enrollment_request_id: str | None,
        enrollment_date: datetime,
    ) -> Student:
        require_uuid(
            user_id=user_id,
            school_id=school_id,
            enrollment_request_id=enrollment_request_id,
        )
        student = Student(
            user_id=user_id,
            school_id=school_id,
            authorized=authorized,
            enrollment_request_id=enrollment_request_id,
            enrollment_date=enrollment_date,
        )
        self.db.add(student)
        try:
            await self.db.flush()
        except IntegrityError as e:
            if constraint_violated(e, STUDENT_USER_SCHOOL_CONSTRAINT):
                raise AlreadyEnrolledError() from e
            raise
        return student

    async def update_notes(self, student: Student, notes: str) -> Student:
        student.notes = notes
        await self.db.flush()
        return student
