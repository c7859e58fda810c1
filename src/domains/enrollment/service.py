# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service for managing school enrollment requests.

This module provides the EnrollmentService class for:
- Submitting enrollment requests
- Approving and rejecting requests
- Deriving a student's enrollment status at a school

An enrollment request moves from pending to exactly one terminal state
(approved or rejected). Approval and creation of the authorized student
record happen in one store transaction.
"""

from __future__ import annotations

import logging

from src.core.config.settings import BookingSettings
from src.domains.access import Actor, ensure_staff
from src.domains.errors import (
    AlreadyApprovedError,
    AlreadyEnrolledError,
    AlreadyProcessedError,
    EnrollmentRequestNotFoundError,
    InvalidRejectionReasonError,
    RequestAlreadyPendingError,
)
from src.domains.store import RecordStore
from src.infrastructure.events import EventBus, EventTypes
from src.models.common import EnrollmentRequestStatus
from src.models.enrollment import (
    EnrollmentRequestResponse,
    EnrollmentStatus,
    StudentResponse,
)
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class EnrollmentService:
    """Service for the enrollment request workflow.

    ``student_id`` on an enrollment request is the applicant's user
    identity; the authorized student record created on approval is keyed
    by the same (user, school) pair.

    Attributes:
        store: Record store.
        event_bus: Bus notified after each committed transition.
        settings: Business-rule settings.
    """

    def __init__(
        self,
        store: RecordStore,
        event_bus: EventBus | None = None,
        settings: BookingSettings | None = None,
    ) -> None:
        """Initialize enrollment service.

        Args:
            store: Record store shared by all services.
            event_bus: Event bus for post-commit notifications.
            settings: Booking settings; defaults are used when omitted.
        """
        self.store = store
        self.event_bus = event_bus or EventBus()
        self.settings = settings or BookingSettings()

    async def request_enrollment(
        self,
        student_id: str,
        school_id: str,
        message: str | None = None,
    ) -> EnrollmentRequestResponse:
        """Submit a pending enrollment request.

        Args:
            student_id: Applicant user identity.
            school_id: Target school.
            message: Optional note from the applicant.

        Returns:
            The created pending request.

        Raises:
            AlreadyEnrolledError: If the applicant is already authorized at the school.
            RequestAlreadyPendingError: If a pending request already exists.
            AlreadyApprovedError: If the most recent request was approved.
        """
        async with self.store.transaction() as tx:
            student = await tx.students.find_by_user_and_school(student_id, school_id)
            if student is not None and student.authorized:
                raise AlreadyEnrolledError()

            # The partial unique index also rejects concurrent duplicates on insert.
            pending = await tx.enrollment_requests.find_pending(student_id, school_id)
            if pending is not None:
                raise RequestAlreadyPendingError()

            latest = await tx.enrollment_requests.find_latest(student_id, school_id)
            if latest is not None and latest.status == EnrollmentRequestStatus.APPROVED.value:
                raise AlreadyApprovedError()

            request = await tx.enrollment_requests.create(
                student_id=student_id,
                school_id=school_id,
                message=message,
            )
            response = EnrollmentRequestResponse.model_validate(request)

        logger.info(
            "Enrollment requested: request=%s, student=%s, school=%s",
            response.id,
            student_id,
            school_id,
        )
        await self.event_bus.publish(
            EventTypes.Enrollment.REQUEST_CREATED,
            {"request_id": response.id, "student_id": student_id},
            school_id=school_id,
        )
        return response

    async def approve_request(
        self,
        request_id: str,
        processed_by: Actor,
    ) -> tuple[EnrollmentRequestResponse, StudentResponse]:
        """Approve a pending request and authorize the student.

        The status change and the student record are committed together.

        Args:
            request_id: Request to approve.
            processed_by: Staff member approving the request.

        Returns:
            Tuple of (approved request, created student record).

        Raises:
            ForbiddenRoleError: If the actor is not staff.
            EnrollmentRequestNotFoundError: If the request does not exist.
            AlreadyProcessedError: If the request is no longer pending.
            AlreadyEnrolledError: If a student record already exists for the pair.
        """
        ensure_staff(processed_by)
        now = utc_now()

        async with self.store.transaction() as tx:
            request = await tx.enrollment_requests.get(request_id, for_update=True)
            if request is None:
                raise EnrollmentRequestNotFoundError()
            if EnrollmentRequestStatus(request.status).is_terminal:
                raise AlreadyProcessedError()

            await tx.enrollment_requests.mark_processed(
                request,
                status=EnrollmentRequestStatus.APPROVED.value,
                processed_by=processed_by.user_id,
                processed_at=now,
            )
            student = await tx.students.create(
                user_id=request.student_id,
                school_id=request.school_id,
                authorized=True,
                enrollment_request_id=request.id,
                enrollment_date=now,
            )
            request_response = EnrollmentRequestResponse.model_validate(request)
            student_response = StudentResponse.model_validate(student)

        logger.info(
            "Enrollment approved: request=%s, student=%s, school=%s, by=%s",
            request_id,
            student_response.id,
            request_response.school_id,
            processed_by.user_id,
        )
        await self.event_bus.publish(
            EventTypes.Enrollment.REQUEST_APPROVED,
            {
                "request_id": request_id,
                "student_id": request_response.student_id,
                "student_record_id": student_response.id,
                "processed_by": processed_by.user_id,
            },
            school_id=request_response.school_id,
        )
        return request_response, student_response

    async def reject_request(
        self,
        request_id: str,
        processed_by: Actor,
        reason: str,
    ) -> EnrollmentRequestResponse:
        """Reject a pending request.

        Args:
            request_id: Request to reject.
            processed_by: Staff member rejecting the request.
            reason: Explanation shown to the applicant.

        Returns:
            The rejected request.

        Raises:
            ForbiddenRoleError: If the actor is not staff.
            InvalidRejectionReasonError: If the reason is empty or too short.
            EnrollmentRequestNotFoundError: If the request does not exist.
            AlreadyProcessedError: If the request is no longer pending.
        """
        ensure_staff(processed_by)

        reason = (reason or "").strip()
        min_length = self.settings.min_rejection_reason_length
        if not reason:
            raise InvalidRejectionReasonError()
        if len(reason) < min_length:
            raise InvalidRejectionReasonError(
                f"Rejection reason must be at least {min_length} characters"
            )

        async with self.store.transaction() as tx:
            request = await tx.enrollment_requests.get(request_id, for_update=True)
            if request is None:
                raise EnrollmentRequestNotFoundError()
            if EnrollmentRequestStatus(request.status).is_terminal:
                raise AlreadyProcessedError()

            await tx.enrollment_requests.mark_processed(
                request,
                status=EnrollmentRequestStatus.REJECTED.value,
                processed_by=processed_by.user_id,
                processed_at=utc_now(),
                rejection_reason=reason,
            )
            response = EnrollmentRequestResponse.model_validate(request)

        logger.info(
            "Enrollment rejected: request=%s, student=%s, school=%s, by=%s",
            request_id,
            response.student_id,
            response.school_id,
            processed_by.user_id,
        )
        await self.event_bus.publish(
            EventTypes.Enrollment.REQUEST_REJECTED,
            {
                "request_id": request_id,
                "student_id": response.student_id,
                "processed_by": processed_by.user_id,
                "reason": reason,
            },
            school_id=response.school_id,
        )
        return response

    async def get_enrollment_status(self, student_id: str, school_id: str) -> EnrollmentStatus:
        """Derive the enrollment state of a (user, school) pair.

        ``can_book`` is true iff an authorized student record exists.
        """
        async with self.store.transaction() as tx:
            student = await tx.students.find_by_user_and_school(student_id, school_id)
            latest = await tx.enrollment_requests.find_latest(student_id, school_id)

        enrolled = student is not None and student.authorized
        return EnrollmentStatus(
            is_enrolled=enrolled,
            request_status=latest.status if latest is not None else None,
            enrollment_date=student.enrollment_date if enrolled else None,
            can_book=enrolled,
        )

    async def get_request(self, request_id: str) -> EnrollmentRequestResponse:
        """Get a request by ID.

        Raises:
            EnrollmentRequestNotFoundError: If the request does not exist.
        """
        async with self.store.transaction() as tx:
            request = await tx.enrollment_requests.get(request_id)
            if request is None:
                raise EnrollmentRequestNotFoundError()
            return EnrollmentRequestResponse.model_validate(request)

    async def list_student_requests(self, student_id: str) -> list[EnrollmentRequestResponse]:
        """List an applicant's requests across schools, newest first."""
        async with self.store.transaction() as tx:
            requests = await tx.enrollment_requests.list_by_student(student_id)
            return [EnrollmentRequestResponse.model_validate(r) for r in requests]

    async def list_school_requests(
        self,
        school_id: str,
        status: EnrollmentRequestStatus | None = None,
    ) -> list[EnrollmentRequestResponse]:
        """List requests submitted to a school, newest first.

        Args:
            school_id: School identifier.
            status: Optional status filter.
        """
        async with self.store.transaction() as tx:
            requests = await tx.enrollment_requests.list_by_school(
                school_id,
                status.value if status is not None else None,
            )
            return [EnrollmentRequestResponse.model_validate(r) for r in requests]

    async def list_school_students(self, school_id: str) -> list[StudentResponse]:
        async with self.store.transaction() as tx:
            students = await tx.students.list_by_school(school_id)
            return [StudentResponse.model_validate(s) for s in students]
