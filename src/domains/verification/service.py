# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Verification service for stateless enrollment and eligibility checks.

Both checks are read-only. Eligibility is evaluated against the lesson
counters kept by the progress domain, never against exam state.
"""

import logging

from src.domains.errors import InvalidExamTypeError
from src.domains.store import RecordStore
from src.models.common import EnrollmentRequestStatus, ExamType
from src.models.enrollment import EnrollmentStatus
from src.models.progress import ExamEligibility

logger = logging.getLogger(__name__)

REQUIRED_LESSONS_THEORY = 20
REQUIRED_LESSONS_PRACTICAL = 30

_REQUIRED_LESSONS = {
    ExamType.THEORY: REQUIRED_LESSONS_THEORY,
    ExamType.PRACTICAL: REQUIRED_LESSONS_PRACTICAL,
}


def required_lessons_for(exam_type: ExamType | str) -> int:
    """Completed lessons needed before registering for an exam type.

    Raises:
        InvalidExamTypeError: If the exam type is unknown.
    """
    try:
        return _REQUIRED_LESSONS[ExamType(exam_type)]
    except ValueError as e:
        raise InvalidExamTypeError(f"Unknown exam type: {exam_type}") from e


class VerificationService:
    """Read-only checks consumed by other collaborators."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def verify_enrollment(self, user_id: str, school_id: str) -> EnrollmentStatus:
        """Report whether a user holds an authorization record at a school."""
        async with self.store.transaction() as tx:
            student = await tx.students.find_by_user_and_school(user_id, school_id)

        if student is None or not student.authorized:
            return EnrollmentStatus(is_enrolled=False, can_book=False)

        return EnrollmentStatus(
            is_enrolled=True,
            request_status=EnrollmentRequestStatus.APPROVED,
            enrollment_date=student.enrollment_date,
            can_book=True,
        )

    async def check_exam_eligibility(
        self,
        student_id: str,
        school_id: str,
        exam_type: ExamType | str,
    ) -> ExamEligibility:
        """Check whether a student has completed enough lessons for an exam.

        A student with no recorded lessons counts as zero completed.

        Args:
            student_id: Student record identity.
            school_id: School the exam is taken at.
            exam_type: "theory" or "practical".

        Returns:
            Eligibility with the lesson deficit as reason when not eligible.

        Raises:
            InvalidExamTypeError: If the exam type is unknown.
        """
        required = required_lessons_for(exam_type)

        async with self.store.transaction() as tx:
            stats = await tx.stats.get(student_id, school_id)

        completed = stats.completed_lessons if stats is not None else 0
        if completed < required:
            logger.debug(
                "Exam not eligible: student=%s, school=%s, type=%s, completed=%d, required=%d",
                student_id,
                school_id,
                exam_type,
                completed,
                required,
            )
            return ExamEligibility(
                eligible=False,
                required_lessons=required,
                completed_lessons=completed,
                reason=f"Student needs {required - completed} more completed lessons",
            )

        return ExamEligibility(
            eligible=True,
            required_lessons=required,
            completed_lessons=completed,
        )
