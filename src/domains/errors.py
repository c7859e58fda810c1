# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Typed business-rule failures shared by all domain services.

Every failure carries a coarse ``kind`` (what family of problem it is)
and a stable ``code`` (exactly which rule was violated) so the API layer
can map it to a status code and render a precise message.

None of these errors are transient: they describe business-rule
violations and are never retried. Infrastructure failures are raised as
``src.infrastructure.database.DatabaseError`` instead.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Families of domain failures."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_INPUT = "invalid_input"
    NOT_AUTHORIZED = "not_authorized"


class DomainError(Exception):
    """Base exception for every domain service failure.

    Attributes:
        kind: Failure family.
        code: Stable machine-readable identifier of the violated rule.
        message: Human-readable description.
    """

    kind: ErrorKind = ErrorKind.CONFLICT
    code: str = "domain_error"
    default_message: str = "Operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        """Serialize for API error payloads."""
        return {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
        }


# =============================================================================
# Kind bases
# =============================================================================


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    kind = ErrorKind.NOT_FOUND
    code = "not_found"
    default_message = "Entity not found"


class ConflictError(DomainError):
    """Raised when the current state forbids the operation."""

    kind = ErrorKind.CONFLICT
    code = "conflict"


class InvalidInputError(DomainError):
    """Raised when caller-supplied data is invalid."""

    kind = ErrorKind.INVALID_INPUT
    code = "invalid_input"
    default_message = "Invalid input"


class NotAuthorizedError(DomainError):
    """Raised when the caller may not perform the operation."""

    kind = ErrorKind.NOT_AUTHORIZED
    code = "not_authorized"
    default_message = "Not authorized"


# =============================================================================
# Not found
# =============================================================================


class EnrollmentRequestNotFoundError(NotFoundError):
    code = "enrollment_request_not_found"
    default_message = "Enrollment request not found"


class StudentNotFoundError(NotFoundError):
    code = "student_not_found"
    default_message = "Student not found"


class LessonNotFoundError(NotFoundError):
    code = "lesson_not_found"
    default_message = "Lesson not found"


class BookingNotFoundError(NotFoundError):
    code = "booking_not_found"
    default_message = "Booking not found"


class StatsNotFoundError(NotFoundError):
    code = "stats_not_found"
    default_message = "Student stats not found"


class ExamRegistrationNotFoundError(NotFoundError):
    code = "exam_registration_not_found"
    default_message = "Exam registration not found"


# =============================================================================
# Conflict
# =============================================================================


class AlreadyEnrolledError(ConflictError):
    code = "already_enrolled"
    default_message = "Already enrolled in this school"


class RequestAlreadyPendingError(ConflictError):
    code = "request_already_pending"
    default_message = "Enrollment request already pending"


class AlreadyApprovedError(ConflictError):
    code = "already_approved"
    default_message = "Already approved for this school"


class AlreadyProcessedError(ConflictError):
    code = "already_processed"
    default_message = "Request already processed"


class DuplicateBookingError(ConflictError):
    code = "duplicate_booking"
    default_message = "Student already booked this lesson"


class LessonFullError(ConflictError):
    code = "lesson_full"
    default_message = "Lesson is full"


class LessonNotAvailableError(ConflictError):
    code = "lesson_not_available"
    default_message = "Lesson is not available for booking"


class LessonHasBookingsError(ConflictError):
    code = "lesson_has_bookings"
    default_message = "Cannot cancel lesson with bookings"


class AttendanceAlreadyMarkedError(ConflictError):
    code = "attendance_already_marked"
    default_message = "Cannot cancel booking with marked attendance"


class AttendanceNotMarkedError(ConflictError):
    code = "attendance_not_marked"
    default_message = "Attendance has not been marked for this booking"


class DuplicateRequestError(ConflictError):
    code = "duplicate_request"
    default_message = "A request with this idempotency key is already being processed"


# =============================================================================
# Invalid input
# =============================================================================


class InvalidRatingError(InvalidInputError):
    code = "invalid_rating"
    default_message = "Rating must be between 1 and 5"


class InvalidAmountError(InvalidInputError):
    code = "invalid_amount"
    default_message = "Amount must be greater than 0"


class InvalidPaymentMethodError(InvalidInputError):
    code = "invalid_payment_method"
    default_message = "Payment method is required"


class InvalidRejectionReasonError(InvalidInputError):
    code = "invalid_rejection_reason"
    default_message = "Rejection reason is required"


class InvalidNotesError(InvalidInputError):
    code = "invalid_notes"
    default_message = "Notes cannot be empty"


class InvalidLessonError(InvalidInputError):
    code = "invalid_lesson"
    default_message = "Invalid lesson data"


class InvalidExamTypeError(InvalidInputError):
    code = "invalid_exam_type"
    default_message = "Exam type must be 'theory' or 'practical'"


class InvalidIdentifierError(InvalidInputError):
    code = "invalid_identifier"
    default_message = "Identifier is not a valid UUID"


class InvalidIdempotencyKeyError(InvalidInputError):
    code = "invalid_idempotency_key"
    default_message = "Idempotency key is too long"


# =============================================================================
# Not authorized
# =============================================================================


class StudentNotAuthorizedError(NotAuthorizedError):
    code = "student_not_authorized"
    default_message = "Student is not authorized to book lessons"


class ForbiddenRoleError(NotAuthorizedError):
    code = "forbidden_role"
    default_message = "Role is not allowed to perform this operation"
