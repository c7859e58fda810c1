# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment request and authorization record models."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.models.common import EnrollmentRequestStatus, ORMModel


class EnrollmentRequestCreate(BaseModel):
    """Student-submitted application to join a school."""

    student_id: str
    school_id: str
    message: str | None = Field(default=None, max_length=1000)


class EnrollmentRequestResponse(ORMModel):
    """Enrollment request as exposed to callers."""

    id: str
    student_id: str
    school_id: str
    status: EnrollmentRequestStatus
    message: str | None = None
    rejection_reason: str | None = None
    processed_by: str | None = None
    processed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class StudentResponse(ORMModel):
    """Authorization record granting a user the right to book at a school."""

    id: str
    user_id: str
    school_id: str
    authorized: bool
    enrollment_request_id: str | None = None
    enrollment_date: datetime | None = None
    created_at: datetime


class EnrollmentStatus(BaseModel):
    """Derived enrollment state for a (student, school) pair.

    ``can_book`` is the single predicate the booking engine consults.
    """

    is_enrolled: bool
    request_status: EnrollmentRequestStatus | None = None
    enrollment_date: datetime | None = None
    can_book: bool
