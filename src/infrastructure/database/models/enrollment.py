# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment request and student authorization tables."""

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.common import EnrollmentRequestStatus


class EnrollmentRequest(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A student's application to join a school.

    At most one pending request may exist per (student_id, school_id);
    the partial unique index enforces it at the store level.
    """

    __tablename__ = "enrollment_requests"
    __table_args__ = (
        Index(
            "uq_enrollment_requests_pending",
            "student_id",
            "school_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
        ),
        Index("ix_enrollment_requests_school_status", "school_id", "status"),
    )

    student_id: Mapped[str] = mapped_column(postgresql.UUID(as_uuid=False), nullable=False, index=True)
    school_id: Mapped[str] = mapped_column(postgresql.UUID(as_uuid=False), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=EnrollmentRequestStatus.PENDING.value,
    )
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    processed_by: Mapped[str | None] = mapped_column(postgresql.UUID(as_uuid=False), nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Student(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Authorization record: the user may book lessons at the school.

    Created exactly once per (user_id, school_id) when a request is
    approved. Profile columns are filled by the school directory.
    """

    __tablename__ = "students"
    __table_args__ = (
        UniqueConstraint("user_id", "school_id", name="uq_students_user_school"),
    )

    user_id: Mapped[str] = mapped_column(postgresql.UUID(as_uuid=False), nullable=False)
    school_id: Mapped[str] = mapped_column(postgresql.UUID(as_uuid=False), nullable=False, index=True)
    authorized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    enrollment_request_id: Mapped[str | None] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("enrollment_requests.id", ondelete="SET NULL"),
        nullable=True,
    )
    enrollment_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Profile
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    license_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    profile_photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    emergency_contact: Mapped[str | None] = mapped_column(String(200), nullable=True)
    emergency_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
