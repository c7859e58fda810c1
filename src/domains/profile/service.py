# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Profile service for student profile and financial aggregation.

This module provides the ProfileService class for:
- Composing the complete student profile seen by instructors
- Lesson and exam history for a student at a school
- Financial summary of paid and outstanding amounts
- Instructor notes and payment recording

Profile reads are derived from the student, booking, exam registration
and lesson counter records; nothing here is stored separately.
"""

import logging
from collections.abc import Iterable
from decimal import Decimal

from src.domains.access import Actor, ensure_staff
from src.domains.errors import (
    BookingNotFoundError,
    ExamRegistrationNotFoundError,
    InvalidAmountError,
    InvalidNotesError,
    InvalidPaymentMethodError,
    StudentNotFoundError,
)
from src.domains.store import RecordStore
from src.infrastructure.events import EventBus, EventTypes
from src.models.common import ExamResult
from src.models.enrollment import StudentResponse
from src.models.lesson import BookingResponse
from src.models.profile import (
    ExamHistory,
    ExamRegistrationResponse,
    FinancialSummary,
    LessonHistory,
    MarkPaidRequest,
    StudentProfile,
)
from src.utils.datetime import latest, utc_now

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Bounds of the amount and payment_method columns
MAX_PAYMENT_AMOUNT = Decimal("99999999.99")
MAX_PAYMENT_METHOD_LENGTH = 50


def _validate_payment(request: MarkPaidRequest) -> str:
    if request.amount <= 0:
        raise InvalidAmountError()
    if request.amount > MAX_PAYMENT_AMOUNT:
        raise InvalidAmountError(f"Amount must not exceed {MAX_PAYMENT_AMOUNT}")
    method = request.payment_method.strip()
    if not method:
        raise InvalidPaymentMethodError()
    if len(method) > MAX_PAYMENT_METHOD_LENGTH:
        raise InvalidPaymentMethodError(
            f"Payment method must be at most {MAX_PAYMENT_METHOD_LENGTH} characters"
        )
    return method


def _split_amounts(entries: Iterable[tuple[bool, Decimal | None, Decimal]]) -> tuple[Decimal, Decimal]:
    """Sum (paid, amount, list price) entries into (revenue, pending).

    Unpaid entries without an agreed amount fall back to the list price.
    """
    revenue = ZERO
    pending = ZERO
    for paid, amount, price in entries:
        if paid:
            revenue += amount or ZERO
        else:
            pending += amount if amount is not None else price
    return revenue, pending


class ProfileService:
    """Service for student profile aggregation.

    Attributes:
        store: Record store.
        event_bus: Bus notified after payments are recorded.
    """

    def __init__(self, store: RecordStore, event_bus: EventBus | None = None) -> None:
        self.store = store
        self.event_bus = event_bus or EventBus()

    async def get_complete_profile(self, student_id: str, school_id: str) -> StudentProfile:
        """Get a student's profile with lesson and exam totals.

        Args:
            student_id: Student record identity.
            school_id: School the profile is viewed from.

        Returns:
            Profile with total_lessons (bookings at the school),
            completed_lessons (recorded completions), total_exams and
            passed_exams.

        Raises:
            StudentNotFoundError: If the student is not registered at the school.
        """
        async with self.store.transaction() as tx:
            student = await tx.students.get(student_id)
            if student is None or student.school_id != school_id:
                raise StudentNotFoundError()

            lessons = await tx.bookings.list_history(student_id, school_id)
            exams = await tx.exam_registrations.list_history(student_id, school_id)
            stats = await tx.stats.get(student_id, school_id)

            basic = StudentResponse.model_validate(student)
            profile = StudentProfile(
                id=basic.id,
                user_id=basic.user_id,
                school_id=basic.school_id,
                name=student.name,
                email=student.email,
                phone=student.phone,
                address=student.address,
                date_of_birth=student.date_of_birth,
                license_number=student.license_number,
                profile_photo_url=student.profile_photo_url,
                enrollment_date=basic.enrollment_date,
                emergency_contact=student.emergency_contact,
                emergency_phone=student.emergency_phone,
                total_lessons=len(lessons),
                completed_lessons=stats.completed_lessons if stats is not None else 0,
                total_exams=len(exams),
                passed_exams=sum(
                    1 for registration, _ in exams if registration.result == ExamResult.PASSED.value
                ),
                notes=student.notes,
            )

        return profile

    async def get_student_lessons(self, student_id: str, school_id: str) -> list[LessonHistory]:
        """Booked lessons at a school, most recent lesson first."""
        async with self.store.transaction() as tx:
            rows = await tx.bookings.list_history(student_id, school_id)
            return [
                LessonHistory(
                    id=booking.id,
                    lesson_id=lesson.id,
                    lesson_type=lesson.type,
                    date_time=lesson.date_time,
                    duration=lesson.duration_minutes,
                    instructor_id=lesson.instructor_id,
                    attended=booking.attended,
                    feedback=booking.feedback,
                    rating=booking.rating,
                    paid=booking.paid,
                    amount=booking.amount,
                    payment_date=booking.payment_date,
                    payment_method=booking.payment_method,
                )
                for booking, lesson in rows
            ]

    async def get_student_exams(self, student_id: str, school_id: str) -> list[ExamHistory]:
        """Exam registrations at a school, most recent exam first."""
        async with self.store.transaction() as tx:
            rows = await tx.exam_registrations.list_history(student_id, school_id)
            return [
                ExamHistory(
                    id=registration.id,
                    exam_id=exam.id,
                    exam_type=exam.type,
                    date_time=exam.date_time,
                    result=registration.result,
                    score=registration.score,
                    notes=registration.notes,
                    paid=registration.paid,
                    amount=registration.amount,
                    payment_date=registration.payment_date,
                    payment_method=registration.payment_method,
                )
                for registration, exam in rows
            ]

    async def get_financial_summary(self, student_id: str, school_id: str) -> FinancialSummary:
        """Compute paid and outstanding amounts for a student at a school.

        Revenue sums the amounts of paid items. Pending sums the amount of
        unpaid items, or the list price when no amount was agreed.
        ``total_due`` equals ``total_pending``.
        """
        async with self.store.transaction() as tx:
            lessons = await tx.bookings.list_history(student_id, school_id)
            exams = await tx.exam_registrations.list_history(student_id, school_id)

            lessons_revenue, lessons_pending = _split_amounts(
                (booking.paid, booking.amount, lesson.price) for booking, lesson in lessons
            )
            exams_revenue, exams_pending = _split_amounts(
                (registration.paid, registration.amount, exam.price) for registration, exam in exams
            )
            last_payment_date = latest(
                *(booking.payment_date for booking, _ in lessons if booking.paid),
                *(registration.payment_date for registration, _ in exams if registration.paid),
            )

        total_pending = lessons_pending + exams_pending
        return FinancialSummary(
            total_revenue=lessons_revenue + exams_revenue,
            total_pending=total_pending,
            total_due=total_pending,
            lessons_revenue=lessons_revenue,
            exams_revenue=exams_revenue,
            lessons_pending=lessons_pending,
            exams_pending=exams_pending,
            last_payment_date=last_payment_date,
        )

    async def update_notes(self, student_id: str, notes: str, actor: Actor) -> StudentResponse:
        """Replace the instructor notes on a student record.

        Raises:
            ForbiddenRoleError: If the actor is not staff.
            InvalidNotesError: If notes are empty after stripping.
            StudentNotFoundError: If the student does not exist.
        """
        ensure_staff(actor)
        if not notes or not notes.strip():
            raise InvalidNotesError()

        async with self.store.transaction() as tx:
            student = await tx.students.get(student_id)
            if student is None:
                raise StudentNotFoundError()
            await tx.students.update_notes(student, notes)
            response = StudentResponse.model_validate(student)

        logger.info("Student notes updated: student=%s, by=%s", student_id, actor.user_id)
        return response

    async def mark_lesson_paid(
        self,
        booking_id: str,
        request: MarkPaidRequest,
        actor: Actor,
    ) -> BookingResponse:
        """Record payment of a lesson booking.

        Raises:
            ForbiddenRoleError: If the actor is not staff.
            InvalidAmountError: If the amount is not positive.
            InvalidPaymentMethodError: If no payment method is given.
            BookingNotFoundError: If the booking does not exist.
        """
        ensure_staff(actor)
        method = _validate_payment(request)

        async with self.store.transaction() as tx:
            booking = await tx.bookings.get(booking_id, for_update=True)
            if booking is None:
                raise BookingNotFoundError()
            await tx.bookings.mark_paid(
                booking,
                amount=request.amount,
                payment_method=method,
                paid_at=utc_now(),
            )
            response = BookingResponse.model_validate(booking)

        logger.info(
            "Lesson payment recorded: booking=%s, amount=%s, method=%s, by=%s",
            booking_id,
            request.amount,
            method,
            actor.user_id,
        )
        await self.event_bus.publish(
            EventTypes.Payment.LESSON_RECORDED,
            {
                "booking_id": booking_id,
                "student_id": response.student_id,
                "amount": str(request.amount),
                "payment_method": method,
            },
        )
        return response

    async def mark_exam_paid(
        self,
        registration_id: str,
        request: MarkPaidRequest,
        actor: Actor,
    ) -> ExamRegistrationResponse:
        """Record payment of an exam registration.

        Raises:
            ForbiddenRoleError: If the actor is not staff.
            InvalidAmountError: If the amount is not positive.
            InvalidPaymentMethodError: If no payment method is given.
            ExamRegistrationNotFoundError: If the registration does not exist.
        """
        ensure_staff(actor)
        method = _validate_payment(request)

        async with self.store.transaction() as tx:
            registration = await tx.exam_registrations.get(registration_id, for_update=True)
            if registration is None:
                raise ExamRegistrationNotFoundError()
            await tx.exam_registrations.mark_paid(
                registration,
                amount=request.amount,
                payment_method=method,
                paid_at=utc_now(),
            )
            response = ExamRegistrationResponse.model_validate(registration)

        logger.info(
            "Exam payment recorded: registration=%s, amount=%s, method=%s, by=%s",
            registration_id,
            request.amount,
            method,
            actor.user_id,
        )
        await self.event_bus.publish(
            EventTypes.Payment.EXAM_RECORDED,
            {
                "registration_id": registration_id,
                "student_id": response.student_id,
                "amount": str(request.amount),
                "payment_method": method,
            },
        )
        return response
