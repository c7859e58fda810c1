# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Profile service."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from src.domains.errors import (
    BookingNotFoundError,
    ExamRegistrationNotFoundError,
    ForbiddenRoleError,
    InvalidAmountError,
    InvalidNotesError,
    InvalidPaymentMethodError,
    StudentNotFoundError,
)
from src.infrastructure.events import EventTypes
from src.models.profile import MarkPaidRequest


@pytest.fixture
def history(store, student, school_id, other_school_id):
    """Seed lessons and exams across two schools for the sample student."""
    now = datetime.now(timezone.utc)
    paid_at = now - timedelta(days=3)
    latest_paid_at = now - timedelta(days=1)

    code = store.insert_lesson(school_id=school_id, type="CODE", price=Decimal("40.00"))
    parc = store.insert_lesson(school_id=school_id, type="PARC", price=Decimal("50.00"))
    elsewhere = store.insert_lesson(school_id=other_school_id, price=Decimal("99.00"))

    store.insert_booking(
        lesson_id=code.id,
        student_id=student.id,
        attended=True,
        paid=True,
        amount=Decimal("35.00"),
        payment_method="card",
        payment_date=paid_at,
    )
    store.insert_booking(lesson_id=parc.id, student_id=student.id)
    store.insert_booking(lesson_id=elsewhere.id, student_id=student.id)

    theory = store.insert_exam(school_id=school_id, type="theory", price=Decimal("30.00"))
    practical = store.insert_exam(school_id=school_id, type="practical", price=Decimal("80.00"))
    store.insert_registration(
        exam_id=theory.id,
        student_id=student.id,
        result="passed",
        paid=True,
        amount=Decimal("30.00"),
        payment_method="cash",
        payment_date=latest_paid_at,
    )
    store.insert_registration(
        exam_id=practical.id,
        student_id=student.id,
        amount=Decimal("75.00"),
    )
    store.insert_stats(student_id=student.id, school_id=school_id, completed_lessons=1)
    return {"latest_paid_at": latest_paid_at}


class TestCompleteProfile:
    """Tests for the aggregated profile."""

    @pytest.mark.asyncio
    async def test_profile_totals(self, profile_service, student, school_id, history):
        """Test totals are computed from the school's records."""
        profile = await profile_service.get_complete_profile(student.id, school_id)

        assert profile.id == student.id
        assert profile.name == "Camille Martin"
        assert profile.total_lessons == 2
        assert profile.completed_lessons == 1
        assert profile.total_exams == 2
        assert profile.passed_exams == 1

    @pytest.mark.asyncio
    async def test_profile_without_activity(self, profile_service, student, school_id):
        """Test a new student has zero totals."""
        profile = await profile_service.get_complete_profile(student.id, school_id)

        assert profile.total_lessons == 0
        assert profile.completed_lessons == 0

    @pytest.mark.asyncio
    async def test_profile_of_other_school(self, profile_service, student, other_school_id):
        """Test a student is not visible from another school."""
        with pytest.raises(StudentNotFoundError):
            await profile_service.get_complete_profile(student.id, other_school_id)


class TestHistory:
    """Tests for lesson and exam history."""

    @pytest.mark.asyncio
    async def test_lessons_scoped_to_school(self, profile_service, student, school_id, history):
        """Test only lessons at the school are listed."""
        lessons = await profile_service.get_student_lessons(student.id, school_id)

        assert sorted(lesson.lesson_type for lesson in lessons) == ["CODE", "PARC"]
        paid = next(lesson for lesson in lessons if lesson.paid)
        assert paid.amount == Decimal("35.00")
        assert paid.attended is True

    @pytest.mark.asyncio
    async def test_exams(self, profile_service, student, school_id, history):
        """Test exam registrations are listed with their exam."""
        exams = await profile_service.get_student_exams(student.id, school_id)

        assert sorted(exam.exam_type for exam in exams) == ["practical", "theory"]


class TestFinancialSummary:
    """Tests for the financial summary."""

    @pytest.mark.asyncio
    async def test_summary(self, profile_service, student, school_id, history):
        """Test revenue, pending and last payment date."""
        summary = await profile_service.get_financial_summary(student.id, school_id)

        assert summary.lessons_revenue == Decimal("35.00")
        assert summary.exams_revenue == Decimal("30.00")
        assert summary.total_revenue == Decimal("65.00")
        # Unpaid PARC lesson at list price, unpaid exam at its agreed amount.
        assert summary.lessons_pending == Decimal("50.00")
        assert summary.exams_pending == Decimal("75.00")
        assert summary.total_pending == Decimal("125.00")
        assert summary.total_due == summary.total_pending
        assert summary.last_payment_date == history["latest_paid_at"]

    @pytest.mark.asyncio
    async def test_empty_summary(self, profile_service, student, school_id):
        """Test a student without records owes nothing."""
        summary = await profile_service.get_financial_summary(student.id, school_id)

        assert summary.total_revenue == Decimal("0")
        assert summary.total_due == Decimal("0")
        assert summary.last_payment_date is None


class TestProfileMutations:
    """Tests for notes and payments."""

    @pytest.mark.asyncio
    async def test_update_notes(self, profile_service, store, student, instructor):
        """Test notes are stored."""
        await profile_service.update_notes(student.id, "Needs work on roundabouts", instructor)

        assert store.tables["students"][student.id].notes == "Needs work on roundabouts"

    @pytest.mark.asyncio
    async def test_update_notes_empty(self, profile_service, student, instructor):
        """Test blank notes are refused."""
        with pytest.raises(InvalidNotesError):
            await profile_service.update_notes(student.id, "   ", instructor)

    @pytest.mark.asyncio
    async def test_update_notes_requires_staff(self, profile_service, student, student_actor):
        """Test students cannot edit notes."""
        with pytest.raises(ForbiddenRoleError):
            await profile_service.update_notes(student.id, "I am great", student_actor)

    @pytest.mark.asyncio
    async def test_update_notes_unknown_student(self, profile_service, instructor):
        """Test notes on an unknown student fail."""
        with pytest.raises(StudentNotFoundError):
            await profile_service.update_notes("missing", "Some notes", instructor)

    @pytest.mark.asyncio
    async def test_mark_lesson_paid(self, profile_service, store, lesson, student, admin, published):
        """Test a lesson payment is recorded."""
        booking = store.insert_booking(lesson_id=lesson.id, student_id=student.id)

        paid = await profile_service.mark_lesson_paid(
            booking.id, MarkPaidRequest(amount=Decimal("45.00"), payment_method="card"), admin
        )

        assert paid.paid is True
        assert paid.amount == Decimal("45.00")
        assert paid.payment_method == "card"
        assert paid.payment_date is not None
        assert published[-1].event_type == EventTypes.Payment.LESSON_RECORDED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
    async def test_mark_paid_non_positive_amount(self, profile_service, store, lesson, student, admin, amount):
        """Test payments must be positive."""
        booking = store.insert_booking(lesson_id=lesson.id, student_id=student.id)

        with pytest.raises(InvalidAmountError):
            await profile_service.mark_lesson_paid(
                booking.id, MarkPaidRequest(amount=amount, payment_method="card"), admin
            )

    @pytest.mark.asyncio
    async def test_mark_paid_without_method(self, profile_service, store, lesson, student, admin):
        """Test payments need a method."""
        booking = store.insert_booking(lesson_id=lesson.id, student_id=student.id)

        with pytest.raises(InvalidPaymentMethodError):
            await profile_service.mark_lesson_paid(
                booking.id, MarkPaidRequest(amount=Decimal("10"), payment_method=" "), admin
            )

    @pytest.mark.asyncio
    async def test_mark_paid_method_too_long(self, profile_service, store, lesson, student, admin):
        """Test a method longer than the stored column is refused."""
        booking = store.insert_booking(lesson_id=lesson.id, student_id=student.id)

        with pytest.raises(InvalidPaymentMethodError, match="at most 50"):
            await profile_service.mark_lesson_paid(
                booking.id, MarkPaidRequest(amount=Decimal("10"), payment_method="x" * 51), admin
            )

        assert booking.paid is False

    @pytest.mark.asyncio
    async def test_mark_paid_amount_too_large(self, profile_service, store, lesson, student, admin):
        """Test an amount beyond the stored precision is refused."""
        booking = store.insert_booking(lesson_id=lesson.id, student_id=student.id)

        with pytest.raises(InvalidAmountError):
            await profile_service.mark_lesson_paid(
                booking.id, MarkPaidRequest(amount=Decimal("100000000"), payment_method="card"), admin
            )

    @pytest.mark.asyncio
    async def test_mark_paid_method_at_limit(self, profile_service, store, lesson, student, admin):
        """Test a method of exactly 50 characters is stored."""
        booking = store.insert_booking(lesson_id=lesson.id, student_id=student.id)

        paid = await profile_service.mark_lesson_paid(
            booking.id, MarkPaidRequest(amount=Decimal("10"), payment_method="x" * 50), admin
        )

        assert paid.payment_method == "x" * 50

    @pytest.mark.asyncio
    async def test_mark_lesson_paid_not_found(self, profile_service, admin):
        """Test paying an unknown booking fails."""
        with pytest.raises(BookingNotFoundError):
            await profile_service.mark_lesson_paid(
                "missing", MarkPaidRequest(amount=Decimal("10"), payment_method="card"), admin
            )

    @pytest.mark.asyncio
    async def test_mark_exam_paid(self, profile_service, store, student, school_id, instructor, published):
        """Test an exam payment is recorded."""
        exam = store.insert_exam(school_id=school_id)
        registration = store.insert_registration(exam_id=exam.id, student_id=student.id)

        paid = await profile_service.mark_exam_paid(
            registration.id, MarkPaidRequest(amount=Decimal("30"), payment_method="transfer"), instructor
        )

        assert paid.paid is True
        assert paid.payment_method == "transfer"
        assert published[-1].event_type == EventTypes.Payment.EXAM_RECORDED

    @pytest.mark.asyncio
    async def test_mark_exam_paid_not_found(self, profile_service, instructor):
        """Test paying an unknown registration fails."""
        with pytest.raises(ExamRegistrationNotFoundError):
            await profile_service.mark_exam_paid(
                "missing", MarkPaidRequest(amount=Decimal("30"), payment_method="cash"), instructor
            )
