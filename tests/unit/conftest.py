# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fixtures for service-level unit tests.

Services run against the in-memory record store and a real EventBus
whose published events are captured for assertions.
"""

from uuid import uuid4

import pytest

from src.core.config import BookingSettings
from src.domains.access import Actor, Role
from src.domains.booking import BookingService, LessonService
from src.domains.enrollment import EnrollmentService
from src.domains.profile import ProfileService
from src.domains.progress import ProgressService
from src.domains.verification import VerificationService
from src.infrastructure.events import EventBus, EventData
from tests.unit.memory_store import InMemoryRecordStore


@pytest.fixture
def store() -> InMemoryRecordStore:
    """Create an empty in-memory record store."""
    return InMemoryRecordStore()


@pytest.fixture
def event_bus() -> EventBus:
    """Create an isolated event bus."""
    return EventBus()


@pytest.fixture
def published(event_bus: EventBus) -> list[EventData]:
    """Collect every event published on the bus."""
    events: list[EventData] = []

    async def collect(event: EventData) -> None:
        events.append(event)

    event_bus.subscribe("*", collect)
    return events


# =============================================================================
# Actors
# =============================================================================


@pytest.fixture
def instructor() -> Actor:
    """Create an instructor actor."""
    return Actor(user_id=str(uuid4()), role=Role.INSTRUCTOR)


@pytest.fixture
def admin() -> Actor:
    """Create an admin actor."""
    return Actor(user_id=str(uuid4()), role=Role.ADMIN)


@pytest.fixture
def student_actor(user_id: str) -> Actor:
    """Create a student actor."""
    return Actor(user_id=user_id, role=Role.STUDENT)


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def enrollment_service(store, event_bus) -> EnrollmentService:
    """Create enrollment service over the in-memory store."""
    return EnrollmentService(store, event_bus, BookingSettings())


@pytest.fixture
def lesson_service(store, event_bus) -> LessonService:
    """Create lesson service over the in-memory store."""
    return LessonService(store, event_bus)


@pytest.fixture
def booking_service(store, event_bus) -> BookingService:
    """Create booking service over the in-memory store."""
    return BookingService(store, event_bus)


@pytest.fixture
def progress_service(store, event_bus) -> ProgressService:
    """Create progress service over the in-memory store."""
    return ProgressService(store, event_bus)


@pytest.fixture
def verification_service(store) -> VerificationService:
    """Create verification service over the in-memory store."""
    return VerificationService(store)


@pytest.fixture
def profile_service(store, event_bus) -> ProfileService:
    """Create profile service over the in-memory store."""
    return ProfileService(store, event_bus)


# =============================================================================
# Seeded records
# =============================================================================


@pytest.fixture
def student(store, school_id):
    """Create an authorized student at the sample school."""
    return store.insert_student(school_id=school_id, authorized=True, name="Camille Martin")


@pytest.fixture
def lesson(store, school_id):
    """Create a scheduled single-seat lesson tomorrow."""
    return store.insert_lesson(school_id=school_id, type="CODE", capacity=1)
