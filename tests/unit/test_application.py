# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the application container."""

import pytest

from src.core.application import CoreApplication
from src.core.config import Settings
from src.core.config.settings import BookingSettings, DatabaseSettings
from src.infrastructure.events import EventBus


@pytest.fixture
def settings():
    """Settings pointing at an unreachable database; no connection is opened."""
    return Settings(
        database=DatabaseSettings(host="db.invalid", port=5432),
        booking=BookingSettings(lock_timeout_ms=1200, min_rejection_reason_length=15),
    )


class TestCoreApplication:
    """Tests for service wiring and lifecycle."""

    def test_services_share_store_and_bus(self, settings):
        """Test every service is built on the same store and bus."""
        bus = EventBus()

        app = CoreApplication(settings, event_bus=bus)

        assert app.store.lock_timeout_ms == 1200
        for service in (app.enrollment, app.lessons, app.bookings, app.progress, app.profiles):
            assert service.store is app.store
            assert service.event_bus is bus
        assert app.verification.store is app.store

    def test_booking_settings_reach_enrollment(self, settings):
        """Test business-rule settings are injected."""
        app = CoreApplication(settings)

        assert app.enrollment.settings.min_rejection_reason_length == 15

    @pytest.mark.asyncio
    async def test_lifecycle(self, settings):
        """Test the engine is created on enter and disposed on exit."""
        app = CoreApplication(settings)

        async with app as running:
            assert running is app
            assert app.database.is_connected is True

        assert app.database.is_connected is False
