# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the in-memory event bus."""

from unittest.mock import AsyncMock

import pytest

from src.infrastructure.events import EventBus, EventTypes


@pytest.fixture
def bus():
    """Create an empty event bus."""
    return EventBus()


class TestSubscribe:
    """Tests for subscription and delivery."""

    @pytest.mark.asyncio
    async def test_exact_subscription(self, bus):
        """Test a handler receives its event type."""
        handler = AsyncMock()
        bus.subscribe(EventTypes.Booking.CREATED, handler)

        event = await bus.publish(EventTypes.Booking.CREATED, {"booking_id": "b-1"}, school_id="s-1")

        handler.assert_awaited_once_with(event)
        assert event.payload == {"booking_id": "b-1"}
        assert event.school_id == "s-1"

    @pytest.mark.asyncio
    async def test_other_types_not_delivered(self, bus):
        """Test a handler ignores other event types."""
        handler = AsyncMock()
        bus.subscribe(EventTypes.Booking.CREATED, handler)

        await bus.publish(EventTypes.Booking.CANCELLED, {})

        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_wildcard_subscription(self, bus):
        """Test patterns match event families."""
        handler = AsyncMock()
        bus.subscribe("booking.*", handler)

        await bus.publish(EventTypes.Booking.CREATED, {})
        await bus.publish(EventTypes.Booking.CANCELLED, {})
        await bus.publish(EventTypes.Lesson.CREATED, {})

        assert handler.await_count == 2

    @pytest.mark.asyncio
    async def test_unsubscribe(self, bus):
        """Test a removed handler stops receiving events."""
        handler = AsyncMock()
        bus.subscribe("*", handler)

        assert bus.unsubscribe("*", handler) is True
        assert bus.unsubscribe("*", handler) is False

        await bus.publish(EventTypes.Lesson.CREATED, {})
        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failing_handler_is_isolated(self, bus):
        """Test one failing handler neither raises nor blocks others."""
        failing = AsyncMock(side_effect=RuntimeError("mailer down"))
        healthy = AsyncMock()
        bus.subscribe(EventTypes.Enrollment.REQUEST_APPROVED, failing)
        bus.subscribe(EventTypes.Enrollment.REQUEST_APPROVED, healthy)

        await bus.publish(EventTypes.Enrollment.REQUEST_APPROVED, {"request_id": "r-1"})

        healthy.assert_awaited_once()


class TestStats:
    """Tests for bus statistics."""

    @pytest.mark.asyncio
    async def test_get_stats(self, bus):
        """Test subscription and publish counters."""
        bus.subscribe(EventTypes.Booking.CREATED, AsyncMock())
        bus.subscribe("lesson.*", AsyncMock())
        await bus.publish(EventTypes.Booking.CREATED, {})

        stats = bus.get_stats()

        assert stats["exact_subscriptions"] == 1
        assert stats["pattern_subscriptions"] == 1
        assert stats["total_handlers"] == 2
        assert stats["events_published"] == 1
        assert stats["patterns"] == ["lesson.*"]

    def test_clear(self, bus):
        """Test clear removes all handlers."""
        bus.subscribe("*", AsyncMock())

        bus.clear()

        assert bus.get_stats()["total_handlers"] == 0
