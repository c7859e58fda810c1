# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Event infrastructure module for DrivingSchool Core.

Components:
- EventBus: In-memory pub/sub with pattern matching
- EventTypes: Centralized event type constants
- EventPatterns: Wildcard subscriptions over groups of events

Architecture:
    Service → commit → EventBus.publish() → notification handlers
"""

from src.infrastructure.events.bus import EventBus, EventData, EventHandler
from src.infrastructure.events.types import EventPatterns, EventTypes

__all__ = [
    "EventBus",
    "EventData",
    "EventHandler",
    "EventTypes",
    "EventPatterns",
]
