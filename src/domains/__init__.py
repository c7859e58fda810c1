# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for DrivingSchool Core.

This package contains domain services that encapsulate business logic.
Each domain module provides a service that orchestrates operations
across the record store repositories inside a single transaction.

Domains:
    enrollment: Enrollment request workflow and student authorization.
    booking: Lesson scheduling and the capacity-safe booking engine.
    progress: Attendance-driven lesson progress accounting.
    verification: Enrollment checks and exam eligibility.
    profile: Read-only profile, history and financial aggregation.
"""
