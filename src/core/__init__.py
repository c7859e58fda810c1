# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for DrivingSchool Core.

This package contains cross-cutting application plumbing:
- config: Application configuration and settings
- application: Process-level container wiring the store, event bus and services
"""
