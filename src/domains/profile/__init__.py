# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Profile domain package.

This package provides read-only profile and financial views over a
student's records, plus instructor notes and payment recording.
"""

from src.domains.profile.service import ProfileService

__all__ = [
    "ProfileService",
]
