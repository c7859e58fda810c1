# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain package.

This package provides the enrollment request workflow:
- Submitting enrollment requests to a school
- Approving requests (which authorizes the student) or rejecting them
- Deriving enrollment status for a (user, school) pair
"""

from src.domains.enrollment.service import EnrollmentService

__all__ = [
    "EnrollmentService",
]
