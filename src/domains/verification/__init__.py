# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Verification domain package."""

from src.domains.verification.service import (
    REQUIRED_LESSONS_PRACTICAL,
    REQUIRED_LESSONS_THEORY,
    VerificationService,
)

__all__ = [
    "REQUIRED_LESSONS_PRACTICAL",
    "REQUIRED_LESSONS_THEORY",
    "VerificationService",
]
