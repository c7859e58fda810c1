# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Progress domain package.

This package provides attendance-driven lesson accounting:
- Per-student, per-school completed lesson counters
- Lesson type classification into theory and practical buckets
"""

from src.domains.progress.service import (
    LessonCategory,
    ProgressService,
    classify_lesson_type,
)

__all__ = [
    "LessonCategory",
    "ProgressService",
    "classify_lesson_type",
]
