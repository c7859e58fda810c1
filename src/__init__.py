"""DrivingSchool Core.

Business core of a driving school platform: enrollment requests,
lesson booking under capacity constraints, attendance-driven progress
accounting, exam eligibility and financial reporting.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
