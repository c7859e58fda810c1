# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Migrations are plain alembic-style modules under ``versions`` applied by
``runner.run_migrations`` without the alembic CLI.
"""
