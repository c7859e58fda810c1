# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for PostgreSQL connections.

This package provides:
- connection: the async engine and session factory
- models: SQLAlchemy ORM tables
- repositories: SQLAlchemy implementation of the record store
- migrations: programmatic schema migrations

Example:
    from src.infrastructure.database import Database
    from src.infrastructure.database.repositories import SQLAlchemyRecordStore

    database = Database(settings.database)
    await database.connect()
    store = SQLAlchemyRecordStore(database)
"""

from src.infrastructure.database.connection import Database, DatabaseError

__all__ = [
    "Database",
    "DatabaseError",
]
