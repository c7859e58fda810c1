# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared helpers for SQLAlchemy repositories."""

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.errors import InvalidIdentifierError


class SQLAlchemyRepository:
    """Base for repositories bound to one AsyncSession.

    Attributes:
        db: Session of the enclosing store transaction.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db


def is_uuid(*values: object) -> bool:
    """Check that every value is the text form of a UUID.

    Id columns are PostgreSQL UUIDs; the driver rejects anything else
    at bind time.

    >>> is_uuid("6f1c2a52-3b0e-4a8e-9d63-0c2b7a9e1f10")
    True
    >>> is_uuid("abc")
    False
    """
    for value in values:
        if not isinstance(value, str):
            return False
        try:
            UUID(value)
        except ValueError:
            return False
    return True


def require_uuid(**ids: str | None) -> None:
    """Ensure identifiers about to be written are UUIDs.

    Args:
        **ids: Identifiers by field name; None values are skipped.

    Raises:
        InvalidIdentifierError: For the first identifier that is not a UUID.
    """
    for name, value in ids.items():
        if value is not None and not is_uuid(value):
            raise InvalidIdentifierError(f"{name} is not a valid UUID")


def constraint_violated(error: IntegrityError, constraint_name: str) -> bool:
    """Check whether an IntegrityError was raised by a named constraint.

    asyncpg exposes the constraint on the driver exception chained behind
    the DBAPI adapter; other drivers only mention it in the message.

    Args:
        error: Error raised on flush.
        constraint_name: Constraint or unique index name.

    Returns:
        True if the violation came from that constraint.
    """
    orig = error.orig
    for candidate in (getattr(orig, "__cause__", None), orig):
        name = getattr(candidate, "constraint_name", None)
        if name:
            return name == constraint_name
    return constraint_name in str(orig)
