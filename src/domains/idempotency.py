# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Idempotency key helpers shared by non-idempotent operations.

A caller-supplied key is recorded in the same transaction as the
mutation it guards, together with a JSON snapshot of the result. A
replay with the same key returns that snapshot and changes nothing.
"""

import logging
from typing import TypeVar

from pydantic import BaseModel

from src.domains.errors import InvalidIdempotencyKeyError
from src.domains.store import StoreSession

logger = logging.getLogger(__name__)

# Length of the idempotency_keys.key column
MAX_KEY_LENGTH = 255

ModelT = TypeVar("ModelT", bound=BaseModel)


class IdempotencyScope:
    """Namespaces for idempotency keys."""

    BOOK_LESSON = "book_lesson"
    CANCEL_BOOKING = "cancel_booking"
    LESSON_COMPLETION = "lesson_completion"


async def find_replay(
    tx: StoreSession,
    scope: str,
    key: str | None,
    model: type[ModelT],
) -> ModelT | None:
    """Return the recorded result for a key, if the key was already used.

    Args:
        tx: Current store session.
        scope: Operation namespace.
        key: Caller-supplied key; None disables the lookup.
        model: Response model the snapshot is parsed into.

    Raises:
        InvalidIdempotencyKeyError: If the key is empty or too long.
    """
    if key is None:
        return None
    _check_key(key)
    entry = await tx.idempotency.get(scope, key)
    if entry is None:
        return None
    logger.debug("Idempotent replay: scope=%s, key=%s", scope, key)
    return model.model_validate(entry.response)


async def remember(
    tx: StoreSession,
    scope: str,
    key: str | None,
    resource_id: str | None,
    result: BaseModel,
) -> None:
    """Record a key with the result it produced. No-op without a key."""
    if key is None:
        return
    _check_key(key)
    await tx.idempotency.record(
        scope,
        key,
        resource_id=resource_id,
        response=result.model_dump(mode="json"),
    )


def _check_key(key: str) -> None:
    if not key.strip():
        raise InvalidIdempotencyKeyError("Idempotency key cannot be empty")
    if len(key) > MAX_KEY_LENGTH:
        raise InvalidIdempotencyKeyError(
            f"Idempotency key must be at most {MAX_KEY_LENGTH} characters"
        )
