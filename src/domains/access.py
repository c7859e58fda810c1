# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Caller identity as resolved by the external auth collaborator.

Authentication and token issuance happen outside this core. By the time
a service method runs, the caller has been reduced to an opaque
``(user_id, role)`` pair represented by :class:`Actor`.
"""

from dataclasses import dataclass
from enum import Enum

from src.domains.errors import ForbiddenRoleError


class Role(str, Enum):
    """Roles issued by the identity collaborator."""

    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


STAFF_ROLES = (Role.INSTRUCTOR, Role.ADMIN)


@dataclass(frozen=True)
class Actor:
    """Authenticated caller.

    Attributes:
        user_id: Identity of the caller.
        role: Role granted by the identity collaborator.
    """

    user_id: str
    role: Role

    @property
    def is_staff(self) -> bool:
        """Whether the actor may process requests and mark attendance."""
        return self.role in STAFF_ROLES


def ensure_role(actor: Actor, *roles: Role) -> None:
    """Ensure the actor holds one of the given roles.

    Args:
        actor: Authenticated caller.
        *roles: Accepted roles.

    Raises:
        ForbiddenRoleError: If the actor's role is not accepted.
    """
    if actor.role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise ForbiddenRoleError(
            f"Role '{actor.role.value}' is not allowed; requires one of: {allowed}"
        )


def ensure_staff(actor: Actor) -> None:
    """Ensure the actor is an instructor or an admin."""
    if not actor.is_staff:
        ensure_role(actor, *STAFF_ROLES)
