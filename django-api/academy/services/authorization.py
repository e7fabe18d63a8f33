"""Role rules for mutation entry points.

Roster, schedule and rank mutations belong to the master; self-service
reads and profile edits are open to the owning student as well.
"""

from academy.domain.errors import PermissionDeniedError
from academy.domain.value_objects import Actor


def require_master(actor: Actor, operation: str) -> None:
    if not actor.is_master:
        raise PermissionDeniedError(operation)


def require_owner_or_master(actor: Actor, member_id: str, operation: str) -> None:
    if not (actor.is_master or actor.owns(member_id)):
        raise PermissionDeniedError(operation)
