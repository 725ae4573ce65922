"""
Branch access guard (``fleet_services.access_guard``).

Responsibility:
    Decides whether an actor may operate on records of a given branch.
    Pure functions over an explicit ``ActorContext``; no session, no
    ambient request state.

Architecture position:
    Services -- policy helper consumed by the purchasing and sales services
    before any validation that does not need the order loaded (create), or
    right after loading the order (get/update/remove/receive/invoice).

Invariants enforced:
    - Unrestricted roles may access every branch.
    - Any other actor may only access its own branch; an actor without a
      branch is denied.

Failure modes:
    - ``BranchAccessDeniedError`` from ``assert_branch_access``.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from fleet_kernel.domain.context import ActorContext
from fleet_kernel.exceptions import BranchAccessDeniedError
from fleet_kernel.logging_config import get_logger

logger = get_logger("services.access_guard")

DEFAULT_UNRESTRICTED_ROLES: tuple[str, ...] = ("ADMIN",)


def is_unrestricted(
    actor: ActorContext,
    unrestricted_roles: Iterable[str] = DEFAULT_UNRESTRICTED_ROLES,
) -> bool:
    return actor.role in tuple(unrestricted_roles)


def check_branch_access(
    actor: ActorContext,
    target_branch_id: UUID,
    unrestricted_roles: Iterable[str] = DEFAULT_UNRESTRICTED_ROLES,
) -> tuple[bool, str | None]:
    """
    Return ``(allowed, reason)``; ``reason`` is None when allowed.
    """
    if is_unrestricted(actor, unrestricted_roles):
        return True, None
    if actor.branch_id is None:
        return False, "actor is not assigned to a branch"
    if actor.branch_id != target_branch_id:
        return False, "target branch differs from actor branch"
    return True, None


def assert_branch_access(
    actor: ActorContext,
    target_branch_id: UUID,
    unrestricted_roles: Iterable[str] = DEFAULT_UNRESTRICTED_ROLES,
) -> None:
    """
    Raises:
        BranchAccessDeniedError: The actor may not access ``target_branch_id``.
    """
    allowed, reason = check_branch_access(actor, target_branch_id, unrestricted_roles)
    if not allowed:
        logger.warning(
            "branch_access_denied",
            extra={
                "actor_id": str(actor.user_id),
                "actor_branch_id": str(actor.branch_id) if actor.branch_id else None,
                "role": actor.role,
                "target_branch_id": str(target_branch_id),
                "reason": reason,
            },
        )
        raise BranchAccessDeniedError(
            str(actor.branch_id) if actor.branch_id else None,
            actor.role,
            str(target_branch_id),
        )


def scope_branch_filter(
    actor: ActorContext,
    branch_id: UUID | None,
    unrestricted_roles: Iterable[str] = DEFAULT_UNRESTRICTED_ROLES,
) -> UUID | None:
    """
    Effective branch filter for a listing.

    An explicit filter is checked against the actor.  Without one, a
    restricted actor is scoped to its own branch and an unrestricted actor
    sees every branch.
    """
    if branch_id is not None:
        assert_branch_access(actor, branch_id, unrestricted_roles)
        return branch_id
    if is_unrestricted(actor, unrestricted_roles):
        return None
    if actor.branch_id is None:
        raise BranchAccessDeniedError(None, actor.role, "*")
    return actor.branch_id
