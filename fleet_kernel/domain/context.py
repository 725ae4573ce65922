"""
Actor context -- the authenticated caller as an explicit value.

Responsibility:
    Carries the identity, home branch, and role of whoever invokes an order
    operation.  Services receive it as their first argument; nothing reads
    the caller from ambient request state.

Architecture position:
    Kernel > Domain -- pure value object, zero I/O.
"""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class ActorContext:
    """
    The caller of an order operation.

    Guarantees:
        - ``user_id`` is recorded as ``created_by_id``/``updated_by_id``.
        - ``branch_id`` is None only for actors not bound to a branch
          (typically unrestricted roles).
        - ``role`` is compared case-sensitively against the configured
          unrestricted roles.
    """

    user_id: UUID
    branch_id: UUID | None
    role: str
