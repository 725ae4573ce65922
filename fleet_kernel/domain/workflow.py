"""
Canonical workflow types (``fleet_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for order state machines.  Used by the purchasing and
sales modules so that Transition and Workflow are defined once, together
with the single check every status change goes through.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions.
* A status only changes along a declared transition (``require_transition``).
"""

from __future__ import annotations

from dataclasses import dataclass

from fleet_kernel.exceptions import InvalidTransitionError


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``manual=True`` marks transitions a user may request directly through
    an order update; the others are driven by fulfillment (receive/invoice).
    """
    from_state: str
    to_state: str
    action: str
    manual: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for an order lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    Guarantees: ``initial_state`` is a member of ``states``.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state {self.initial_state} "
                "is not a declared state"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Workflow {self.name}: transition {t.from_state} -> "
                    f"{t.to_state} references an undeclared state"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"Workflow {self.name}: terminal state {t.from_state} "
                    "has an outgoing transition"
                )

    def find(self, from_state: str, to_state: str) -> Transition | None:
        """Return the transition between two states, if declared."""
        for t in self.transitions:
            if t.from_state == from_state and t.to_state == to_state:
                return t
        return None

    def can_transition(self, from_state: str, to_state: str) -> bool:
        return self.find(from_state, to_state) is not None

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states

    def manual_targets(self, from_state: str) -> tuple[str, ...]:
        """States reachable from ``from_state`` through a manual action."""
        return tuple(
            t.to_state
            for t in self.transitions
            if t.from_state == from_state and t.manual
        )


def require_transition(
    workflow: Workflow,
    from_state: str,
    to_state: str,
    *,
    manual: bool = False,
) -> Transition:
    """
    Return the declared transition or raise InvalidTransitionError.

    When ``manual`` is True the transition must also be flagged as a
    manual action.
    """
    transition = workflow.find(from_state, to_state)
    if transition is None or (manual and not transition.manual):
        raise InvalidTransitionError(workflow.name, from_state, to_state)
    return transition
