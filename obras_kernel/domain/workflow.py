"""
Canonical workflow types (``obras_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for workflow state machines.  The valorization
lifecycle declares its states and edges with these types so that Guard,
Transition and Workflow are defined once and every lookup
(``find_transition``, ``outgoing``) reads from the same table.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.
    Non-goals: does not evaluate the condition -- the state machine does.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow."""
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    Guarantees: ``initial_state`` is a member of ``states``.
    ``terminal_states`` are states with no outgoing transitions.

    Raises:
        ValueError: On construction, if the table references unknown states
            or a terminal state has an outgoing edge.
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
                f"{self.name}: initial state {self.initial_state!r} not in states"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"{self.name}: transition {t.action!r} references unknown state"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"{self.name}: terminal state {t.from_state!r} has outgoing "
                    f"transition {t.action!r}"
                )

    def find_transition(self, from_state: str, to_state: str) -> Transition | None:
        """Return the edge from ``from_state`` to ``to_state``, if declared."""
        for t in self.transitions:
            if t.from_state == from_state and t.to_state == to_state:
                return t
        return None

    def outgoing(self, from_state: str) -> tuple[Transition, ...]:
        """All edges leaving ``from_state`` in declaration order."""
        return tuple(t for t in self.transitions if t.from_state == from_state)

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states
