"""Finite state machine used to track card sync outcomes on the board."""

from __future__ import annotations

from collections.abc import Mapping


class InvalidTransitionError(ValueError):
    """Raised when a card is moved to a sync state its current state cannot reach."""


class StateMachine:
    """Transition table keyed by state value; states with no targets are final."""

    def __init__(self, transitions: Mapping[str, set[str]]) -> None:
        self._transitions = {state: frozenset(targets) for state, targets in transitions.items()}

    def allowed_targets(self, current: str) -> frozenset[str]:
        return self._transitions.get(current, frozenset())

    def is_final(self, state: str) -> bool:
        return not self.allowed_targets(state)

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.allowed_targets(current)

    def assert_transition(self, current: str, target: str) -> None:
        if not self.can_transition(current, target):
            raise InvalidTransitionError(f"Card sync cannot go from {current} to {target}")
