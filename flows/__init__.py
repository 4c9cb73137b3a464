"""Per-screen state machines for the interview and game flows."""

from __future__ import annotations


class FlowError(Exception):
    """User-facing validation failure inside a flow."""


class InvalidTransition(FlowError):
    """A transition was attempted from a state that does not allow it."""

    def __init__(self, action: str, state: str) -> None:
        super().__init__(f"Cannot {action} while {state}")
        self.action = action
        self.state = state


class EvaluationError(FlowError):
    """The agent replied, but nothing usable could be extracted from it."""
