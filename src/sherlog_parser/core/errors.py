"""Exception taxonomy for the parsing engine and pattern learner."""

from __future__ import annotations

from .models import StreamState


class SherlogError(Exception):
    """Base class for engine errors."""


class InputError(SherlogError, ValueError):
    """Content or arguments the engine cannot work with (undecodable text, bad regex, ...)."""


class InsufficientExamples(SherlogError):
    """Pattern detection was given fewer than the required number of examples."""

    def __init__(self, given: int, required: int = 2) -> None:
        super().__init__(f"Need at least {required} distinct examples, got {given}.")
        self.given = given
        self.required = required


class NoPatternFound(SherlogError):
    """The examples share no invariant structure."""


class InvalidState(SherlogError, RuntimeError):
    """A streaming parser operation was called in a state that does not allow it."""

    def __init__(self, operation: str, state: StreamState) -> None:
        super().__init__(f"Cannot call {operation}() on a parser in state '{state.value}'.")
        self.operation = operation
        self.state = state


class MalformedResult(SherlogError, RuntimeError):
    """An internal invariant of a parse result was violated."""
