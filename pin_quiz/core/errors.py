"""Exceptions raised by the quiz services and translated at the HTTP boundary."""

from __future__ import annotations


class EntityNotFoundError(LookupError):
    """Raised when a referenced id or PIN does not resolve to a record."""

    def __init__(self, kind: str, key: str) -> None:
        super().__init__(f"{kind} '{key}' not found")
        self.kind = kind
        self.key = key


class SessionTransitionError(RuntimeError):
    """Raised when a session status change is not allowed from its current state."""


class AnswerRejectedError(RuntimeError):
    """Raised when an answer cannot be accepted for the current question."""


class JoinRejectedError(RuntimeError):
    """Raised when a player tries to join a session that is no longer waiting."""
