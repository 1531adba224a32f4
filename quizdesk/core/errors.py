"""Exceptions raised by QuizDesk services when an action is refused."""

from __future__ import annotations


class QuizDeskError(Exception):
    """Base class for refused user actions. State is left unchanged."""


class PreconditionViolation(QuizDeskError, ValueError):
    """Raised when an action's precondition does not hold (duplicate name, occupied class, ...)."""


class EntityNotFound(QuizDeskError, LookupError):
    """Raised when a referenced user, class, quiz or attempt does not exist."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} '{entity_id}' was not found.")
        self.kind = kind
        self.entity_id = entity_id
