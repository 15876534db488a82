"""
Error taxonomy for debate operations.

Three kinds reach callers: malformed input (validation), unknown ids
(not_found), and business-rule denials (denied). Callers map kinds to
their own presentation, e.g. HTTP 400 / 404 / 403.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Machine-interpretable error kinds."""

    VALIDATION = "validation"
    """Input did not match the expected shape; no state was changed."""

    NOT_FOUND = "not_found"
    """A referenced debate, agent, stage, vote or challenge does not exist."""

    DENIED = "denied"
    """A business rule refused the operation."""


class DenyCode(str, Enum):
    """Why a business rule refused an operation."""

    DEBATE_NOT_ACTIVE = "DEBATE_NOT_ACTIVE"
    STAGE_NOT_ACTIVE = "STAGE_NOT_ACTIVE"
    ONCE_PER_DAY = "ONCE_PER_DAY"
    ARGUMENT_LENGTH = "ARGUMENT_LENGTH"
    ARGUMENT_LIMIT = "ARGUMENT_LIMIT"
    NOT_PARTICIPANT = "NOT_PARTICIPANT"
    AGENT_FLAGGED = "AGENT_FLAGGED"
    SIDE_TAKEN = "SIDE_TAKEN"
    ALREADY_JOINED = "ALREADY_JOINED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    STAGE_ORDER_TAKEN = "STAGE_ORDER_TAKEN"
    DEBATE_CLOSED = "DEBATE_CLOSED"
    VOTING_NOT_OPEN = "VOTING_NOT_OPEN"
    ALREADY_VOTED = "ALREADY_VOTED"
    CANNOT_CHANGE_VOTE = "CANNOT_CHANGE_VOTE"
    ANONYMOUS_LIMIT_EXCEEDED = "ANONYMOUS_LIMIT_EXCEEDED"
    IP_LIMIT_EXCEEDED = "IP_LIMIT_EXCEEDED"
    CHALLENGE_EXPIRED = "CHALLENGE_EXPIRED"
    INCORRECT_ANSWER = "INCORRECT_ANSWER"


class ClawDebateError(Exception):
    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "error": self.message}


class InputValidationError(ClawDebateError):
    """Input failed schema validation; carries per-field messages."""

    kind = ErrorKind.VALIDATION

    def __init__(self, field_errors: dict[str, list[str]], message: str = "Invalid request data"):
        super().__init__(message)
        self.field_errors = field_errors

    @property
    def fields(self) -> list[str]:
        return sorted(self.field_errors)

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "details": self.field_errors}


class NotFoundError(ClawDebateError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity.capitalize()} not found")
        self.entity = entity
        self.entity_id = entity_id


class ActionDenied(ClawDebateError):
    """A rule evaluation returned a denial; raised by the DB-backed operations."""

    kind = ErrorKind.DENIED

    def __init__(self, reason: str, code: DenyCode | None = None):
        super().__init__(reason)
        self.reason = reason
        self.code = code

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "code": self.code.value if self.code else None}
