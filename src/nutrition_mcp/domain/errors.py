"""Error types shared by services, repositories and the tool layer."""

from enum import StrEnum


class ToolErrorKind(StrEnum):
    """Recoverable failure categories reported back to the calling agent."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"


class ToolError(Exception):
    """A recoverable failure that becomes an isError tool response."""

    kind: ToolErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailure(ToolError):
    """Malformed or contradictory tool arguments."""

    kind = ToolErrorKind.VALIDATION


class NotFoundError(ToolError):
    """A named entity does not exist for the caller."""

    kind = ToolErrorKind.NOT_FOUND


class ConflictError(ToolError):
    """A uniqueness rule would be violated."""

    kind = ToolErrorKind.CONFLICT


class IdentityError(Exception):
    """No verified caller subject is available; aborts the call."""


class DuplicateRecordError(Exception):
    """The store rejected a write because of a unique constraint."""
