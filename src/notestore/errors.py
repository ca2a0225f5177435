"""Exception hierarchy for notestore.

Every error carries a machine-readable :class:`ErrorCode` and a ``details``
mapping so boundary layers (CLI, HTTP) can report it without string parsing.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Error codes for machine-readable error identification."""

    # Note file errors (1xxx)
    READ_FAILED = 1001
    PARSE_FAILED = 1002

    # Collection errors (2xxx)
    ALREADY_EXISTS = 2001
    DOES_NOT_EXIST = 2002

    # List errors (3xxx)
    OUT_OF_BOUNDS = 3001

    # Configuration errors (4xxx)
    CONFIG_INVALID = 4001


class NoteStoreError(Exception):
    """Base exception for all notestore errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """

    code: ErrorCode = ErrorCode.PARSE_FAILED

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for serialization."""
        return {
            "error": self.__class__.__name__,
            "code": self.code.value,
            "code_name": self.code.name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return self.message


class ReadFailedError(NoteStoreError):
    """Raised when a note file cannot be opened or read."""

    code = ErrorCode.READ_FAILED

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(
            f"could not read note file {path!r}: {cause}",
            details={"path": path, "cause": str(cause)},
        )
        self.path = path
        self.cause = cause


class ParseFailedError(NoteStoreError):
    """Raised when note text cannot be turned into a note."""

    code = ErrorCode.PARSE_FAILED

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            f"could not parse note {path!r}: {reason}",
            details={"path": path, "reason": reason},
        )
        self.path = path
        self.reason = reason


class AlreadyExistsError(NoteStoreError, ValueError):
    """Raised when adding a note whose path is already indexed."""

    code = ErrorCode.ALREADY_EXISTS

    def __init__(self, path: str, title: str) -> None:
        super().__init__(
            f"note {path!r} ({title!r}) already exists",
            details={"path": path, "title": title},
        )
        self.path = path
        self.title = title


class DoesNotExistError(NoteStoreError, LookupError):
    """Raised when deleting a note that is not indexed."""

    code = ErrorCode.DOES_NOT_EXIST

    def __init__(self, path: str, title: str) -> None:
        super().__init__(
            f"note {path!r} ({title!r}) doesn't exist",
            details={"path": path, "title": title},
        )
        self.path = path
        self.title = title


class OutOfBoundsError(NoteStoreError, IndexError):
    """Raised when paginating past the end of a list."""

    code = ErrorCode.OUT_OF_BOUNDS

    def __init__(self, offset: int, length: int) -> None:
        super().__init__(
            f"offset {offset} is out of bounds for list of length {length}",
            details={"offset": offset, "length": length},
        )
        self.offset = offset
        self.length = length


class ConfigError(NoteStoreError):
    """Raised when a configuration file is unreadable or malformed."""

    code = ErrorCode.CONFIG_INVALID

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            f"invalid config {path!r}: {reason}",
            details={"path": path, "reason": reason},
        )
        self.path = path
        self.reason = reason
