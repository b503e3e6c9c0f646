"""Error types for plan tracking.

Provides:
- PlanError: Base error carrying a message, machine-readable code and details
- ErrorCode: Standard error codes
- One subclass per failure category (not found, already exists,
  malformed record, invalid state, storage I/O)
"""

from typing import Any


class ErrorCode:
    """Standard error codes for plan operations."""

    PLAN_ERROR = "PLAN_ERROR"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    MALFORMED_RECORD = "MALFORMED_RECORD"
    INVALID_STATE = "INVALID_STATE"
    IO_FAILURE = "IO_FAILURE"


class PlanError(Exception):
    """Base error for plan and store failures.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        details: Additional error details
    """

    default_code = ErrorCode.PLAN_ERROR

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "success": False,
            "error": {
                "message": self.message,
                "code": self.error_code,
                "details": self.details,
            },
        }


class PlanNotFoundError(PlanError):
    """Raised when a plan is not found."""

    default_code = ErrorCode.NOT_FOUND


class StepNotFoundError(PlanNotFoundError):
    """Raised when a step id is not part of a plan."""


class PlanAlreadyExistsError(PlanError):
    """Raised when creating a plan whose name is already taken."""

    default_code = ErrorCode.ALREADY_EXISTS


class MalformedRecordError(PlanError):
    """Raised when a stored record does not fit the plan schema."""

    default_code = ErrorCode.MALFORMED_RECORD


class InvalidStateError(PlanError):
    """Raised when an operation's precondition is violated."""

    default_code = ErrorCode.INVALID_STATE


class StoreIOError(PlanError):
    """Raised when the storage medium fails."""

    default_code = ErrorCode.IO_FAILURE


class PlanUnreadableError(PlanNotFoundError, StoreIOError):
    """Raised when a plan record exists but cannot be read.

    Callers treating it as "not found" and callers treating it as an
    I/O failure both catch it.
    """

    default_code = ErrorCode.IO_FAILURE
