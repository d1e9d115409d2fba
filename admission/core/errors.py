"""Application-level exception types.

Limiters never raise from ``try_acquire()``; configuration problems are the
only failures and they surface at construction time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and callers."""

    code: str
    message: str
    hint: str
    field: str
    min_value: int
    actual_value: Any
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for admission-control failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class InvalidConfigurationError(AppError):
    """Raised when a limiter is constructed with unusable parameters."""


def require_positive(value: int, *, field: str, code: str) -> int:
    """Validate that a construction parameter is a positive integer.

    Args:
        value: Value supplied by the caller.
        field: Parameter name, used in the error message.
        code: Error code to raise with.

    Returns:
        The validated value.

    Raises:
        InvalidConfigurationError: If value is not an int or is < 1.
    """

    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidConfigurationError(
            code=code,
            message=f"{field} must be a positive integer",
            details={"field": field, "min_value": 1, "actual_value": value},
        )
    return value
