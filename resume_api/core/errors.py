"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    field: str
    http_status: int
    upstream: str
    plan_type: str
    expected_amount: int
    actual_amount: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    status_code = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input fails validation."""


class AuthenticationAppError(AppError):
    """Raised when the caller cannot be authenticated."""

    status_code = 401


class PermissionAppError(AppError):
    """Raised when an authenticated caller lacks the required role or ownership."""

    status_code = 403


class ConfigurationAppError(AppError):
    """Raised when a required secret or setting is missing."""

    status_code = 500


class UpstreamAppError(AppError):
    """Raised when Supabase or Razorpay calls fail."""

    status_code = 502


class RateLimitExceededError(AppError):
    """Raised by the HTTP guard when a caller exhausted its quota.

    Attributes:
        reset_at: Epoch milliseconds when the caller may retry.
        clock: Time source reset_at is relative to (epoch milliseconds).
    """

    status_code = 429

    def __init__(
        self,
        reset_at: int,
        identifier: str | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        super().__init__(
            code="rate_limit_exceeded",
            message="Too many requests. Please try again later.",
        )
        self.reset_at = reset_at
        self.identifier = identifier
        self.clock = clock
