"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.

The two rejection kinds of the governance engine are deliberately distinct:
``LimitExceededError`` is a quota ceiling the user can correct (delete files,
wait for the daily reset), ``RateLimitedError`` is the abuse throttle. Both
map to HTTP 429 but carry different structured details.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    kind: str
    used: float
    limit: int | None
    reason: str
    retry_after: int
    reset: int
    remaining: int
    field: str
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

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when the gateway key or the principal is missing or invalid."""


class PermissionAppError(AppError):
    """Raised when an authenticated principal lacks the required role."""


class NotFoundAppError(AppError):
    """Raised when a referenced user does not exist."""


class MailAppError(AppError):
    """Raised when the mail transport is misconfigured or delivery fails."""


class LimitExceededError(AppError):
    """Raised when a count or volume ceiling would be exceeded.

    ``details`` carries ``kind``, ``used`` and ``limit`` so callers can render
    "X of Y used" without recomputing anything.
    """

    @property
    def kind(self) -> str | None:
        return (self.details or {}).get("kind")

    @property
    def used(self) -> float | None:
        return (self.details or {}).get("used")

    @property
    def limit(self) -> int | None:
        return (self.details or {}).get("limit")


class RateLimitedError(AppError):
    """Raised when an abuse-rate limiter rejects the request.

    ``details`` carries ``retry_after``, ``limit``, ``remaining`` and ``reset``
    (all integer seconds / counts) for the ``RateLimit-*`` response headers.
    """

    @property
    def retry_after(self) -> int:
        return int((self.details or {}).get("retry_after", 0))

    def headers(self) -> dict[str, str]:
        details = self.details or {}
        retry = str(self.retry_after)
        return {
            "RateLimit-Limit": str(details.get("limit", 0)),
            "RateLimit-Remaining": str(details.get("remaining", 0)),
            "RateLimit-Reset": str(details.get("reset", retry)),
            "Retry-After": retry,
        }
