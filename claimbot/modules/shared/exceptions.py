"""
Domain exceptions for the Code Claim Bot.

Purpose
-------
Exceptions raised for claim-policy decisions and bad input. These are
expected outcomes, not faults: the coordinator turns them into outcome
values and the cog renders them as friendly messages.

Design Notes
------------
- All domain exceptions inherit from `ClaimBotDomainException`.
- Same structured fields as the infrastructure hierarchy (message, details,
  severity, is_retryable, error_code) so logging treats both alike.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from claimbot.core.exceptions import ErrorSeverity


class ClaimBotDomainException(Exception):
    """
    Base exception for domain-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.is_retryable: bool = (
            is_retryable if is_retryable is not None else self.DEFAULT_RETRYABLE
        )
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"


class QuotaExceededError(ClaimBotDomainException):
    """
    Raised when a user already holds as many codes as the quota allows.

    Args:
        user_id: Claimant identifier
        limit: Configured maximum claims per user
        current: Claims the user already holds
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(self, user_id: str, limit: int, current: int) -> None:
        self.user_id = user_id
        self.limit = limit
        self.current = current
        super().__init__(
            f"User {user_id} holds {current} of {limit} allowed claims",
            details={"user_id": user_id, "limit": limit, "current": current},
            error_code="QUOTA_EXCEEDED",
        )


class ValidationError(ClaimBotDomainException):
    """Raised when input fails validation before touching the store."""

    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(
            f"Invalid {field}: {message}",
            details={"field": field, "reason": message},
            error_code="VALIDATION_ERROR",
        )
