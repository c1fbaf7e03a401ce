"""
Infrastructure exceptions for the Code Claim Bot.

Purpose
-------
Structured exception hierarchy for infrastructure-level concerns: storage
faults, import faults and configuration errors. These are engineering
problems, never shown verbatim to Discord users.

Design Notes
------------
- All infrastructure exceptions inherit from `ClaimBotInfrastructureException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict)
  - `severity`: `ErrorSeverity` value for logging/alerting
  - `is_retryable`: whether the caller could reasonably try again later
  - `error_code`: short, stable identifier for programmatic use
- Nothing in the bot retries automatically; `is_retryable` only shapes the
  message a user sees ("try again later").
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for logging and alerting."""

    DEBUG = "debug"
    INFO = "info"  # Expected outcomes (quota reached, nothing left)
    WARNING = "warning"
    ERROR = "error"  # Unexpected errors requiring attention
    CRITICAL = "critical"


class ClaimBotInfrastructureException(Exception):
    """
    Base exception for infrastructure-level errors.

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

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}, "
            f"is_retryable={self.is_retryable!r}"
            ")"
        )


class ConfigurationError(ClaimBotInfrastructureException):
    """Raised when a configuration key is invalid or missing."""

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, config_key: str, message: str) -> None:
        self.config_key = config_key
        super().__init__(
            f"Configuration error for {config_key}: {message}",
            details={"config_key": config_key, "reason": message},
            error_code="CONFIG_ERROR",
        )


class StoreFaultError(ClaimBotInfrastructureException):
    """
    Raised when a Code Store operation fails at the storage layer.

    Covers I/O failures, lock timeouts, constraint violations and aborted
    transactions. The transaction has already been rolled back when this
    is raised.

    Args:
        operation: Store operation that failed (e.g. "claim_one")
        original_error: The underlying exception
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE = True

    def __init__(self, operation: str, original_error: Exception) -> None:
        self.operation = operation
        self.original_error = original_error
        super().__init__(
            f"Store fault during {operation}: {original_error}",
            details={
                "operation": operation,
                "error": str(original_error),
                "error_type": type(original_error).__name__,
            },
            error_code="STORE_FAULT",
        )


class AllocationConflictError(StoreFaultError):
    """
    The guarded claim update touched no row.

    Only possible if another writer claimed the selected code between the
    read and the write, which the store's locking is meant to rule out.
    """

    def __init__(self, code_id: int) -> None:
        self.code_id = code_id
        super().__init__(
            "claim_one",
            RuntimeError(f"code id {code_id} was no longer unclaimed at update time"),
        )
        self.error_code = "ALLOCATION_CONFLICT"


class CodeImportError(ClaimBotInfrastructureException):
    """Raised when the bulk import source cannot be read."""

    DEFAULT_SEVERITY = ErrorSeverity.WARNING

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(
            f"Could not import codes from {source}: {reason}",
            details={"source": source, "reason": reason},
            error_code="CODE_IMPORT_FAILED",
        )
