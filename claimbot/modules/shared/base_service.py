"""
Base Service Foundation

Purpose
-------
Common ground for the bot's domain services (Code Store, Claim
Coordinator): a named logger plus structured logging helpers.

What this class does NOT do:
- Manage database transactions (that's DatabaseService's job)
- Talk to Discord
"""

from __future__ import annotations

from logging import Logger
from typing import Any, Optional

from claimbot.core.logging.logger import get_logger
from claimbot.modules.shared.exceptions import ValidationError


class BaseService:
    """
    Base class for domain services.

    Args:
        logger: Logger to use; defaults to one named after the subclass module
    """

    def __init__(self, logger: Optional[Logger] = None) -> None:
        self.log = logger or get_logger(type(self).__module__)

    def log_operation(self, operation: str, **context: Any) -> None:
        """
        Log a service operation with structured context.

        Args:
            operation: Name of the operation being performed
            **context: Additional context data
        """
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

    def log_error(
        self,
        operation: str,
        error: Exception,
        **context: Any,
    ) -> None:
        """
        Log a service error with full context.

        Args:
            operation: Name of the operation that failed
            error: The exception that occurred
            **context: Additional context data
        """
        self.log.error(
            f"Service error during {operation}: {str(error)}",
            extra={
                "operation": operation,
                "error_type": type(error).__name__,
                "error_message": str(error),
                **context,
            },
            exc_info=error,
        )

    def validate_user_id(self, user_id: Any) -> str:
        """
        Normalise a claimant identifier to a non-blank string.

        Raises:
            ValidationError: If the identifier is None or blank
        """
        if user_id is None or not str(user_id).strip():
            raise ValidationError("user_id", "claimant identifier must not be blank")
        return str(user_id).strip()
