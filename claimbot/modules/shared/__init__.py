from claimbot.modules.shared.base_service import BaseService
from claimbot.modules.shared.exceptions import (
    ClaimBotDomainException,
    QuotaExceededError,
    ValidationError,
)

__all__ = [
    "BaseService",
    "ClaimBotDomainException",
    "QuotaExceededError",
    "ValidationError",
]
