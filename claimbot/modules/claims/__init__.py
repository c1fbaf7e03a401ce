from claimbot.modules.claims.coordinator import (
    ClaimCoordinator,
    ClaimOutcome,
    ClaimStatus,
    Exhausted,
    Fault,
    Granted,
    QuotaExceeded,
)

__all__ = [
    "ClaimCoordinator",
    "ClaimOutcome",
    "ClaimStatus",
    "Granted",
    "QuotaExceeded",
    "Exhausted",
    "Fault",
]
