"""
Claim Coordinator

Purpose
-------
Turns a claim request into exactly one outcome value. Applies the per-user
quota, delegates allocation to the Code Store, and converts every store
exception into a `Fault` so nothing raw reaches the Discord layer.

Quota
-----
The coordinator pre-checks `count_user_claims` to avoid opening a write
transaction for a request that will be rejected anyway. The store repeats
the check inside the claim transaction, so two simultaneous presses from
one user cannot both be granted; a `QuotaExceededError` from that re-check
maps to the same `QuotaExceeded` outcome.

Outcomes
--------
- Granted(code)
- QuotaExceeded(claims_held, limit)
- Exhausted()
- Fault(diagnostic, error_code): diagnostic is for logs, never for users
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from claimbot.core.exceptions import ClaimBotInfrastructureException
from claimbot.modules.codes.store import CodeStore
from claimbot.modules.shared.base_service import BaseService
from claimbot.modules.shared.exceptions import QuotaExceededError, ValidationError


class ClaimStatus(Enum):
    GRANTED = "granted"
    QUOTA_EXCEEDED = "quota_exceeded"
    EXHAUSTED = "exhausted"
    FAULT = "fault"


@dataclass(frozen=True)
class Granted:
    code: str

    status = ClaimStatus.GRANTED

    @property
    def is_granted(self) -> bool:
        return True


@dataclass(frozen=True)
class QuotaExceeded:
    claims_held: int
    limit: int

    status = ClaimStatus.QUOTA_EXCEEDED

    @property
    def is_granted(self) -> bool:
        return False


@dataclass(frozen=True)
class Exhausted:
    status = ClaimStatus.EXHAUSTED

    @property
    def is_granted(self) -> bool:
        return False


@dataclass(frozen=True)
class Fault:
    diagnostic: str
    error_code: str = "UNKNOWN"

    status = ClaimStatus.FAULT

    @property
    def is_granted(self) -> bool:
        return False


ClaimOutcome = Union[Granted, QuotaExceeded, Exhausted, Fault]


class ClaimCoordinator(BaseService):
    """
    Quota policy on top of the Code Store.

    Args:
        store: CodeStore shared with the admin commands
        max_claims_per_user: Claim limit per user; <= 0 disables the check
    """

    def __init__(self, store: CodeStore, max_claims_per_user: int = 1) -> None:
        super().__init__()
        self.store = store
        self.max_claims_per_user = max_claims_per_user

    @property
    def quota_enabled(self) -> bool:
        return self.max_claims_per_user > 0

    async def request_claim(self, user_id: str) -> ClaimOutcome:
        """
        Resolve one claim request. Never raises.

        Args:
            user_id: Discord user id as a string
        """
        try:
            user_id = self.validate_user_id(user_id)
        except ValidationError as exc:
            self.log.warning(
                "Rejected claim request",
                extra={"error_code": exc.error_code, **exc.details},
            )
            return Fault(diagnostic=exc.message, error_code=exc.error_code)

        limit = self.max_claims_per_user if self.quota_enabled else None

        try:
            if limit is not None:
                held = await self.store.count_user_claims(user_id)
                if held >= limit:
                    self.log.info(
                        "Claim rejected: quota reached",
                        extra={"user_id": user_id, "claims_held": held, "limit": limit},
                    )
                    return QuotaExceeded(claims_held=held, limit=limit)

            code = await self.store.claim_one(user_id, max_claims=limit)

        except QuotaExceededError as exc:
            self.log.info(
                "Claim rejected: quota reached during allocation",
                extra={"user_id": user_id, "claims_held": exc.current, "limit": exc.limit},
            )
            return QuotaExceeded(claims_held=exc.current, limit=exc.limit)

        except ClaimBotInfrastructureException as exc:
            self.log_error("request_claim", exc, user_id=user_id, error_code=exc.error_code)
            return Fault(diagnostic=str(exc), error_code=exc.error_code)

        except Exception as exc:
            self.log_error("request_claim", exc, user_id=user_id)
            return Fault(diagnostic=f"{type(exc).__name__}: {exc}")

        if code is None:
            self.log.info("Claim rejected: no codes available", extra={"user_id": user_id})
            return Exhausted()

        self.log.info("Code claimed", extra={"user_id": user_id, "code": code})
        return Granted(code=code)
