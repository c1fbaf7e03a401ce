"""
Code Store

Purpose
-------
Sole owner of the `codes` and `user_claims` tables. Loads codes in bulk,
hands out exactly one unclaimed code per successful claim, and answers the
count queries the coordinator and the admin commands need.

Responsibilities
----------------
- bulk_load: one-time import of codes (no-op once the store has codes)
- claim_one: atomic select → mark claimed → record claim
- count_user_claims / count_distinct_claimants / count_codes
- get_stats: available vs claimed among eligible codes

Non-Responsibilities
--------------------
- Quota policy decisions beyond the in-transaction re-check
  (ClaimCoordinator decides what a rejection means)
- Reading the import file (importer)
- Retries (faults surface as StoreFaultError, transaction rolled back)

Concurrency
-----------
`claim_one` runs as a single transaction that claimants pass through one
at a time:

- SQLite: DatabaseService opens every transaction with BEGIN IMMEDIATE, so
  the write lock is held from the first statement.
- PostgreSQL: a transaction-scoped advisory lock keyed on the user id
  serialises one user's requests (quota re-check), and the candidate row is
  selected FOR UPDATE SKIP LOCKED so different users never wait on, or
  receive, the same code.

The claim update is additionally guarded by `is_claimed = false` and must
touch exactly one row.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import case, func, select, text, update
from sqlalchemy.exc import SQLAlchemyError

from claimbot.core.database.service import DatabaseService
from claimbot.core.exceptions import AllocationConflictError, StoreFaultError
from claimbot.database.models import ClaimRecord, Code
from claimbot.modules.codes.patterns import eligible_clause, is_importable
from claimbot.modules.shared.base_service import BaseService
from claimbot.modules.shared.exceptions import QuotaExceededError

# Keeps IN (...) lists below SQLite's bound-parameter limit.
_IMPORT_CHUNK_SIZE = 500


@dataclass(frozen=True)
class CodeStats:
    """Counts over eligible codes only."""

    available: int
    claimed: int

    @property
    def total(self) -> int:
        return self.available + self.claimed

    @property
    def claimed_percentage(self) -> float:
        """
        >>> CodeStats(available=3, claimed=1).claimed_percentage
        25.0
        >>> CodeStats(available=0, claimed=0).claimed_percentage
        0.0
        """
        if self.total == 0:
            return 0.0
        return round(self.claimed / self.total * 100, 1)


class CodeStore(BaseService):
    """
    Persistence for codes and claim records.

    Args:
        db: Initialised DatabaseService; the store never creates its own
    """

    def __init__(self, db: DatabaseService) -> None:
        super().__init__()
        self.db = db

    # ========================================================================
    # Import
    # ========================================================================

    async def bulk_load(self, values: Iterable[str]) -> int:
        """
        Insert importable codes if the store is still empty.

        Entries are trimmed; blank and excluded entries are dropped;
        duplicates keep their first occurrence. Returns the number inserted,
        0 when the store already had codes.

        Raises:
            StoreFaultError: If the insert transaction fails
        """
        existing_total = await self.count_codes()
        if existing_total > 0:
            self.log.info(
                "Store already contains codes; skipping import",
                extra={"existing_codes": existing_total},
            )
            return 0

        candidates: List[str] = []
        seen = set()
        for raw in values:
            entry = raw.strip()
            if not is_importable(entry) or entry in seen:
                continue
            seen.add(entry)
            candidates.append(entry)

        if not candidates:
            return 0

        try:
            async with self.db.get_transaction() as session:
                already_stored = set()
                for start in range(0, len(candidates), _IMPORT_CHUNK_SIZE):
                    chunk = candidates[start:start + _IMPORT_CHUNK_SIZE]
                    result = await session.execute(
                        select(Code.code).where(Code.code.in_(chunk))
                    )
                    already_stored.update(result.scalars().all())

                new_codes = [value for value in candidates if value not in already_stored]
                session.add_all([Code(code=value) for value in new_codes])
        except SQLAlchemyError as exc:
            raise StoreFaultError("bulk_load", exc) from exc

        self.log_operation("bulk_load", inserted=len(new_codes), skipped=len(already_stored))
        return len(new_codes)

    # ========================================================================
    # Atomic claim
    # ========================================================================

    async def claim_one(self, user_id: str, max_claims: Optional[int] = None) -> Optional[str]:
        """
        Allocate the lowest-id eligible unclaimed code to `user_id`.

        Args:
            user_id: Claimant identifier
            max_claims: When positive, the user's claim count is re-checked
                inside the transaction against this limit

        Returns:
            The code value, or None when no eligible code is left

        Raises:
            QuotaExceededError: The in-transaction re-check failed
            StoreFaultError: Any storage failure; nothing was written
        """
        try:
            async with self.db.get_transaction() as session:
                if self.db.is_postgres:
                    await session.execute(
                        text("SELECT pg_advisory_xact_lock(hashtext(:user_id))"),
                        {"user_id": user_id},
                    )

                if max_claims is not None and max_claims > 0:
                    held = await session.scalar(
                        select(func.count(ClaimRecord.id)).where(ClaimRecord.user_id == user_id)
                    )
                    if held >= max_claims:
                        raise QuotaExceededError(user_id, max_claims, held)

                candidate = (
                    select(Code.id, Code.code)
                    .where(Code.is_claimed.is_(False), eligible_clause(Code.code))
                    .order_by(Code.id)
                    .limit(1)
                )
                if self.db.is_postgres:
                    candidate = candidate.with_for_update(skip_locked=True)

                row = (await session.execute(candidate)).first()
                if row is None:
                    self.log.info("No eligible codes left", extra={"user_id": user_id})
                    return None

                claimed_at = datetime.now(timezone.utc)
                result = await session.execute(
                    update(Code)
                    .where(Code.id == row.id, Code.is_claimed.is_(False))
                    .values(is_claimed=True, claimed_by=user_id, claimed_at=claimed_at)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise AllocationConflictError(row.id)

                session.add(ClaimRecord(user_id=user_id, code=row.code, claimed_at=claimed_at))
        except SQLAlchemyError as exc:
            raise StoreFaultError("claim_one", exc) from exc

        return row.code

    # ========================================================================
    # Queries
    # ========================================================================

    async def count_user_claims(self, user_id: str) -> int:
        """Number of claim records held by `user_id`."""
        stmt = select(func.count(ClaimRecord.id)).where(ClaimRecord.user_id == user_id)
        return await self._scalar_count("count_user_claims", stmt)

    async def count_distinct_claimants(self) -> int:
        stmt = select(func.count(func.distinct(ClaimRecord.user_id)))
        return await self._scalar_count("count_distinct_claimants", stmt)

    async def count_codes(self) -> int:
        """Every stored code, eligible or not."""
        return await self._scalar_count("count_codes", select(func.count(Code.id)))

    async def get_stats(self) -> CodeStats:
        """Available and claimed counts over eligible codes."""
        stmt = select(
            func.coalesce(func.sum(case((Code.is_claimed.is_(False), 1), else_=0)), 0),
            func.coalesce(func.sum(case((Code.is_claimed.is_(True), 1), else_=0)), 0),
        ).where(eligible_clause(Code.code))

        try:
            async with self.db.get_session() as session:
                available, claimed = (await session.execute(stmt)).one()
        except SQLAlchemyError as exc:
            raise StoreFaultError("get_stats", exc) from exc

        return CodeStats(available=int(available), claimed=int(claimed))

    async def _scalar_count(self, operation: str, stmt) -> int:
        try:
            async with self.db.get_session() as session:
                value = await session.scalar(stmt)
        except SQLAlchemyError as exc:
            raise StoreFaultError(operation, exc) from exc
        return int(value or 0)
