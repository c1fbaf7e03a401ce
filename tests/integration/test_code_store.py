"""
Integration Tests for CodeStore
===============================

Test Coverage
-------------
- Import filtering, dedup and idempotence
- Atomic claim: ordering, exclusion, exhaustion
- Exactly-once allocation under concurrent claimants
- Quota re-check inside the claim transaction
- Rollback on storage faults
- Statistics and claimant counts
- Claimed-code / claim-record consistency

Testing Strategy
----------------
Every test runs against its own SQLite file through the real
DatabaseService (BEGIN IMMEDIATE transactions, busy timeout). The claim
and concurrency classes run again on a PostgreSQL testcontainer, which
exercises the advisory lock, FOR UPDATE SKIP LOCKED and the statement
timeout.
"""

import asyncio

import pytest

from claimbot.core.exceptions import StoreFaultError
from claimbot.database.models import ClaimRecord
from claimbot.modules.codes.store import CodeStats
from claimbot.modules.shared.exceptions import QuotaExceededError
from tests.conftest import BOTH_BACKENDS, fetch_claim_records, fetch_codes, insert_codes


# ============================================================================
# IMPORT
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
class TestBulkLoad:
    async def test_filters_entries(self, code_store, db_service):
        inserted = await code_store.bulk_load(
            ["ABC123", "", "  ", "!help", "has-addcode-inside", "XY"]
        )

        assert inserted == 1
        assert [c.code for c in await fetch_codes(db_service)] == ["ABC123"]

    async def test_trims_and_dedups_preserving_order(self, code_store, db_service):
        inserted = await code_store.bulk_load(["  BBB111 ", "AAA222", "BBB111", "AAA222\r"])

        assert inserted == 2
        assert [c.code for c in await fetch_codes(db_service)] == ["BBB111", "AAA222"]

    async def test_second_load_is_noop(self, code_store, db_service):
        assert await code_store.bulk_load(["AAA111", "BBB222"]) == 2

        assert await code_store.bulk_load(["CCC333"]) == 0
        assert await code_store.count_codes() == 2

    async def test_nothing_importable(self, code_store):
        assert await code_store.bulk_load(["", "!x", "ab"]) == 0
        assert await code_store.count_codes() == 0

    async def test_imported_codes_start_unclaimed(self, code_store, db_service):
        await code_store.bulk_load(["AAA111"])

        (code,) = await fetch_codes(db_service)
        assert code.is_claimed is False
        assert code.claimed_by is None
        assert code.claimed_at is None


# ============================================================================
# ATOMIC CLAIM
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
@BOTH_BACKENDS
class TestClaimOne:
    async def test_claims_lowest_id_first(self, code_store, db_service):
        await insert_codes(db_service, ["FIRST1", "SECOND", "THIRD3"])

        assert await code_store.claim_one("u1") == "FIRST1"
        assert await code_store.claim_one("u2") == "SECOND"

    async def test_marks_code_and_writes_record(self, code_store, db_service):
        await insert_codes(db_service, ["AAA111"])

        await code_store.claim_one("u1")

        (code,) = await fetch_codes(db_service)
        assert code.is_claimed is True
        assert code.claimed_by == "u1"
        assert code.claimed_at is not None

        (record,) = await fetch_claim_records(db_service)
        assert record.user_id == "u1"
        assert record.code == "AAA111"

    async def test_skips_excluded_codes(self, code_store, db_service):
        await insert_codes(db_service, ["!cmd", "xxaddcodexx", "AB", "GOOD01"])

        assert await code_store.claim_one("u1") == "GOOD01"
        assert await code_store.claim_one("u2") is None

    async def test_exhausted_returns_none_without_writes(self, code_store, db_service):
        assert await code_store.claim_one("u1") is None
        assert await fetch_claim_records(db_service) == []

    async def test_quota_recheck_raises(self, code_store, db_service):
        await insert_codes(db_service, ["AAA111", "BBB222"])
        await code_store.claim_one("u1", max_claims=1)

        with pytest.raises(QuotaExceededError) as exc_info:
            await code_store.claim_one("u1", max_claims=1)

        assert exc_info.value.current == 1
        assert exc_info.value.limit == 1
        assert await code_store.count_user_claims("u1") == 1
        assert (await code_store.get_stats()).available == 1

    async def test_no_quota_allows_repeat_claims(self, code_store, db_service):
        await insert_codes(db_service, ["AAA111", "BBB222"])

        assert await code_store.claim_one("u1") == "AAA111"
        assert await code_store.claim_one("u1", max_claims=0) == "BBB222"
        assert await code_store.count_user_claims("u1") == 2

    async def test_fault_rolls_back_everything(self, mocker, code_store, db_service):
        await insert_codes(db_service, ["AAA111"])

        def broken_record(**kwargs):
            # NOT NULL violation on user_id surfaces at commit.
            return ClaimRecord(user_id=None, code=kwargs["code"], claimed_at=kwargs["claimed_at"])

        mocker.patch("claimbot.modules.codes.store.ClaimRecord", side_effect=broken_record)

        with pytest.raises(StoreFaultError) as exc_info:
            await code_store.claim_one("u1")

        assert exc_info.value.operation == "claim_one"
        (code,) = await fetch_codes(db_service)
        assert code.is_claimed is False
        assert code.claimed_by is None
        assert await fetch_claim_records(db_service) == []


# ============================================================================
# CONCURRENCY
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
@BOTH_BACKENDS
class TestConcurrentClaims:
    async def test_exactly_once_allocation(self, code_store, db_service):
        await insert_codes(db_service, ["CODE01", "CODE02", "CODE03"])

        results = await asyncio.gather(
            *(code_store.claim_one(f"user{i}") for i in range(10))
        )

        granted = [r for r in results if r is not None]
        assert sorted(granted) == ["CODE01", "CODE02", "CODE03"]
        assert results.count(None) == 7
        assert len(await fetch_claim_records(db_service)) == 3

    async def test_same_user_concurrent_quota(self, coordinator, db_service):
        await insert_codes(db_service, [f"CODE{i:02d}" for i in range(5)])

        outcomes = await asyncio.gather(*(coordinator.request_claim("42") for _ in range(5)))

        assert sum(o.is_granted for o in outcomes) == 1
        assert len(await fetch_claim_records(db_service)) == 1

    async def test_distinct_users_each_get_a_code(self, coordinator, db_service):
        await insert_codes(db_service, [f"CODE{i:02d}" for i in range(5)])

        outcomes = await asyncio.gather(*(coordinator.request_claim(str(i)) for i in range(5)))

        codes = [o.code for o in outcomes if o.is_granted]
        assert len(codes) == 5
        assert len(set(codes)) == 5


# ============================================================================
# STATISTICS & CONSISTENCY
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
class TestStatistics:
    async def test_stats_accuracy(self, code_store, db_service):
        await insert_codes(db_service, ["AAA111", "BBB222", "CCC333", "DDD444", "EEE555"])
        await code_store.claim_one("u1")
        await code_store.claim_one("u2")

        assert await code_store.get_stats() == CodeStats(available=3, claimed=2)

    async def test_stats_ignore_excluded_codes(self, code_store, db_service):
        await insert_codes(db_service, ["AAA111", "!bad", "XY"])

        assert await code_store.get_stats() == CodeStats(available=1, claimed=0)
        assert await code_store.count_codes() == 3

    async def test_empty_store_stats(self, code_store):
        stats = await code_store.get_stats()
        assert stats == CodeStats(available=0, claimed=0)
        assert stats.claimed_percentage == 0.0

    async def test_distinct_claimants_counts_users_once(self, code_store, db_service):
        await insert_codes(db_service, ["AAA111", "BBB222", "CCC333"])
        await code_store.claim_one("u1")
        await code_store.claim_one("u1")
        await code_store.claim_one("u2")

        assert await code_store.count_distinct_claimants() == 2
        assert await code_store.count_user_claims("u1") == 2
        assert await code_store.count_user_claims("nobody") == 0

    async def test_claimed_codes_match_claim_records(self, code_store, db_service):
        await insert_codes(db_service, [f"CODE{i:02d}" for i in range(6)])
        await asyncio.gather(*(code_store.claim_one(f"user{i % 4}") for i in range(8)))

        codes = await fetch_codes(db_service)
        records = await fetch_claim_records(db_service)

        claimed = {c.code: c.claimed_by for c in codes if c.is_claimed}
        assert {r.code: r.user_id for r in records} == claimed
        assert len(records) == len(claimed) == 6
        for code in codes:
            if not code.is_claimed:
                assert code.claimed_by is None and code.claimed_at is None
