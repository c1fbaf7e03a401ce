"""
Pytest Configuration and Fixtures for the Code Claim Bot
=========================================================

Purpose
-------
Centralized fixtures for the test suite.

Responsibilities
----------------
- Temporary SQLite database per test (real DatabaseService, real schema)
- PostgreSQL testcontainer for the claim tests that run on both backends
- CodeStore / ClaimCoordinator wired to that database
- Mocks for unit tests (store, bot, command context, interaction)

Architecture Notes
------------------
- Unit tests use mocks (fast, isolated)
- Integration tests use a fresh SQLite file under tmp_path, so every test
  starts from an empty store
- Tests parametrized indirectly over `db_backend` also run against
  PostgreSQL; the container starts once per session and the schema is
  recreated per test. Without a Docker daemon those cases are skipped.
"""

from __future__ import annotations

import os

# Must be set before claimbot.core.config is imported.
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from typing import AsyncGenerator, Generator, Iterable, List

import pytest
import pytest_asyncio
from testcontainers.postgres import PostgresContainer

from claimbot.core.database.base import Base
from claimbot.core.database.service import DatabaseService
from claimbot.core.logging.logger import clear_log_context, get_logger
from claimbot.database.models import ClaimRecord, Code
from claimbot.modules.claims.coordinator import ClaimCoordinator
from claimbot.modules.codes.store import CodeStore

logger = get_logger(__name__)


# ============================================================================
# TESTCONTAINERS FIXTURES (Integration Tests)
# ============================================================================

SQLITE = "sqlite"
POSTGRES = "postgres"

# Indirect parametrization for tests that must hold on both backends.
BOTH_BACKENDS = pytest.mark.parametrize(
    "db_backend",
    [SQLITE, pytest.param(POSTGRES, marks=pytest.mark.postgres)],
    indirect=True,
)


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL testcontainer for the dual-backend tests.

    Scope: session (container persists across all tests)
    """
    logger.info("Starting PostgreSQL testcontainer...")
    container = PostgresContainer(
        image="postgres:17-alpine",
        driver="asyncpg",
    )
    try:
        container.start()
    except Exception as exc:
        pytest.skip(f"PostgreSQL testcontainer unavailable: {exc}")

    logger.info(
        "PostgreSQL testcontainer started: %s",
        container.get_connection_url(),
    )

    yield container

    logger.info("Stopping PostgreSQL testcontainer...")
    container.stop()


# ============================================================================
# DATABASE FIXTURES (Integration Tests)
# ============================================================================


@pytest.fixture
def db_backend(request) -> str:
    """Backend for `db_service`; SQLite unless parametrized indirectly."""
    return getattr(request, "param", SQLITE)


@pytest.fixture
def database_url(request, db_backend: str, tmp_path) -> str:
    if db_backend == POSTGRES:
        container = request.getfixturevalue("postgres_container")
        return container.get_connection_url()
    return f"sqlite+aiosqlite:///{tmp_path / 'codes.db'}"


@pytest_asyncio.fixture
async def db_service(database_url: str) -> AsyncGenerator[DatabaseService, None]:
    """
    Initialised DatabaseService on an empty database.

    Scope: function (clean slate per test)
    """
    service = DatabaseService(
        database_url,
        busy_timeout_seconds=30,
        testing=True,
    )
    await service.initialize()
    if service.is_postgres:
        # The container is shared by the whole session.
        async with service.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
    await service.create_schema()

    yield service

    await service.shutdown()


@pytest.fixture
def code_store(db_service: DatabaseService) -> CodeStore:
    return CodeStore(db_service)


@pytest.fixture
def coordinator(code_store: CodeStore) -> ClaimCoordinator:
    return ClaimCoordinator(code_store, max_claims_per_user=1)


async def insert_codes(db: DatabaseService, values: Iterable[str]) -> None:
    """Insert raw codes, bypassing the import filter."""
    async with db.get_transaction() as session:
        session.add_all([Code(code=value) for value in values])


async def fetch_codes(db: DatabaseService) -> List[Code]:
    from sqlalchemy import select

    async with db.get_session() as session:
        result = await session.execute(select(Code).order_by(Code.id))
        return list(result.scalars().all())


async def fetch_claim_records(db: DatabaseService) -> List[ClaimRecord]:
    from sqlalchemy import select

    async with db.get_session() as session:
        result = await session.execute(select(ClaimRecord).order_by(ClaimRecord.id))
        return list(result.scalars().all())


# ============================================================================
# MOCK FIXTURES (Unit Tests)
# ============================================================================


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def mock_store(mocker):
    """
    Mock CodeStore for coordinator and cog tests.

    Defaults describe a fresh user and one available code.
    """
    store = mocker.MagicMock(spec=CodeStore)
    store.count_user_claims = mocker.AsyncMock(return_value=0)
    store.claim_one = mocker.AsyncMock(return_value="ABC123")
    store.get_stats = mocker.AsyncMock()
    store.count_distinct_claimants = mocker.AsyncMock(return_value=0)
    store.count_codes = mocker.AsyncMock(return_value=0)
    store.bulk_load = mocker.AsyncMock(return_value=0)
    return store


# ============================================================================
# DISCORD.PY MOCK FIXTURES (Cog / View Tests)
# ============================================================================


@pytest.fixture
def mock_bot(mocker):
    """
    Mock Discord bot for cog testing.
    """
    mock_bot = mocker.MagicMock()
    mock_bot.user = mocker.MagicMock()
    mock_bot.user.id = 123456789
    mock_bot.user.name = "TestBot"
    mock_bot.fetch_channel = mocker.AsyncMock()
    return mock_bot


@pytest.fixture
def mock_context(mocker, mock_bot):
    """
    Mock Discord command context for cog testing.
    """
    mock_ctx = mocker.MagicMock()
    mock_ctx.bot = mock_bot
    mock_ctx.author = mocker.MagicMock()
    mock_ctx.author.id = 987654321
    mock_ctx.author.name = "TestUser"
    mock_ctx.guild = mocker.MagicMock()
    mock_ctx.guild.id = 111222333
    mock_ctx.channel = mocker.MagicMock()
    mock_ctx.send = mocker.AsyncMock()
    mock_ctx.reply = mocker.AsyncMock()
    return mock_ctx


@pytest.fixture
def mock_interaction(mocker):
    """
    Mock button interaction from user 555.
    """
    interaction = mocker.MagicMock()
    interaction.user = mocker.MagicMock()
    interaction.user.id = 555
    interaction.guild_id = 111222333
    interaction.response = mocker.MagicMock()
    interaction.response.defer = mocker.AsyncMock()
    interaction.response.send_message = mocker.AsyncMock()
    interaction.response.is_done = mocker.MagicMock(return_value=True)
    interaction.followup = mocker.MagicMock()
    interaction.followup.send = mocker.AsyncMock()
    interaction.edit_original_response = mocker.AsyncMock()
    return interaction
