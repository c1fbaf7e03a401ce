"""
Database Service - Core Infrastructure Layer

Purpose
-------
Owns one async SQLAlchemy engine and its session factory. Provides the
transaction discipline every write in the bot goes through: commit on
success, rollback on any exception, re-raise.

Responsibilities
----------------
- Build the AsyncEngine from a URL plus pool settings
- Provide async context managers for read-only sessions and atomic
  transactions
- Make SQLite transactions take the write lock up front (BEGIN IMMEDIATE)
  so concurrent claimers queue on the busy timeout instead of failing with
  "database is locked" at upgrade time
- Configure statement timeouts for PostgreSQL sessions
- Create the schema on startup
- Expose a lightweight health check

Non-Responsibilities
--------------------
- Domain logic (the Code Store owns the claim algorithm)
- Retry policies (none: faults propagate)
- Migrations

Architecture Notes
------------------
The service is an ordinary object. It is constructed once in
`claimbot.main`, handed to the Code Store, and shut down on exit; tests
construct their own against a temporary SQLite file.

Usage Example
-------------
>>> db = DatabaseService("sqlite+aiosqlite:///data/codes.db")
>>> await db.initialize()
>>> async with db.get_transaction() as session:
>>>     session.add(Code(code="ABC123"))
>>>     # Automatic commit on exit
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncGenerator, Optional, Type

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool, Pool

from claimbot.core.config.config import Config
from claimbot.core.database.base import Base
from claimbot.core.logging.logger import get_logger

logger = get_logger(__name__)


class DatabaseInitializationError(RuntimeError):
    """Raised when database engine initialization fails."""


class DatabaseNotInitializedError(RuntimeError):
    """Raised when database operations are attempted before initialization."""


@dataclass(frozen=True)
class _DatabaseConfigSnapshot:
    """Immutable view of the settings the engine was built with."""

    url: str
    echo: bool
    pool_class: Type[Pool]
    pool_size: int
    max_overflow: int
    pool_recycle: int
    pool_timeout: int
    statement_timeout_ms: int
    busy_timeout_seconds: int

    @property
    def dialect_name(self) -> str:
        return make_url(self.url).get_dialect().name

    @property
    def is_postgres(self) -> bool:
        return self.dialect_name == "postgresql"

    @property
    def is_sqlite(self) -> bool:
        return self.dialect_name == "sqlite"

    @property
    def url_scheme(self) -> str:
        return self.url.split(":", 1)[0] if ":" in self.url else "unknown"


class DatabaseService:
    """
    Async engine and session management.

    Public API
    ----------
    - initialize() / shutdown()
    - create_schema()
    - get_session() -> read-only session
    - get_transaction() -> atomic write transaction
    - health_check()
    - dialect_name / is_postgres / is_sqlite
    """

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_recycle: int = 1800,
        pool_timeout: int = 30,
        statement_timeout_ms: int = 30_000,
        busy_timeout_seconds: int = 30,
        testing: bool = False,
    ) -> None:
        if not url or not isinstance(url, str):
            raise DatabaseInitializationError(
                "DATABASE_URL must be configured as a non-empty string"
            )

        is_sqlite = url.startswith("sqlite")
        # SQLite gets a fresh connection per session so each concurrent
        # claim runs on its own connection and its own write transaction.
        pool_class: Type[Pool] = NullPool if (testing or is_sqlite) else AsyncAdaptedQueuePool

        self._config = _DatabaseConfigSnapshot(
            url=url,
            echo=echo,
            pool_class=pool_class,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_recycle=pool_recycle,
            pool_timeout=pool_timeout,
            statement_timeout_ms=statement_timeout_ms,
            busy_timeout_seconds=busy_timeout_seconds,
        )
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._init_lock = asyncio.Lock()

    @classmethod
    def from_config(cls) -> "DatabaseService":
        """Build a service from the static Config values."""
        return cls(
            Config.DATABASE_URL,
            echo=Config.DATABASE_ECHO,
            pool_size=Config.DATABASE_POOL_SIZE,
            max_overflow=Config.DATABASE_MAX_OVERFLOW,
            pool_recycle=Config.DATABASE_POOL_RECYCLE,
            pool_timeout=Config.DATABASE_POOL_TIMEOUT,
            statement_timeout_ms=Config.DATABASE_STATEMENT_TIMEOUT_MS,
            busy_timeout_seconds=Config.DATABASE_BUSY_TIMEOUT_SECONDS,
            testing=Config.is_testing(),
        )

    # ========================================================================
    # Properties
    # ========================================================================

    @property
    def dialect_name(self) -> str:
        return self._config.dialect_name

    @property
    def is_postgres(self) -> bool:
        return self._config.is_postgres

    @property
    def is_sqlite(self) -> bool:
        return self._config.is_sqlite

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        self._ensure_initialized()
        assert self._engine is not None
        return self._engine

    # ========================================================================
    # Initialization & Shutdown
    # ========================================================================

    async def initialize(self) -> None:
        """
        Create the engine and session factory.

        Idempotent: a second call returns immediately.

        Raises
        ------
        DatabaseInitializationError
            If engine creation fails.
        """
        async with self._init_lock:
            if self._engine is not None:
                logger.debug("DatabaseService already initialized; skipping")
                return

            config = self._config
            logger.info(
                "Initializing DatabaseService",
                extra={"url_scheme": config.url_scheme, "pool_class": config.pool_class.__name__},
            )

            try:
                engine_kwargs: dict[str, Any] = {
                    "echo": config.echo,
                    "poolclass": config.pool_class,
                }

                if config.pool_class is AsyncAdaptedQueuePool:
                    engine_kwargs.update(
                        {
                            "pool_size": config.pool_size,
                            "max_overflow": config.max_overflow,
                            "pool_recycle": config.pool_recycle,
                            "pool_timeout": config.pool_timeout,
                            "pool_pre_ping": True,
                        }
                    )

                if config.is_sqlite:
                    self._ensure_sqlite_directory(config.url)
                    engine_kwargs["connect_args"] = {"timeout": config.busy_timeout_seconds}

                engine = create_async_engine(config.url, **engine_kwargs)

                if config.is_sqlite:
                    self._install_sqlite_transaction_hooks(engine)

                self._engine = engine
                self._session_factory = async_sessionmaker(
                    bind=engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                )

                logger.info("DatabaseService initialized successfully")

            except Exception as exc:
                logger.error(
                    "DatabaseService initialization failed",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                    exc_info=True,
                )
                raise DatabaseInitializationError(
                    f"Database initialization failed: {exc}"
                ) from exc

    @staticmethod
    def _ensure_sqlite_directory(url: str) -> None:
        database = make_url(url).database
        if database and database != ":memory:":
            Path(database).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _install_sqlite_transaction_hooks(engine: AsyncEngine) -> None:
        """
        Take over BEGIN from the sqlite driver.

        The driver's implicit BEGIN is DEFERRED: two transactions can both
        read, then one fails when upgrading to a write lock. BEGIN IMMEDIATE
        acquires the reserved lock first, so writers serialize and wait on
        the busy timeout instead.
        """

        @event.listens_for(engine.sync_engine, "connect")
        def _disable_driver_begin(dbapi_connection, connection_record):  # noqa: ANN001
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine.sync_engine, "begin")
        def _begin_immediate(conn):  # noqa: ANN001
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    async def create_schema(self) -> None:
        """Create all tables registered on the declarative Base."""
        import claimbot.database.models  # noqa: F401  (registers tables)

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ready", extra={"tables": sorted(Base.metadata.tables)})

    async def shutdown(self) -> None:
        """Dispose the engine. Safe to call multiple times."""
        async with self._init_lock:
            if self._engine is None:
                logger.debug("DatabaseService not initialized; nothing to shutdown")
                return

            logger.info("Shutting down DatabaseService")
            try:
                await self._engine.dispose()
                logger.info("DatabaseService shutdown complete")
            finally:
                self._engine = None
                self._session_factory = None

    # ========================================================================
    # Health Check
    # ========================================================================

    async def health_check(self) -> bool:
        """
        Run `SELECT 1`. Returns False instead of raising on failure.
        """
        if self._engine is None:
            logger.warning("Health check called on uninitialized DatabaseService")
            return False

        start = time.perf_counter()
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (OperationalError, DBAPIError) as exc:
            logger.warning(
                "Database health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return False
        finally:
            logger.debug(
                "Database health check completed",
                extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
            )

    # ========================================================================
    # Session & Transaction Context Managers
    # ========================================================================

    def _ensure_initialized(self) -> None:
        if self._session_factory is None or self._engine is None:
            logger.error("DatabaseService operation attempted before initialization")
            raise DatabaseNotInitializedError(
                "DatabaseService must be initialized before use. "
                "Call DatabaseService.initialize() during startup."
            )

    async def _apply_session_settings(self, session: AsyncSession) -> None:
        if self._config.is_postgres:
            await session.execute(
                text(f"SET LOCAL statement_timeout = {self._config.statement_timeout_ms}")
            )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Session without automatic commit, for reads.

        Whatever transaction the session opened is rolled back on close.
        """
        self._ensure_initialized()
        assert self._session_factory is not None

        async with self._session_factory() as session:
            await self._apply_session_settings(session)
            yield session

    @asynccontextmanager
    async def get_transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Session wrapped in an atomic transaction.

        On success the transaction commits. On any exception it rolls back
        and the original exception is re-raised. Never call
        `session.commit()` inside the block.

        >>> async with db.get_transaction() as session:
        >>>     code = (await session.execute(stmt)).scalar_one_or_none()
        >>>     ...
        """
        self._ensure_initialized()
        assert self._session_factory is not None

        start = time.perf_counter()
        async with self._session_factory() as session:
            try:
                await self._apply_session_settings(session)
                logger.debug("Database transaction started")
                yield session

                await session.commit()
                logger.debug(
                    "Database transaction committed",
                    extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
                )

            except Exception as exc:
                await session.rollback()
                logger.debug(
                    "Database transaction rolled back",
                    extra={
                        "error_type": type(exc).__name__,
                        "duration_ms": (time.perf_counter() - start) * 1000.0,
                    },
                )
                raise
