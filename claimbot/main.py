"""
Code Claim Bot - Application Entry Point
=========================================

Bootstrap
---------
- Config validation
- Logging setup
- Database initialization + schema
- Startup code import
- Store / coordinator / bot construction
- Bot lifecycle management
- Graceful shutdown

Run with ``python -m claimbot.main`` or the ``claimbot`` console script.
"""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import Optional

from claimbot.bot.claim_bot import ClaimBot
from claimbot.core.config.config import Config
from claimbot.core.database.service import DatabaseService
from claimbot.core.exceptions import ConfigurationError
from claimbot.core.logging.logger import get_logger, setup_logging, shutdown_logging
from claimbot.modules.claims.coordinator import ClaimCoordinator
from claimbot.modules.codes.importer import import_codes_file
from claimbot.modules.codes.store import CodeStore

logger = get_logger(__name__)


# ============================================================================
# Application Bootstrap
# ============================================================================

async def _startup(db: DatabaseService) -> ClaimBot:
    """Initialize all infrastructure components before launching the bot."""
    logger.info("========== CODE CLAIM BOT INITIALIZATION START ==========")

    # Step 1: Validate configuration early
    try:
        Config.validate()
        if not Config.DISCORD_TOKEN:
            raise ConfigurationError("DISCORD_TOKEN", "environment variable is required")
        logger.info("✓ Configuration validated", extra=Config.get_config_summary())
    except Exception as exc:
        logger.critical(f"Configuration validation failed: {exc}")
        raise

    # Step 2: Initialize database service and schema
    try:
        await db.initialize()
        await db.create_schema()
        logger.info("✓ Database service initialized")
    except Exception as exc:
        logger.critical(f"Database initialization failed: {exc}", exc_info=True)
        raise

    # Step 3: Import codes (never fatal)
    store = CodeStore(db)
    await import_codes_file(store, Config.CODES_FILE)
    logger.info("✓ Code import step complete")

    # Step 4: Initialize bot
    try:
        coordinator = ClaimCoordinator(store, max_claims_per_user=Config.MAX_CLAIMS_PER_USER)
        bot = ClaimBot(
            store=store,
            coordinator=coordinator,
            channel_id=Config.CHANNEL_ID,
            command_prefix=Config.COMMAND_PREFIX,
        )
        logger.info("✓ Bot initialized")
    except Exception as exc:
        logger.critical(f"Bot initialization failed: {exc}", exc_info=True)
        raise

    logger.info("========== INFRASTRUCTURE INITIALIZED SUCCESSFULLY ==========")
    return bot


# ============================================================================
# Application Shutdown
# ============================================================================

async def _shutdown(bot: Optional[ClaimBot], db: DatabaseService) -> None:
    """Gracefully shut down the bot and infrastructure services."""
    logger.info("========== CODE CLAIM BOT SHUTDOWN START ==========")

    # Step 1: Close bot if active
    if bot and not bot.is_closed():
        try:
            await bot.close()
            logger.info("✓ Bot closed")
        except Exception as exc:
            logger.error(f"Error while closing bot: {exc}", exc_info=True)

    # Step 2: Shutdown database
    try:
        await db.shutdown()
        logger.info("✓ Database service shut down")
    except Exception as exc:
        logger.error(f"Database service shutdown error: {exc}", exc_info=True)

    logger.info("========== SHUTDOWN COMPLETE ==========")


# ============================================================================
# Application Entrypoint
# ============================================================================

async def main() -> None:
    """
    Lifecycle:
        1. Validate configuration
        2. Initialize infrastructure (logging, DB, import)
        3. Start bot
        4. Handle shutdown gracefully
    """
    bot: Optional[ClaimBot] = None
    db = DatabaseService.from_config()

    try:
        bot = await _startup(db)

        logger.info("Starting Code Claim Bot...")
        await bot.start(Config.DISCORD_TOKEN)

    except asyncio.CancelledError:
        logger.warning("Asyncio task cancellation received; shutting down gracefully.")
        raise

    except KeyboardInterrupt:
        logger.info("Manual shutdown via keyboard interrupt.")

    except Exception as exc:
        logger.critical(f"Fatal startup error: {exc}", exc_info=True)
        raise SystemExit(1) from exc

    finally:
        await _shutdown(bot, db)


# ============================================================================
# Process Startup
# ============================================================================

def _install_signal_handlers(loop: asyncio.AbstractEventLoop, task: asyncio.Task) -> None:
    """Cancel the main task on SIGTERM so the finally-block shutdown runs."""
    try:
        loop.add_signal_handler(signal.SIGTERM, task.cancel)
        logger.debug("SIGTERM handler installed")
    except NotImplementedError:
        logger.debug("SIGTERM not supported on this platform (likely Windows)")


def run() -> None:
    """Console-script entry point."""
    setup_logging()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    task = loop.create_task(main())
    _install_signal_handlers(loop, task)

    try:
        loop.run_until_complete(task)
    except KeyboardInterrupt:
        logger.info("Bot manually stopped via keyboard interrupt.")
        task.cancel()
        loop.run_until_complete(asyncio.gather(task, return_exceptions=True))
    except asyncio.CancelledError:
        logger.info("Bot stopped by signal.")
    except SystemExit:
        raise
    except Exception as exc:
        logger.critical(f"Startup failure: {exc}", exc_info=True)
        sys.exit(1)
    finally:
        loop.close()
        logger.info("Event loop closed.")
        shutdown_logging()


if __name__ == "__main__":
    run()
