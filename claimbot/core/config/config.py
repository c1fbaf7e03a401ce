"""
Static configuration management for the Code Claim Bot.

Purpose
-------
Provides centralized static configuration loaded from environment variables
(with `.env` support) and sensible defaults. Values are read once at startup;
nothing here changes at runtime.

Responsibilities
----------------
- Load configuration from environment variables with type validation
- Provide class-level access to every setting the bot needs
- Validate critical settings on startup (token, database URL, log level)
- Create the data and logs directories
- Produce a non-secret summary for startup logging

Non-Responsibilities
--------------------
- Secrets management (use environment variables)
- Database engine construction (handled by DatabaseService)

Environment Variables
---------------------
Required:
- DISCORD_TOKEN: Bot authentication token

Optional (with defaults):
- CHANNEL_ID: Channel hosting the claim panel (default: unset)
- COMMAND_PREFIX: Admin command prefix (default: "!")
- MAX_CLAIMS_PER_USER: Claim quota per user, <= 0 disables (default: 1)
- CODES_FILE: Bulk import source (default: <project>/codes.txt)
- DATABASE_URL: SQLAlchemy async URL (default: SQLite file under data/)
- DATABASE_POOL_SIZE / DATABASE_MAX_OVERFLOW: Server pool sizing
- DATABASE_BUSY_TIMEOUT_SECONDS: SQLite writer wait (default: 30)
- ENVIRONMENT: development | testing | staging | production
- LOG_LEVEL: Logging level (default: INFO)
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from claimbot.core.exceptions import ConfigurationError

load_dotenv()


class Environment(Enum):
    """Deployment environment types."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """
        Parse environment string safely with fallback.

        >>> Environment.from_string("production") is Environment.PRODUCTION
        True
        >>> Environment.from_string("nonsense") is Environment.DEVELOPMENT
        True
        """
        try:
            return cls(value.lower())
        except ValueError:
            logging.warning(f"Unknown environment '{value}', defaulting to development")
            return cls.DEVELOPMENT


class Config:
    """
    Centralized static configuration for the Code Claim Bot.

    Usage
    -----
    >>> token = Config.DISCORD_TOKEN
    >>> if Config.MAX_CLAIMS_PER_USER > 0:
    ...     ...
    >>> logger.info("Config loaded", extra=Config.get_config_summary())
    """

    _validated: bool = False
    _validation_errors: List[str] = []

    # =========================================================================
    # Discord Configuration
    # =========================================================================

    DISCORD_TOKEN: str = ""
    CHANNEL_ID: Optional[int] = None
    COMMAND_PREFIX: str = "!"

    # =========================================================================
    # Claim Policy
    # =========================================================================

    MAX_CLAIMS_PER_USER: int = 1

    # =========================================================================
    # Directory Configuration
    # =========================================================================

    PROJECT_ROOT = Path(__file__).resolve().parents[3]
    LOGS_DIR = PROJECT_ROOT / "logs"
    DATA_DIR = PROJECT_ROOT / "data"
    CODES_FILE: Path = PROJECT_ROOT / "codes.txt"

    # =========================================================================
    # Database Configuration
    # =========================================================================

    DATABASE_URL: str = f"sqlite+aiosqlite:///{DATA_DIR / 'codes.db'}"
    DATABASE_ECHO: bool = False
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_RECYCLE: int = 1800
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_STATEMENT_TIMEOUT_MS: int = 30_000
    DATABASE_BUSY_TIMEOUT_SECONDS: int = 30

    # =========================================================================
    # Environment Configuration
    # =========================================================================

    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None

    # =========================================================================
    # Bot Metadata
    # =========================================================================

    BOT_NAME: str = "Code Claim Bot"
    BOT_VERSION: str = "1.0.0"
    BOT_DESCRIPTION: str = "Hands out one-time codes to community members"

    # =========================================================================
    # Parsing Helpers
    # =========================================================================

    @classmethod
    def _record_error(cls, error: str) -> None:
        logging.warning(error)
        cls._validation_errors.append(error)

    @classmethod
    def _safe_int(
        cls,
        key: str,
        default: int,
        min_val: Optional[int] = None,
        max_val: Optional[int] = None,
    ) -> int:
        """
        Safely parse integer from environment with bounds checking.

        Out-of-range or unparsable values log a warning and fall back to
        the default.

        >>> Config._safe_int("DATABASE_POOL_SIZE", 5, min_val=1, max_val=200)
        5
        """
        raw_value = os.getenv(key)
        if raw_value is None:
            return default

        try:
            value = int(raw_value)
        except ValueError:
            cls._record_error(
                f"{key}='{raw_value}' is not a valid integer, using default {default}"
            )
            return default

        if min_val is not None and value < min_val:
            cls._record_error(
                f"{key}={value} is below minimum {min_val}, using default {default}"
            )
            return default

        if max_val is not None and value > max_val:
            cls._record_error(
                f"{key}={value} exceeds maximum {max_val}, using default {default}"
            )
            return default

        return value

    @classmethod
    def _safe_optional_int(cls, key: str) -> Optional[int]:
        """Parse an optional integer; unset or invalid yields None."""
        raw_value = os.getenv(key)
        if raw_value is None or not raw_value.strip():
            return None

        try:
            return int(raw_value)
        except ValueError:
            cls._record_error(f"{key}='{raw_value}' is not a valid integer, ignoring")
            return None

    @classmethod
    def _safe_bool(cls, key: str, default: bool) -> bool:
        """
        Safely parse boolean from environment.

        Recognizes: true/false, yes/no, 1/0, on/off (case-insensitive).
        """
        raw_value = os.getenv(key)
        if raw_value is None:
            return default

        normalized = raw_value.lower().strip()
        if normalized in {"true", "yes", "1", "on"}:
            return True
        if normalized in {"false", "no", "0", "off"}:
            return False

        cls._record_error(
            f"{key}='{raw_value}' is not a valid boolean, using default {default}"
        )
        return default

    @classmethod
    def _safe_str(cls, key: str, default: str, required: bool = False) -> str:
        value = os.getenv(key, default)
        if required and not value:
            error = f"Required environment variable {key} is not set"
            logging.error(error)
            cls._validation_errors.append(error)
        return value

    # =========================================================================
    # Configuration Loading
    # =========================================================================

    @classmethod
    def load(cls) -> None:
        """Load all configuration from environment variables."""
        cls._validation_errors = []

        # Discord
        cls.DISCORD_TOKEN = cls._safe_str("DISCORD_TOKEN", "", required=True)
        cls.CHANNEL_ID = cls._safe_optional_int("CHANNEL_ID")
        cls.COMMAND_PREFIX = cls._safe_str("COMMAND_PREFIX", "!")

        # Claim policy (no lower bound: <= 0 disables the quota)
        cls.MAX_CLAIMS_PER_USER = cls._safe_int("MAX_CLAIMS_PER_USER", 1)
        cls.CODES_FILE = Path(cls._safe_str("CODES_FILE", str(cls.PROJECT_ROOT / "codes.txt")))

        # Database
        cls.DATABASE_URL = cls._safe_str(
            "DATABASE_URL",
            f"sqlite+aiosqlite:///{cls.DATA_DIR / 'codes.db'}",
        )
        cls.DATABASE_ECHO = cls._safe_bool("DATABASE_ECHO", False)
        cls.DATABASE_POOL_SIZE = cls._safe_int(
            "DATABASE_POOL_SIZE", 5, min_val=1, max_val=200
        )
        cls.DATABASE_MAX_OVERFLOW = cls._safe_int(
            "DATABASE_MAX_OVERFLOW", 10, min_val=0, max_val=200
        )
        cls.DATABASE_POOL_RECYCLE = cls._safe_int(
            "DATABASE_POOL_RECYCLE", 1800, min_val=60
        )
        cls.DATABASE_POOL_TIMEOUT = cls._safe_int(
            "DATABASE_POOL_TIMEOUT", 30, min_val=1
        )
        cls.DATABASE_STATEMENT_TIMEOUT_MS = cls._safe_int(
            "DATABASE_STATEMENT_TIMEOUT_MS", 30_000, min_val=100
        )
        cls.DATABASE_BUSY_TIMEOUT_SECONDS = cls._safe_int(
            "DATABASE_BUSY_TIMEOUT_SECONDS", 30, min_val=1, max_val=600
        )

        # Environment
        cls.ENVIRONMENT = Environment.from_string(
            cls._safe_str("ENVIRONMENT", "development")
        ).value
        cls.DEBUG = cls._safe_bool("DEBUG", False)
        cls.LOG_LEVEL = cls._safe_str("LOG_LEVEL", "INFO")
        cls.LOG_JSON = (
            cls._safe_bool("LOG_JSON", False) if os.getenv("LOG_JSON") is not None else None
        )

    @classmethod
    def validate(cls) -> None:
        """
        Validate critical configuration values on startup.

        Raises
        ------
        ConfigurationError
            If required values are missing and the bot runs in production.
            Other environments only log the problem so tests and tooling
            can import the package without a token.
        """
        if cls._validated:
            return

        logger = logging.getLogger(__name__)

        try:
            cls.load()

            if not cls.DISCORD_TOKEN:
                raise ConfigurationError("DISCORD_TOKEN", "environment variable is required")

            if not cls.DATABASE_URL:
                raise ConfigurationError("DATABASE_URL", "environment variable is required")

            if cls.CHANNEL_ID is None:
                logger.warning("CHANNEL_ID is not set; the claim panel will not be posted")

            valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
            if cls.LOG_LEVEL.upper() not in valid_log_levels:
                logger.warning(f"Invalid LOG_LEVEL '{cls.LOG_LEVEL}', using INFO")
                cls.LOG_LEVEL = "INFO"

            cls.LOGS_DIR.mkdir(exist_ok=True)
            cls.DATA_DIR.mkdir(exist_ok=True)

            if cls.is_production() and cls.DEBUG:
                logger.warning("DEBUG mode enabled in production!")

            cls._validated = True

            if cls._validation_errors:
                logger.warning(f"Configuration warnings: {cls._validation_errors}")

        except Exception as e:
            logger.warning(f"Config validation warning (safe for tests): {e}")
            if cls.is_production():
                logger.error("Configuration validation failed in production!")
                raise

    # =========================================================================
    # Environment Checks
    # =========================================================================

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT.lower() == Environment.PRODUCTION.value

    @classmethod
    def is_testing(cls) -> bool:
        return cls.ENVIRONMENT.lower() == Environment.TESTING.value

    @classmethod
    def quota_enabled(cls) -> bool:
        """A non-positive MAX_CLAIMS_PER_USER disables the quota check."""
        return cls.MAX_CLAIMS_PER_USER > 0

    # =========================================================================
    # Summary
    # =========================================================================

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """
        Get non-sensitive configuration summary for startup logging.

        >>> Config.get_config_summary()["discord_token_set"]
        True
        """
        return {
            "environment": cls.ENVIRONMENT,
            "debug": cls.DEBUG,
            "log_level": cls.LOG_LEVEL,
            "channel_id": cls.CHANNEL_ID,
            "command_prefix": cls.COMMAND_PREFIX,
            "max_claims_per_user": cls.MAX_CLAIMS_PER_USER,
            "codes_file": str(cls.CODES_FILE),
            "database_scheme": cls.DATABASE_URL.split(":", 1)[0],
            "bot_version": cls.BOT_VERSION,
            "discord_token_set": bool(cls.DISCORD_TOKEN),
        }


# Auto-validate on import
Config.validate()
