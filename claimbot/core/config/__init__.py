"""
Configuration package.

Static, environment-driven configuration for the bot. Import `Config`
directly; values are loaded and validated on first import.
"""

from claimbot.core.config.config import Config, Environment

__all__ = ["Config", "Environment"]
