"""
Base Discord Cog

Purpose
-------
Shared plumbing for the bot's cogs: standardized feedback embeds and
structured logging with Discord context.

Non-Responsibilities
--------------------
- Business logic (delegated to the coordinator / store)
- Database transactions (owned by the Code Store)

Usage Example
-------------
>>> class ClaimCog(BaseCog):
...     def __init__(self, bot, store, coordinator):
...         super().__init__(bot=bot, cog_name="ClaimCog")
...
...     @commands.command()
...     async def updateclaim(self, ctx):
...         await self.send_success(ctx, "Panel Updated", "...")
"""

from __future__ import annotations

from typing import Any, Optional

import discord
from discord.ext import commands

from claimbot.core.logging.logger import get_logger
from claimbot.ui.embeds import EmbedFactory


class BaseCog(commands.Cog):
    """
    Base class for the bot's cogs (prefix commands).

    Attributes
    ----------
    bot : commands.Bot
        Discord bot instance
    cog_name : str
        Name of the cog for logging
    logger : Logger
        Structured logger for this cog
    """

    def __init__(self, bot: commands.Bot, cog_name: str) -> None:
        self.bot = bot
        self.cog_name = cog_name
        self.logger = get_logger(cog_name)

    # ========================================================================
    # USER FEEDBACK UTILITIES
    # ========================================================================

    async def send_error(
        self,
        ctx: commands.Context,
        title: str,
        description: str,
        help_text: Optional[str] = None,
    ) -> None:
        """Send standardized error feedback."""
        embed = EmbedFactory.error(title=title, description=description, help_text=help_text)
        await self._safe_send(ctx, embed)

    async def send_success(
        self,
        ctx: commands.Context,
        title: str,
        description: str,
        footer: Optional[str] = None,
    ) -> None:
        """Send standardized success feedback."""
        embed = EmbedFactory.success(title=title, description=description, footer=footer)
        await self._safe_send(ctx, embed)

    async def _safe_send(self, ctx: commands.Context, embed: discord.Embed) -> None:
        """
        Send an embed to the invoking context.

        Uses reply when possible, falls back to send. Delivery failures are
        logged; the command itself already ran.
        """
        try:
            if ctx.message:
                await ctx.reply(embed=embed, mention_author=False)
            else:
                await ctx.send(embed=embed)
        except discord.HTTPException as exc:
            self.logger.error(
                "Failed to send embed from BaseCog",
                extra={
                    "cog_name": self.cog_name,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
                exc_info=True,
            )

    # ========================================================================
    # LOGGING UTILITIES
    # ========================================================================

    def log_command_use(
        self,
        command_name: str,
        user_id: int,
        guild_id: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        """Log command usage with Discord context."""
        self.logger.info(
            "Command used",
            extra={
                "cog_name": self.cog_name,
                "command": command_name,
                "user_id": str(user_id),
                "guild_id": str(guild_id) if guild_id is not None else "N/A",
                **kwargs,
            },
        )

    def log_cog_error(
        self,
        operation: str,
        error: Exception,
        user_id: Optional[int] = None,
        guild_id: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        """
        Log cog-level operational errors with context.

        Args:
            operation: Logical operation name (e.g., "ensure_claim_panel")
            error: Exception that occurred
            user_id: Discord user ID if available
            guild_id: Discord guild ID if available
        """
        self.logger.error(
            f"{self.cog_name}.{operation} failed: {error}",
            exc_info=error,
            extra={
                "cog_name": self.cog_name,
                "operation": operation,
                "user_id": str(user_id) if user_id is not None else "N/A",
                "guild_id": str(guild_id) if guild_id is not None else "N/A",
                **kwargs,
            },
        )
