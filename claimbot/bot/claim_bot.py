"""
Code Claim Bot - Main Bot Class

Purpose
-------
discord.py bot wired with its dependencies through the constructor.

Responsibilities
----------------
- Discord integration (intents, prefix, events)
- Register the persistent claim panel view and the claim cog
- Publish the claim panel once the gateway is ready
- Global error handling for prefix commands

Non-Responsibilities
--------------------
- Infrastructure initialization (claimbot.main)
- Claim logic (ClaimCoordinator / CodeStore)
"""

from __future__ import annotations

from typing import Dict, Optional

import discord
from discord.ext import commands

from claimbot.core.config.config import Config
from claimbot.core.exceptions import ClaimBotInfrastructureException
from claimbot.core.logging.logger import LogContext, get_logger
from claimbot.modules.claims.cog import ClaimCog
from claimbot.modules.claims.coordinator import ClaimCoordinator
from claimbot.modules.codes.store import CodeStore
from claimbot.modules.shared.exceptions import ClaimBotDomainException
from claimbot.ui.embeds import EmbedFactory
from claimbot.ui.views.claim_panel import ClaimPanelView

logger = get_logger(__name__)


class ClaimBot(commands.Bot):
    """
    Discord bot hosting the claim panel and admin commands.

    Dependencies (Injected):
    - store: CodeStore for the admin statistics
    - coordinator: ClaimCoordinator behind the claim button
    - channel_id: channel hosting the claim panel (None disables publishing)
    """

    def __init__(
        self,
        store: CodeStore,
        coordinator: ClaimCoordinator,
        channel_id: Optional[int] = None,
        command_prefix: str = "!",
    ) -> None:
        self.store = store
        self.coordinator = coordinator
        self.channel_id = channel_id

        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True

        super().__init__(
            command_prefix=command_prefix,
            intents=intents,
            help_command=None,
            case_insensitive=True,
            description=Config.BOT_DESCRIPTION,
        )

        self.panel_view = ClaimPanelView(coordinator)
        self.bot_ready: bool = False
        self.panel_published: bool = False
        self.errors_by_type: Dict[str, int] = {}

        logger.debug("ClaimBot initialized with dependency injection")

    # --------------------------------------------------------------- #
    # Startup and Initialization
    # --------------------------------------------------------------- #

    async def setup_hook(self) -> None:
        """Register the persistent view and load the claim cog."""
        self.add_view(self.panel_view)
        await self.add_cog(
            ClaimCog(
                self,
                store=self.store,
                coordinator=self.coordinator,
                panel_view=self.panel_view,
                channel_id=self.channel_id,
            )
        )
        logger.info("✓ Claim cog loaded and panel view registered")

    @property
    def claim_cog(self) -> Optional[ClaimCog]:
        cog = self.get_cog("ClaimCog")
        return cog if isinstance(cog, ClaimCog) else None

    # --------------------------------------------------------------- #
    # Discord Events
    # --------------------------------------------------------------- #

    async def on_ready(self) -> None:
        """Bot is connected; publish the panel on the first ready event only."""
        self.bot_ready = True

        logger.info("=" * 60)
        logger.info("Bot is ONLINE as %s", self.user)
        logger.info("Guilds: %d", len(self.guilds))
        logger.info("=" * 60)

        # on_ready fires again after every reconnect.
        if self.panel_published:
            return

        cog = self.claim_cog
        if cog is not None and await cog.ensure_claim_panel() is not None:
            self.panel_published = True

    # --------------------------------------------------------------- #
    # Error Handling - Prefix Commands
    # --------------------------------------------------------------- #

    async def on_command_error(self, ctx: commands.Context, error: Exception) -> None:
        """
        Global error handler for prefix commands.

        Framework errors get a short embed; anything unexpected is logged
        with context and answered generically.
        """
        async with LogContext(
            user_id=ctx.author.id,
            guild_id=ctx.guild.id if ctx.guild else None,
            command=f"prefix:{ctx.command}" if ctx.command else "unknown",
        ):
            if isinstance(error, commands.CommandNotFound):
                return

            original = getattr(error, "original", error)
            error_type = type(original).__name__
            self.errors_by_type[error_type] = self.errors_by_type.get(error_type, 0) + 1

            if isinstance(error, commands.NoPrivateMessage):
                await ctx.send(
                    embed=EmbedFactory.error(
                        title="Server Only",
                        description="This command can only be used in a server.",
                    )
                )
                return

            if isinstance(error, (commands.MissingPermissions, commands.CheckFailure)):
                await ctx.send(
                    embed=EmbedFactory.error(
                        title="Permission Denied",
                        description="You lack permission to use this command.",
                    )
                )
                return

            if isinstance(original, ClaimBotDomainException):
                logger.info(
                    "Domain exception in command handler",
                    extra={"error_code": original.error_code, "error": str(original)},
                )
                await ctx.send(
                    embed=EmbedFactory.error(
                        title="Error",
                        description=original.message,
                        help_text="If this persists, contact an administrator.",
                    )
                )
                return

            if isinstance(original, ClaimBotInfrastructureException):
                logger.error(
                    "Infrastructure exception in command handler",
                    extra={"error_code": original.error_code, "error": str(original)},
                    exc_info=original,
                )
                await ctx.send(
                    embed=EmbedFactory.error(
                        title="Service Unavailable",
                        description="The bot could not complete this command right now.",
                        help_text="Try again in a moment.",
                    )
                )
                return

            logger.error(
                "Unhandled command error",
                extra={
                    "command": str(ctx.command),
                    "error": str(error),
                    "error_type": error_type,
                },
                exc_info=original,
            )
            await ctx.send(
                embed=EmbedFactory.error(
                    title="Unexpected Error",
                    description="Something went wrong while processing your command.",
                    help_text="The issue has been logged.",
                )
            )

    # --------------------------------------------------------------- #
    # Graceful Shutdown
    # --------------------------------------------------------------- #

    async def close(self) -> None:
        logger.info("ClaimBot shutting down")
        if self.errors_by_type:
            logger.info("Command errors by type", extra={"errors_by_type": self.errors_by_type})
        await super().close()
        logger.info("✓ Bot shutdown complete")
