"""
Claim Cog

Discord surface of the claim feature:
- publishes (or refreshes) the claim panel in the configured channel
- admin prefix commands: codestats, detailed, updateclaim

Button presses themselves are handled by ClaimPanelView; this cog only
owns the panel message and the admin commands.
"""

from __future__ import annotations

from typing import Optional

import discord
from discord.ext import commands

from claimbot.bot.base_cog import BaseCog
from claimbot.core.exceptions import StoreFaultError
from claimbot.modules.claims.coordinator import ClaimCoordinator
from claimbot.modules.codes.store import CodeStore
from claimbot.ui.embeds import CLAIM_PANEL_TITLE, EmbedFactory
from claimbot.ui.views.claim_panel import ClaimPanelView

# How far back to look for a panel posted by a previous run.
PANEL_SEARCH_LIMIT = 10


class ClaimCog(BaseCog):
    """Claim panel publishing and admin statistics."""

    def __init__(
        self,
        bot: commands.Bot,
        store: CodeStore,
        coordinator: ClaimCoordinator,
        panel_view: ClaimPanelView,
        channel_id: Optional[int] = None,
    ) -> None:
        super().__init__(bot=bot, cog_name="ClaimCog")
        self.store = store
        self.coordinator = coordinator
        self.panel_view = panel_view
        self.channel_id = channel_id

    # ========================================================================
    # Panel publishing
    # ========================================================================

    async def ensure_claim_panel(self) -> Optional[discord.Message]:
        """
        Edit the bot's existing panel in the claim channel, or post a new one.

        Returns the panel message, or None when the channel is not configured
        or cannot be reached.
        """
        if self.channel_id is None:
            self.logger.warning("CHANNEL_ID not configured; claim panel not published")
            return None

        try:
            channel = self.bot.get_channel(self.channel_id) or await self.bot.fetch_channel(
                self.channel_id
            )
        except discord.HTTPException as exc:
            self.log_cog_error("ensure_claim_panel", exc, channel_id=self.channel_id)
            return None

        if not isinstance(channel, discord.abc.Messageable):
            self.logger.warning(
                "Claim channel cannot hold messages; claim panel not published",
                extra={"channel_id": self.channel_id, "channel_type": type(channel).__name__},
            )
            return None

        embed = EmbedFactory.claim_panel(self.coordinator.max_claims_per_user)

        try:
            existing = await self._find_existing_panel(channel)
            if existing is not None:
                await existing.edit(embed=embed, view=self.panel_view)
                self.logger.info(
                    "Updated existing claim panel",
                    extra={"channel_id": self.channel_id, "message_id": existing.id},
                )
                return existing

            message = await channel.send(embed=embed, view=self.panel_view)
            self.logger.info(
                "Posted new claim panel",
                extra={"channel_id": self.channel_id, "message_id": message.id},
            )
            return message

        except discord.HTTPException as exc:
            self.log_cog_error("ensure_claim_panel", exc, channel_id=self.channel_id)
            return None

    async def _find_existing_panel(self, channel) -> Optional[discord.Message]:
        bot_user = self.bot.user
        if bot_user is None:
            return None

        async for message in channel.history(limit=PANEL_SEARCH_LIMIT):
            if (
                message.author.id == bot_user.id
                and message.embeds
                and message.embeds[0].title == CLAIM_PANEL_TITLE
            ):
                return message
        return None

    # ========================================================================
    # Admin commands
    # ========================================================================

    @commands.command(name="codestats")
    @commands.guild_only()
    @commands.has_permissions(administrator=True)
    async def codestats(self, ctx: commands.Context) -> None:
        """Available / claimed counts."""
        self.log_command_use("codestats", ctx.author.id, ctx.guild.id if ctx.guild else None)

        try:
            stats = await self.store.get_stats()
        except StoreFaultError as exc:
            await self._report_store_fault(ctx, "codestats", exc)
            return

        await ctx.reply(EmbedFactory.stats_summary(stats), mention_author=False)

    @commands.command(name="detailed")
    @commands.guild_only()
    @commands.has_permissions(administrator=True)
    async def detailed(self, ctx: commands.Context) -> None:
        """Full statistics embed including distinct claimants."""
        self.log_command_use("detailed", ctx.author.id, ctx.guild.id if ctx.guild else None)

        try:
            stats = await self.store.get_stats()
            claimants = await self.store.count_distinct_claimants()
        except StoreFaultError as exc:
            await self._report_store_fault(ctx, "detailed", exc)
            return

        await ctx.reply(embed=EmbedFactory.detailed_stats(stats, claimants), mention_author=False)

    @commands.command(name="updateclaim")
    @commands.guild_only()
    @commands.has_permissions(administrator=True)
    async def updateclaim(self, ctx: commands.Context) -> None:
        """Re-publish the claim panel."""
        self.log_command_use("updateclaim", ctx.author.id, ctx.guild.id if ctx.guild else None)

        message = await self.ensure_claim_panel()
        if message is None:
            await self.send_error(
                ctx,
                "Panel Not Updated",
                "The claim channel could not be reached.",
                help_text="Check CHANNEL_ID and the bot's channel permissions.",
            )
            return

        await self.send_success(ctx, "Claim Panel Updated", "Updated claim message")

    async def _report_store_fault(
        self, ctx: commands.Context, operation: str, error: StoreFaultError
    ) -> None:
        self.log_cog_error(
            operation,
            error,
            user_id=ctx.author.id,
            guild_id=ctx.guild.id if ctx.guild else None,
            error_code=error.error_code,
        )
        await self.send_error(
            ctx,
            "Statistics Unavailable",
            "The code database could not be read.",
            help_text="Try again in a moment.",
        )
