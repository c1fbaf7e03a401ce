"""
Embed factory for every Discord embed the bot sends.

Features:
- Consistent colors from ColorPalette
- Discord limits enforced on title/description/footer
- Specialized builders for the claim panel, claim receipt and statistics

Usage:
    >>> from claimbot.ui.embeds import EmbedFactory
    >>> embed = EmbedFactory.claim_panel(max_claims_per_user=1)
    >>> embed = EmbedFactory.claim_success("ABC123")
"""

from datetime import datetime, timezone
from typing import Optional

import discord

from claimbot.modules.codes.store import CodeStats
from claimbot.ui.colors import ColorPalette
from claimbot.ui.emojis import Emojis

EMBED_TITLE_LIMIT = 256
EMBED_DESCRIPTION_LIMIT = 4096
EMBED_FOOTER_LIMIT = 2048

CLAIM_PANEL_TITLE = f"{Emojis.GIFT} Claim Your Code!"
CLAIM_SUCCESS_TITLE = f"{Emojis.SUCCESS} Code Claimed Successfully!"


def truncate_text(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def claim_limit_footer(max_claims_per_user: int) -> str:
    """
    >>> claim_limit_footer(1)
    'Each user can claim 1 code'
    >>> claim_limit_footer(0)
    'No claim limit'
    """
    if max_claims_per_user <= 0:
        return "No claim limit"
    noun = "code" if max_claims_per_user == 1 else "codes"
    return f"Each user can claim {max_claims_per_user} {noun}"


class EmbedFactory:
    """Factory for standardized Discord embeds."""

    @staticmethod
    def _base_embed(
        title: str,
        description: Optional[str],
        color: int,
        footer: Optional[str] = None,
        timestamp: bool = True,
    ) -> discord.Embed:
        embed = discord.Embed(
            title=truncate_text(title, EMBED_TITLE_LIMIT),
            description=truncate_text(description, EMBED_DESCRIPTION_LIMIT) if description else None,
            color=color,
            timestamp=datetime.now(timezone.utc) if timestamp else None,
        )

        if footer:
            embed.set_footer(text=truncate_text(footer, EMBED_FOOTER_LIMIT))

        return embed

    # =========================================================================
    # CORE TYPES
    # =========================================================================

    @staticmethod
    def success(title: str, description: str, footer: Optional[str] = None) -> discord.Embed:
        return EmbedFactory._base_embed(title, description, ColorPalette.SUCCESS, footer)

    @staticmethod
    def error(
        title: str,
        description: str,
        help_text: Optional[str] = None,
    ) -> discord.Embed:
        """
        Error embeds with optional help text.

        Args:
            title: Error title
            description: Error description
            help_text: Optional helpful suggestion for user
        """
        desc = description
        if help_text:
            desc += f"\n\n{Emojis.TIP} **Help:** {help_text}"
        return EmbedFactory._base_embed(title, desc, ColorPalette.ERROR)

    # =========================================================================
    # CLAIM FLOW
    # =========================================================================

    @staticmethod
    def claim_panel(max_claims_per_user: int) -> discord.Embed:
        """Public panel that carries the claim button. No timestamp so edits don't churn."""
        return EmbedFactory._base_embed(
            CLAIM_PANEL_TITLE,
            "Click the button below to claim a unique code from our database.",
            ColorPalette.CLAIM_PANEL,
            footer=claim_limit_footer(max_claims_per_user),
            timestamp=False,
        )

    @staticmethod
    def claim_success(code: str) -> discord.Embed:
        """Ephemeral receipt; the only place a claimed code is ever shown."""
        embed = EmbedFactory._base_embed(
            CLAIM_SUCCESS_TITLE,
            f"Your code: `{code}`",
            ColorPalette.CLAIM_SUCCESS,
        )
        embed.add_field(
            name="Instructions",
            value="Save this code somewhere safe. This message will only be shown once!",
            inline=False,
        )
        return embed

    # =========================================================================
    # ADMIN STATISTICS
    # =========================================================================

    @staticmethod
    def stats_summary(stats: CodeStats) -> str:
        """Plain-text reply for the short statistics command."""
        return (
            f"{Emojis.STATS} **Code Statistics**\n"
            f"Available: {stats.available}\n"
            f"Claimed: {stats.claimed}"
        )

    @staticmethod
    def detailed_stats(stats: CodeStats, distinct_claimants: int) -> discord.Embed:
        embed = EmbedFactory._base_embed(
            f"{Emojis.STATS} Detailed Code Statistics",
            None,
            ColorPalette.CLAIM_PANEL,
        )
        updated = discord.utils.format_dt(discord.utils.utcnow(), style="f")
        fields = (
            (f"{Emojis.TOTAL} Total Codes", str(stats.total)),
            (f"{Emojis.SUCCESS} Available", str(stats.available)),
            (f"{Emojis.CLAIMED} Claimed", str(stats.claimed)),
            (f"{Emojis.PERCENT} Claimed %", f"{stats.claimed_percentage}%"),
            (f"{Emojis.USERS} Users with Codes", str(distinct_claimants)),
            (f"{Emojis.CALENDAR} Last Updated", updated),
        )
        for name, value in fields:
            embed.add_field(name=name, value=value, inline=True)
        return embed
