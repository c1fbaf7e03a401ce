"""
Persistent claim panel.

One primary button (custom id `claim_code`) that survives restarts: the
view has no timeout and is registered with `bot.add_view()` at setup, so
discord.py routes presses on panels posted by earlier runs to it.

Each press is deferred ephemerally first (the claim may wait on the
database write lock), then the outcome is rendered into the deferred
response.
"""

from __future__ import annotations

from typing import Optional, Tuple

import discord

from claimbot.core.logging.logger import LogContext, get_logger
from claimbot.modules.claims.coordinator import (
    ClaimCoordinator,
    ClaimOutcome,
    Exhausted,
    Fault,
    Granted,
    QuotaExceeded,
)
from claimbot.ui.embeds import EmbedFactory
from claimbot.ui.emojis import Emojis

CLAIM_BUTTON_ID = "claim_code"

QUOTA_EXCEEDED_TEXT = f"{Emojis.ERROR} You have already claimed the maximum number of codes allowed."
EXHAUSTED_TEXT = f"{Emojis.ERROR} Sorry, no codes are currently available."
FAULT_TEXT = f"{Emojis.ERROR} An error occurred while claiming your code. Please try again later."

logger = get_logger(__name__)


def render_claim_outcome(outcome: ClaimOutcome) -> Tuple[Optional[str], Optional[discord.Embed]]:
    """Map an outcome to (content, embed) for the ephemeral reply."""
    if isinstance(outcome, Granted):
        return None, EmbedFactory.claim_success(outcome.code)
    if isinstance(outcome, QuotaExceeded):
        return QUOTA_EXCEEDED_TEXT, None
    if isinstance(outcome, Exhausted):
        return EXHAUSTED_TEXT, None
    if isinstance(outcome, Fault):
        return FAULT_TEXT, None
    raise TypeError(f"Unknown claim outcome: {outcome!r}")


class ClaimPanelView(discord.ui.View):
    """Button panel that hands each presser a code through the coordinator."""

    def __init__(self, coordinator: ClaimCoordinator) -> None:
        super().__init__(timeout=None)
        self.coordinator = coordinator

    @discord.ui.button(
        label="Claim Code",
        style=discord.ButtonStyle.primary,
        emoji=Emojis.GIFT,
        custom_id=CLAIM_BUTTON_ID,
    )
    async def claim_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self.handle_claim(interaction)

    async def handle_claim(self, interaction: discord.Interaction) -> None:
        async with LogContext(
            user_id=interaction.user.id,
            guild_id=interaction.guild_id,
            command=CLAIM_BUTTON_ID,
        ):
            await interaction.response.defer(ephemeral=True, thinking=True)

            outcome = await self.coordinator.request_claim(str(interaction.user.id))
            content, embed = render_claim_outcome(outcome)

            try:
                if embed is not None:
                    await interaction.edit_original_response(content=content, embed=embed)
                else:
                    await interaction.edit_original_response(content=content)
            except discord.HTTPException as exc:
                # The code is already recorded against the user at this point.
                logger.error(
                    "Failed to deliver claim response",
                    extra={
                        "status": outcome.status.value,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                    exc_info=True,
                )

    async def on_error(
        self,
        interaction: discord.Interaction,
        error: Exception,
        item: discord.ui.Item,
    ) -> None:
        logger.error(
            "Unhandled claim panel error",
            extra={
                "user_id": str(interaction.user.id),
                "error": str(error),
                "error_type": type(error).__name__,
            },
            exc_info=error,
        )
        try:
            if interaction.response.is_done():
                await interaction.followup.send(FAULT_TEXT, ephemeral=True)
            else:
                await interaction.response.send_message(FAULT_TEXT, ephemeral=True)
        except discord.HTTPException as exc:
            logger.warning(
                "Failed to send claim panel error message",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
