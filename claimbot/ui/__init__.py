"""
UI subsystem: emojis, colors, embeds and views.

    >>> from claimbot.ui import EmbedFactory
    >>> embed = EmbedFactory.success("Done", "Panel updated")
"""

from claimbot.ui.colors import ColorPalette
from claimbot.ui.embeds import EmbedFactory
from claimbot.ui.emojis import Emojis

__all__ = ["ColorPalette", "EmbedFactory", "Emojis"]
