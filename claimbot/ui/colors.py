"""
Color palette for Discord embeds.

All colors are Discord-compatible integers (0xRRGGBB format).
"""


class ColorPalette:
    # =========================================================================
    # CORE STATUS COLORS
    # =========================================================================

    SUCCESS = 0x57F287  # Green
    ERROR = 0xED4245    # Red

    # =========================================================================
    # CLAIM FEATURE COLORS
    # =========================================================================

    CLAIM_PANEL = 0x00AE86  # Teal (panel + admin statistics)
    CLAIM_SUCCESS = 0x57F287
