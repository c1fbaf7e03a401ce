"""
Centralized emoji definitions for the claim bot UI.

Usage:
    from claimbot.ui.emojis import Emojis

    title = f"{Emojis.GIFT} Claim Your Code!"
"""


class Emojis:
    """Centralized emoji constants (Unicode only)."""

    # ═══════════════════════════════════════════════════════════════
    # CLAIM FLOW
    # ═══════════════════════════════════════════════════════════════
    GIFT = "🎁"
    SUCCESS = "✅"
    ERROR = "❌"

    # ═══════════════════════════════════════════════════════════════
    # STATISTICS
    # ═══════════════════════════════════════════════════════════════
    STATS = "📊"
    TOTAL = "📦"
    CLAIMED = "🎯"
    PERCENT = "📈"
    USERS = "👥"
    CALENDAR = "📅"

    # ═══════════════════════════════════════════════════════════════
    # SYSTEM
    # ═══════════════════════════════════════════════════════════════
    TIP = "💡"
