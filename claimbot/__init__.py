"""Code Claim Bot: hands out one-time codes through a Discord button."""

__version__ = "1.0.0"
