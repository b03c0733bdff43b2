"""Per-guild audio queue and playback sessions for chat bots."""

__version__ = "0.1.0"
