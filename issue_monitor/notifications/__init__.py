"""Chat webhook notifications."""

from .discord_notifier import DiscordNotifier, classify_issue

__all__ = ["DiscordNotifier", "classify_issue"]
