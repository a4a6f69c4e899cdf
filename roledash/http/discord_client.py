from __future__ import annotations

from discord.ext import commands

_bot: commands.Bot | None = None


def set_discord_client(client: commands.Bot | None) -> None:
    """Register the bot that posts and edits reaction-role messages.

    ``roledash serve`` calls this once the bot has been created and again with
    ``None`` on shutdown.
    """

    global _bot
    _bot = client


def get_discord_client() -> commands.Bot | None:
    return _bot


def ready_client() -> commands.Bot | None:
    """The registered bot if it is connected and past its first sync."""
    client = _bot
    if client is None or client.is_closed() or not client.is_ready():
        return None
    return client
