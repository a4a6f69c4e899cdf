from __future__ import annotations

import logging

import discord

from ..discord_client import ready_client

logger = logging.getLogger(__name__)


class GuildLookupError(Exception):
    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


async def resolve_guild(guild_id: str | None):
    """Return the bot's view of ``guild_id`` or raise :class:`GuildLookupError`."""

    if not guild_id:
        raise GuildLookupError("guildId is required", 400)
    if not guild_id.isdigit():
        raise GuildLookupError("Guild not found", 404)
    client = ready_client()
    if client is None:
        raise GuildLookupError("Bot is not ready", 503)
    guild = client.get_guild(int(guild_id))
    if guild is None:
        try:
            guild = await client.fetch_guild(int(guild_id))
        except discord.DiscordException as exc:
            logger.warning("Failed to fetch guild %s: %s", guild_id, exc)
            guild = None
    if guild is None:
        raise GuildLookupError("Guild not found", 404)
    return guild
