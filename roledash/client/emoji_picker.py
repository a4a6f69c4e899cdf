from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional

from ..schemas import GuildEmoji
from .form import ReactionRoleForm

logger = logging.getLogger(__name__)

COMMON_EMOJIS = [
    "👍", "👎", "❤️", "🎉", "😊", "😢", "😡", "🔥", "💯", "✅",
    "❌", "⭐", "🎮", "🎵", "📚", "💰", "🏆", "🎯", "🚀", "💎",
]

FALLBACK_EMOJI = "🎉"
CDN_URL = "https://cdn.discordapp.com/emojis/{id}.{ext}"

_CUSTOM_RE = re.compile(r"^<(a?):([A-Za-z0-9_~]+):(\d+)>$")


def format_custom_emoji(emoji: GuildEmoji) -> str:
    prefix = "a" if emoji.animated else ""
    return f"<{prefix}:{emoji.name}:{emoji.id}>"


def emoji_url(emoji_id: str, animated: bool = False) -> str:
    return CDN_URL.format(id=emoji_id, ext="gif" if animated else "png")


def describe_emoji(value: str | None, guild_emojis: Iterable[GuildEmoji] = ()) -> str:
    """Return how a stored emoji should be displayed.

    Known custom emoji resolve to their CDN image, unknown custom emoji to
    ``:name:``, unicode emoji to themselves and an empty value to a
    placeholder.
    """

    if not value or not value.strip():
        return FALLBACK_EMOJI
    value = value.strip()
    match = _CUSTOM_RE.match(value)
    if match is None:
        return value
    animated, name, emoji_id = match.groups()
    for emoji in guild_emojis:
        if emoji.id == emoji_id:
            return emoji.url or emoji_url(emoji.id, emoji.animated)
    return f":{name}:"


class EmojiPicker:
    """Popover choosing the emoji of one binding in a :class:`ReactionRoleForm`."""

    def __init__(self, form: ReactionRoleForm, store=None, guild_id: str | None = None):
        self.form = form
        self.store = store
        self.guild_id = guild_id
        self.target: Optional[int] = None
        self.guild_emojis: List[GuildEmoji] = []
        self._emojis_loaded = False

    @property
    def is_open(self) -> bool:
        return self.target is not None

    @property
    def common_emojis(self) -> List[str]:
        return list(COMMON_EMOJIS)

    def open(self, index: int) -> None:
        if not 0 <= index < len(self.form.draft.reactions):
            raise IndexError(index)
        self.target = index

    def close(self) -> None:
        self.target = None

    def handle_outside_click(self) -> None:
        self.close()

    def select(self, token: str) -> None:
        if self.target is None:
            return
        self.form.update_binding(self.target, "emoji", token)
        self.close()

    def select_guild_emoji(self, emoji: GuildEmoji) -> None:
        self.select(format_custom_emoji(emoji))

    async def load_guild_emojis(self) -> List[GuildEmoji]:
        """Fetch the guild's custom emoji once; later calls reuse them."""
        if self._emojis_loaded or self.store is None or not self.guild_id:
            return self.guild_emojis
        self._emojis_loaded = True
        self.guild_emojis = await self.store.get_guild_emojis(self.guild_id)
        logger.debug(
            "Loaded %d custom emojis for guild %s", len(self.guild_emojis), self.guild_id
        )
        return self.guild_emojis

    def describe(self, value: str | None) -> str:
        return describe_emoji(value, self.guild_emojis)
