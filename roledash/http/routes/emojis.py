from __future__ import annotations

from time import monotonic
from typing import Dict, List, Tuple

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..deps import RequestContext, bearer_auth
from ...schemas import GuildEmoji
from ._guilds import GuildLookupError, resolve_guild

router = APIRouter(prefix="/api")

_CACHE_TTL = 600  # seconds
_emoji_cache: Dict[str, Tuple[List[dict], float]] = {}


def _serialize_emojis(emojis) -> List[dict]:
    return [
        GuildEmoji(
            id=str(e.id),
            name=e.name,
            animated=bool(getattr(e, "animated", False)),
            available=bool(getattr(e, "available", True)),
            url=str(e.url),
        ).to_wire()
        for e in emojis or []
    ]


def _evict_expired(now: float) -> None:
    for key, (_, ts) in list(_emoji_cache.items()):
        if now - ts >= _CACHE_TTL:
            del _emoji_cache[key]


@router.get("/guilds/{guild_id}/emojis")
async def get_guild_emojis(
    guild_id: str, ctx: RequestContext = Depends(bearer_auth)
):
    cache_entry = _emoji_cache.get(guild_id)
    if cache_entry:
        data, ts = cache_entry
        if monotonic() - ts < _CACHE_TTL:
            return {"emojis": data}
    try:
        guild = await resolve_guild(guild_id)
    except GuildLookupError as exc:
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)
    data = _serialize_emojis(getattr(guild, "emojis", []))
    now = monotonic()
    _evict_expired(now)
    _emoji_cache[guild_id] = (data, now)
    return {"emojis": data}
