from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..deps import RequestContext, bearer_auth
from ...schemas import GuildChannel
from ._guilds import GuildLookupError, resolve_guild

router = APIRouter(prefix="/api")


@router.get("/channels")
async def get_channels(
    guild_id: str | None = Query(None, alias="guildId"),
    ctx: RequestContext = Depends(bearer_auth),
):
    try:
        guild = await resolve_guild(guild_id)
    except GuildLookupError as exc:
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    channels = [
        GuildChannel(
            id=str(c.id),
            name=c.name,
            type=str(getattr(c, "type", "text")),
            parent_id=str(c.category_id) if getattr(c, "category_id", None) else None,
            position=c.position,
        )
        for c in guild.text_channels
    ]
    channels.sort(key=lambda c: c.position)
    return {"channels": [c.to_wire() for c in channels]}
