from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..deps import RequestContext, bearer_auth
from ...schemas import GuildRole
from ._guilds import GuildLookupError, resolve_guild

router = APIRouter(prefix="/api")


@router.get("/roles")
async def get_guild_roles(
    guild_id: str | None = Query(None, alias="guildId"),
    ctx: RequestContext = Depends(bearer_auth),
):
    try:
        guild = await resolve_guild(guild_id)
    except GuildLookupError as exc:
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    roles = [
        GuildRole(
            id=str(r.id),
            name=r.name,
            color=int(getattr(r.color, "value", r.color) or 0),
            position=r.position,
            mentionable=bool(r.mentionable),
            managed=bool(r.managed),
        )
        for r in guild.roles
        if r.id != guild.id  # @everyone shares the guild's id
    ]
    roles.sort(key=lambda r: r.position, reverse=True)
    return {"roles": [r.to_wire() for r in roles]}
