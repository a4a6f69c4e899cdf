from __future__ import annotations

import logging

import discord
from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import RequestContext, bearer_auth, get_db
from ..discord_client import ready_client
from ...db.models import ReactionBinding, ReactionRoleGroup
from ...schemas import (
    BindingType,
    GuildBody,
    ReactionInput,
    ReactionRoleCreateBody,
    ReactionRoleRow,
    ReactionRoleUpdateBody,
    StatusBody,
)

router = APIRouter(prefix="/api/roles", tags=["reaction-roles"])
logger = logging.getLogger(__name__)


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _snowflake(value: str | None) -> int | None:
    if not value or not value.strip().isdigit():
        return None
    return int(value)


def _rows(group: ReactionRoleGroup) -> list[dict]:
    return [
        ReactionRoleRow(
            id=str(binding.id),
            group_id=str(group.id),
            message_id=group.message_id,
            channel_id=group.channel_id,
            emoji=binding.emoji,
            role_id=binding.role_id,
            type=BindingType(binding.type),
            custom_message=group.custom_message,
            title=group.title,
            status=group.status,
        ).to_wire()
        for binding in group.bindings
    ]


def _valid_reactions(reactions: list[ReactionInput] | None) -> list[ReactionInput]:
    return [r for r in reactions or [] if r.is_complete()]


def _bindings(reactions: list[ReactionInput]) -> list[ReactionBinding]:
    return [
        ReactionBinding(
            position=index,
            emoji=r.emoji.strip(),
            role_id=r.role_id.strip(),
            type=(r.type or BindingType.TOGGLE).value,
        )
        for index, r in enumerate(reactions)
    ]


async def _resolve_channel(client, channel_id: str | None):
    cid = _snowflake(channel_id)
    if cid is None:
        return None
    channel = client.get_channel(cid)
    if channel is None:
        try:
            channel = await client.fetch_channel(cid)
        except discord.NotFound:
            return None
    return channel


async def _stored_for_key(
    db: AsyncSession, guild_id: str, key: str
) -> ReactionRoleGroup | None:
    return await db.scalar(
        select(ReactionRoleGroup).where(
            ReactionRoleGroup.guild_id == guild_id,
            ReactionRoleGroup.idempotency_key == key,
        )
    )


async def _discard_message(message) -> None:
    """Remove a posted message whose group could not be stored."""
    try:
        await message.delete()
    except discord.DiscordException as exc:
        logger.warning("Could not delete orphaned message %s: %s", message.id, exc)


async def _group_for_binding(
    db: AsyncSession, binding_id: str, guild_id: str
) -> ReactionRoleGroup | None:
    bid = _snowflake(binding_id)
    if bid is None:
        return None
    binding = await db.get(ReactionBinding, bid)
    if binding is None:
        return None
    group = await db.get(ReactionRoleGroup, binding.group_id)
    if group is None or group.guild_id != guild_id:
        return None
    return group


@router.get("/reaction-roles")
async def list_reaction_roles(
    guild_id: str | None = Query(None, alias="guildId"),
    ctx: RequestContext = Depends(bearer_auth),
    db: AsyncSession = Depends(get_db),
):
    if not guild_id:
        return _error("guildId is required", 400)
    result = await db.execute(
        select(ReactionRoleGroup)
        .where(ReactionRoleGroup.guild_id == guild_id)
        .order_by(ReactionRoleGroup.id)
    )
    rows: list[dict] = []
    for group in result.scalars():
        rows.extend(_rows(group))
    return {"reactionRoles": rows}


@router.post("/reaction-roles")
async def create_reaction_role(
    body: ReactionRoleCreateBody,
    idempotency_key: str | None = Header(None, alias="Idempotency-Key"),
    ctx: RequestContext = Depends(bearer_auth),
    db: AsyncSession = Depends(get_db),
):
    if (
        not body.guild_id
        or not body.channel_id
        or not body.reactions
        or not body.custom_message
    ):
        return _error("Missing required fields or invalid reactions array", 400)
    reactions = _valid_reactions(body.reactions)
    if not reactions:
        return _error("At least one valid reaction with emoji and role is required", 400)

    if idempotency_key:
        existing = await _stored_for_key(db, body.guild_id, idempotency_key)
        if existing is not None:
            logger.info(
                "Replaying reaction role create guild=%s key=%s group=%s",
                body.guild_id,
                idempotency_key,
                existing.id,
            )
            return {"reactionRoles": _rows(existing)}

    client = ready_client()
    if client is None:
        return _error("Bot is not ready", 503)
    message = None
    try:
        channel = await _resolve_channel(client, body.channel_id)
        if channel is None:
            return _error("Channel not found", 404)
        message = await channel.send(body.custom_message)
        for reaction in reactions:
            await message.add_reaction(reaction.emoji.strip())
    except discord.DiscordException:
        if message is not None:
            await _discard_message(message)
        logger.exception(
            "Failed to create reaction role message guild=%s channel=%s",
            body.guild_id,
            body.channel_id,
        )
        return _error("Failed to create message in Discord", 502)

    group = ReactionRoleGroup(
        guild_id=body.guild_id,
        message_id=str(message.id),
        channel_id=body.channel_id,
        title=body.title or None,
        custom_message=body.custom_message,
        status=body.status is not False,
        idempotency_key=idempotency_key,
        bindings=_bindings(reactions),
    )
    db.add(group)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        await _discard_message(message)
        if idempotency_key:
            # a concurrent request with the same key committed first
            existing = await _stored_for_key(db, body.guild_id, idempotency_key)
            if existing is not None:
                return {"reactionRoles": _rows(existing)}
        return _error("Reaction roles already exist for this message", 409)
    except SQLAlchemyError:
        await db.rollback()
        await _discard_message(message)
        raise
    logger.info(
        "Created reaction role group=%s guild=%s message=%s bindings=%d",
        group.id,
        group.guild_id,
        group.message_id,
        len(group.bindings),
    )
    return {"reactionRoles": _rows(group)}


@router.put("/reaction-roles/{binding_id}")
async def update_reaction_role(
    binding_id: str,
    body: ReactionRoleUpdateBody,
    ctx: RequestContext = Depends(bearer_auth),
    db: AsyncSession = Depends(get_db),
):
    if (
        not body.guild_id
        or not body.message_id
        or not body.channel_id
        or body.reactions is None
    ):
        return _error("Missing required fields or invalid reactions array", 400)
    reactions = _valid_reactions(body.reactions)
    if not reactions:
        return _error("At least one valid reaction with emoji and role is required", 400)

    group = await _group_for_binding(db, binding_id, body.guild_id)
    if group is None:
        return _error("Reaction role not found", 404)
    if group.message_id != body.message_id:
        return _error("messageId cannot be changed", 400)
    message_id = _snowflake(body.message_id)
    if message_id is None:
        return _error("Invalid messageId", 400)

    client = ready_client()
    if client is None:
        return _error("Bot is not ready", 503)
    try:
        channel = await _resolve_channel(client, body.channel_id)
        if channel is None:
            return _error("Channel not found", 404)
        try:
            message = await channel.fetch_message(message_id)
        except discord.NotFound:
            return _error("Message not found", 404)
        if body.custom_message and message.content != body.custom_message:
            await message.edit(content=body.custom_message)
        await message.clear_reactions()
        for reaction in reactions:
            await message.add_reaction(reaction.emoji.strip())
    except discord.DiscordException:
        logger.exception(
            "Failed to update reaction role message guild=%s message=%s",
            body.guild_id,
            body.message_id,
        )
        return _error("Failed to update message in Discord", 502)

    group.channel_id = body.channel_id
    group.title = body.title or None
    if body.custom_message:
        group.custom_message = body.custom_message
    if body.status is not None:
        group.status = body.status
    group.bindings = _bindings(reactions)
    await db.commit()
    logger.info(
        "Updated reaction role group=%s guild=%s bindings=%d",
        group.id,
        group.guild_id,
        len(group.bindings),
    )
    return {"reactionRoles": _rows(group)}


@router.api_route("/reaction-roles/{binding_id}/status", methods=["PATCH", "PUT"])
async def set_reaction_role_status(
    binding_id: str,
    body: StatusBody,
    ctx: RequestContext = Depends(bearer_auth),
    db: AsyncSession = Depends(get_db),
):
    if not body.guild_id or body.status is None:
        return _error("guildId and status are required", 400)
    group = await _group_for_binding(db, binding_id, body.guild_id)
    if group is None:
        return _error("Reaction role not found", 404)
    group.status = bool(body.status)
    await db.commit()
    logger.info(
        "Reaction role group=%s guild=%s status=%s",
        group.id,
        group.guild_id,
        group.status,
    )
    return {"success": True, "status": group.status}


@router.delete("/reaction-roles/message/{message_id}")
async def delete_reaction_role_message(
    message_id: str,
    body: GuildBody | None = None,
    x_guild_id: str | None = Header(None, alias="X-Guild-Id"),
    ctx: RequestContext = Depends(bearer_auth),
    db: AsyncSession = Depends(get_db),
):
    guild_id = x_guild_id or (body.guild_id if body else None)
    if not guild_id:
        return _error("guildId is required (in X-Guild-Id header or request body)", 400)
    group = await db.scalar(
        select(ReactionRoleGroup).where(
            ReactionRoleGroup.guild_id == guild_id,
            ReactionRoleGroup.message_id == message_id,
        )
    )
    if group is None:
        return _error("Reaction role configuration not found", 404)

    client = ready_client()
    msg_id = _snowflake(message_id)
    if msg_id is not None and client is not None:
        try:
            channel = await _resolve_channel(client, group.channel_id)
            if channel is not None:
                message = await channel.fetch_message(msg_id)
                await message.delete()
        except discord.DiscordException as exc:
            logger.warning(
                "Could not delete Discord message %s, continuing with database cleanup: %s",
                message_id,
                exc,
            )

    await db.delete(group)
    await db.commit()
    logger.info("Deleted reaction role message=%s guild=%s", message_id, guild_id)
    return {"success": True}


@router.delete("/reaction-roles/{binding_id}")
async def delete_reaction_binding(
    binding_id: str,
    body: GuildBody | None = None,
    x_guild_id: str | None = Header(None, alias="X-Guild-Id"),
    ctx: RequestContext = Depends(bearer_auth),
    db: AsyncSession = Depends(get_db),
):
    guild_id = x_guild_id or (body.guild_id if body else None)
    if not guild_id:
        return _error("guildId is required (in X-Guild-Id header or request body)", 400)
    group = await _group_for_binding(db, binding_id, guild_id)
    if group is None:
        return _error("Reaction role not found", 404)
    group.bindings = [b for b in group.bindings if str(b.id) != binding_id.strip()]
    if not group.bindings:
        # a group never outlives its last binding
        await db.delete(group)
    await db.commit()
    return {"success": True}
