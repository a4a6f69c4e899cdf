from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import RequestContext, bearer_auth, get_db
from ...db.models import SelfRoleCommand, SelfRoleOption
from ...schemas import (
    BindingType,
    SelfRoleCommand as SelfRoleCommandOut,
    SelfRoleCommandBody,
    SelfRoleInput,
    SelfRoleOption as SelfRoleOptionOut,
    StatusBody,
)

router = APIRouter(prefix="/api/roles/guild", tags=["self-roles"])
logger = logging.getLogger(__name__)

MAX_COMMAND_NAME = 100


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _wire(command: SelfRoleCommand) -> dict:
    return SelfRoleCommandOut(
        id=f"{command.guild_id}-{command.command_name}",
        command_name=command.command_name,
        description=command.description or "",
        channel_id=command.channel_id,
        require_permission=command.require_permission,
        allowed_roles=list(command.allowed_roles or []),
        status=command.status,
        roles=[
            SelfRoleOptionOut(id=str(o.id), role_id=o.role_id, type=BindingType(o.type))
            for o in command.roles
        ],
    ).to_wire()


def _options(roles: list[SelfRoleInput]) -> list[SelfRoleOption]:
    return [
        SelfRoleOption(
            position=index,
            role_id=r.role_id.strip(),
            type=(r.type or BindingType.TOGGLE).value,
        )
        for index, r in enumerate(roles)
    ]


async def _find(db: AsyncSession, guild_id: str, command_name: str) -> SelfRoleCommand | None:
    return await db.scalar(
        select(SelfRoleCommand).where(
            SelfRoleCommand.guild_id == guild_id,
            SelfRoleCommand.command_name == command_name.strip(),
        )
    )


async def _guild_commands(db: AsyncSession, guild_id: str) -> list[dict]:
    result = await db.execute(
        select(SelfRoleCommand)
        .where(SelfRoleCommand.guild_id == guild_id)
        .order_by(SelfRoleCommand.command_name)
    )
    return [_wire(c) for c in result.scalars()]


@router.get("/{guild_id}/self-assignable-roles")
async def list_self_roles(
    guild_id: str,
    ctx: RequestContext = Depends(bearer_auth),
    db: AsyncSession = Depends(get_db),
):
    return {"success": True, "slashRoles": await _guild_commands(db, guild_id)}


@router.post("/{guild_id}/self-assignable-roles")
async def create_self_role(
    guild_id: str,
    body: SelfRoleCommandBody,
    ctx: RequestContext = Depends(bearer_auth),
    db: AsyncSession = Depends(get_db),
):
    if not body.command_name or not body.roles:
        return _error("guildId, commandName, and roles array are required", 400)
    roles = [r for r in body.roles if r.is_complete()]
    if not roles:
        return _error("At least one valid role with roleId is required", 400)
    name = body.command_name.strip()
    if not name:
        return _error("Title is required", 400)
    if len(name) > MAX_COMMAND_NAME:
        return _error(f"Title must be {MAX_COMMAND_NAME} characters or less", 400)
    if await _find(db, guild_id, name) is not None:
        return _error("A command with this name already exists", 400)

    db.add(
        SelfRoleCommand(
            guild_id=guild_id,
            command_name=name,
            description=body.description or "",
            channel_id=body.channel_id or None,
            require_permission=bool(body.require_permission),
            allowed_roles=list(body.allowed_roles or []),
            status=body.status is not False,
            roles=_options(roles),
        )
    )
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return _error("A command with this name already exists", 400)
    logger.info("Created self-role command guild=%s name=%s roles=%d", guild_id, name, len(roles))
    return {"success": True, "slashRoles": await _guild_commands(db, guild_id)}


@router.get("/{guild_id}/self-assignable-roles/{command_name}")
async def get_self_role(
    guild_id: str,
    command_name: str,
    ctx: RequestContext = Depends(bearer_auth),
    db: AsyncSession = Depends(get_db),
):
    command = await _find(db, guild_id, command_name)
    if command is None:
        return _error("Command not found", 404)
    return {"success": True, "command": _wire(command)}


@router.put("/{guild_id}/self-assignable-roles/{command_name}")
async def update_self_role(
    guild_id: str,
    command_name: str,
    body: SelfRoleCommandBody,
    ctx: RequestContext = Depends(bearer_auth),
    db: AsyncSession = Depends(get_db),
):
    """Change the fields present in the body; absent fields keep their values."""
    command = await _find(db, guild_id, command_name)
    if command is None:
        return _error("Command not found", 404)
    given = body.model_fields_set
    if body.roles is not None:
        roles = [r for r in body.roles if r.is_complete()]
        if not roles:
            return _error("At least one valid role with roleId is required", 400)
        command.roles = _options(roles)
    if "description" in given:
        command.description = body.description or ""
    if "channel_id" in given:
        command.channel_id = body.channel_id or None
    if "require_permission" in given:
        command.require_permission = bool(body.require_permission)
    if "allowed_roles" in given:
        command.allowed_roles = list(body.allowed_roles or [])
    if body.status is not None:
        command.status = body.status
    await db.commit()
    logger.info("Updated self-role command guild=%s name=%s", guild_id, command.command_name)
    return {"success": True, "slashRoles": await _guild_commands(db, guild_id)}


@router.api_route("/{guild_id}/self-assignable-roles/{command_name}/toggle", methods=["PATCH", "PUT"])
async def toggle_self_role(
    guild_id: str,
    command_name: str,
    body: StatusBody | None = None,
    ctx: RequestContext = Depends(bearer_auth),
    db: AsyncSession = Depends(get_db),
):
    if body is None or body.status is None:
        return _error("guildId, commandName, and status are required", 400)
    command = await _find(db, guild_id, command_name)
    if command is None:
        return _error("Command not found", 404)
    command.status = body.status
    await db.commit()
    logger.info(
        "Self-role command guild=%s name=%s status=%s",
        guild_id,
        command.command_name,
        command.status,
    )
    return {"success": True, "slashRoles": await _guild_commands(db, guild_id)}


@router.delete("/{guild_id}/self-assignable-roles/{command_name}")
async def delete_self_role(
    guild_id: str,
    command_name: str,
    ctx: RequestContext = Depends(bearer_auth),
    db: AsyncSession = Depends(get_db),
):
    command = await _find(db, guild_id, command_name)
    if command is None:
        return _error("Command not found or failed to delete", 404)
    await db.delete(command)
    await db.commit()
    logger.info("Deleted self-role command guild=%s name=%s", guild_id, command_name)
    return {"success": True}
