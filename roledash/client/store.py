from __future__ import annotations

"""Remote store for reaction-role configurations.

Thin adapter over :class:`~roledash.client.http.ApiClient`: each method is
one REST round trip and returns typed models.  Callers refresh their copy of
the table with :meth:`ReactionRoleStore.list` after a mutation.  :class:`SelfRoleStore`
does the same for self-assignable role commands, whose mutations answer with
the guild's full command list.
"""

from typing import List
from urllib.parse import quote

from ..schemas import (
    GuildChannel,
    GuildEmoji,
    GuildRole,
    ReactionRoleGroup,
    ReactionRoleRow,
    SelfRoleCommand,
)
from .form import draft_body
from .grouping import project_groups
from .http import ApiClient

BASE = "/api/roles/reaction-roles"
SELF_ROLES = "/api/roles/guild/{guild}/self-assignable-roles"


def _seg(value: str) -> str:
    return quote(str(value), safe="")


class ReactionRoleStore:
    def __init__(self, api: ApiClient):
        self.api = api

    async def list_rows(self, guild_id: str) -> List[ReactionRoleRow]:
        data = await self.api.request("GET", BASE, params={"guildId": guild_id})
        rows = (data or {}).get("reactionRoles") or []
        return [ReactionRoleRow.model_validate(row) for row in rows]

    async def list(self, guild_id: str) -> List[ReactionRoleGroup]:
        return project_groups(await self.list_rows(guild_id))

    async def create(
        self,
        guild_id: str,
        draft: ReactionRoleGroup,
        idempotency_key: str | None = None,
    ) -> List[ReactionRoleRow]:
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
        data = await self.api.request(
            "POST", BASE, json_body=draft_body(guild_id, draft), headers=headers
        )
        return [ReactionRoleRow.model_validate(r) for r in (data or {}).get("reactionRoles") or []]

    async def update(
        self, group_id: str, guild_id: str, draft: ReactionRoleGroup
    ) -> List[ReactionRoleRow]:
        """Replace a group; ``group_id`` is any binding id of that group."""
        data = await self.api.request(
            "PUT",
            f"{BASE}/{_seg(group_id)}",
            json_body=draft_body(guild_id, draft, include_message=True),
        )
        return [ReactionRoleRow.model_validate(r) for r in (data or {}).get("reactionRoles") or []]

    async def delete_by_message(self, message_id: str, guild_id: str) -> None:
        await self.api.request(
            "DELETE", f"{BASE}/message/{_seg(message_id)}", json_body={"guildId": guild_id}
        )

    async def set_binding_status(self, binding_id: str, guild_id: str, status: bool) -> bool:
        data = await self.api.request(
            "PATCH",
            f"{BASE}/{_seg(binding_id)}/status",
            json_body={"guildId": guild_id, "status": status},
        )
        return bool((data or {}).get("status", status))

    async def delete_binding(self, binding_id: str, guild_id: str) -> None:
        await self.api.request(
            "DELETE", f"{BASE}/{_seg(binding_id)}", json_body={"guildId": guild_id}
        )

    async def get_guild_emojis(self, guild_id: str) -> List[GuildEmoji]:
        data = await self.api.request("GET", f"/api/guilds/{_seg(guild_id)}/emojis")
        return [GuildEmoji.model_validate(e) for e in (data or {}).get("emojis") or []]

    async def get_channels(self, guild_id: str) -> List[GuildChannel]:
        data = await self.api.request("GET", "/api/channels", params={"guildId": guild_id})
        return [GuildChannel.model_validate(c) for c in (data or {}).get("channels") or []]

    async def get_roles(self, guild_id: str) -> List[GuildRole]:
        data = await self.api.request("GET", "/api/roles", params={"guildId": guild_id})
        return [GuildRole.model_validate(r) for r in (data or {}).get("roles") or []]


def _commands(data) -> List[SelfRoleCommand]:
    return [SelfRoleCommand.model_validate(c) for c in (data or {}).get("slashRoles") or []]


def command_body(command: SelfRoleCommand) -> dict:
    return {
        "commandName": command.command_name,
        "description": command.description,
        "channelId": command.channel_id,
        "roles": [{"roleId": r.role_id, "type": r.type.value} for r in command.roles],
        "requirePermission": command.require_permission,
        "allowedRoles": list(command.allowed_roles),
        "status": command.status,
    }


class SelfRoleStore:
    """Self-assignable role commands of one guild, addressed by command name."""

    def __init__(self, api: ApiClient, guild_id: str):
        self.api = api
        self.guild_id = guild_id

    def _url(self, command_name: str | None = None, *rest: str) -> str:
        url = SELF_ROLES.format(guild=_seg(self.guild_id))
        if command_name is not None:
            url = "/".join([url, _seg(command_name), *rest])
        return url

    async def list(self) -> List[SelfRoleCommand]:
        return _commands(await self.api.request("GET", self._url()))

    async def get(self, command_name: str) -> SelfRoleCommand:
        data = await self.api.request("GET", self._url(command_name))
        return SelfRoleCommand.model_validate((data or {}).get("command") or {})

    async def create(self, command: SelfRoleCommand) -> List[SelfRoleCommand]:
        data = await self.api.request("POST", self._url(), json_body=command_body(command))
        return _commands(data)

    async def update(self, command_name: str, **fields) -> List[SelfRoleCommand]:
        """Send only ``fields`` (camelCase keys); the rest stay as stored."""
        data = await self.api.request("PUT", self._url(command_name), json_body=fields)
        return _commands(data)

    async def set_status(self, command_name: str, status: bool) -> List[SelfRoleCommand]:
        data = await self.api.request(
            "PATCH", self._url(command_name, "toggle"), json_body={"status": status}
        )
        return _commands(data)

    async def delete(self, command_name: str) -> None:
        await self.api.request("DELETE", self._url(command_name))
