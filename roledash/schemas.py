from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class BindingType(str, Enum):
    TOGGLE = "toggle"
    ADD_ONLY = "add_only"
    REMOVE_ONLY = "remove_only"


# ---- Reaction roles ----


class ReactionBinding(CamelModel):
    id: Optional[str] = None
    emoji: str = ""
    role_id: str = Field(default="", alias="roleId")
    type: BindingType = BindingType.TOGGLE


class ReactionRoleGroup(CamelModel):
    id: Optional[str] = None
    message_id: Optional[str] = Field(default=None, alias="messageId")
    channel_id: str = Field(default="", alias="channelId")
    title: Optional[str] = None
    custom_message: Optional[str] = Field(default=None, alias="customMessage")
    status: bool = True
    reactions: List[ReactionBinding] = Field(default_factory=list)

    @property
    def proxy_id(self) -> str | None:
        """Binding id used in URLs that address the whole group."""
        if not self.reactions:
            return None
        return self.reactions[0].id


class ReactionRoleRow(CamelModel):
    """One stored binding with its group's fields flattened in."""

    id: Optional[str] = None
    group_id: Optional[str] = Field(default=None, alias="groupId")
    message_id: Optional[str] = Field(default=None, alias="messageId")
    channel_id: str = Field(default="", alias="channelId")
    emoji: str = ""
    role_id: str = Field(default="", alias="roleId")
    type: BindingType = BindingType.TOGGLE
    custom_message: Optional[str] = Field(default=None, alias="customMessage")
    title: Optional[str] = None
    status: bool = True


class ReactionInput(CamelModel):
    emoji: Optional[str] = None
    role_id: Optional[str] = Field(default=None, alias="roleId")
    type: Optional[BindingType] = None

    def is_complete(self) -> bool:
        return bool(
            self.emoji and self.role_id and self.emoji.strip() and self.role_id.strip()
        )


class ReactionRoleCreateBody(CamelModel):
    guild_id: Optional[str] = Field(default=None, alias="guildId")
    channel_id: Optional[str] = Field(default=None, alias="channelId")
    title: Optional[str] = None
    custom_message: Optional[str] = Field(default=None, alias="customMessage")
    status: Optional[bool] = None
    reactions: Optional[List[ReactionInput]] = None


class ReactionRoleUpdateBody(ReactionRoleCreateBody):
    message_id: Optional[str] = Field(default=None, alias="messageId")


class StatusBody(CamelModel):
    guild_id: Optional[str] = Field(default=None, alias="guildId")
    status: Optional[bool] = None


class GuildBody(CamelModel):
    guild_id: Optional[str] = Field(default=None, alias="guildId")


# ---- Self-assignable roles ----


class SelfRoleOption(CamelModel):
    id: Optional[str] = None
    role_id: str = Field(default="", alias="roleId")
    type: BindingType = BindingType.TOGGLE


class SelfRoleCommand(CamelModel):
    """A slash command members use to pick roles; ``id`` is ``<guild>-<name>``."""

    id: Optional[str] = None
    command_name: str = Field(default="", alias="commandName")
    description: str = ""
    channel_id: Optional[str] = Field(default=None, alias="channelId")
    require_permission: bool = Field(default=False, alias="requirePermission")
    allowed_roles: List[str] = Field(default_factory=list, alias="allowedRoles")
    status: bool = True
    roles: List[SelfRoleOption] = Field(default_factory=list)


class SelfRoleInput(CamelModel):
    role_id: Optional[str] = Field(default=None, alias="roleId")
    type: Optional[BindingType] = None

    def is_complete(self) -> bool:
        return bool(self.role_id and self.role_id.strip())


class SelfRoleCommandBody(CamelModel):
    command_name: Optional[str] = Field(default=None, alias="commandName")
    description: Optional[str] = None
    channel_id: Optional[str] = Field(default=None, alias="channelId")
    roles: Optional[List[SelfRoleInput]] = None
    require_permission: Optional[bool] = Field(default=None, alias="requirePermission")
    allowed_roles: Optional[List[str]] = Field(default=None, alias="allowedRoles")
    status: Optional[bool] = None


# ---- Guild lookups ----


class GuildEmoji(CamelModel):
    id: str
    name: str
    animated: bool = False
    available: bool = True
    url: Optional[str] = None


class GuildRole(CamelModel):
    id: str
    name: str
    color: int = 0
    position: int = 0
    mentionable: bool = False
    managed: bool = False


class GuildChannel(CamelModel):
    id: str
    name: str
    type: Optional[str] = None
    parent_id: Optional[str] = Field(default=None, alias="parentId")
    position: int = 0
