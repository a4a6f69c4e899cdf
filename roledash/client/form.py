from __future__ import annotations

"""Editable reaction-role draft with dirty tracking.

:class:`ReactionRoleForm` holds one draft group and the baseline it is
compared against.  In create mode the baseline is the empty default group; in
edit mode it is the group that was loaded.  Nothing here performs I/O.
"""

from typing import Any, List

from ..errors import ValidationError
from ..schemas import BindingType, ReactionBinding, ReactionRoleGroup, ReactionRoleRow
from .grouping import project_groups

DEFAULT_CUSTOM_MESSAGE = "React to get your roles!"

_BINDING_FIELDS = {
    "emoji": "emoji",
    "role_id": "role_id",
    "roleId": "role_id",
    "type": "type",
}
_GROUP_FIELDS = {
    "channel_id": "channel_id",
    "channelId": "channel_id",
    "title": "title",
    "custom_message": "custom_message",
    "customMessage": "custom_message",
    "status": "status",
}


def draft_body(guild_id: str, draft: ReactionRoleGroup, *, include_message: bool = False) -> dict:
    body = {
        "guildId": guild_id,
        "channelId": draft.channel_id,
        "title": draft.title or None,
        "customMessage": draft.custom_message,
        "status": draft.status,
        "reactions": [
            {"emoji": b.emoji, "roleId": b.role_id, "type": b.type.value}
            for b in draft.reactions
        ],
    }
    if include_message:
        body["messageId"] = draft.message_id
    return body


def empty_binding() -> ReactionBinding:
    return ReactionBinding(emoji="", role_id="", type=BindingType.TOGGLE)


def empty_group() -> ReactionRoleGroup:
    return ReactionRoleGroup(
        channel_id="",
        title="",
        custom_message=DEFAULT_CUSTOM_MESSAGE,
        status=True,
        reactions=[empty_binding()],
    )


class ReactionRoleForm:
    def __init__(self) -> None:
        self.mode = "create"
        self.draft = empty_group()
        self.baseline = empty_group()

    @property
    def editing(self) -> bool:
        return self.mode == "edit"

    def start_new(self) -> ReactionRoleGroup:
        self.mode = "create"
        self.draft = empty_group()
        self.baseline = empty_group()
        return self.draft

    def start_edit(self, group: ReactionRoleGroup | ReactionRoleRow) -> ReactionRoleGroup:
        if isinstance(group, ReactionRoleRow):
            # legacy single-binding row
            loaded = project_groups([group])[0]
        else:
            loaded = group.model_copy(deep=True)
        if loaded.title is None:
            loaded.title = ""
        if not loaded.custom_message:
            loaded.custom_message = DEFAULT_CUSTOM_MESSAGE
        if not loaded.reactions:
            loaded.reactions = [empty_binding()]
        self.mode = "edit"
        self.draft = loaded
        self.baseline = loaded.model_copy(deep=True)
        return self.draft

    def add_binding(self) -> ReactionBinding:
        binding = empty_binding()
        self.draft.reactions.append(binding)
        return binding

    def remove_binding(self, index: int) -> bool:
        """Drop one binding; refused while it is the only one left."""
        if not 0 <= index < len(self.draft.reactions):
            raise IndexError(index)
        if len(self.draft.reactions) <= 1:
            return False
        del self.draft.reactions[index]
        return True

    def update_binding(self, index: int, field: str, value: Any) -> ReactionBinding:
        if field not in _BINDING_FIELDS:
            raise KeyError(field)
        if not 0 <= index < len(self.draft.reactions):
            raise IndexError(index)
        attr = _BINDING_FIELDS[field]
        if attr == "type":
            value = BindingType(value)
        else:
            value = "" if value is None else str(value)
        current = self.draft.reactions[index]
        self.draft.reactions[index] = current.model_copy(update={attr: value})
        return self.draft.reactions[index]

    def set_field(self, field: str, value: Any) -> None:
        if field not in _GROUP_FIELDS:
            raise KeyError(field)
        attr = _GROUP_FIELDS[field]
        if attr == "status":
            value = bool(value)
        setattr(self.draft, attr, value)

    def is_dirty(self) -> bool:
        return self.draft.model_dump() != self.baseline.model_dump()

    def reset(self) -> ReactionRoleGroup:
        if self.editing:
            self.draft = self.baseline.model_copy(deep=True)
        else:
            self.draft = empty_group()
        return self.draft

    def validate(self) -> List[str]:
        """Return the reasons the draft cannot be submitted yet."""
        problems: List[str] = []
        draft = self.draft
        if not draft.channel_id:
            problems.append("Channel is required")
        if not draft.title:
            problems.append("Title is required")
        if not draft.custom_message:
            problems.append("Message is required")
        for index, binding in enumerate(draft.reactions, start=1):
            if not binding.emoji.strip():
                problems.append(f"Reaction {index} needs an emoji")
            if not binding.role_id.strip():
                problems.append(f"Reaction {index} needs a role")
        return problems

    @property
    def can_submit(self) -> bool:
        return not self.validate()

    def require_valid(self) -> None:
        problems = self.validate()
        if problems:
            raise ValidationError("; ".join(problems), errors=problems)

    def payload(self, guild_id: str) -> dict:
        """Request body for creating or updating the drafted group."""
        return draft_body(guild_id, self.draft, include_message=self.editing)
