from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Union

from ..schemas import ReactionBinding, ReactionRoleGroup, ReactionRoleRow

NO_MESSAGE_KEY = "no-message"

RowLike = Union[ReactionRoleRow, Mapping]


def project_groups(rows: Iterable[RowLike]) -> List[ReactionRoleGroup]:
    """Group flat binding rows by ``messageId``.

    The first row seen for a message supplies the group-level fields; every
    row adds one binding, in source order.  Rows without a message id all
    land in one shared group.
    """

    grouped: Dict[str, ReactionRoleGroup] = {}
    for raw in rows:
        row = raw if isinstance(raw, ReactionRoleRow) else ReactionRoleRow.model_validate(raw)
        key = row.message_id or NO_MESSAGE_KEY
        group = grouped.get(key)
        if group is None:
            group = ReactionRoleGroup(
                id=row.group_id,
                message_id=row.message_id,
                channel_id=row.channel_id,
                title=row.title,
                custom_message=row.custom_message,
                status=row.status,
            )
            grouped[key] = group
        group.reactions.append(
            ReactionBinding(
                id=row.id, emoji=row.emoji, role_id=row.role_id, type=row.type
            )
        )
    return list(grouped.values())
