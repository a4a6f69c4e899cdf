from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional

from ..errors import DashboardError
from ..schemas import ReactionRoleGroup, ReactionRoleRow
from .emoji_picker import EmojiPicker
from .form import ReactionRoleForm
from .store import ReactionRoleStore
from .toasts import ToastQueue

logger = logging.getLogger(__name__)


class ReactionRolesPanel:
    """Reaction-role management view for a single guild.

    Owns the group table, the edit form, the emoji picker and the toast
    queue.  Every store call is awaited in place; once :meth:`close` has been
    called, results that arrive later are dropped.
    """

    def __init__(self, store: ReactionRoleStore, guild_id: str, toasts: ToastQueue | None = None):
        self.store = store
        self.guild_id = guild_id
        self.toasts = toasts or ToastQueue()
        self.form = ReactionRoleForm()
        self.picker = EmojiPicker(self.form, store, guild_id)
        self.groups: List[ReactionRoleGroup] = []
        self.form_open = False
        self.loading = False
        self.saving = False
        self.deleting = False
        self.updating_status: Dict[str, bool] = {}
        self.closed = False
        self._idempotency_key: Optional[str] = None

    # ---- table ----

    async def load(self) -> List[ReactionRoleGroup]:
        self.loading = True
        try:
            groups = await self.store.list(self.guild_id)
        except DashboardError as exc:
            if self.closed:
                return self.groups
            logger.error("Failed to load reaction roles for guild %s: %s", self.guild_id, exc)
            self.toasts.show("error", "Failed to load reaction roles")
            self.groups = []
            return self.groups
        finally:
            self.loading = False
        if not self.closed:
            self.groups = groups
        return self.groups

    async def load_emojis(self) -> None:
        try:
            await self.picker.load_guild_emojis()
        except DashboardError as exc:
            logger.warning("Failed to load emojis for guild %s: %s", self.guild_id, exc)

    # ---- form ----

    def start_new(self) -> ReactionRoleGroup:
        self.picker.close()
        self.form_open = True
        self._idempotency_key = None
        return self.form.start_new()

    def start_edit(self, group: ReactionRoleGroup | ReactionRoleRow) -> ReactionRoleGroup:
        self.picker.close()
        self.form_open = True
        self._idempotency_key = None
        return self.form.start_edit(group)

    def cancel(self) -> None:
        self.picker.close()
        self.form_open = False
        self.form.start_new()

    async def submit(self) -> bool:
        if self.saving:
            logger.debug("Submit ignored while a save is in flight")
            return False
        problems = self.form.validate()
        if problems:
            self.toasts.show("error", "; ".join(problems))
            return False

        editing = self.form.editing
        draft = self.form.draft.model_copy(deep=True)
        verb = "update" if editing else "create"
        proxy = self.form.baseline.proxy_id if editing else None
        if editing and proxy is None:
            # the group can only be addressed through a stored binding
            logger.error("Cannot update reaction role without a stored binding id")
            self.toasts.show("error", "Failed to update reaction role: it has no saved bindings")
            return False
        self.saving = True
        try:
            if editing:
                await self.store.update(proxy, self.guild_id, draft)
            else:
                if self._idempotency_key is None:
                    self._idempotency_key = uuid.uuid4().hex
                await self.store.create(self.guild_id, draft, self._idempotency_key)
        except DashboardError as exc:
            if not self.closed:
                self.toasts.show("error", f"Failed to {verb} reaction role: {exc}")
            return False
        finally:
            self.saving = False

        if self.closed:
            return True
        self._idempotency_key = None
        self.toasts.show(
            "success", f'Reaction role "{draft.title}" {verb}d successfully!'
        )
        self.form_open = False
        self.form.start_new()
        await self.load()
        return True

    # ---- row actions ----

    async def delete(self, group: ReactionRoleGroup) -> bool:
        if not group.message_id:
            self.toasts.show("error", "Failed to delete reaction role message")
            return False
        self.deleting = True
        try:
            await self.store.delete_by_message(group.message_id, self.guild_id)
        except DashboardError as exc:
            logger.error("Failed to delete reaction role message %s: %s", group.message_id, exc)
            if not self.closed:
                self.toasts.show("error", "Failed to delete reaction role message")
            return False
        finally:
            self.deleting = False
        if self.closed:
            return True
        self.toasts.show("success", "Reaction role message deleted successfully")
        await self.load()
        return True

    async def toggle_status(self, group: ReactionRoleGroup) -> bool:
        proxy = group.proxy_id
        if proxy is None or self.updating_status.get(proxy):
            return False
        previous = group.status
        group.status = not previous
        self.updating_status[proxy] = True
        try:
            await self.store.set_binding_status(proxy, self.guild_id, group.status)
        except DashboardError as exc:
            group.status = previous
            logger.error("Failed to update status of reaction role %s: %s", proxy, exc)
            if not self.closed:
                self.toasts.show("error", "Failed to update reaction role status")
            return False
        finally:
            self.updating_status.pop(proxy, None)
        if not self.closed:
            self.toasts.show(
                "success", f"Reaction role {'enabled' if group.status else 'disabled'}"
            )
        return True

    def close(self) -> None:
        self.closed = True
        self.picker.close()
        self.form_open = False
