"""Client side of the reaction-role dashboard."""

from .emoji_picker import COMMON_EMOJIS, EmojiPicker, describe_emoji, format_custom_emoji
from .form import DEFAULT_CUSTOM_MESSAGE, ReactionRoleForm
from .grouping import NO_MESSAGE_KEY, project_groups
from .http import ApiClient, call_with_retries
from .panel import ReactionRolesPanel
from .session import MemorySessionStore, Session, SessionStore
from .store import ReactionRoleStore
from .toasts import Toast, ToastQueue

__all__ = [
    "ApiClient",
    "COMMON_EMOJIS",
    "DEFAULT_CUSTOM_MESSAGE",
    "EmojiPicker",
    "MemorySessionStore",
    "NO_MESSAGE_KEY",
    "ReactionRoleForm",
    "ReactionRoleStore",
    "ReactionRolesPanel",
    "Session",
    "SessionStore",
    "Toast",
    "ToastQueue",
    "call_with_retries",
    "describe_emoji",
    "format_custom_emoji",
    "project_groups",
]
