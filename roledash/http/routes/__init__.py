from . import channels, emojis, guild_roles, reaction_roles, self_roles

__all__ = ["channels", "emojis", "guild_roles", "reaction_roles", "self_roles"]
