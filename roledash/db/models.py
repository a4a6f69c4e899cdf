from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..schemas import BindingType
from .base import Base


class ReactionRoleGroup(Base):
    """One message configured for reaction roles."""

    __tablename__ = "reaction_role_groups"
    __table_args__ = (
        UniqueConstraint("guild_id", "idempotency_key", name="uq_group_idempotency"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    guild_id: Mapped[str] = mapped_column(String(32), index=True)
    message_id: Mapped[Optional[str]] = mapped_column(String(32), unique=True)
    channel_id: Mapped[str] = mapped_column(String(32))
    title: Mapped[Optional[str]] = mapped_column(String(255))
    custom_message: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[bool] = mapped_column(Boolean, default=True)
    idempotency_key: Mapped[Optional[str]] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    bindings: Mapped[list["ReactionBinding"]] = relationship(
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="ReactionBinding.position",
        lazy="selectin",
    )


class ReactionBinding(Base):
    __tablename__ = "reaction_bindings"

    id: Mapped[int] = mapped_column(primary_key=True)
    group_id: Mapped[int] = mapped_column(
        ForeignKey("reaction_role_groups.id", ondelete="CASCADE"), index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    emoji: Mapped[str] = mapped_column(String(100))
    role_id: Mapped[str] = mapped_column(String(32))
    type: Mapped[str] = mapped_column(String(16), default=BindingType.TOGGLE.value)

    group: Mapped[ReactionRoleGroup] = relationship(back_populates="bindings")


class SelfRoleCommand(Base):
    """A slash command through which members pick their own roles."""

    __tablename__ = "self_role_commands"
    __table_args__ = (
        UniqueConstraint("guild_id", "command_name", name="uq_self_role_command"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    guild_id: Mapped[str] = mapped_column(String(32), index=True)
    command_name: Mapped[str] = mapped_column(String(100))
    description: Mapped[str] = mapped_column(Text, default="")
    channel_id: Mapped[Optional[str]] = mapped_column(String(32))
    require_permission: Mapped[bool] = mapped_column(Boolean, default=False)
    allowed_roles: Mapped[list[str]] = mapped_column(JSON, default=list)
    status: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    roles: Mapped[list["SelfRoleOption"]] = relationship(
        back_populates="command",
        cascade="all, delete-orphan",
        order_by="SelfRoleOption.position",
        lazy="selectin",
    )


class SelfRoleOption(Base):
    __tablename__ = "self_role_options"

    id: Mapped[int] = mapped_column(primary_key=True)
    command_id: Mapped[int] = mapped_column(
        ForeignKey("self_role_commands.id", ondelete="CASCADE"), index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    role_id: Mapped[str] = mapped_column(String(32))
    type: Mapped[str] = mapped_column(String(16), default=BindingType.TOGGLE.value)

    command: Mapped[SelfRoleCommand] = relationship(back_populates="roles")
