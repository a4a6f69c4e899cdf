from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0002_self_role_commands"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "self_role_commands",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("guild_id", sa.String(length=32), nullable=False),
        sa.Column("command_name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("channel_id", sa.String(length=32), nullable=True),
        sa.Column(
            "require_permission", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("allowed_roles", sa.JSON(), nullable=False),
        sa.Column("status", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("guild_id", "command_name", name="uq_self_role_command"),
    )
    op.create_index(
        "ix_self_role_commands_guild_id", "self_role_commands", ["guild_id"]
    )

    op.create_table(
        "self_role_options",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "command_id",
            sa.Integer(),
            sa.ForeignKey("self_role_commands.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("role_id", sa.String(length=32), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False, server_default="toggle"),
    )
    op.create_index(
        "ix_self_role_options_command_id", "self_role_options", ["command_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_self_role_options_command_id", table_name="self_role_options")
    op.drop_table("self_role_options")
    op.drop_index("ix_self_role_commands_guild_id", table_name="self_role_commands")
    op.drop_table("self_role_commands")
