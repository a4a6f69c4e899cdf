from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "reaction_role_groups",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("guild_id", sa.String(length=32), nullable=False),
        sa.Column("message_id", sa.String(length=32), nullable=True),
        sa.Column("channel_id", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("custom_message", sa.Text(), nullable=True),
        sa.Column("status", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("idempotency_key", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("message_id"),
        sa.UniqueConstraint("guild_id", "idempotency_key", name="uq_group_idempotency"),
    )
    op.create_index(
        "ix_reaction_role_groups_guild_id", "reaction_role_groups", ["guild_id"]
    )

    op.create_table(
        "reaction_bindings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "group_id",
            sa.Integer(),
            sa.ForeignKey("reaction_role_groups.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("emoji", sa.String(length=100), nullable=False),
        sa.Column("role_id", sa.String(length=32), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False, server_default="toggle"),
    )
    op.create_index(
        "ix_reaction_bindings_group_id", "reaction_bindings", ["group_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_reaction_bindings_group_id", table_name="reaction_bindings")
    op.drop_table("reaction_bindings")
    op.drop_index("ix_reaction_role_groups_guild_id", table_name="reaction_role_groups")
    op.drop_table("reaction_role_groups")
