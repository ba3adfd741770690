"""Initial schema: guilds, settings, channels, roles, teams, threads, tags, projects, posts

Revision ID: 5c2e8a41f0b7
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "5c2e8a41f0b7"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "guilds",
        sa.Column("guild_id", sa.BigInteger(), primary_key=True),
        sa.Column("owner_id", sa.BigInteger(), nullable=True),
        sa.Column("is_premium", sa.Boolean(), server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "guild_settings",
        sa.Column(
            "guild_id",
            sa.BigInteger(),
            sa.ForeignKey("guilds.guild_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("embed", postgresql.JSONB(), nullable=True),
        sa.Column("modal", postgresql.JSONB(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "channels",
        sa.Column("channel_id", sa.BigInteger(), primary_key=True),
        sa.Column("guild_id", sa.BigInteger(), nullable=False),
        sa.Column("channel_name", sa.String(100), nullable=True),
        sa.Column("channel_type", sa.String(30), nullable=False),
        sa.Column(
            "channel_class", sa.String(30), nullable=False, server_default="normal_channel"
        ),
        sa.Column("channel_is_autodelete", sa.Boolean(), server_default="false"),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_channels_guild_id", "channels", ["guild_id"])

    op.create_table(
        "roles",
        sa.Column("role_id", sa.BigInteger(), primary_key=True),
        sa.Column("guild_id", sa.BigInteger(), nullable=False),
        sa.Column("role_permissions", sa.String(32), nullable=False, server_default="0"),
    )
    op.create_index("ix_roles_guild_id", "roles", ["guild_id"])

    op.create_table(
        "teams",
        sa.Column("guild_id", sa.BigInteger(), primary_key=True),
        sa.Column("team_name", sa.String(30), primary_key=True),
    )

    for table, column in (("team_roles", "role_id"), ("team_users", "user_id")):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
            sa.Column("guild_id", sa.BigInteger(), nullable=False),
            sa.Column("team_name", sa.String(30), nullable=False),
            sa.Column(column, sa.BigInteger(), nullable=False),
            sa.ForeignKeyConstraint(
                ["guild_id", "team_name"],
                ["teams.guild_id", "teams.team_name"],
                ondelete="CASCADE",
            ),
            sa.UniqueConstraint(
                "guild_id", "team_name", column, name=f"uq_{table}_member"
            ),
        )

    op.create_table(
        "threads",
        sa.Column("thread_id", sa.BigInteger(), primary_key=True),
        sa.Column("channel_id", sa.BigInteger(), nullable=False),
        sa.Column("thread_name", sa.String(100), nullable=True),
        sa.Column("thread_content", postgresql.JSONB(), nullable=True),
        sa.Column("thread_status", sa.String(20), server_default="open"),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_threads_channel_id", "threads", ["channel_id"])

    op.create_table(
        "tags",
        sa.Column("tag_id", sa.BigInteger(), primary_key=True),
        sa.Column("channel_id", sa.BigInteger(), nullable=False),
        sa.Column("tag_name", sa.String(50), nullable=False),
        sa.Column("tag_emoji", postgresql.JSONB(), nullable=True),
    )
    op.create_index("ix_tags_channel_id", "tags", ["channel_id"])

    op.create_table(
        "projects",
        sa.Column("project_id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("guild_id", sa.BigInteger(), nullable=False),
        sa.Column("project_name", sa.String(100), nullable=False),
        sa.Column("tag_ids", postgresql.JSONB(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("guild_id", "project_name", name="uq_projects_guild_name"),
    )

    op.create_table(
        "posts",
        sa.Column("post_id", sa.BigInteger(), primary_key=True),
        sa.Column("channel_id", sa.BigInteger(), nullable=False),
        sa.Column("post_name", sa.String(100), nullable=True),
        sa.Column("post_content", postgresql.JSONB(), nullable=True),
        sa.Column("post_status", sa.String(20), server_default="open"),
        sa.Column(
            "project_id",
            sa.Integer(),
            sa.ForeignKey("projects.project_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_posts_channel_id", "posts", ["channel_id"])


def downgrade() -> None:
    op.drop_index("ix_posts_channel_id", table_name="posts")
    op.drop_table("posts")
    op.drop_table("projects")
    op.drop_index("ix_tags_channel_id", table_name="tags")
    op.drop_table("tags")
    op.drop_index("ix_threads_channel_id", table_name="threads")
    op.drop_table("threads")
    op.drop_table("team_users")
    op.drop_table("team_roles")
    op.drop_table("teams")
    op.drop_index("ix_roles_guild_id", table_name="roles")
    op.drop_table("roles")
    op.drop_index("ix_channels_guild_id", table_name="channels")
    op.drop_table("channels")
    op.drop_table("guild_settings")
    op.drop_table("guilds")
