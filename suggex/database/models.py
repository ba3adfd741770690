"""
suggex.database.models — SQLAlchemy 2.0 Data Models
====================================================

Tables:
- guilds          — One row per Discord guild the bot can see
- guild_settings  — Per-guild embed / modal presets (1:1 with guilds)
- channels        — Channel metadata plus the admin-assigned classification
- roles           — Role permission bitfields
- teams           — Named staff teams per guild (admin / dev / support)
- team_roles      — Roles that belong to a team
- team_users      — Users that belong to a team
- threads         — Snapshot of threads in support / bug text channels
- tags            — Forum tags of support / bug forum channels
- posts           — Snapshot of posts in support / bug forum channels
- projects        — Per-guild projects that posts can be filed under

Discord snowflakes are stored as ``BigInteger``.  Message snapshots are
``JSONB`` documents shaped like::

    {"text": ..., "embeds": [...], "mentions": {...}, "reactions": [...]}
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from suggex.constants import NORMAL_CHANNEL, STATUS_OPEN


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Suggex ORM models."""


# ---------------------------------------------------------------------------
# Guilds
# ---------------------------------------------------------------------------
class Guild(Base):
    """A Discord guild.

    ``owner_id`` is recorded when the row is first created.  ``is_premium``
    belongs to the billing process and is never written by the sync job.
    """
    __tablename__ = "guilds"

    guild_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    owner_id: Mapped[int | None] = mapped_column(BigInteger, default=None)
    is_premium: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<Guild id={self.guild_id} owner={self.owner_id} premium={self.is_premium}>"


class GuildSetting(Base):
    __tablename__ = "guild_settings"

    guild_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("guilds.guild_id", ondelete="CASCADE"), primary_key=True
    )
    embed: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    modal: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<GuildSetting guild={self.guild_id}>"


# ---------------------------------------------------------------------------
# Channels — metadata plus classification
# ---------------------------------------------------------------------------
class Channel(Base):
    """Discord channel metadata synced from the guild.

    ``channel_class`` and ``channel_is_autodelete`` are assigned by admins and
    only ever carried forward by the sync job, never derived from Discord.
    """
    __tablename__ = "channels"

    channel_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    guild_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    channel_name: Mapped[str | None] = mapped_column(String(100), default=None)
    channel_type: Mapped[str] = mapped_column(String(30), nullable=False)  # text, forum, voice, ...
    channel_class: Mapped[str] = mapped_column(
        String(30), nullable=False, default=NORMAL_CHANNEL
    )
    channel_is_autodelete: Mapped[bool] = mapped_column(Boolean, default=False)
    last_synced_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_channels_guild_id", "guild_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Channel id={self.channel_id} type={self.channel_type!r} "
            f"class={self.channel_class!r}>"
        )


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------
class Role(Base):
    __tablename__ = "roles"

    role_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    guild_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    role_permissions: Mapped[str] = mapped_column(String(32), nullable=False, default="0")

    __table_args__ = (
        Index("ix_roles_guild_id", "guild_id"),
    )

    def __repr__(self) -> str:
        return f"<Role id={self.role_id} perms={self.role_permissions}>"


# ---------------------------------------------------------------------------
# Teams — admin_team / dev_team / support_team per guild
# ---------------------------------------------------------------------------
class Team(Base):
    __tablename__ = "teams"

    guild_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    team_name: Mapped[str] = mapped_column(String(30), primary_key=True)

    roles: Mapped[list[TeamRole]] = relationship(
        back_populates="team", cascade="all, delete-orphan"
    )
    users: Mapped[list[TeamUser]] = relationship(
        back_populates="team", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Team guild={self.guild_id} name={self.team_name!r}>"


class TeamRole(Base):
    __tablename__ = "team_roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    guild_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    team_name: Mapped[str] = mapped_column(String(30), nullable=False)
    role_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    team: Mapped[Team] = relationship(back_populates="roles")

    __table_args__ = (
        ForeignKeyConstraint(
            ["guild_id", "team_name"],
            ["teams.guild_id", "teams.team_name"],
            ondelete="CASCADE",
        ),
        UniqueConstraint("guild_id", "team_name", "role_id", name="uq_team_roles_member"),
    )

    def __repr__(self) -> str:
        return f"<TeamRole team={self.team_name!r} role={self.role_id}>"


class TeamUser(Base):
    __tablename__ = "team_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    guild_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    team_name: Mapped[str] = mapped_column(String(30), nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    team: Mapped[Team] = relationship(back_populates="users")

    __table_args__ = (
        ForeignKeyConstraint(
            ["guild_id", "team_name"],
            ["teams.guild_id", "teams.team_name"],
            ondelete="CASCADE",
        ),
        UniqueConstraint("guild_id", "team_name", "user_id", name="uq_team_users_member"),
    )

    def __repr__(self) -> str:
        return f"<TeamUser team={self.team_name!r} user={self.user_id}>"


# ---------------------------------------------------------------------------
# Threads — support / bug text channel threads
# ---------------------------------------------------------------------------
class Thread(Base):
    __tablename__ = "threads"

    thread_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    channel_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    thread_name: Mapped[str | None] = mapped_column(String(100), default=None)
    thread_content: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    thread_status: Mapped[str] = mapped_column(String(20), default=STATUS_OPEN)
    last_synced_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_threads_channel_id", "channel_id"),
    )

    def __repr__(self) -> str:
        return f"<Thread id={self.thread_id} channel={self.channel_id} status={self.thread_status!r}>"


# ---------------------------------------------------------------------------
# Tags — forum tags
# ---------------------------------------------------------------------------
class Tag(Base):
    __tablename__ = "tags"

    tag_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    channel_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    tag_name: Mapped[str] = mapped_column(String(50), nullable=False)
    tag_emoji: Mapped[dict | None] = mapped_column(JSONB, default=dict)

    __table_args__ = (
        Index("ix_tags_channel_id", "channel_id"),
    )

    def __repr__(self) -> str:
        return f"<Tag id={self.tag_id} name={self.tag_name!r}>"


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------
class Project(Base):
    __tablename__ = "projects"

    project_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    guild_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    project_name: Mapped[str] = mapped_column(String(100), nullable=False)
    tag_ids: Mapped[list | None] = mapped_column(JSONB, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("guild_id", "project_name", name="uq_projects_guild_name"),
    )

    def __repr__(self) -> str:
        return f"<Project id={self.project_id} name={self.project_name!r}>"


# ---------------------------------------------------------------------------
# Posts — support / bug forum posts
# ---------------------------------------------------------------------------
class Post(Base):
    __tablename__ = "posts"

    post_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    channel_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    post_name: Mapped[str | None] = mapped_column(String(100), default=None)
    post_content: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    post_status: Mapped[str] = mapped_column(String(20), default=STATUS_OPEN)
    project_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("projects.project_id", ondelete="SET NULL"), nullable=True
    )
    last_synced_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    project: Mapped[Project | None] = relationship()

    __table_args__ = (
        Index("ix_posts_channel_id", "channel_id"),
    )

    def __repr__(self) -> str:
        return f"<Post id={self.post_id} channel={self.channel_id} status={self.post_status!r}>"
