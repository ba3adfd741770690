"""
suggex.services.source — Remote Source Protocol & Value Types
==============================================================

The reconciler never touches discord.py objects directly.  It talks to a
:class:`RemoteSource`, a read-only view of live guild state, and receives
plain dataclasses back.  :class:`suggex.bot.discord_source.DiscordSource`
is the production implementation; tests drive the reconciler with an
in-memory fake.

Every method may raise (network errors, rate limits, missing permissions,
deleted objects).  Callers catch at the smallest enclosing unit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from suggex.constants import FORUM_CHANNEL_TYPE, thread_status


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------
@dataclass
class GuildRef:
    id: int
    name: str = ""


@dataclass
class UserRef:
    id: int
    name: str = ""


@dataclass
class RoleRef:
    id: int
    guild_id: int
    name: str = ""
    permissions: int = 0


@dataclass
class ChannelRef:
    """Flattened representation of a guild channel."""
    id: int
    guild_id: int
    name: str
    type: str  # discord.py ChannelType name: "text", "forum", "voice", ...

    @property
    def is_forum(self) -> bool:
        return self.type == FORUM_CHANNEL_TYPE


@dataclass
class ThreadRef:
    """A thread in a text channel, or a post in a forum channel."""
    id: int
    channel_id: int
    name: str
    archived: bool = False
    locked: bool = False

    @property
    def status(self) -> str:
        return thread_status(archived=self.archived, locked=self.locked)


@dataclass
class TagRef:
    """A forum tag.

    Custom emoji arrive as ``emoji_id`` + ``emoji_name``; unicode emoji as
    ``emoji``.  A tag may carry neither.
    """
    id: int
    channel_id: int
    name: str
    emoji_id: int | str | None = None
    emoji_name: str | None = None
    emoji: str | None = None


@dataclass
class MessageSnapshot:
    """Point-in-time copy of a thread's first message."""
    text: str = ""
    embeds: list[dict] = field(default_factory=list)
    mentions: dict = field(default_factory=dict)
    reactions: list[dict] = field(default_factory=list)

    def to_content(self) -> dict:
        """JSON document stored in ``thread_content`` / ``post_content``."""
        return {
            "text": self.text,
            "embeds": list(self.embeds),
            "mentions": {
                "users": list(self.mentions.get("users", [])),
                "roles": list(self.mentions.get("roles", [])),
                "channels": list(self.mentions.get("channels", [])),
                "everyone": bool(self.mentions.get("everyone", False)),
            },
            "reactions": list(self.reactions),
        }


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------
class RemoteSource(Protocol):
    """Read-only access to live guild state."""

    async def list_guilds(self) -> list[GuildRef]: ...

    async def fetch_owner(self, guild_id: int) -> UserRef: ...

    async def list_roles(self, guild_id: int) -> list[RoleRef]: ...

    async def list_channels(self, guild_id: int) -> list[ChannelRef]: ...

    async def list_threads(self, channel_id: int) -> list[ThreadRef]: ...

    async def fetch_first_message(self, thread_id: int) -> MessageSnapshot | None: ...

    async def list_forum_tags(self, channel_id: int) -> list[TagRef]: ...
