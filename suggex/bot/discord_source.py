"""
suggex.bot.discord_source — RemoteSource backed by discord.py
==============================================================

Translates live discord.py objects into the plain value types of
:mod:`suggex.services.source`.  Cached objects are used when the client
has them; otherwise the REST API is hit.  discord.py already honours
Discord's rate limits, so nothing here sleeps or retries.
"""

from __future__ import annotations

import logging

import discord

from suggex.services.source import (
    ChannelRef,
    GuildRef,
    MessageSnapshot,
    RoleRef,
    TagRef,
    ThreadRef,
    UserRef,
)

logger = logging.getLogger(__name__)


def snapshot_from_message(message: discord.Message) -> MessageSnapshot:
    """Copy the parts of *message* that the database mirrors."""
    return MessageSnapshot(
        text=message.content or "",
        embeds=[embed.to_dict() for embed in message.embeds],
        mentions={
            "users": [user.id for user in message.mentions],
            "roles": list(message.raw_role_mentions),
            "channels": list(message.raw_channel_mentions),
            "everyone": message.mention_everyone,
        },
        reactions=[
            {"emoji": str(reaction.emoji), "count": reaction.count}
            for reaction in message.reactions
        ],
    )


def tag_ref(channel_id: int, tag: discord.ForumTag) -> TagRef:
    emoji = tag.emoji
    if emoji is None:
        return TagRef(id=tag.id, channel_id=channel_id, name=tag.name)
    if emoji.id:
        return TagRef(
            id=tag.id, channel_id=channel_id, name=tag.name,
            emoji_id=emoji.id, emoji_name=emoji.name,
        )
    return TagRef(id=tag.id, channel_id=channel_id, name=tag.name, emoji=emoji.name)


class DiscordSource:
    """Read-only view of the guilds a :class:`discord.Client` can see."""

    def __init__(self, client: discord.Client) -> None:
        self.client = client

    # -------------------------------------------------------------------
    # Lookup helpers
    # -------------------------------------------------------------------
    async def _guild(self, guild_id: int) -> discord.Guild:
        guild = self.client.get_guild(guild_id)
        if guild is None:
            guild = await self.client.fetch_guild(guild_id)
        return guild

    async def _channel(self, channel_id: int):
        channel = self.client.get_channel(channel_id)
        if channel is None:
            channel = await self.client.fetch_channel(channel_id)
        return channel

    # -------------------------------------------------------------------
    # RemoteSource
    # -------------------------------------------------------------------
    async def list_guilds(self) -> list[GuildRef]:
        return [GuildRef(id=g.id, name=g.name) async for g in self.client.fetch_guilds(limit=None)]

    async def fetch_owner(self, guild_id: int) -> UserRef:
        guild = await self._guild(guild_id)
        if guild.owner_id is None:
            raise LookupError(f"Owner of guild {guild_id} is not available")
        owner = guild.owner
        return UserRef(id=guild.owner_id, name=owner.name if owner else "")

    async def list_roles(self, guild_id: int) -> list[RoleRef]:
        guild = await self._guild(guild_id)
        return [
            RoleRef(id=r.id, guild_id=guild_id, name=r.name, permissions=r.permissions.value)
            for r in await guild.fetch_roles()
        ]

    async def list_channels(self, guild_id: int) -> list[ChannelRef]:
        guild = await self._guild(guild_id)
        return [
            ChannelRef(id=ch.id, guild_id=guild_id, name=ch.name, type=ch.type.name)
            for ch in await guild.fetch_channels()
        ]

    async def list_threads(self, channel_id: int) -> list[ThreadRef]:
        """Active and archived threads of a text or forum channel.

        Private archived threads of a text channel are included when the bot
        has *Manage Threads* there; without it they are skipped, so they are
        neither mirrored nor safe to prune.
        """
        channel = await self._channel(channel_id)
        found: dict[int, discord.Thread] = {}

        for thread in await channel.guild.active_threads():
            if thread.parent_id == channel_id:
                found[thread.id] = thread
        async for thread in channel.archived_threads(limit=None):
            found.setdefault(thread.id, thread)

        if isinstance(channel, discord.TextChannel):
            try:
                async for thread in channel.archived_threads(limit=None, private=True):
                    found.setdefault(thread.id, thread)
            except discord.Forbidden:
                logger.debug(
                    "No access to private archived threads of channel %d", channel_id,
                )

        return [
            ThreadRef(
                id=t.id,
                channel_id=channel_id,
                name=t.name,
                archived=t.archived,
                locked=t.locked,
            )
            for t in found.values()
        ]

    async def fetch_first_message(self, thread_id: int) -> MessageSnapshot | None:
        thread = await self._channel(thread_id)
        async for message in thread.history(limit=1, oldest_first=True):
            if message.type is discord.MessageType.thread_starter_message:
                message = await self._starter_message(thread, message)
                if message is None:
                    return None
            return snapshot_from_message(message)
        return None

    async def _starter_message(
        self, thread: discord.Thread, placeholder: discord.Message,
    ) -> discord.Message | None:
        """Resolve the parent-channel message a thread was started from.

        The first message of such a thread is an empty system message that
        only references the real one.
        """
        reference = placeholder.reference
        if reference is not None and isinstance(reference.resolved, discord.Message):
            return reference.resolved

        message_id = reference.message_id if reference and reference.message_id else thread.id
        parent = thread.parent or await self._channel(thread.parent_id)
        try:
            return await parent.fetch_message(message_id)
        except discord.NotFound:
            logger.debug("Starter message of thread %d was deleted", thread.id)
            return None

    async def list_forum_tags(self, channel_id: int) -> list[TagRef]:
        channel = await self._channel(channel_id)
        if not isinstance(channel, discord.ForumChannel):
            logger.warning("Channel %d is not a forum — it has no tags", channel_id)
            return []
        return [tag_ref(channel_id, tag) for tag in channel.available_tags]
