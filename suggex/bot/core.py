"""
suggex.bot.core — Bot Instance & Cog Loader
============================================

Defines :class:`SuggexBot`, a ``commands.Bot`` subclass that:

1. Stores the shared config (``bot.cfg``) and DB engine (``bot.engine``)
   so every Cog can reach them via ``self.bot``.
2. Wraps itself in a :class:`DiscordSource` (``bot.source``) for the
   reconciler.
3. Loads every Cog in :data:`EXTENSIONS`.
4. Syncs the slash-command tree on startup (guild-scoped when
   ``DEV_GUILD_ID`` is set, global otherwise).
5. Serialises reconciliation runs behind one lock, whether they come from
   the scheduled task or from ``/sync``.
"""

from __future__ import annotations

import asyncio
import logging
import os

import discord
from discord.ext import commands
from sqlalchemy import Engine

from suggex.bot.discord_source import DiscordSource
from suggex.config import SuggexConfig
from suggex.services.source import GuildRef
from suggex.services.sync_service import (
    GuildSyncResult,
    SyncOptions,
    SyncReport,
    sync_all,
    sync_guild,
)

logger = logging.getLogger(__name__)

EXTENSIONS: list[str] = [
    "suggex.bot.cogs.config",
    "suggex.bot.cogs.tasks",
]


class SuggexBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state.

    Parameters
    ----------
    cfg:
        The parsed :class:`SuggexConfig` from ``config.yaml``.
    engine:
        A SQLAlchemy :class:`Engine` connected to PostgreSQL.
    """

    def __init__(self, cfg: SuggexConfig, engine: Engine) -> None:
        intents = discord.Intents.default()
        intents.message_content = True    # Privileged: thread starter text
        intents.members = False
        intents.presences = False

        super().__init__(
            command_prefix=cfg.bot_prefix,
            intents=intents,
            description=f"{cfg.bot_name} — community management",
        )

        self.cfg = cfg
        self.engine = engine
        self.source = DiscordSource(self)

        self.sync_lock = asyncio.Lock()
        self.sync_stop = asyncio.Event()

    # -----------------------------------------------------------------------
    # Reconciliation entry points
    # -----------------------------------------------------------------------
    def sync_options(self) -> SyncOptions:
        return SyncOptions.from_config(self.cfg)

    async def run_full_sync(self) -> SyncReport:
        """Reconcile every guild.  Waits for any run already in progress."""
        async with self.sync_lock:
            return await sync_all(
                self.source, self.engine, self.sync_options(), stop=self.sync_stop,
            )

    async def run_guild_sync(self, guild_id: int) -> GuildSyncResult:
        """Reconcile a single guild."""
        async with self.sync_lock:
            return await sync_guild(
                self.source, self.engine, GuildRef(id=guild_id), self.sync_options(),
            )

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load all Cog extensions.  One broken Cog doesn't stop the bot."""
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        """Fired when the bot has connected and the cache is populated."""
        assert self.user is not None
        logger.info("Ready — logged in as %s (ID: %s)", self.user.name, self.user.id)

        dev_guild_id = os.getenv("DEV_GUILD_ID") or (
            str(self.cfg.guild_id) if self.cfg.guild_id else None
        )
        try:
            if dev_guild_id:
                guild = discord.Object(id=int(dev_guild_id))
                self.tree.copy_global_to(guild=guild)
                synced = await self.tree.sync(guild=guild)
                logger.info("Synced %d commands to guild %s", len(synced), dev_guild_id)
            else:
                synced = await self.tree.sync()
                logger.info("Synced %d commands globally", len(synced))
        except discord.HTTPException:
            logger.exception("Error registering application commands")

    async def close(self) -> None:
        """Graceful shutdown — stop any sync at the next guild boundary."""
        logger.info("Bot shutting down…")
        self.sync_stop.set()
        await super().close()
