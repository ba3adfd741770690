"""
suggex.bot.cogs.tasks — Scheduled Reconciliation
=================================================

Re-runs the guild-state reconciler on a ``discord.ext.tasks`` loop every
``sync.interval_minutes`` (default 30).  The first iteration fires as soon
as the bot is ready unless ``sync.on_startup`` is false.

A failed pass is logged and the loop keeps going; the next pass converges.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from discord.ext import commands, tasks

if TYPE_CHECKING:
    from suggex.bot.core import SuggexBot

logger = logging.getLogger(__name__)


class PeriodicTasks(commands.Cog):
    """Cog for the scheduled sync job."""

    def __init__(self, bot: SuggexBot) -> None:
        self.bot = bot
        self._skip_next = not bot.cfg.sync_on_startup

    async def cog_load(self) -> None:
        self.sync_loop.change_interval(minutes=self.bot.cfg.sync_interval_minutes)
        self.sync_loop.start()

    async def cog_unload(self) -> None:
        self.sync_loop.cancel()

    @tasks.loop(minutes=30)
    async def sync_loop(self):
        """Reconcile every guild the bot can see."""
        if self._skip_next:
            self._skip_next = False
            logger.info("Startup sync disabled — first pass deferred one interval")
            return

        try:
            report = await self.bot.run_full_sync()
            summary = report.as_dict()
            logger.info(
                "Sync task complete: guilds=%d failed=%d channels=%d threads=%d posts=%d tags=%d",
                summary["guilds"], len(summary["failed_guilds"]), summary["channels"],
                summary["threads"], summary["posts"], summary["tags"],
            )
        except Exception:
            logger.exception("Sync task failed", extra={"task": "sync"})

    @sync_loop.before_loop
    async def _wait_sync(self):
        await self.bot.wait_until_ready()


async def setup(bot: SuggexBot) -> None:
    await bot.add_cog(PeriodicTasks(bot))
