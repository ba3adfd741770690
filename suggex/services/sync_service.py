"""
suggex.services.sync_service — Guild State Reconciliation
==========================================================

Drives the database toward agreement with live Discord state.

How it works:
    1. List every guild the bot can see (one remote call).
    2. For each guild, in sequence:
       a. upsert the ``guilds`` row (owner resolved with a second fetch),
       b. merge the guild's settings (merge-don't-clobber),
       c. mirror its roles,
       d. mirror its channels and, for ``support_channel`` / ``bug_channel``
          channels, their threads (text) or posts + tags (forum).
    3. Return a :class:`SyncReport` with one result per guild.

Failure containment:
    Every guild, channel, entity type and row is its own unit.  A failure is
    logged with its context and the next unit proceeds; nothing is retried.
    The job runs on a schedule, and every step is idempotent, so the next
    pass converges.

Ordering:
    Fan-out for a channel is decided by the classification stored *before*
    this pass wrote the channel row.  A channel reclassified between passes
    therefore changes behaviour on the following pass.

Guilds are iterated sequentially.  An optional :class:`asyncio.Event` stops
the run at the next guild boundary.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from suggex.config import DEFAULT_ASSET_BASE_URL, SuggexConfig
from suggex.constants import TRACKED_CHANNEL_CLASSES
from suggex.database.engine import run_db
from suggex.services.channel_service import (
    extract_tag_emoji,
    prune_channels,
    prune_posts,
    prune_tags,
    prune_threads,
    upsert_channel,
    upsert_post,
    upsert_tag,
    upsert_thread,
)
from suggex.services.classification import auto_delete_of, class_of
from suggex.services.guild_service import (
    prune_roles,
    upsert_guild,
    upsert_guild_setting,
    upsert_role,
)
from suggex.services.source import ChannelRef, GuildRef, MessageSnapshot, RemoteSource

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Options & results
# ---------------------------------------------------------------------------
@dataclass
class SyncOptions:
    """Knobs for one reconciliation run."""
    prune: bool = False
    asset_base_url: str = DEFAULT_ASSET_BASE_URL
    guild_settings: dict[int, dict] = field(default_factory=dict)

    @classmethod
    def from_config(cls, cfg: SuggexConfig) -> SyncOptions:
        return cls(
            prune=cfg.prune_missing,
            asset_base_url=cfg.asset_base_url,
            guild_settings=dict(cfg.guild_settings),
        )


@dataclass
class GuildSyncResult:
    """Settled outcome of one guild's sync."""
    guild_id: int
    channels: int = 0
    threads: int = 0
    posts: int = 0
    tags: int = 0
    roles: int = 0
    pruned: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def record_error(self, scope: str, exc: BaseException) -> None:
        self.errors.append(f"{scope}: {exc.__class__.__name__}: {exc}")


@dataclass
class SyncReport:
    """Aggregated results of a :func:`sync_all` run."""
    guilds: list[GuildSyncResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    cancelled: bool = False
    started_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    finished_at: str | None = None

    @property
    def failed_guilds(self) -> list[int]:
        return [g.guild_id for g in self.guilds if not g.ok]

    def as_dict(self) -> dict:
        return {
            "guilds": len(self.guilds),
            "failed_guilds": self.failed_guilds,
            "channels": sum(g.channels for g in self.guilds),
            "threads": sum(g.threads for g in self.guilds),
            "posts": sum(g.posts for g in self.guilds),
            "tags": sum(g.tags for g in self.guilds),
            "roles": sum(g.roles for g in self.guilds),
            "pruned": sum(g.pruned for g in self.guilds),
            "errors": list(self.errors),
            "cancelled": self.cancelled,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }


# ---------------------------------------------------------------------------
# Top-level driver
# ---------------------------------------------------------------------------
async def sync_all(
    source: RemoteSource,
    engine: Engine,
    options: SyncOptions | None = None,
    *,
    stop: asyncio.Event | None = None,
) -> SyncReport:
    """Synchronize every guild visible to *source*.  Never raises for a
    per-guild failure."""
    options = options or SyncOptions()
    report = SyncReport()
    logger.debug("Starting full synchronization…")

    try:
        guilds = await source.list_guilds()
    except Exception as exc:
        logger.exception("Failed to list guilds — aborting synchronization pass")
        report.errors.append(f"list_guilds: {exc.__class__.__name__}: {exc}")
        report.finished_at = datetime.now(UTC).isoformat()
        return report

    for guild in guilds:
        if stop is not None and stop.is_set():
            logger.warning(
                "Synchronization cancelled after %d/%d guilds",
                len(report.guilds), len(guilds),
            )
            report.cancelled = True
            break

        try:
            result = await sync_guild(source, engine, guild, options)
        except Exception as exc:
            logger.exception("Unexpected error synchronizing guild %d", guild.id)
            result = GuildSyncResult(guild_id=guild.id)
            result.record_error("guild", exc)
        report.guilds.append(result)

    report.finished_at = datetime.now(UTC).isoformat()
    summary = report.as_dict()
    if report.failed_guilds:
        logger.warning(
            "Synchronization finished with errors in %d/%d guilds: %s",
            len(report.failed_guilds), len(report.guilds), report.failed_guilds,
        )
    else:
        logger.info(
            "Full synchronization completed: %d guilds, %d channels, "
            "%d threads, %d posts, %d tags",
            summary["guilds"], summary["channels"], summary["threads"],
            summary["posts"], summary["tags"],
        )
    return report


async def sync_guild(
    source: RemoteSource,
    engine: Engine,
    guild: GuildRef,
    options: SyncOptions | None = None,
) -> GuildSyncResult:
    """Synchronize one guild: row, settings, roles, then channels."""
    options = options or SyncOptions()
    result = GuildSyncResult(guild_id=guild.id)

    owner_id: int | None = None
    try:
        owner_id = (await source.fetch_owner(guild.id)).id
    except Exception as exc:
        logger.warning("Could not resolve owner of guild %d: %s", guild.id, exc)

    try:
        await run_db(upsert_guild, engine, guild.id, owner_id)
        logger.info("Guild synchronized: %d", guild.id)
    except SQLAlchemyError as exc:
        logger.exception("Error persisting guild %d", guild.id)
        result.record_error("guild_row", exc)

    await sync_guild_settings(engine, guild.id, options, result=result)

    try:
        await sync_roles(source, engine, guild.id, prune=options.prune, result=result)
    except Exception as exc:
        logger.exception("Error synchronizing roles for guild %d", guild.id)
        result.record_error("roles", exc)

    try:
        await sync_channels(source, engine, guild.id, prune=options.prune, result=result)
    except Exception as exc:
        logger.exception("Error synchronizing channels for guild %d", guild.id)
        result.record_error("channels", exc)

    return result


# ---------------------------------------------------------------------------
# Guild settings
# ---------------------------------------------------------------------------
async def sync_guild_settings(
    engine: Engine,
    guild_id: int,
    options: SyncOptions,
    *,
    result: GuildSyncResult | None = None,
) -> str | None:
    """Merge the deployment's overrides for *guild_id* into its settings row.

    Returns the outcome of :func:`upsert_guild_setting`, or ``None`` on a
    persistence failure.
    """
    overrides = options.guild_settings.get(guild_id) or {}
    try:
        return await run_db(
            upsert_guild_setting,
            engine,
            guild_id,
            overrides.get("embed"),
            overrides.get("modal"),
            asset_base_url=options.asset_base_url,
        )
    except SQLAlchemyError as exc:
        logger.exception("Error synchronizing settings for guild %d", guild_id)
        if result is not None:
            result.record_error("settings", exc)
        return None


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------
async def sync_roles(
    source: RemoteSource,
    engine: Engine,
    guild_id: int,
    *,
    prune: bool = False,
    result: GuildSyncResult | None = None,
) -> int:
    """Mirror the guild's roles.  Listing errors propagate to the caller."""
    roles = await source.list_roles(guild_id)
    synced = 0
    for role in roles:
        try:
            await run_db(upsert_role, engine, guild_id, role.id, role.permissions)
            synced += 1
        except SQLAlchemyError as exc:
            logger.exception("Error persisting role %d of guild %d", role.id, guild_id)
            if result is not None:
                result.record_error(f"role:{role.id}", exc)

    if prune:
        removed = await run_db(prune_roles, engine, guild_id, {r.id for r in roles})
        if result is not None:
            result.pruned += removed

    if result is not None:
        result.roles += synced
    logger.debug("Synchronized %d/%d roles for guild %d", synced, len(roles), guild_id)
    return synced


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------
async def sync_channels(
    source: RemoteSource,
    engine: Engine,
    guild_id: int,
    *,
    prune: bool = False,
    result: GuildSyncResult | None = None,
) -> int:
    """Mirror every channel of *guild_id* and fan out to tracked channels.

    Listing errors propagate; everything after that is isolated per channel.
    Returns the number of channel rows written.
    """
    logger.debug("Starting channel synchronization for guild %d", guild_id)
    channels = await source.list_channels(guild_id)
    logger.info("Fetched %d channels for guild %d", len(channels), guild_id)

    synced = 0
    for channel in channels:
        try:
            if await _sync_channel(source, engine, channel, prune=prune, result=result):
                synced += 1
        except Exception as exc:
            logger.exception(
                "Unexpected error synchronizing channel %s (%d)", channel.name, channel.id,
            )
            if result is not None:
                result.record_error(f"channel:{channel.id}", exc)

    if prune:
        removed = await run_db(prune_channels, engine, guild_id, {c.id for c in channels})
        if result is not None:
            result.pruned += removed

    if result is not None:
        result.channels += synced
    return synced


async def _sync_channel(
    source: RemoteSource,
    engine: Engine,
    channel: ChannelRef,
    *,
    prune: bool,
    result: GuildSyncResult | None,
) -> bool:
    """Upsert one channel row, then fan out on its pre-sync class."""
    channel_class = await run_db(class_of, engine, channel.id)
    auto_delete = await run_db(auto_delete_of, engine, channel.id)

    written = True
    try:
        await run_db(
            upsert_channel,
            engine,
            channel_id=channel.id,
            guild_id=channel.guild_id,
            channel_name=channel.name,
            channel_type=channel.type,
            channel_class=channel_class,
            auto_delete=auto_delete,
        )
        logger.info("Channel synchronized: %s (%d)", channel.name, channel.id)
    except SQLAlchemyError as exc:
        written = False
        logger.exception("Error persisting channel %s (%d)", channel.name, channel.id)
        if result is not None:
            result.record_error(f"channel:{channel.id}", exc)

    if channel_class not in TRACKED_CHANNEL_CLASSES:
        logger.debug(
            "Channel %s (%d) is not a support or bug channel. Skipping.",
            channel.name, channel.id,
        )
        return written

    logger.debug("Channel %d is classified as %s", channel.id, channel_class)
    if channel.is_forum:
        try:
            await sync_posts(source, engine, channel, prune=prune, result=result)
        except Exception as exc:
            logger.exception(
                "Error syncing posts for forum channel %s (%d)", channel.name, channel.id,
            )
            if result is not None:
                result.record_error(f"posts:{channel.id}", exc)

        try:
            await sync_tags(source, engine, channel, prune=prune, result=result)
        except Exception as exc:
            logger.exception(
                "Error syncing tags for forum channel %s (%d)", channel.name, channel.id,
            )
            if result is not None:
                result.record_error(f"tags:{channel.id}", exc)
    else:
        try:
            await sync_threads(source, engine, channel, prune=prune, result=result)
        except Exception as exc:
            logger.exception(
                "Error syncing threads for channel %s (%d)", channel.name, channel.id,
            )
            if result is not None:
                result.record_error(f"threads:{channel.id}", exc)

    return written


async def _is_tracked(engine: Engine, channel: ChannelRef, kind: str) -> bool:
    """Guard shared by the per-entity syncs: class must be support/bug."""
    channel_class = await run_db(class_of, engine, channel.id)
    if channel_class not in TRACKED_CHANNEL_CLASSES:
        logger.warning(
            "Attempted to sync %s for a channel with incompatible class %s: %d",
            kind, channel_class, channel.id,
        )
        return False
    return True


async def _snapshot(source: RemoteSource, thread_id: int) -> dict:
    message = await source.fetch_first_message(thread_id)
    if message is None:
        logger.debug("Thread %d has no starter message — storing empty snapshot", thread_id)
        message = MessageSnapshot()
    return message.to_content()


# ---------------------------------------------------------------------------
# Threads (text channels)
# ---------------------------------------------------------------------------
async def sync_threads(
    source: RemoteSource,
    engine: Engine,
    channel: ChannelRef,
    *,
    prune: bool = False,
    result: GuildSyncResult | None = None,
) -> int:
    """Snapshot every thread of a support/bug text channel.

    No-op (with a warning) for forum channels or untracked classes.  Listing
    errors propagate; a failure on one thread skips only that thread.
    """
    if channel.is_forum:
        logger.warning("Attempted to sync threads for a forum channel: %d", channel.id)
        return 0
    if not await _is_tracked(engine, channel, "threads"):
        return 0

    logger.debug("Starting thread synchronization for channel %d", channel.id)
    threads = await source.list_threads(channel.id)
    synced = 0
    for thread in threads:
        try:
            content = await _snapshot(source, thread.id)
        except Exception as exc:
            logger.warning(
                "Could not fetch first message of thread %d in channel %d: %s",
                thread.id, channel.id, exc,
            )
            if result is not None:
                result.record_error(f"thread:{thread.id}", exc)
            continue

        try:
            await run_db(
                upsert_thread,
                engine,
                thread_id=thread.id,
                channel_id=channel.id,
                thread_name=thread.name,
                thread_content=content,
                thread_status=thread.status,
            )
            synced += 1
            logger.info("Thread synchronized: %d", thread.id)
        except SQLAlchemyError as exc:
            logger.exception("Error persisting thread %d", thread.id)
            if result is not None:
                result.record_error(f"thread:{thread.id}", exc)

    if prune:
        removed = await run_db(prune_threads, engine, channel.id, {t.id for t in threads})
        if result is not None:
            result.pruned += removed

    if result is not None:
        result.threads += synced
    return synced


# ---------------------------------------------------------------------------
# Posts (forum channels)
# ---------------------------------------------------------------------------
async def sync_posts(
    source: RemoteSource,
    engine: Engine,
    channel: ChannelRef,
    *,
    prune: bool = False,
    result: GuildSyncResult | None = None,
) -> int:
    """Snapshot every post of a support/bug forum channel."""
    if not channel.is_forum:
        logger.warning("Attempted to sync posts for a non-forum channel: %d", channel.id)
        return 0
    if not await _is_tracked(engine, channel, "posts"):
        return 0

    logger.debug("Starting post synchronization for forum channel %d", channel.id)
    posts = await source.list_threads(channel.id)
    synced = 0
    for post in posts:
        try:
            content = await _snapshot(source, post.id)
        except Exception as exc:
            logger.warning(
                "Could not fetch first message of post %d in forum %d: %s",
                post.id, channel.id, exc,
            )
            if result is not None:
                result.record_error(f"post:{post.id}", exc)
            continue

        try:
            await run_db(
                upsert_post,
                engine,
                post_id=post.id,
                channel_id=channel.id,
                post_name=post.name,
                post_content=content,
                post_status=post.status,
            )
            synced += 1
            logger.info("Post synchronized: %d", post.id)
        except SQLAlchemyError as exc:
            logger.exception("Error persisting post %d", post.id)
            if result is not None:
                result.record_error(f"post:{post.id}", exc)

    if prune:
        removed = await run_db(prune_posts, engine, channel.id, {p.id for p in posts})
        if result is not None:
            result.pruned += removed

    if result is not None:
        result.posts += synced
    return synced


# ---------------------------------------------------------------------------
# Tags (forum channels)
# ---------------------------------------------------------------------------
async def sync_tags(
    source: RemoteSource,
    engine: Engine,
    channel: ChannelRef,
    *,
    prune: bool = False,
    result: GuildSyncResult | None = None,
) -> int:
    """Mirror the available tags of a support/bug forum channel."""
    if not channel.is_forum:
        logger.warning("Attempted to sync tags for a non-forum channel: %d", channel.id)
        return 0
    if not await _is_tracked(engine, channel, "tags"):
        return 0

    logger.debug("Starting tag synchronization for forum channel %d", channel.id)
    tags = await source.list_forum_tags(channel.id)
    synced = 0
    for tag in tags:
        try:
            await run_db(
                upsert_tag,
                engine,
                tag_id=tag.id,
                channel_id=channel.id,
                tag_name=tag.name,
                tag_emoji=extract_tag_emoji(tag),
            )
            synced += 1
            logger.info("Tag synchronized: %d", tag.id)
        except SQLAlchemyError as exc:
            logger.exception("Error persisting tag %d", tag.id)
            if result is not None:
                result.record_error(f"tag:{tag.id}", exc)

    if prune:
        removed = await run_db(prune_tags, engine, channel.id, {t.id for t in tags})
        if result is not None:
            result.pruned += removed

    if result is not None:
        result.tags += synced
    return synced
