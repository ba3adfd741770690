"""
suggex.services.channel_service — Channel, Thread, Post & Tag Persistence
==========================================================================

One synchronous function per row kind.  Each opens its own short session, so
a failure persisting one row never rolls back its siblings, and two upserts
of the same key simply resolve last-write-wins.

Pruning helpers are only called when the reconciler runs with
``SyncOptions(prune=True)``.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, delete, select

from suggex.constants import NORMAL_CHANNEL
from suggex.database.engine import get_session
from suggex.database.models import Channel, Post, Tag, Thread
from suggex.services.source import TagRef

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Emoji extraction
# ---------------------------------------------------------------------------
def extract_tag_emoji(tag: TagRef) -> dict:
    """Emoji metadata for a forum tag.

    Custom emoji → ``{"id", "name"}``; unicode emoji → ``{"name"}``;
    no emoji → ``{}``.
    """
    if tag.emoji_id and tag.emoji_name:
        return {"id": str(tag.emoji_id), "name": tag.emoji_name}
    if tag.emoji:
        return {"name": tag.emoji}
    return {}


# ---------------------------------------------------------------------------
# Upserts
# ---------------------------------------------------------------------------
def upsert_channel(
    engine: Engine,
    *,
    channel_id: int,
    guild_id: int,
    channel_type: str,
    channel_name: str | None = None,
    channel_class: str | None = None,
    auto_delete: bool | None = None,
) -> None:
    """Insert or update a channel row.

    ``channel_class`` / ``auto_delete`` only seed a new row (falling back to
    ``normal_channel`` / ``False``).  An existing row keeps its stored
    classification; only ``set_channel_class`` changes it.
    """
    with get_session(engine) as session:
        row = session.get(Channel, channel_id)
        if row is None:
            row = Channel(
                channel_id=channel_id,
                channel_class=channel_class or NORMAL_CHANNEL,
                channel_is_autodelete=bool(auto_delete),
            )
            session.add(row)
        row.guild_id = guild_id
        row.channel_name = channel_name
        row.channel_type = channel_type


def upsert_thread(
    engine: Engine,
    *,
    thread_id: int,
    channel_id: int,
    thread_name: str,
    thread_content: dict,
    thread_status: str,
) -> None:
    """Insert or overwrite a thread snapshot."""
    with get_session(engine) as session:
        row = session.get(Thread, thread_id)
        if row is None:
            row = Thread(thread_id=thread_id)
            session.add(row)
        row.channel_id = channel_id
        row.thread_name = thread_name
        row.thread_content = thread_content
        row.thread_status = thread_status


def upsert_post(
    engine: Engine,
    *,
    post_id: int,
    channel_id: int,
    post_name: str,
    post_content: dict,
    post_status: str,
) -> None:
    """Insert or overwrite a forum post snapshot.  ``project_id`` is kept."""
    with get_session(engine) as session:
        row = session.get(Post, post_id)
        if row is None:
            row = Post(post_id=post_id)
            session.add(row)
        row.channel_id = channel_id
        row.post_name = post_name
        row.post_content = post_content
        row.post_status = post_status


def upsert_tag(
    engine: Engine,
    *,
    tag_id: int,
    channel_id: int,
    tag_name: str,
    tag_emoji: dict,
) -> None:
    """Insert or update a forum tag."""
    with get_session(engine) as session:
        row = session.get(Tag, tag_id)
        if row is None:
            row = Tag(tag_id=tag_id)
            session.add(row)
        row.channel_id = channel_id
        row.tag_name = tag_name
        row.tag_emoji = tag_emoji


# ---------------------------------------------------------------------------
# Opt-in pruning
# ---------------------------------------------------------------------------
def prune_channels(engine: Engine, guild_id: int, keep_ids: set[int]) -> int:
    """Delete channels of *guild_id* missing from *keep_ids*, with their children."""
    with get_session(engine) as session:
        stale = list(session.scalars(
            select(Channel.channel_id).where(
                Channel.guild_id == guild_id, Channel.channel_id.not_in(keep_ids),
            )
        ))
        if not stale:
            return 0
        session.execute(delete(Thread).where(Thread.channel_id.in_(stale)))
        session.execute(delete(Post).where(Post.channel_id.in_(stale)))
        session.execute(delete(Tag).where(Tag.channel_id.in_(stale)))
        session.execute(delete(Channel).where(Channel.channel_id.in_(stale)))
    logger.info("Pruned %d stale channels for guild %d", len(stale), guild_id)
    return len(stale)


def prune_threads(engine: Engine, channel_id: int, keep_ids: set[int]) -> int:
    with get_session(engine) as session:
        result = session.execute(
            delete(Thread).where(Thread.channel_id == channel_id, Thread.thread_id.not_in(keep_ids))
        )
        return result.rowcount or 0


def prune_posts(engine: Engine, channel_id: int, keep_ids: set[int]) -> int:
    with get_session(engine) as session:
        result = session.execute(
            delete(Post).where(Post.channel_id == channel_id, Post.post_id.not_in(keep_ids))
        )
        return result.rowcount or 0


def prune_tags(engine: Engine, channel_id: int, keep_ids: set[int]) -> int:
    with get_session(engine) as session:
        result = session.execute(
            delete(Tag).where(Tag.channel_id == channel_id, Tag.tag_id.not_in(keep_ids))
        )
        return result.rowcount or 0
