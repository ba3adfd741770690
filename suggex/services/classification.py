"""
suggex.services.classification — Channel Classification Lookup
================================================================

Maps a channel id to its admin-assigned class (``support_channel``,
``bug_channel`` or ``normal_channel``) and auto-delete flag.

Both lookups are total: an unknown channel, or a database error, yields the
safe default (``normal_channel`` / ``False``).  Errors are logged and never
reach the caller.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from suggex.constants import CHANNEL_CLASSES, NORMAL_CHANNEL
from suggex.database.models import Channel

logger = logging.getLogger(__name__)


def class_of(engine: Engine, channel_id: int) -> str:
    """Return the stored class of *channel_id*, or ``normal_channel``."""
    try:
        with Session(engine) as session:
            value = session.scalar(
                select(Channel.channel_class).where(Channel.channel_id == channel_id)
            )
    except SQLAlchemyError:
        logger.exception("Error fetching channel class for channel %d", channel_id)
        return NORMAL_CHANNEL

    if value is None:
        logger.debug("Channel %d not classified — treating as %s", channel_id, NORMAL_CHANNEL)
        return NORMAL_CHANNEL
    if value not in CHANNEL_CLASSES:
        logger.warning(
            "Channel %d has unknown class %r — treating as %s",
            channel_id, value, NORMAL_CHANNEL,
        )
        return NORMAL_CHANNEL
    return value


def auto_delete_of(engine: Engine, channel_id: int) -> bool:
    """Return the stored auto-delete flag of *channel_id*, or ``False``."""
    try:
        with Session(engine) as session:
            value = session.scalar(
                select(Channel.channel_is_autodelete).where(Channel.channel_id == channel_id)
            )
    except SQLAlchemyError:
        logger.exception("Error fetching auto-delete flag for channel %d", channel_id)
        return False
    return bool(value)


def set_channel_class(
    engine: Engine,
    channel_id: int,
    channel_class: str,
    *,
    auto_delete: bool | None = None,
) -> bool:
    """Assign a class to an already-synced channel.

    Returns ``False`` when the channel has not been synced yet.  The new class
    drives fan-out from the *next* sync pass onwards.

    Raises
    ------
    ValueError
        If *channel_class* is not one of the known classes.
    """
    if channel_class not in CHANNEL_CLASSES:
        raise ValueError(f"Unknown channel class: {channel_class!r}")

    with Session(engine) as session:
        row = session.get(Channel, channel_id)
        if row is None:
            return False
        row.channel_class = channel_class
        if auto_delete is not None:
            row.channel_is_autodelete = auto_delete
        session.commit()

    logger.info("Channel %d classified as %s", channel_id, channel_class)
    return True
