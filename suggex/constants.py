"""
suggex.constants — Shared Constants
====================================

Single source of truth for channel classes, team names and thread states.
Import from here instead of repeating string literals in cogs and services.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Channel classification
# ---------------------------------------------------------------------------
SUPPORT_CHANNEL = "support_channel"
BUG_CHANNEL = "bug_channel"
NORMAL_CHANNEL = "normal_channel"

CHANNEL_CLASSES: frozenset[str] = frozenset({SUPPORT_CHANNEL, BUG_CHANNEL, NORMAL_CHANNEL})

# Classes whose threads / forum posts are mirrored into the database
TRACKED_CHANNEL_CLASSES: frozenset[str] = frozenset({SUPPORT_CHANNEL, BUG_CHANNEL})

# discord.py ``ChannelType.forum.name``
FORUM_CHANNEL_TYPE = "forum"


# ---------------------------------------------------------------------------
# Teams
# ---------------------------------------------------------------------------
ADMIN_TEAM = "admin_team"
DEV_TEAM = "dev_team"
SUPPORT_TEAM = "support_team"

TEAM_NAMES: dict[str, str] = {
    ADMIN_TEAM: "Admin Team",
    DEV_TEAM: "Dev Team",
    SUPPORT_TEAM: "Support Team",
}


# ---------------------------------------------------------------------------
# Thread / post status
# ---------------------------------------------------------------------------
STATUS_OPEN = "open"
STATUS_ARCHIVED = "archived"
STATUS_LOCKED = "locked"


def thread_status(*, archived: bool, locked: bool) -> str:
    """Collapse Discord's archived/locked flags into one status string."""
    if locked:
        return STATUS_LOCKED
    if archived:
        return STATUS_ARCHIVED
    return STATUS_OPEN
