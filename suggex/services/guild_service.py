"""
suggex.services.guild_service — Guild, Settings & Role Persistence
===================================================================

Synchronous upserts used by the reconciler (via ``run_db``) plus the read
helpers the command layer uses to style its replies.

Guild settings follow *merge-don't-clobber* semantics: an existing row only
has a field replaced when the fresh value is non-null, so presets an admin
tuned are never wiped by a sync that has nothing to say about them.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, delete

from suggex.config import DEFAULT_ASSET_BASE_URL
from suggex.database.defaults import default_embed_settings, default_modal_settings
from suggex.database.engine import get_session
from suggex.database.models import Guild, GuildSetting, Role

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Guilds
# ---------------------------------------------------------------------------
def upsert_guild(engine: Engine, guild_id: int, owner_id: int | None) -> bool:
    """Create the guild row if missing.  Returns ``True`` when created.

    An existing row keeps its ``owner_id`` and ``is_premium`` untouched, except
    that a missing owner is filled in once it becomes known.
    """
    with get_session(engine) as session:
        guild = session.get(Guild, guild_id)
        if guild is None:
            session.add(Guild(guild_id=guild_id, owner_id=owner_id, is_premium=False))
            logger.info("Guild created: %d (owner %s)", guild_id, owner_id)
            return True
        if guild.owner_id is None and owner_id is not None:
            guild.owner_id = owner_id
        return False


# ---------------------------------------------------------------------------
# Guild settings
# ---------------------------------------------------------------------------
def upsert_guild_setting(
    engine: Engine,
    guild_id: int,
    embed: dict | None = None,
    modal: dict | None = None,
    *,
    asset_base_url: str = DEFAULT_ASSET_BASE_URL,
) -> str:
    """Merge fresh *embed* / *modal* values into the guild's settings row.

    Returns ``"updated"``, ``"created"`` or ``"defaulted"`` (created purely
    from the built-in presets).
    """
    with get_session(engine) as session:
        setting = session.get(GuildSetting, guild_id)
        if setting is not None:
            if embed is not None:
                setting.embed = embed
            if modal is not None:
                setting.modal = modal
            logger.info("Updated settings for guild %d", guild_id)
            return "updated"

        session.add(GuildSetting(
            guild_id=guild_id,
            embed=embed if embed is not None else default_embed_settings(asset_base_url),
            modal=modal if modal is not None else default_modal_settings(),
        ))

    if embed is not None or modal is not None:
        logger.info("Created new settings for guild %d", guild_id)
        return "created"
    logger.info("Applied default settings for new guild %d", guild_id)
    return "defaulted"


def get_embed_settings(engine: Engine, guild_id: int) -> dict | None:
    """Stored embed preset for *guild_id*, or ``None``."""
    with get_session(engine) as session:
        setting = session.get(GuildSetting, guild_id)
        return setting.embed if setting and setting.embed else None


def get_modal_settings(engine: Engine, guild_id: int) -> dict | None:
    """Stored modal preset for *guild_id*, or ``None``."""
    with get_session(engine) as session:
        setting = session.get(GuildSetting, guild_id)
        return setting.modal if setting and setting.modal else None


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------
def upsert_role(engine: Engine, guild_id: int, role_id: int, permissions: int) -> None:
    """Insert or update a role's permission bitfield (stored as a decimal string)."""
    with get_session(engine) as session:
        role = session.get(Role, role_id)
        if role is None:
            session.add(Role(role_id=role_id, guild_id=guild_id, role_permissions=str(permissions)))
        else:
            role.guild_id = guild_id
            role.role_permissions = str(permissions)


def prune_roles(engine: Engine, guild_id: int, keep_ids: set[int]) -> int:
    """Delete role rows of *guild_id* whose id is not in *keep_ids*."""
    with get_session(engine) as session:
        result = session.execute(
            delete(Role).where(Role.guild_id == guild_id, Role.role_id.not_in(keep_ids))
        )
        return result.rowcount or 0
