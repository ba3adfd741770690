"""
suggex.config — YAML Configuration Loader
==========================================

Reads ``config.yaml`` for soft, non-secret settings (bot identity, sync
cadence, asset hosting, per-guild settings overrides).  Secrets such as
``DISCORD_TOKEN`` and ``DATABASE_URL`` come from the environment via
``.env`` and never live in this file.

Usage::

    from suggex.config import load_config

    cfg = load_config()                 # reads ./config.yaml by default
    print(cfg.bot_name)                 # "Suggex"
    print(cfg.sync_interval_minutes)    # 30
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_ASSET_BASE_URL = "https://suggexbot.io/assets/"


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class SuggexConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    bot_name: str
    bot_prefix: str

    # Primary guild snowflake, used for guild-scoped command sync
    guild_id: int | None = None

    # Where default embed artwork is hosted
    asset_base_url: str = DEFAULT_ASSET_BASE_URL

    # Reconciliation
    sync_interval_minutes: int = 30
    sync_on_startup: bool = True
    prune_missing: bool = False

    # Per-guild ``{"embed": {...}, "modal": {...}}`` overrides, keyed by guild id
    guild_settings: dict[int, dict] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> SuggexConfig:
    """Read *path* and return a :class:`SuggexConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    sync: dict = raw.get("sync") or {}

    return SuggexConfig(
        bot_name=raw["bot_name"],
        bot_prefix=raw["bot_prefix"],
        guild_id=int(raw["guild_id"]) if raw.get("guild_id") else None,
        asset_base_url=raw.get("asset_base_url") or DEFAULT_ASSET_BASE_URL,
        sync_interval_minutes=int(sync.get("interval_minutes", 30)),
        sync_on_startup=bool(sync.get("on_startup", True)),
        prune_missing=bool(sync.get("prune_missing", False)),
        guild_settings={
            int(gid): dict(overrides or {})
            for gid, overrides in (raw.get("guild_settings") or {}).items()
        },
    )
