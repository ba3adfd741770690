"""
Suggex — Community Management Bot for Discord
==============================================
Keeps a relational mirror of each guild's channels, threads, forum posts,
tags and roles, and exposes slash commands for managing teams and
projects on top of it.

Package layout::

    suggex/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Channel classes, team names, status values
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   ├── defaults.py    # Default embed / modal settings
    │   └── models.py      # All ORM models
    ├── services/
    │   ├── source.py          # RemoteSource protocol + value types
    │   ├── classification.py  # Channel class / auto-delete lookup
    │   ├── guild_service.py   # Guild, GuildSetting, Role upserts
    │   ├── channel_service.py # Channel, Thread, Post, Tag upserts
    │   ├── sync_service.py    # The reconciler
    │   ├── project_service.py # /addprojects data access
    │   └── team_service.py    # /addtoteam, /removefromteam data access
    └── bot/
        ├── core.py        # Bot subclass, cog loader
        ├── discord_source.py  # RemoteSource backed by discord.py
        └── cogs/
            ├── config.py  # /addprojects, /addtoteam, /removefromteam, /classify, /sync
            └── tasks.py   # Scheduled reconciliation
"""

__version__ = "0.1.0"
