"""
tests/test_guild_service.py — Guild, Settings & Role Persistence
=================================================================
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from suggex.database.defaults import BRAND_COLOR, default_embed_settings, default_modal_settings
from suggex.database.models import Guild, Role
from suggex.services.guild_service import (
    get_embed_settings,
    get_modal_settings,
    prune_roles,
    upsert_guild,
    upsert_guild_setting,
    upsert_role,
)

GUILD_ID = 42


class TestUpsertGuild:

    def test_create_then_noop(self, db_engine):
        assert upsert_guild(db_engine, GUILD_ID, 7) is True
        assert upsert_guild(db_engine, GUILD_ID, 8) is False

        with Session(db_engine) as s:
            guild = s.get(Guild, GUILD_ID)
            assert guild.owner_id == 7
            assert guild.is_premium is False

    def test_missing_owner_filled_later(self, db_engine):
        upsert_guild(db_engine, GUILD_ID, None)
        upsert_guild(db_engine, GUILD_ID, 9)

        with Session(db_engine) as s:
            assert s.get(Guild, GUILD_ID).owner_id == 9


class TestGuildSettings:

    def test_defaults_for_new_guild(self, db_engine):
        upsert_guild(db_engine, GUILD_ID, 1)

        assert upsert_guild_setting(db_engine, GUILD_ID) == "defaulted"
        assert get_embed_settings(db_engine, GUILD_ID)["color"] == BRAND_COLOR
        assert get_modal_settings(db_engine, GUILD_ID) == default_modal_settings()

    def test_defaults_use_asset_base_url(self, db_engine):
        upsert_guild(db_engine, GUILD_ID, 1)
        upsert_guild_setting(db_engine, GUILD_ID, asset_base_url="https://cdn.example/img")

        embed = get_embed_settings(db_engine, GUILD_ID)
        assert embed == default_embed_settings("https://cdn.example/img")
        assert embed["thumbnail"].startswith("https://cdn.example/img/")

    def test_created_with_fresh_values(self, db_engine):
        upsert_guild(db_engine, GUILD_ID, 1)

        assert upsert_guild_setting(db_engine, GUILD_ID, embed={"color": "#222222"}) == "created"
        assert get_embed_settings(db_engine, GUILD_ID) == {"color": "#222222"}
        assert get_modal_settings(db_engine, GUILD_ID) == default_modal_settings()

    def test_merge_does_not_clobber(self, db_engine):
        upsert_guild(db_engine, GUILD_ID, 1)
        upsert_guild_setting(db_engine, GUILD_ID, modal={"components": []})

        assert upsert_guild_setting(db_engine, GUILD_ID, embed={"color": "#111111"}) == "updated"
        assert upsert_guild_setting(db_engine, GUILD_ID) == "updated"

        assert get_embed_settings(db_engine, GUILD_ID) == {"color": "#111111"}
        assert get_modal_settings(db_engine, GUILD_ID) == {"components": []}

    def test_unknown_guild_has_no_settings(self, db_engine):
        assert get_embed_settings(db_engine, 404) is None
        assert get_modal_settings(db_engine, 404) is None


class TestRoles:

    def test_permissions_stored_as_decimal_string(self, db_engine):
        upsert_role(db_engine, GUILD_ID, 1, 2**53 + 1)
        upsert_role(db_engine, GUILD_ID, 1, 8)

        with Session(db_engine) as s:
            assert s.get(Role, 1).role_permissions == "8"

    def test_prune_roles(self, db_engine):
        upsert_role(db_engine, GUILD_ID, 1, 0)
        upsert_role(db_engine, GUILD_ID, 2, 0)
        upsert_role(db_engine, 99, 3, 0)

        assert prune_roles(db_engine, GUILD_ID, {2}) == 1
        with Session(db_engine) as s:
            assert s.get(Role, 1) is None
            assert s.get(Role, 3) is not None
