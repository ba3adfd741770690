"""
tests/test_team_service.py — Team Membership Tests
===================================================
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from suggex.constants import ADMIN_TEAM, DEV_TEAM, SUPPORT_TEAM
from suggex.database.models import Team, TeamRole, TeamUser
from suggex.services.source import RoleRef, UserRef
from suggex.services.team_service import (
    ENTITY_ROLE,
    ENTITY_USER,
    add_to_team,
    is_in_team,
    remove_from_team,
)

GUILD_ID = 500


def _count(engine, model) -> int:
    with Session(engine) as s:
        return s.scalar(select(func.count()).select_from(model))


class TestAddToTeam:

    def test_adds_users_and_creates_team(self, db_engine):
        assert add_to_team(db_engine, GUILD_ID, DEV_TEAM, [1, 2], ENTITY_USER) is True

        assert _count(db_engine, Team) == 1
        assert _count(db_engine, TeamUser) == 2
        assert is_in_team(db_engine, GUILD_ID, 1) == [DEV_TEAM]

    def test_existing_membership_skipped(self, db_engine):
        add_to_team(db_engine, GUILD_ID, DEV_TEAM, [1], ENTITY_USER)
        assert add_to_team(db_engine, GUILD_ID, DEV_TEAM, [1, 1], ENTITY_USER) is True

        assert _count(db_engine, TeamUser) == 1

    def test_roles(self, db_engine):
        assert add_to_team(db_engine, GUILD_ID, SUPPORT_TEAM, [77], ENTITY_ROLE) is True
        assert _count(db_engine, TeamRole) == 1
        assert is_in_team(db_engine, GUILD_ID, 77) == [SUPPORT_TEAM]

    def test_unknown_team(self, db_engine):
        assert add_to_team(db_engine, GUILD_ID, "vip_team", [1], ENTITY_USER) is False
        assert _count(db_engine, Team) == 0

    def test_unknown_entity_type(self, db_engine):
        assert add_to_team(db_engine, GUILD_ID, DEV_TEAM, [1], "channel") is False


class TestRemoveFromTeam:

    def test_removes_user_and_role(self, db_engine):
        add_to_team(db_engine, GUILD_ID, ADMIN_TEAM, [1], ENTITY_USER)
        add_to_team(db_engine, GUILD_ID, ADMIN_TEAM, [77], ENTITY_ROLE)

        ok = remove_from_team(
            db_engine, GUILD_ID, ADMIN_TEAM,
            [UserRef(id=1, name="alice"), RoleRef(id=77, guild_id=GUILD_ID, name="mods")],
        )

        assert ok is True
        assert _count(db_engine, TeamUser) == 0
        assert _count(db_engine, TeamRole) == 0
        assert _count(db_engine, Team) == 1

    def test_other_teams_untouched(self, db_engine):
        add_to_team(db_engine, GUILD_ID, ADMIN_TEAM, [1], ENTITY_USER)
        add_to_team(db_engine, GUILD_ID, DEV_TEAM, [1], ENTITY_USER)

        remove_from_team(db_engine, GUILD_ID, ADMIN_TEAM, [UserRef(id=1)])

        assert is_in_team(db_engine, GUILD_ID, 1) == [DEV_TEAM]

    def test_unrecognised_mentionable_ignored(self, db_engine):
        assert remove_from_team(db_engine, GUILD_ID, ADMIN_TEAM, ["not-a-ref"]) is True


class TestIsInTeam:

    def test_user_membership_wins_over_role(self, db_engine):
        add_to_team(db_engine, GUILD_ID, DEV_TEAM, [5], ENTITY_USER)
        add_to_team(db_engine, GUILD_ID, SUPPORT_TEAM, [5], ENTITY_ROLE)

        assert is_in_team(db_engine, GUILD_ID, 5) == [DEV_TEAM]

    def test_not_in_any_team(self, db_engine):
        assert is_in_team(db_engine, GUILD_ID, 5) == []

    def test_scoped_by_guild(self, db_engine):
        add_to_team(db_engine, GUILD_ID, DEV_TEAM, [5], ENTITY_USER)
        assert is_in_team(db_engine, GUILD_ID + 1, 5) == []
