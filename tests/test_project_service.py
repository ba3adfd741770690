"""
tests/test_project_service.py — Project CRUD Tests
===================================================
"""

from __future__ import annotations

from suggex.services.project_service import add_projects, get_projects, parse_project_names

GUILD_ID = 700


class TestParseProjectNames:

    def test_trims_and_dedupes(self):
        assert parse_project_names(" Alpha, Beta ,,Alpha , Gamma") == ["Alpha", "Beta", "Gamma"]

    def test_blank_input(self):
        assert parse_project_names(" , ,") == []


class TestAddProjects:

    def test_adds_and_lists(self, db_engine):
        added = add_projects(db_engine, GUILD_ID, ["Beta", "Alpha"])

        assert added == ["Beta", "Alpha"]
        projects = get_projects(db_engine, GUILD_ID)
        assert [p["project_name"] for p in projects] == ["Alpha", "Beta"]
        assert all(p["tag_ids"] == [] for p in projects)

    def test_existing_names_skipped(self, db_engine):
        add_projects(db_engine, GUILD_ID, ["Alpha"])

        assert add_projects(db_engine, GUILD_ID, ["Alpha", "Beta"]) == ["Beta"]
        assert len(get_projects(db_engine, GUILD_ID)) == 2

    def test_names_scoped_by_guild(self, db_engine):
        add_projects(db_engine, GUILD_ID, ["Alpha"])

        assert add_projects(db_engine, GUILD_ID + 1, ["Alpha"]) == ["Alpha"]
        assert len(get_projects(db_engine, GUILD_ID)) == 1
