"""
tests/test_channel_service.py — Channel / Thread / Post / Tag Persistence
==========================================================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from suggex.constants import BUG_CHANNEL, NORMAL_CHANNEL
from suggex.database.models import Channel, Post, Project, Tag, Thread
from suggex.services.channel_service import (
    extract_tag_emoji,
    prune_channels,
    prune_tags,
    upsert_channel,
    upsert_post,
    upsert_tag,
    upsert_thread,
)
from suggex.services.source import TagRef

GUILD_ID = 111222333


# ---------------------------------------------------------------------------
# Emoji extraction
# ---------------------------------------------------------------------------

class TestExtractTagEmoji:

    @pytest.mark.parametrize(
        "kwargs, expected",
        [
            ({"emoji_id": "9", "emoji_name": "smile"}, {"id": "9", "name": "smile"}),
            ({"emoji_id": 9, "emoji_name": "smile"}, {"id": "9", "name": "smile"}),
            ({"emoji": "😀"}, {"name": "😀"}),
            ({}, {}),
        ],
    )
    def test_shapes(self, kwargs, expected):
        tag = TagRef(id=1, channel_id=2, name="t", **kwargs)
        assert extract_tag_emoji(tag) == expected

    def test_custom_emoji_takes_precedence(self):
        tag = TagRef(id=1, channel_id=2, name="t", emoji_id=5, emoji_name="x", emoji="😀")
        assert extract_tag_emoji(tag) == {"id": "5", "name": "x"}


# ---------------------------------------------------------------------------
# Upserts
# ---------------------------------------------------------------------------

class TestUpserts:

    def test_channel_insert_then_update(self, db_engine):
        upsert_channel(
            db_engine, channel_id=1, guild_id=GUILD_ID, channel_type="text",
            channel_name="a", channel_class=BUG_CHANNEL, auto_delete=True,
        )
        upsert_channel(db_engine, channel_id=1, guild_id=GUILD_ID, channel_type="forum", channel_name="b")

        with Session(db_engine) as s:
            rows = list(s.scalars(select(Channel)))
        assert len(rows) == 1
        assert rows[0].channel_name == "b"
        assert rows[0].channel_type == "forum"
        assert rows[0].channel_class == BUG_CHANNEL
        assert rows[0].channel_is_autodelete is True

    def test_update_never_overwrites_classification(self, db_engine):
        upsert_channel(
            db_engine, channel_id=1, guild_id=GUILD_ID, channel_type="text",
            channel_class=BUG_CHANNEL, auto_delete=True,
        )
        upsert_channel(
            db_engine, channel_id=1, guild_id=GUILD_ID, channel_type="text",
            channel_class=NORMAL_CHANNEL, auto_delete=False,
        )

        with Session(db_engine) as s:
            row = s.get(Channel, 1)
            assert row.channel_class == BUG_CHANNEL
            assert row.channel_is_autodelete is True

    def test_channel_defaults_to_normal(self, db_engine):
        upsert_channel(db_engine, channel_id=1, guild_id=GUILD_ID, channel_type="voice")

        with Session(db_engine) as s:
            row = s.get(Channel, 1)
            assert row.channel_class == NORMAL_CHANNEL
            assert row.channel_is_autodelete is False

    def test_thread_overwrite(self, db_engine):
        upsert_thread(
            db_engine, thread_id=5, channel_id=1, thread_name="old",
            thread_content={"text": "a"}, thread_status="open",
        )
        upsert_thread(
            db_engine, thread_id=5, channel_id=1, thread_name="new",
            thread_content={"text": "b"}, thread_status="archived",
        )

        with Session(db_engine) as s:
            row = s.get(Thread, 5)
            assert (row.thread_name, row.thread_content, row.thread_status) == (
                "new", {"text": "b"}, "archived",
            )

    def test_post_keeps_project_assignment(self, db_engine):
        with Session(db_engine) as s:
            project = Project(guild_id=GUILD_ID, project_name="Alpha", tag_ids=[])
            s.add(project)
            s.commit()
            project_id = project.project_id

        upsert_post(
            db_engine, post_id=7, channel_id=1, post_name="p",
            post_content={}, post_status="open",
        )
        with Session(db_engine) as s:
            s.get(Post, 7).project_id = project_id
            s.commit()

        upsert_post(
            db_engine, post_id=7, channel_id=1, post_name="p2",
            post_content={"text": "x"}, post_status="locked",
        )

        with Session(db_engine) as s:
            row = s.get(Post, 7)
            assert row.project_id == project_id
            assert row.post_name == "p2"
            assert row.post_status == "locked"

    def test_tag_update(self, db_engine):
        upsert_tag(db_engine, tag_id=3, channel_id=1, tag_name="bug", tag_emoji={})
        upsert_tag(db_engine, tag_id=3, channel_id=1, tag_name="bugs", tag_emoji={"name": "🐛"})

        with Session(db_engine) as s:
            row = s.get(Tag, 3)
            assert (row.tag_name, row.tag_emoji) == ("bugs", {"name": "🐛"})


# ---------------------------------------------------------------------------
# Pruning
# ---------------------------------------------------------------------------

class TestPrune:

    def test_prune_channels_removes_children(self, db_engine):
        for channel_id in (1, 2):
            upsert_channel(db_engine, channel_id=channel_id, guild_id=GUILD_ID, channel_type="forum")
            upsert_tag(db_engine, tag_id=channel_id * 10, channel_id=channel_id, tag_name="t", tag_emoji={})
        upsert_channel(db_engine, channel_id=3, guild_id=999, channel_type="text")

        removed = prune_channels(db_engine, GUILD_ID, {1})

        assert removed == 1
        with Session(db_engine) as s:
            assert sorted(s.scalars(select(Channel.channel_id))) == [1, 3]
            assert list(s.scalars(select(Tag.tag_id))) == [10]

    def test_prune_tags_scoped_to_channel(self, db_engine):
        upsert_tag(db_engine, tag_id=1, channel_id=1, tag_name="a", tag_emoji={})
        upsert_tag(db_engine, tag_id=2, channel_id=1, tag_name="b", tag_emoji={})
        upsert_tag(db_engine, tag_id=3, channel_id=2, tag_name="c", tag_emoji={})

        assert prune_tags(db_engine, 1, {2}) == 1
        with Session(db_engine) as s:
            assert sorted(s.scalars(select(Tag.tag_id))) == [2, 3]
