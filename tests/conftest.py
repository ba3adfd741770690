"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import Engine, create_engine

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# SQLite doesn't support JSONB natively, but SQLAlchemy's JSON type works.
# We register a custom type compiler so SQLite renders JSONB as TEXT.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB
from sqlalchemy.orm import Session

from suggex.database.models import Base
from suggex.services.source import (
    ChannelRef,
    GuildRef,
    MessageSnapshot,
    RoleRef,
    TagRef,
    ThreadRef,
    UserRef,
)

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent).

    Also maps BigInteger → INTEGER so autoincrement works on SQLite.
    """
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy import BigInteger
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    @compiles(BigInteger, "sqlite")
    def _compile_bigint_as_integer(type_, compiler, **kw):
        return "INTEGER"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Suggex tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


# ---------------------------------------------------------------------------
# In-memory RemoteSource
# ---------------------------------------------------------------------------
class FakeSource:
    """Scriptable :class:`~suggex.services.source.RemoteSource`.

    Register failures with :meth:`fail`; every call is recorded in
    :attr:`calls` as ``(method, key)``.
    """

    def __init__(self) -> None:
        self.guilds: list[GuildRef] = []
        self.owners: dict[int, UserRef] = {}
        self.roles: dict[int, list[RoleRef]] = {}
        self.channels: dict[int, list[ChannelRef]] = {}
        self.threads: dict[int, list[ThreadRef]] = {}
        self.messages: dict[int, MessageSnapshot | None] = {}
        self.tags: dict[int, list[TagRef]] = {}
        self.failures: dict[tuple[str, int | None], Exception] = {}
        self.calls: list[tuple[str, int | None]] = []

    # -- scripting --------------------------------------------------------
    def add_guild(self, guild_id: int, owner_id: int | None = 1) -> GuildRef:
        guild = GuildRef(id=guild_id, name=f"guild-{guild_id}")
        self.guilds.append(guild)
        if owner_id is not None:
            self.owners[guild_id] = UserRef(id=owner_id, name="owner")
        self.channels.setdefault(guild_id, [])
        self.roles.setdefault(guild_id, [])
        return guild

    def add_channel(self, guild_id: int, channel_id: int, type: str = "text") -> ChannelRef:
        channel = ChannelRef(id=channel_id, guild_id=guild_id, name=f"ch-{channel_id}", type=type)
        self.channels.setdefault(guild_id, []).append(channel)
        return channel

    def add_thread(
        self,
        channel_id: int,
        thread_id: int,
        *,
        text: str | None = "hello",
        archived: bool = False,
        locked: bool = False,
    ) -> ThreadRef:
        thread = ThreadRef(
            id=thread_id, channel_id=channel_id, name=f"thread-{thread_id}",
            archived=archived, locked=locked,
        )
        self.threads.setdefault(channel_id, []).append(thread)
        self.messages[thread_id] = None if text is None else MessageSnapshot(text=text)
        return thread

    def add_tag(self, channel_id: int, tag_id: int, **emoji) -> TagRef:
        tag = TagRef(id=tag_id, channel_id=channel_id, name=f"tag-{tag_id}", **emoji)
        self.tags.setdefault(channel_id, []).append(tag)
        return tag

    def add_role(self, guild_id: int, role_id: int, permissions: int = 0) -> RoleRef:
        role = RoleRef(id=role_id, guild_id=guild_id, name=f"role-{role_id}", permissions=permissions)
        self.roles.setdefault(guild_id, []).append(role)
        return role

    def fail(self, method: str, key: int | None = None, exc: Exception | None = None) -> None:
        self.failures[(method, key)] = exc or RuntimeError(f"{method} failed")

    def _call(self, method: str, key: int | None) -> None:
        self.calls.append((method, key))
        exc = self.failures.get((method, key))
        if exc is not None:
            raise exc

    def called(self, method: str, key: int | None = None) -> bool:
        return (method, key) in self.calls

    # -- RemoteSource -----------------------------------------------------
    async def list_guilds(self) -> list[GuildRef]:
        self._call("list_guilds", None)
        return list(self.guilds)

    async def fetch_owner(self, guild_id: int) -> UserRef:
        self._call("fetch_owner", guild_id)
        if guild_id not in self.owners:
            raise LookupError(guild_id)
        return self.owners[guild_id]

    async def list_roles(self, guild_id: int) -> list[RoleRef]:
        self._call("list_roles", guild_id)
        return list(self.roles.get(guild_id, []))

    async def list_channels(self, guild_id: int) -> list[ChannelRef]:
        self._call("list_channels", guild_id)
        return list(self.channels.get(guild_id, []))

    async def list_threads(self, channel_id: int) -> list[ThreadRef]:
        self._call("list_threads", channel_id)
        return list(self.threads.get(channel_id, []))

    async def fetch_first_message(self, thread_id: int) -> MessageSnapshot | None:
        self._call("fetch_first_message", thread_id)
        return self.messages.get(thread_id)

    async def list_forum_tags(self, channel_id: int) -> list[TagRef]:
        self._call("list_forum_tags", channel_id)
        return list(self.tags.get(channel_id, []))


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()
