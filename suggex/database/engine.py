"""
suggex.database.engine — PostgreSQL Engine, Sessions & Thread Bridge
====================================================================

The mirror is written with plain synchronous SQLAlchemy.  The bot, on the
other hand, lives on the discord.py event loop, so nothing in ``cogs/`` or
``sync_service`` touches a :class:`Session` directly: each unit of database
work is a small sync function in ``suggex.services`` and is awaited through
:func:`run_db`, which hands it to the default thread pool.

Every service function opens its own short session with :func:`get_session`,
so a failed upsert rolls back only its own row.

Usage::

    engine = create_db_engine()          # DATABASE_URL from the environment
    init_db(engine)                      # tables for a fresh dev database

    channel_class = await run_db(class_of, engine, channel_id)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from suggex.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
def create_db_engine() -> Engine:
    """Return a pooled engine for ``DATABASE_URL``.

    A sync pass and a handful of slash commands can hold connections at the
    same time, so the pool keeps 5 open and lets 10 more be borrowed.  Stale
    connections are pinged before use and replaced hourly.

    Raises ``RuntimeError`` when ``DATABASE_URL`` is missing.
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Add it to .env (see .env.example) as a postgresql:// URL."
        )

    engine = create_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_timeout=10,
        pool_recycle=3600,
    )
    logger.info("Connected engine to database host %s", engine.url.host)
    return engine


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create any mirror tables that do not exist yet.

    Deployed databases are migrated with ``alembic upgrade head``; this only
    covers local runs against an empty database.  Existing tables are left
    as they are.
    """
    Base.metadata.create_all(engine)
    logger.info("Mirror schema present.")


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine):
    """Session scope: commit when the block finishes, roll back if it raises.

    The exception is re-raised after the rollback so the caller decides
    whether the failure ends its unit of work.
    """
    session = Session(engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Event-loop bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Await a blocking service call without stalling the gateway.

    ``await run_db(upsert_thread, engine, thread_id=..., ...)`` runs the call
    via :func:`asyncio.to_thread` and returns (or raises) whatever it does.
    """
    return await asyncio.to_thread(func, *args, **kwargs)
