"""
suggex.services.project_service — Project CRUD
===============================================

Backs ``/addprojects``.  Project names are unique per guild; adding a name
that already exists is skipped, not an error.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from suggex.database.engine import get_session
from suggex.database.models import Project

logger = logging.getLogger(__name__)


def parse_project_names(raw: str) -> list[str]:
    """Split a comma-separated list, trimming blanks and duplicates."""
    names: list[str] = []
    for part in raw.split(","):
        name = part.strip()
        if name and name not in names:
            names.append(name)
    return names


def get_projects(engine: Engine, guild_id: int) -> list[dict]:
    """All projects of *guild_id* as plain dicts, ordered by name."""
    with Session(engine) as session:
        rows = session.scalars(
            select(Project).where(Project.guild_id == guild_id).order_by(Project.project_name)
        ).all()
        return [
            {
                "project_id": p.project_id,
                "guild_id": p.guild_id,
                "project_name": p.project_name,
                "tag_ids": list(p.tag_ids or []),
            }
            for p in rows
        ]


def add_projects(engine: Engine, guild_id: int, project_names: list[str]) -> list[str]:
    """Create each missing project.  Returns the names actually added.

    Every name is handled in its own transaction, so one failure does not
    block the rest.
    """
    added: list[str] = []
    for name in project_names:
        try:
            with get_session(engine) as session:
                existing = session.scalar(
                    select(Project.project_id).where(
                        Project.guild_id == guild_id, Project.project_name == name,
                    )
                )
                if existing is not None:
                    logger.warning(
                        "Project %r already exists for guild %d. Skipping.", name, guild_id,
                    )
                    continue
                session.add(Project(guild_id=guild_id, project_name=name, tag_ids=[]))
            added.append(name)
            logger.info("Project %r added to guild %d", name, guild_id)
        except IntegrityError:
            logger.warning("Project %r was created concurrently for guild %d", name, guild_id)
        except SQLAlchemyError:
            logger.exception("Error adding project %r to guild %d", name, guild_id)
    return added
