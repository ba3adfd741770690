"""
suggex.services.team_service — Team Membership
===============================================

Backs ``/addtoteam`` and ``/removefromteam``.  A team is identified by
``(guild_id, team_name)`` and holds users and roles; each membership is
unique per team.

The write helpers return a success flag instead of raising, so the command
layer can reply without a traceback reaching the user.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import Engine, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from suggex.constants import TEAM_NAMES
from suggex.database.engine import get_session
from suggex.database.models import Team, TeamRole, TeamUser
from suggex.services.source import RoleRef, UserRef

logger = logging.getLogger(__name__)

ENTITY_USER = "user"
ENTITY_ROLE = "role"


def _ensure_team(session: Session, guild_id: int, team_name: str) -> Team:
    team = session.get(Team, (guild_id, team_name))
    if team is None:
        team = Team(guild_id=guild_id, team_name=team_name)
        session.add(team)
        session.flush()
    return team


def add_to_team(
    engine: Engine,
    guild_id: int,
    team_name: str,
    entity_ids: Iterable[int],
    entity_type: str,
) -> bool:
    """Add users or roles (per *entity_type*) to a team.

    Existing memberships are left as they are.  Returns ``False`` for an
    unknown team or entity type, or on a database error.
    """
    if team_name not in TEAM_NAMES:
        logger.warning("Unknown team %r for guild %d", team_name, guild_id)
        return False
    if entity_type == ENTITY_USER:
        model, column = TeamUser, TeamUser.user_id
    elif entity_type == ENTITY_ROLE:
        model, column = TeamRole, TeamRole.role_id
    else:
        logger.warning("Unexpected entity type: %r", entity_type)
        return False

    try:
        with get_session(engine) as session:
            team = _ensure_team(session, guild_id, team_name)
            for entity_id in dict.fromkeys(entity_ids):
                exists = session.scalar(
                    select(model.id).where(
                        model.guild_id == guild_id,
                        model.team_name == team_name,
                        column == entity_id,
                    )
                )
                if exists is not None:
                    logger.debug(
                        "%s %d already in team %s in guild %d",
                        entity_type, entity_id, team_name, guild_id,
                    )
                    continue
                member = model(guild_id=guild_id, team_name=team_name, team=team)
                setattr(member, column.key, entity_id)
                session.add(member)
                logger.info(
                    "Added %s %d to team %s in guild %d",
                    entity_type, entity_id, team_name, guild_id,
                )
    except SQLAlchemyError:
        logger.exception("Error adding entities to team %s in guild %d", team_name, guild_id)
        return False
    return True


def remove_from_team(
    engine: Engine,
    guild_id: int,
    team_name: str,
    mentionables: Iterable[UserRef | RoleRef],
) -> bool:
    """Remove each user or role in *mentionables* from a team."""
    try:
        with get_session(engine) as session:
            for mentionable in mentionables:
                if isinstance(mentionable, UserRef):
                    session.execute(delete(TeamUser).where(
                        TeamUser.guild_id == guild_id,
                        TeamUser.team_name == team_name,
                        TeamUser.user_id == mentionable.id,
                    ))
                    logger.info(
                        "Removed user %s from team %s in guild %d",
                        mentionable.name or mentionable.id, team_name, guild_id,
                    )
                elif isinstance(mentionable, RoleRef):
                    session.execute(delete(TeamRole).where(
                        TeamRole.guild_id == guild_id,
                        TeamRole.team_name == team_name,
                        TeamRole.role_id == mentionable.id,
                    ))
                    logger.info(
                        "Removed role %s from team %s in guild %d",
                        mentionable.name or mentionable.id, team_name, guild_id,
                    )
                else:
                    logger.warning("The mentionable type is not recognized: %r", mentionable)
    except SQLAlchemyError:
        logger.exception("Error removing from team %s in guild %d", team_name, guild_id)
        return False
    return True


def is_in_team(engine: Engine, guild_id: int, entity_id: int) -> list[str]:
    """Names of the teams *entity_id* belongs to, as a user or else as a role.

    Returns an empty list when it belongs to none.
    """
    with Session(engine) as session:
        user_teams = list(session.scalars(
            select(TeamUser.team_name)
            .where(TeamUser.guild_id == guild_id, TeamUser.user_id == entity_id)
            .order_by(TeamUser.team_name)
        ))
        if user_teams:
            return user_teams

        return list(session.scalars(
            select(TeamRole.team_name)
            .where(TeamRole.guild_id == guild_id, TeamRole.role_id == entity_id)
            .order_by(TeamRole.team_name)
        ))
