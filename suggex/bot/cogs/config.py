"""
suggex.bot.cogs.config — Guild Configuration Slash Commands
============================================================

- /addprojects — add comma-separated projects to the guild
- /addtoteam — add a user and/or role to a staff team
- /removefromteam — remove a user or role from a staff team
- /classify — mark a channel as a support, bug or normal channel
- /sync — reconcile this guild's database mirror now

All commands are guild-only and default to members with *Manage Server*.
Replies are ephemeral.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from suggex.constants import CHANNEL_CLASSES, TEAM_NAMES
from suggex.database.engine import run_db
from suggex.services.classification import set_channel_class
from suggex.services.guild_service import get_embed_settings
from suggex.services.project_service import add_projects, parse_project_names
from suggex.services.source import RoleRef, UserRef
from suggex.services.team_service import (
    ENTITY_ROLE,
    ENTITY_USER,
    add_to_team,
    remove_from_team,
)

if TYPE_CHECKING:
    from suggex.bot.core import SuggexBot

logger = logging.getLogger(__name__)

TEAM_CHOICES = [
    app_commands.Choice(name=label, value=value) for value, label in TEAM_NAMES.items()
]
CLASS_CHOICES = [
    app_commands.Choice(name=value.replace("_", " ").title(), value=value)
    for value in sorted(CHANNEL_CLASSES)
]


def mentionable_ref(mentionable: discord.Member | discord.User | discord.Role) -> UserRef | RoleRef:
    """Turn a resolved mentionable option into a service-layer ref."""
    if isinstance(mentionable, discord.Role):
        return RoleRef(id=mentionable.id, guild_id=mentionable.guild.id, name=mentionable.name)
    return UserRef(id=mentionable.id, name=str(mentionable))


def _result_embed(
    title: str,
    description: str,
    *,
    ok: bool = True,
    settings: dict | None = None,
) -> discord.Embed:
    """Ephemeral reply embed, tinted with the guild's stored embed colour on success."""
    color = discord.Color.green() if ok else discord.Color.red()
    if ok and settings and settings.get("color"):
        try:
            color = discord.Color.from_str(settings["color"])
        except ValueError:
            logger.warning("Ignoring invalid embed colour %r", settings["color"])
    return discord.Embed(title=title, description=description, color=color)


class Config(commands.Cog, name="Config"):
    """Team, project and channel configuration."""

    def __init__(self, bot: SuggexBot) -> None:
        self.bot = bot

    # -------------------------------------------------------------------
    # /addprojects
    # -------------------------------------------------------------------
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.command(name="addprojects", description="Adds new projects to the guild.")
    @app_commands.describe(
        projects="Enter project names separated by commas (e.g., Project1, Project2)",
    )
    async def addprojects(self, interaction: discord.Interaction, projects: str) -> None:
        guild_id = interaction.guild_id
        names = parse_project_names(projects)
        if guild_id is None or not names:
            await interaction.response.send_message(
                "❌ Please enter at least one project name.", ephemeral=True,
            )
            return

        logger.debug("Guild %d — /addprojects with projects: %s", guild_id, projects)
        try:
            added = await run_db(add_projects, self.bot.engine, guild_id, names)
        except Exception:
            logger.exception("Failed to add projects to guild %d", guild_id)
            await interaction.response.send_message(
                embed=_result_embed(
                    "Failed to Add Projects",
                    "An error occurred while attempting to add projects. Please try again later.",
                    ok=False,
                ),
                ephemeral=True,
            )
            return

        skipped = [n for n in names if n not in added]
        description = f"The following projects have been added: {', '.join(added) or 'none'}"
        if skipped:
            description += f"\nAlready present: {', '.join(skipped)}"
        settings = await run_db(get_embed_settings, self.bot.engine, guild_id)
        await interaction.response.send_message(
            embed=_result_embed("Projects Added Successfully", description, settings=settings),
            ephemeral=True,
        )

    # -------------------------------------------------------------------
    # /addtoteam
    # -------------------------------------------------------------------
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.command(name="addtoteam", description="Adds users or roles to a team.")
    @app_commands.describe(
        team="The name of the team",
        user="The user to add to the team",
        role="The role to add to the team",
    )
    @app_commands.choices(team=TEAM_CHOICES)
    async def addtoteam(
        self,
        interaction: discord.Interaction,
        team: str,
        user: discord.Member | None = None,
        role: discord.Role | None = None,
    ) -> None:
        guild_id = interaction.guild_id
        if guild_id is None or (user is None and role is None):
            await interaction.response.send_message(
                "Please mention at least one user or role.", ephemeral=True,
            )
            return

        logger.debug("Executing /addtoteam by %s", interaction.user)
        ok = True
        if user is not None:
            ok &= await run_db(add_to_team, self.bot.engine, guild_id, team, [user.id], ENTITY_USER)
        if role is not None:
            ok &= await run_db(add_to_team, self.bot.engine, guild_id, team, [role.id], ENTITY_ROLE)

        if ok:
            await interaction.response.send_message(f"Added to team {TEAM_NAMES[team]}.", ephemeral=True)
        else:
            await interaction.response.send_message(
                f"Failed to add to team {TEAM_NAMES[team]}. Check logs for details.", ephemeral=True,
            )

    # -------------------------------------------------------------------
    # /removefromteam
    # -------------------------------------------------------------------
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.command(
        name="removefromteam", description="Removes users or roles from a specified team.",
    )
    @app_commands.describe(
        team="The name of the team to remove users or roles from",
        mention="The user or role to remove from the team",
    )
    @app_commands.choices(team=TEAM_CHOICES)
    async def removefromteam(
        self,
        interaction: discord.Interaction,
        team: str,
        mention: discord.Member | discord.Role,
    ) -> None:
        guild_id = interaction.guild_id
        if guild_id is None:
            return

        ok = await run_db(
            remove_from_team, self.bot.engine, guild_id, team, [mentionable_ref(mention)],
        )
        if ok:
            await interaction.response.send_message(
                f"Removed from team {TEAM_NAMES[team]}.", ephemeral=True,
            )
        else:
            await interaction.response.send_message(
                f"Failed to remove from team {TEAM_NAMES[team]}. Check logs for details.",
                ephemeral=True,
            )

    # -------------------------------------------------------------------
    # /classify
    # -------------------------------------------------------------------
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.command(name="classify", description="Set how Suggex treats a channel.")
    @app_commands.describe(
        channel="Text or forum channel",
        channel_class="Support, bug or normal channel",
        auto_delete="Whether the channel auto-deletes resolved threads",
    )
    @app_commands.choices(channel_class=CLASS_CHOICES)
    async def classify(
        self,
        interaction: discord.Interaction,
        channel: discord.TextChannel | discord.ForumChannel,
        channel_class: str,
        auto_delete: bool | None = None,
    ) -> None:
        ok = await run_db(
            set_channel_class, self.bot.engine, channel.id, channel_class, auto_delete=auto_delete,
        )
        if ok:
            await interaction.response.send_message(
                f"✅ {channel.mention} is now a **{channel_class}**. "
                "It will be mirrored from the next sync.",
                ephemeral=True,
            )
        else:
            await interaction.response.send_message(
                f"❌ {channel.mention} has not been synced yet. Run `/sync` first.",
                ephemeral=True,
            )

    # -------------------------------------------------------------------
    # /sync
    # -------------------------------------------------------------------
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.command(name="sync", description="Synchronize this server's data now.")
    async def sync(self, interaction: discord.Interaction) -> None:
        guild_id = interaction.guild_id
        if guild_id is None:
            return

        await interaction.response.defer(ephemeral=True, thinking=True)
        result = await self.bot.run_guild_sync(guild_id)
        summary = (
            f"Channels: {result.channels}\nThreads: {result.threads}\n"
            f"Posts: {result.posts}\nTags: {result.tags}\nRoles: {result.roles}"
        )
        if result.ok:
            settings = await run_db(get_embed_settings, self.bot.engine, guild_id)
            await interaction.followup.send(
                embed=_result_embed("Synchronization Complete", summary, settings=settings),
                ephemeral=True,
            )
        else:
            await interaction.followup.send(
                embed=_result_embed(
                    "Synchronization Finished With Errors",
                    f"{summary}\nErrors: {len(result.errors)} (see logs)",
                    ok=False,
                ),
                ephemeral=True,
            )


async def setup(bot: SuggexBot) -> None:
    await bot.add_cog(Config(bot))
