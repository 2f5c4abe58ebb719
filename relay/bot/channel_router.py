"""Channel router: one private Discord text channel per Instagram sender."""

import logging
import re

import discord

logger = logging.getLogger(__name__)

_INVALID_CHARS = re.compile(r"[^\w-]")


def channel_name(username):
    return "ig-" + _INVALID_CHARS.sub("-", username.lower())


class ChannelRouter:
    """Resolves a username to a channel, creating it on first contact.

    Successful lookups are cached in `routes` for the life of the process and
    never invalidated. Failures are not cached, so a later cycle retries.
    """

    def __init__(self, client, routes, guild_id=None, category_id=None):
        self.client = client
        self.routes = routes
        self.guild_id = guild_id
        self.category_id = category_id

    async def resolve(self, username):
        key = username.lower()
        if key in self.routes:
            return self.routes[key]

        name = channel_name(username)
        guild = self._guild()
        if guild is None:
            return None

        channel = discord.utils.get(guild.text_channels, name=name)
        if channel is None:
            channel = await self._create(guild, name, username)
            if channel is None:
                return None

        self.routes[key] = channel
        return channel

    def _guild(self):
        if not self.guild_id:
            logger.error("[router] DISCORD_GUILD_ID not set in environment variables")
            return None
        try:
            guild = self.client.get_guild(int(self.guild_id))
        except ValueError:
            logger.error(f"[router] invalid DISCORD_GUILD_ID: {self.guild_id!r}")
            return None
        if guild is None:
            logger.error(f"[router] could not find guild with ID {self.guild_id}")
        return guild

    def _category(self, guild):
        if not self.category_id:
            return None
        try:
            category = guild.get_channel(int(self.category_id))
        except ValueError:
            logger.warning(f"[router] invalid DISCORD_CATEGORY_ID: {self.category_id!r}")
            return None
        if not isinstance(category, discord.CategoryChannel):
            logger.warning(f"[router] category {self.category_id} not found, creating at top level")
            return None
        return category

    async def _create(self, guild, name, username):
        logger.info(f"[router] creating new channel: {name}")
        overwrites = {
            # only admins (and the bot) can see relayed DMs
            guild.default_role: discord.PermissionOverwrite(view_channel=False),
            guild.me: discord.PermissionOverwrite(view_channel=True, send_messages=True),
        }
        try:
            channel = await guild.create_text_channel(
                name,
                category=self._category(guild),
                topic=f"Instagram DMs from @{username}",
                overwrites=overwrites,
            )
        except discord.HTTPException as e:
            logger.error(f"[router] error creating channel for {username}: {e}")
            return None
        logger.info(f"[router] created channel #{name} for Instagram user @{username}")
        return channel
