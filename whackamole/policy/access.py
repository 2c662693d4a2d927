from typing import Tuple

import discord

from whackamole.config import DiscordConfig


class AccessPolicy:
    def __init__(self, discord_config: DiscordConfig):
        self.discord_config = discord_config

    def check(self, message: discord.Message) -> Tuple[bool, str]:
        author = message.author
        if author.bot:
            return False, "bot_message"

        # timeouts need a guild member
        if message.guild is None:
            return False, "dm_ignored"

        if not message.content:
            return False, "empty_content"

        guild_id = message.guild.id
        channel_id = message.channel.id
        exempt = self.discord_config.exempt
        monitor = self.discord_config.monitor

        if author.id in exempt.users:
            return False, "user_exempt"
        if channel_id in exempt.channels:
            return False, "channel_exempt"
        if guild_id in exempt.guilds:
            return False, "guild_exempt"
        if exempt.roles:
            role_names = {role.name for role in getattr(author, "roles", [])}
            if role_names & set(exempt.roles):
                return False, "role_exempt"

        # monitor lists only apply when provided
        if monitor.guilds and guild_id not in monitor.guilds:
            return False, "guild_not_monitored"
        if monitor.channels and channel_id not in monitor.channels:
            return False, "channel_not_monitored"
        if monitor.users and author.id not in monitor.users:
            return False, "user_not_monitored"

        return True, "allowed"
