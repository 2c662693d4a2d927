"""
Tests for whackamole/policy/access.py
"""

from unittest.mock import MagicMock

from whackamole.config import DiscordConfig
from whackamole.policy.access import AccessPolicy


def make_role(name: str):
    role = MagicMock()
    role.name = name
    return role


def make_message(
    content="hello", bot=False, guild_id=1, channel_id=10, user_id=100, roles=()
):
    message = MagicMock()
    message.content = content
    message.author.bot = bot
    message.author.id = user_id
    message.author.roles = [make_role(r) for r in roles]
    message.channel.id = channel_id
    if guild_id is None:
        message.guild = None
    else:
        message.guild.id = guild_id
    return message


class TestAccessPolicy:
    """Tests for AccessPolicy.check()."""

    def test_allows_regular_message(self):
        assert AccessPolicy(DiscordConfig()).check(make_message()) == (True, "allowed")

    def test_skips_bots_dms_and_empty(self):
        policy = AccessPolicy(DiscordConfig())
        assert policy.check(make_message(bot=True)) == (False, "bot_message")
        assert policy.check(make_message(guild_id=None)) == (False, "dm_ignored")
        assert policy.check(make_message(content="")) == (False, "empty_content")

    def test_exemptions(self):
        config = DiscordConfig.parse_obj(
            {"exempt": {"users": [5], "channels": [6], "guilds": [7], "roles": ["Mod"]}}
        )
        policy = AccessPolicy(config)
        assert policy.check(make_message(user_id=5))[1] == "user_exempt"
        assert policy.check(make_message(channel_id=6))[1] == "channel_exempt"
        assert policy.check(make_message(guild_id=7))[1] == "guild_exempt"
        assert policy.check(make_message(roles=["Mod"]))[1] == "role_exempt"
        assert policy.check(make_message(roles=["Member"]))[0]

    def test_monitor_lists(self):
        config = DiscordConfig.parse_obj({"monitor": {"guilds": [1], "channels": [10]}})
        policy = AccessPolicy(config)
        assert policy.check(make_message())[0]
        assert policy.check(make_message(guild_id=2))[1] == "guild_not_monitored"
        assert policy.check(make_message(channel_id=11))[1] == "channel_not_monitored"
