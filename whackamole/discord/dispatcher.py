import logging
from datetime import timedelta

import discord

from whackamole.config import ModerationConfig
from whackamole.moderation.dispatcher import DeliveryError, ModerationDispatcher

logger = logging.getLogger(__name__)


class DiscordModerationDispatcher(ModerationDispatcher):
    """Deletes messages and times members out through the Discord API.

    Origin and author refs are the ``discord.Message`` objects the client
    passed to the detector.
    """

    def __init__(self, config: ModerationConfig):
        self.config = config

    async def delete_message(self, origin_ref: discord.Message) -> None:
        try:
            await origin_ref.delete()
        except discord.NotFound:
            logger.debug("Message %s already deleted", origin_ref.id)
        except discord.HTTPException as exc:
            raise DeliveryError(f"delete of message {origin_ref.id} failed: {exc}") from exc

    async def warn_and_timeout(self, author_ref: discord.Message, duration: timedelta) -> None:
        author = author_ref.author
        failures = []
        if isinstance(author, discord.Member):
            try:
                if duration > timedelta(0):
                    await author.timeout(duration, reason="Repeated spam")
                if self.config.muted_role:
                    role = discord.utils.get(author.guild.roles, name=self.config.muted_role)
                    if role is not None and role in author.roles:
                        await author.remove_roles(role, reason="Replaced by timeout")
            except discord.HTTPException as exc:
                failures.append(f"timeout of user {author.id} failed: {exc}")

        try:
            await author_ref.channel.send(
                self.config.warning_message.format(mention=author.mention)
            )
        except discord.HTTPException as exc:
            failures.append(f"warning to user {author.id} failed: {exc}")

        if failures:
            raise DeliveryError("; ".join(failures))
