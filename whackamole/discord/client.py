import logging

import discord
from discord import app_commands
from discord.ext import commands

from whackamole.config import AppConfig
from whackamole.core.detector import DuplicateDetector
from whackamole.core.eviction import EvictionScheduler
from whackamole.moderation.enforcer import ModerationEnforcer
from whackamole.policy.access import AccessPolicy
from whackamole.storage.state_store import StateStore

logger = logging.getLogger(__name__)


class WhackAMole(commands.Bot):
    def __init__(
        self,
        config: AppConfig,
        state_store: StateStore,
        detector: DuplicateDetector,
        scheduler: EvictionScheduler,
        enforcer: ModerationEnforcer,
    ):
        intents = discord.Intents.default()
        intents.message_content = config.discord.intents.message_content
        intents.members = config.discord.intents.members
        intents.messages = True
        intents.guilds = True
        super().__init__(command_prefix="!", intents=intents)
        self.config = config
        self.state_store = state_store
        self.detector = detector
        self.scheduler = scheduler
        self.enforcer = enforcer
        self.access_policy = AccessPolicy(config.discord)

        self.tree.add_command(self._cmd_status())
        self.tree.add_command(self._cmd_toggle())

    async def setup_hook(self) -> None:
        await self.scheduler.start()
        if self.config.discord.slash_command_guilds:
            for gid in self.config.discord.slash_command_guilds:
                await self.tree.sync(guild=discord.Object(id=gid))
        else:
            await self.tree.sync()
        logger.info("Slash commands synced")

    async def close(self) -> None:
        await self.scheduler.stop()
        await super().close()

    def _cmd_status(self) -> app_commands.Command:
        @app_commands.command(name="whackamole_status", description="Show spam detection status")
        @app_commands.default_permissions(moderate_members=True)
        async def status_cmd(interaction: discord.Interaction):
            state = await self.state_store.load()
            stats = self.detector.stats()
            await interaction.response.send_message(
                f"Detection is {'on' if state.enabled else 'off'}. "
                f"Tracking {stats['tracked_authors']} authors, "
                f"{stats['message_entries']} messages, {stats['url_entries']} URLs "
                f"(threshold {self.detector.duplication_threshold}, "
                f"window {self.detector.time_span_minutes} min).",
                ephemeral=True,
            )

        return status_cmd

    def _cmd_toggle(self) -> app_commands.Command:
        @app_commands.command(name="whackamole_toggle", description="Turn spam detection on or off")
        @app_commands.default_permissions(moderate_members=True)
        @app_commands.choices(
            action=[
                app_commands.Choice(name="on", value="on"),
                app_commands.Choice(name="off", value="off"),
            ]
        )
        async def toggle_cmd(
            interaction: discord.Interaction, action: app_commands.Choice[str]
        ):
            enable = action.value == "on"
            await self.state_store.set_enabled(enable)
            await interaction.response.send_message(
                f"Spam detection turned {'on' if enable else 'off'}", ephemeral=True
            )

        return toggle_cmd

    async def on_ready(self) -> None:
        logger.info("Logged in as %s (%s)", self.user, self.user.id if self.user else "")

    async def on_message(self, message: discord.Message) -> None:
        if message.author == self.user:
            return
        allowed, reason = self.access_policy.check(message)
        if not allowed:
            logger.debug("Skipping message %s: %s", message.id, reason)
            return

        state = await self.state_store.load()
        if not state.enabled:
            return

        verdict = await self.detector.on_message(
            message.author.id, message.content, discord.utils.utcnow(), message
        )
        if not verdict.is_spam:
            return

        logger.info(
            "Spam from %s in channel %s: %s",
            message.author.id,
            message.channel.id,
            verdict.kind.value,
        )
        await self.enforcer.enforce(verdict, author_ref=message, content=message.content)
