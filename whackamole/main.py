import asyncio
import logging
import os
from datetime import timedelta
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from whackamole.config import AppConfig, load_yaml_config
from whackamole.core.detector import DuplicateDetector
from whackamole.core.eviction import EvictionScheduler
from whackamole.discord.client import WhackAMole
from whackamole.discord.dispatcher import DiscordModerationDispatcher
from whackamole.moderation.enforcer import ModerationEnforcer
from whackamole.storage.audit import AuditLog
from whackamole.storage.event_buffer import EventBuffer
from whackamole.storage.state_store import StateStore
from whackamole.web.admin_app import create_admin_app


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


async def run():
    load_dotenv()
    config_path = Path(os.getenv("CONFIG_PATH", "configs/config.yaml"))
    config: AppConfig = load_yaml_config(config_path)
    setup_logging(config.app.logging_level)

    bot_token = os.getenv(config.discord.token_env)
    if not bot_token:
        raise RuntimeError(f"Environment variable {config.discord.token_env} is not set.")

    data_dir = Path(config.app.data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)

    state_store = StateStore(data_dir / "runtime_state.json")
    existing = await state_store.load()
    if not state_store.path.exists():
        existing.enabled = config.detection.enabled_by_default
        await state_store.save()

    detector = DuplicateDetector.from_config(config.detection)
    scheduler = EvictionScheduler(
        detector, interval_seconds=config.detection.sweep_interval_seconds
    )
    event_buffer = EventBuffer()
    audit_log = AuditLog(data_dir / "audit.log")
    enforcer = ModerationEnforcer(
        DiscordModerationDispatcher(config.moderation),
        timeout=timedelta(minutes=config.moderation.timeout_minutes),
        event_buffer=event_buffer,
        audit_log=audit_log,
    )

    bot = WhackAMole(
        config=config,
        state_store=state_store,
        detector=detector,
        scheduler=scheduler,
        enforcer=enforcer,
    )

    async def start_bot():
        await bot.start(bot_token)

    jobs = [start_bot()]
    if config.admin.enabled:
        admin_app = create_admin_app(
            config=config,
            state_store=state_store,
            scheduler=scheduler,
            event_buffer=event_buffer,
            audit_log=audit_log,
        )
        server = uvicorn.Server(
            uvicorn.Config(
                app=admin_app,
                host=config.admin.host,
                port=config.admin.port,
                log_level="info",
            )
        )
        jobs.append(server.serve())

    try:
        await asyncio.gather(*jobs)
    except asyncio.CancelledError:
        pass
    finally:
        await bot.close()


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
