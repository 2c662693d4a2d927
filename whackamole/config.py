import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, validator


class DiscordListConfig(BaseModel):
    guilds: List[int] = Field(default_factory=list)
    channels: List[int] = Field(default_factory=list)
    users: List[int] = Field(default_factory=list)


class ExemptConfig(DiscordListConfig):
    roles: List[str] = Field(default_factory=list)


class DiscordIntentsConfig(BaseModel):
    message_content: bool = True
    members: bool = True


class DiscordConfig(BaseModel):
    token_env: str = "DISCORD_TOKEN"
    intents: DiscordIntentsConfig = DiscordIntentsConfig()
    monitor: DiscordListConfig = DiscordListConfig()
    exempt: ExemptConfig = ExemptConfig()
    slash_command_guilds: List[int] = Field(default_factory=list)


class DetectionConfig(BaseModel):
    enabled_by_default: bool = True
    duplication_threshold: int = 3
    time_span_minutes: int = 5
    sweep_interval_seconds: int = 60

    @validator("duplication_threshold", "time_span_minutes", "sweep_interval_seconds")
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v


class ModerationConfig(BaseModel):
    timeout_minutes: int = 10
    warning_message: str = "{mention}, please do not spam in this channel."
    # removed after the timeout is applied, the timeout replaces it
    muted_role: Optional[str] = "Muted"

    @validator("timeout_minutes")
    def validate_timeout(cls, v: int) -> int:
        if v < 0:
            raise ValueError("timeout_minutes must not be negative")
        return v


class AdminConfig(BaseModel):
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8000
    token_env: str = "ADMIN_TOKEN"


class AppMeta(BaseModel):
    name: str = "WhackAMole"
    logging_level: str = "INFO"
    data_dir: str = "data"


class AppConfig(BaseModel):
    app: AppMeta = AppMeta()
    discord: DiscordConfig = DiscordConfig()
    detection: DetectionConfig = DetectionConfig()
    moderation: ModerationConfig = ModerationConfig()
    admin: AdminConfig = AdminConfig()


def load_yaml_config(path: str | Path) -> AppConfig:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    with config_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    config = AppConfig.parse_obj(data)

    log_level_override = os.getenv("LOG_LEVEL")
    if log_level_override:
        config.app.logging_level = log_level_override
    return config

