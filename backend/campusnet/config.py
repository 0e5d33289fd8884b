"""Configuration loader for Campusnet."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic_settings import BaseSettings

from .models.user import Role


class StorageConfig(BaseModel):
    backend: str = "memory"  # memory, redis
    key_prefix: str = "campusnet"


class CatalogConfig(BaseModel):
    path: str = "../config/catalog.yaml"


class ReportsConfig(BaseModel):
    output_dir: str = "../reports"
    public_prefix: str = "/reports"


class DiscordConfig(BaseModel):
    enabled: bool = False
    webhook_url: str = ""


class NotificationChannels(BaseModel):
    discord: DiscordConfig = DiscordConfig()


class NotificationsConfig(BaseModel):
    duplicate_window_minutes: int = 5
    channels: NotificationChannels = NotificationChannels()


class UserSeed(BaseModel):
    """A user to load into the directory at startup."""

    id: str
    name: str
    email: str = ""
    role: Role


class AppConfig(BaseModel):
    storage: StorageConfig = StorageConfig()
    catalog: CatalogConfig = CatalogConfig()
    reports: ReportsConfig = ReportsConfig()
    notifications: NotificationsConfig = NotificationsConfig()
    users: list[UserSeed] = []


class Settings(BaseSettings):
    """Environment-based settings."""

    redis_url: str = "redis://localhost:6379"
    dev_mode: bool = True
    config_path: str = "../config/config.yaml"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "CAMPUSNET_"


def resolve_path(path: str) -> Path:
    """Relative paths are taken from the backend directory."""
    resolved = Path(os.path.expanduser(path))
    if not resolved.is_absolute():
        resolved = Path(__file__).parent.parent / path
    return resolved


def load_yaml_config(path: str) -> dict[str, Any]:
    """Load a YAML configuration file."""
    config_path = resolve_path(path)

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


def get_config(config_path: str | None = None) -> AppConfig:
    """Load the YAML application config; missing sections take defaults."""
    path = config_path or Settings().config_path
    return AppConfig.model_validate(load_yaml_config(path))


# Singleton instance
settings = Settings()
