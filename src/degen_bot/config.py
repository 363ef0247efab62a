"""Configuration loader: TOML file, .env secrets, environment overrides, Pydantic validation."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from degen_bot.errors import ConfigError

TOKEN_ENV_VAR = "TELEGRAM_BOT_TOKEN"


class TelegramConfig(BaseModel):
    enabled: bool


class HttpConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=0, le=65535)
    redirect_url: str = "https://degenstudios.media"


class AssetConfig(BaseModel):
    directory: str = "img"
    portrait: str = "hands_portrait.png"
    landscape: str = "hands_landscape.png"

    @property
    def portrait_path(self) -> Path:
        return Path(self.directory) / self.portrait

    @property
    def landscape_path(self) -> Path:
        return Path(self.directory) / self.landscape


class AppConfig(BaseModel):
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    telegram: TelegramConfig
    bot_token: Optional[str] = None
    http: HttpConfig = Field(default_factory=HttpConfig)
    assets: AssetConfig = Field(default_factory=AssetConfig)


def _runtime_overrides() -> dict:
    """Ambient settings that never live in config.toml."""
    data: dict = {"http": {}, "assets": {}}
    if level := os.environ.get("LOG_LEVEL"):
        data["log_level"] = level
    if fmt := os.environ.get("LOG_FORMAT"):
        data["log_format"] = fmt
    if host := os.environ.get("HOST"):
        data["http"]["host"] = host
    if port := os.environ.get("PORT"):
        data["http"]["port"] = port
    if assets := os.environ.get("DEGEN_BOT_ASSETS"):
        data["assets"]["directory"] = assets
    return data


def load_config(config_path: str | Path = "config.toml", env_path: str | Path = ".env") -> AppConfig:
    """Load and validate configuration.

    Only the ``[telegram]`` table is read from the TOML file. The bot token
    comes from ``TELEGRAM_BOT_TOKEN`` (process environment or ``.env``) and is
    required only when the Telegram integration is enabled.
    """
    env_file = Path(env_path)
    if env_file.exists():
        load_dotenv(env_file)

    config_file = Path(config_path)
    if not config_file.exists():
        raise ConfigError(f"Configuration file not found: {config_file}")

    try:
        raw = tomllib.loads(config_file.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse {config_file}: {e}") from e

    data = _runtime_overrides()
    data["telegram"] = raw.get("telegram")
    data["bot_token"] = os.environ.get(TOKEN_ENV_VAR) or None

    try:
        config = AppConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_file}: {e}") from e

    if config.telegram.enabled and not config.bot_token:
        raise ConfigError(f"{TOKEN_ENV_VAR} secret not found")

    return config
