"""
Configuration management for Ryze.

Configuration comes from ``RYZE_*`` environment variables, optionally layered
on top of a YAML file that supports environment variable substitution.
"""

import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ryze.errors import ConfigError

logger = logging.getLogger(__name__)

LEAGUE_NEWS_FEED_URL = "https://na.leagueoflegends.com/en/rss.xml"

ENV_PREFIX = "RYZE_"

# Environment variable suffix -> path inside the configuration tree
ENV_FIELDS: dict[str, tuple[str, ...]] = {
    "BACKEND": ("backend",),
    "DISCORD_TOKEN": ("discord", "token"),
    "DISCORD_CHANNEL": ("discord", "channel_id"),
    "TELEGRAM_BOT_TOKEN": ("telegram", "bot_token"),
    "TELEGRAM_CHAT_ID": ("telegram", "chat_id"),
    "FEED_URL": ("feed", "url"),
    "POLL_LIMIT": ("feed", "poll_limit"),
    "POLL_INTERVAL": ("feed", "poll_interval"),
    "FRESHNESS_WINDOW": ("feed", "freshness_window"),
    "REQUEST_TIMEOUT": ("feed", "request_timeout"),
    "SEND_TIMEOUT": ("feed", "send_timeout"),
    "USER_AGENT": ("feed", "user_agent"),
    "PROXY": ("feed", "proxy"),
    "HTTP_HOST": ("http", "host"),
    "HTTP_PORT": ("http", "port"),
}


def _check_not_blank(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("Field cannot be empty")
    return v.strip()


class DiscordConfig(BaseModel):
    """
    Discord bot configuration.

    Attributes
    ----------
    token : str
        Bot authentication token (without the ``Bot`` prefix).
    channel_id : str
        Snowflake ID of the target text channel.
    """

    token: str
    channel_id: str

    @field_validator("token")
    @classmethod
    def check_token(cls, v: str) -> str:
        """Validate that the token is not empty."""
        return _check_not_blank(v)

    @field_validator("channel_id")
    @classmethod
    def check_channel_id(cls, v: str) -> str:
        """Validate that the channel ID is a numeric snowflake."""
        v = _check_not_blank(v)
        if not v.isdigit():
            raise ValueError("Discord channel ID must be numeric")
        return v


class TelegramConfig(BaseModel):
    """
    Telegram bot configuration.

    Attributes
    ----------
    bot_token : str
        Telegram Bot API token.
    chat_id : str
        Target chat ID for notifications.
    disable_web_page_preview : bool
        Whether to disable link previews.
    """

    bot_token: str
    chat_id: str
    disable_web_page_preview: bool = False

    @field_validator("bot_token", "chat_id")
    @classmethod
    def check_not_empty(cls, v: str) -> str:
        """Validate that required fields are not empty."""
        return _check_not_blank(v)


class FeedSettings(BaseModel):
    """
    Polling settings for the news feed.

    Attributes
    ----------
    url : str
        URL of the RSS/Atom feed.
    poll_limit : int
        Number of most recent items inspected on each scheduled poll.
    poll_interval : int
        Seconds between two scheduled polls.
    freshness_window : int
        Items published less than this many seconds ago are new.
    request_timeout : int
        Feed HTTP request timeout in seconds.
    send_timeout : int
        Timeout in seconds for opening a chat session and for each send.
    user_agent : str
        User-Agent header for feed requests.
    proxy : str | None
        Optional SOCKS/HTTP proxy URL for outbound requests.
    """

    url: str = LEAGUE_NEWS_FEED_URL
    poll_limit: int = Field(default=10, gt=0)
    poll_interval: int = Field(default=60, gt=0)
    freshness_window: int = Field(default=60, gt=0)
    request_timeout: int = Field(default=30, gt=0)
    send_timeout: int = Field(default=30, gt=0)
    user_agent: str = "Ryze/1.0"
    proxy: str | None = None

    @field_validator("proxy")
    @classmethod
    def blank_proxy_is_none(cls, v: str | None) -> str | None:
        """Treat an empty proxy setting as no proxy."""
        if v is not None and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def check_window_matches_interval(self) -> "FeedSettings":
        """Warn when the freshness window and poll interval drift apart."""
        if self.freshness_window < self.poll_interval:
            logger.warning(
                "Freshness window (%ds) is shorter than the poll interval (%ds): "
                "items may be missed",
                self.freshness_window,
                self.poll_interval,
            )
        elif self.freshness_window > self.poll_interval:
            logger.warning(
                "Freshness window (%ds) is longer than the poll interval (%ds): "
                "items may be delivered twice",
                self.freshness_window,
                self.poll_interval,
            )
        return self


class HttpConfig(BaseModel):
    """Health check server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=0, le=65535)


class AppConfig(BaseModel):
    """
    Root application configuration.

    Attributes
    ----------
    backend : str
        Chat backend used for delivery (``discord`` or ``telegram``).
    discord : DiscordConfig | None
        Discord settings, required when ``backend`` is ``discord``.
    telegram : TelegramConfig | None
        Telegram settings, required when ``backend`` is ``telegram``.
    feed : FeedSettings
        Feed polling settings.
    http : HttpConfig
        Health check server settings.
    """

    backend: Literal["discord", "telegram"] = "discord"
    discord: DiscordConfig | None = None
    telegram: TelegramConfig | None = None
    feed: FeedSettings = Field(default_factory=FeedSettings)
    http: HttpConfig = Field(default_factory=HttpConfig)

    @field_validator("backend", mode="before")
    @classmethod
    def normalize_backend(cls, v: Any) -> Any:
        """Accept backend names in any case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @model_validator(mode="after")
    def check_backend_configured(self) -> "AppConfig":
        """Validate that the selected backend has its settings."""
        if getattr(self, self.backend) is None:
            raise ValueError(f"Backend '{self.backend}' is selected but not configured")
        return self

    @property
    def channel(self) -> str:
        """Identifier of the channel messages are delivered to."""
        if self.backend == "discord":
            return self.discord.channel_id
        return self.telegram.chat_id


def _substitute_env_vars(value: Any, environ: Mapping[str, str]) -> Any:
    """
    Recursively substitute environment variables in configuration values.

    Supports ${VAR_NAME} and ${VAR_NAME:-default} syntax.

    Parameters
    ----------
    value : Any
        The value to process.
    environ : Mapping[str, str]
        Environment to read variables from.

    Returns
    -------
    Any
        The value with environment variables substituted.
    """
    if isinstance(value, str):
        # Pattern matches ${VAR} or ${VAR:-default}
        pattern = r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}"

        def replacer(match: re.Match) -> str:
            var_name = match.group(1)
            default = match.group(2)
            env_value = environ.get(var_name)
            if env_value is not None:
                return env_value
            if default is not None:
                return default
            logger.warning(
                "Environment variable '%s' not set and no default provided",
                var_name,
            )
            return match.group(0)

        return re.sub(pattern, replacer, value)
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v, environ) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item, environ) for item in value]
    return value


def _apply_env_overrides(raw: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Overlay ``RYZE_*`` variables onto the raw configuration tree."""
    for suffix, path in ENV_FIELDS.items():
        value = environ.get(ENV_PREFIX + suffix)
        if value is None:
            continue
        node = raw
        for key in path[:-1]:
            child = node.get(key)
            if not isinstance(child, dict):
                child = {}
                node[key] = child
            node = child
        node[path[-1]] = value
    return raw


def _read_yaml(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    logger.info("Loading configuration from %s", config_path)

    try:
        with open(config_path, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if raw_config is None:
        raise ConfigError(f"Configuration file is empty: {config_path}")
    if not isinstance(raw_config, dict):
        raise ConfigError(f"Configuration file must contain a mapping: {config_path}")
    return raw_config


def load_config(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """
    Load and validate configuration.

    Parameters
    ----------
    config_path : str | Path | None
        Optional YAML configuration file. ``RYZE_*`` variables take
        precedence over its values.
    environ : Mapping[str, str] | None
        Environment to read from, defaults to ``os.environ``.

    Returns
    -------
    AppConfig
        Validated application configuration.

    Raises
    ------
    ConfigError
        If the file is missing or unreadable, or the configuration is invalid.
    """
    if environ is None:
        environ = os.environ

    raw_config: dict[str, Any] = {}
    if config_path is not None:
        raw_config = _substitute_env_vars(_read_yaml(Path(config_path)), environ)

    raw_config = _apply_env_overrides(raw_config, environ)

    try:
        config = AppConfig.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.info(
        "Configuration loaded: %s backend, feed %s",
        config.backend,
        config.feed.url,
    )

    return config
