# config/config_loader.py

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar

import yaml

from utils.errors import ConfigError

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")
MAX_USER_LIMIT = 99
DEFAULT_DATABASE_PATH = "custom_vc.db"


def _get_project_root() -> Path:
    """Derive project root from this file's location: config/config_loader.py -> project root."""
    return Path(__file__).resolve().parent.parent


@dataclass(frozen=True)
class ManagedChannelEntry:
    """A voice channel eligible for automatic owner/permission management."""

    channel_id: int
    default_user_limit: int = 0


@dataclass(frozen=True)
class BotConfig:
    """Validated, immutable runtime configuration."""

    bot_color: int
    control_panel_channel_id: int
    control_panel_message_id: int | None
    managed_channels: tuple[ManagedChannelEntry, ...]
    exempt_bot_ids: frozenset[int]
    logging_level: str = "INFO"
    database_path: str = DEFAULT_DATABASE_PATH

    @property
    def managed_channel_ids(self) -> list[int]:
        return [entry.channel_id for entry in self.managed_channels]

    def get_channel_entry(self, channel_id: int | None) -> ManagedChannelEntry | None:
        """Return the managed-channel entry for ``channel_id``, if any."""
        for entry in self.managed_channels:
            if entry.channel_id == channel_id:
                return entry
        return None

    def is_managed(self, channel_id: int | None) -> bool:
        return self.get_channel_entry(channel_id) is not None

    def is_exempt_bot(self, user_id: int) -> bool:
        return user_id in self.exempt_bot_ids


def _parse_snowflake(value: Any, field_name: str) -> int:
    # bool is an int subclass; a YAML "yes" must not become id 1
    if isinstance(value, bool):
        raise ConfigError(f"{field_name} is invalid.")
    if isinstance(value, int) and value > 0:
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ConfigError(f"{field_name} is invalid.")


def _require_mapping(raw: Any, field_name: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise ConfigError(f"{field_name} is invalid.")
    return raw


def _parse_color(raw: dict[str, Any]) -> int:
    bot_section = _require_mapping(raw.get("bot"), "bot")
    color = bot_section.get("color")
    if not isinstance(color, str) or not COLOR_PATTERN.match(color):
        raise ConfigError("bot.color is invalid.")
    return int(color.lstrip("#"), 16)


def _parse_control_panel(raw: dict[str, Any]) -> tuple[int, int | None]:
    panel = _require_mapping(raw.get("control_panel"), "control_panel")
    channel_id = _parse_snowflake(panel.get("channel_id"), "control_panel.channel_id")

    # Empty means "post the panel on startup"
    message_id = panel.get("message_id")
    if message_id is None or (isinstance(message_id, str) and not message_id.strip()):
        return channel_id, None
    return channel_id, _parse_snowflake(message_id, "control_panel.message_id")


def _parse_managed_channels(raw: dict[str, Any]) -> tuple[ManagedChannelEntry, ...]:
    items = raw.get("managed_channels")
    if not isinstance(items, list) or not items:
        raise ConfigError("managed_channels is invalid.")

    entries: list[ManagedChannelEntry] = []
    seen: set[int] = set()
    for index, item in enumerate(items):
        item = _require_mapping(item, f"managed_channels[{index}]")
        channel_id = _parse_snowflake(
            item.get("channel_id"), f"managed_channels[{index}].channel_id"
        )
        limit = item.get("default_user_limit", 0)
        if (
            isinstance(limit, bool)
            or not isinstance(limit, int)
            or not 0 <= limit <= MAX_USER_LIMIT
        ):
            raise ConfigError(f"managed_channels[{index}].default_user_limit is invalid.")
        if channel_id in seen:
            raise ConfigError(f"managed_channels[{index}].channel_id is duplicated.")
        seen.add(channel_id)
        entries.append(ManagedChannelEntry(channel_id=channel_id, default_user_limit=limit))
    return tuple(entries)


def _parse_exempt_bots(raw: dict[str, Any]) -> frozenset[int]:
    items = raw.get("exempt_bots", [])
    if not isinstance(items, list):
        raise ConfigError("exempt_bots is invalid.")
    ids = set()
    for index, item in enumerate(items):
        item = _require_mapping(item, f"exempt_bots[{index}]")
        ids.add(_parse_snowflake(item.get("bot_id"), f"exempt_bots[{index}].bot_id"))
    return frozenset(ids)


def _parse_logging_level(raw: dict[str, Any]) -> str:
    logging_section = raw.get("logging", {}) or {}
    if not isinstance(logging_section, dict):
        raise ConfigError("logging is invalid.")
    level = logging_section.get("level", "INFO")
    if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
        raise ConfigError("logging.level is invalid.")
    return level.upper()


def _parse_database_path(raw: dict[str, Any]) -> str:
    database = raw.get("database", {}) or {}
    if not isinstance(database, dict):
        raise ConfigError("database is invalid.")
    path = database.get("path", DEFAULT_DATABASE_PATH)
    if not isinstance(path, str) or not path.strip():
        raise ConfigError("database.path is invalid.")
    return path


def parse_config(raw: Any) -> BotConfig:
    """
    Validate a raw YAML mapping and build a ``BotConfig``.

    Raises:
        ConfigError: On the first missing or malformed field.
    """
    raw = _require_mapping(raw, "configuration root")
    panel_channel_id, panel_message_id = _parse_control_panel(raw)
    return BotConfig(
        bot_color=_parse_color(raw),
        control_panel_channel_id=panel_channel_id,
        control_panel_message_id=panel_message_id,
        managed_channels=_parse_managed_channels(raw),
        exempt_bot_ids=_parse_exempt_bots(raw),
        logging_level=_parse_logging_level(raw),
        database_path=_parse_database_path(raw),
    )


class ConfigLoader:
    """
    Singleton class to load and provide access to configuration data.

    Unlike a best-effort loader, any problem with the file is fatal: the
    caller receives a ConfigError and startup is aborted.
    """

    _config: ClassVar[BotConfig | None] = None
    _config_status: ClassVar[str] = "not_loaded"  # "ok", "error"
    _config_path: ClassVar[str | None] = None

    @classmethod
    def load_config(cls, config_path: str | None = None) -> BotConfig:
        """Load the configuration from a YAML file if not already loaded.

        Args:
            config_path: Path to the configuration file. If not provided,
                uses CONFIG_PATH env var or defaults to project_root/config/config.yaml.

        Returns:
            BotConfig: The validated configuration.

        Raises:
            ConfigError: If the file is missing, unreadable, or invalid.
        """
        if cls._config is not None:
            return cls._config

        # Resolve config path with priority: explicit arg > env var > default
        if config_path is None:
            config_path = os.environ.get("CONFIG_PATH")
            if config_path:
                logging.info("Config path overridden via CONFIG_PATH env: %s", config_path)
        if config_path is None:
            config_path = str(_get_project_root() / "config" / "config.yaml")

        cls._config_path = config_path

        try:
            with Path(config_path).open(encoding="utf-8") as file:
                raw = yaml.safe_load(file)
        except FileNotFoundError as e:
            cls._config_status = "error"
            raise ConfigError(f"Configuration file not found at path: {config_path}") from e
        except (yaml.YAMLError, UnicodeDecodeError) as e:
            cls._config_status = "error"
            raise ConfigError(f"Error parsing configuration at {config_path}: {e}") from e

        try:
            cls._config = parse_config(raw)
        except ConfigError:
            cls._config_status = "error"
            raise

        cls._config_status = "ok"
        logging.info("Configuration loaded successfully from %s", config_path)
        return cls._config

    @classmethod
    def get_config(cls) -> BotConfig:
        """Return the loaded configuration, loading it on first use."""
        return cls._config if cls._config is not None else cls.load_config()

    @classmethod
    def get_config_status(cls) -> dict[str, Any]:
        """Return config health status for observability."""
        return {
            "config_status": cls._config_status,
            "config_path": cls._config_path,
            "config_loaded": cls._config is not None,
        }

    @classmethod
    def reset(cls) -> None:
        """Reset the config loader state (useful for testing)."""
        cls._config = None
        cls._config_status = "not_loaded"
        cls._config_path = None
