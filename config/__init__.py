from .config_loader import BotConfig, ConfigLoader, ManagedChannelEntry, parse_config

# Config is loaded explicitly by bot.py so that a ConfigError aborts startup
# instead of surfacing from an import.
__all__ = ["BotConfig", "ConfigLoader", "ManagedChannelEntry", "parse_config"]
