"""
Utilities Package

Common utilities and helper functions for the bot.
"""

from .errors import (
    AuthorizationError,
    BotError,
    ConfigError,
    DatabaseError,
    NotFoundError,
    ServiceError,
    UserFacingError,
)
from .logging import get_logger, setup_logging
from .tasks import cancel_background_tasks, spawn
from .types import BlockEditResult, ChannelSession, MemberPermission, VoiceChannelResult

__all__ = [
    "AuthorizationError",
    "BlockEditResult",
    "BotError",
    "ChannelSession",
    "ConfigError",
    "DatabaseError",
    "MemberPermission",
    "NotFoundError",
    "ServiceError",
    "UserFacingError",
    "VoiceChannelResult",
    "cancel_background_tasks",
    "get_logger",
    "setup_logging",
    "spawn",
]
