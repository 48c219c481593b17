"""
Custom exception classes for the custom voice channel bot.

These provide a hierarchy of typed exceptions for better error handling.
"""

from typing import Any


class BotError(Exception):
    """Base exception for bot-related errors."""

    pass


class ConfigError(BotError):
    """Raised when the configuration file is missing or malformed. Fatal at startup."""

    pass


class DatabaseError(BotError):
    """Exception raised for database-related errors."""

    pass


class ServiceError(BotError):
    """Exception raised for service-related errors."""

    pass


class UserFacingError(BotError):
    """
    Error that is reported back to the acting user.

    Carries a stable error code understood by ``format_user_error`` plus any
    values the message template needs.
    """

    def __init__(self, code: str, **kwargs: Any) -> None:
        super().__init__(code)
        self.code = code
        self.kwargs = kwargs


class AuthorizationError(UserFacingError):
    """The actor lacks the right to perform the requested operation."""

    pass


class NotFoundError(UserFacingError):
    """A referenced channel, member or message no longer exists."""

    pass
