"""
Type definitions and common data structures for the bot.
"""

from dataclasses import dataclass, field
from typing import Any, NamedTuple


class VoiceChannelResult(NamedTuple):
    """Result of a voice channel operation."""

    success: bool
    channel_id: int | None = None
    channel_mention: str | None = None
    error: str | None = None
    metadata: dict[str, Any] | None = None  # Values for the error/success template


@dataclass(frozen=True)
class ChannelSession:
    """Explicit session record for a managed channel."""

    channel_id: int
    owner_id: int | None = None
    approval: bool = False

    @property
    def is_owned(self) -> bool:
        return self.owner_id is not None


@dataclass(frozen=True)
class MemberPermission:
    """
    A requested change to one member's overwrite.

    ``None`` leaves the corresponding state as it is on the channel.
    """

    member_id: int
    approve: bool | None = None
    muted: bool | None = None


@dataclass
class BlockEditResult:
    """Outcome of a block request, grouped by what happened to each user."""

    blocked: list[int] = field(default_factory=list)
    privileged: list[int] = field(default_factory=list)
    already_blocked: list[int] = field(default_factory=list)

    @property
    def requested(self) -> int:
        return len(self.blocked) + len(self.privileged) + len(self.already_blocked)
