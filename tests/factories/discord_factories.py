"""
Discord Mock Factories

Provides factory functions and fake classes for Discord objects.
Use these to create consistent, configurable test doubles without hitting Discord's API.

The voice fakes keep real ``discord.PermissionOverwrite`` values and record
every edit, send and delete so tests can assert on the resulting channel state.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import discord

BOT_USER_ID = 1
GUILD_ID = 987654321


def make_not_found(text: str = "Unknown") -> discord.NotFound:
    """Build a ``discord.NotFound`` the way the HTTP client would raise it."""
    return discord.NotFound(MagicMock(status=404, reason="Not Found"), text)


class FakeUser:
    """Fake Discord User for testing."""

    def __init__(
        self,
        user_id: int = 123456789,
        name: str = "TestUser",
        display_name: str | None = None,
        bot: bool = False,
    ) -> None:
        self.id = user_id
        self.name = name
        self.display_name = display_name or name
        self.bot = bot
        self.mention = f"<@{user_id}>"
        self.display_avatar = SimpleNamespace(url=f"https://cdn.example/avatars/{user_id}.png")

    def __repr__(self) -> str:
        return f"<FakeUser id={self.id} name={self.name!r}>"


class FakeRole:
    """Fake Discord Role for testing."""

    def __init__(self, role_id: int = 999111222, name: str = "TestRole") -> None:
        self.id = role_id
        self.name = name
        self.mention = f"<@&{role_id}>"

    def __repr__(self) -> str:
        return f"<FakeRole id={self.id} name={self.name!r}>"


class FakeVoiceState:
    """Fake Discord VoiceState for testing."""

    def __init__(self, channel: FakeVoiceChannel | None = None) -> None:
        self.channel = channel


class FakeMember(FakeUser):
    """Fake Discord Member that can be moved between fake voice channels."""

    def __init__(
        self,
        user_id: int = 123456789,
        name: str = "TestMember",
        display_name: str | None = None,
        bot: bool = False,
        roles: list[FakeRole] | None = None,
        guild: FakeGuild | None = None,
        move_members: bool = False,
    ) -> None:
        super().__init__(user_id=user_id, name=name, display_name=display_name, bot=bot)
        self.roles = roles or []
        self.guild = guild
        self.voice: FakeVoiceState | None = None
        self.guild_permissions = SimpleNamespace(move_members=move_members)
        self.moves: list[FakeVoiceChannel | None] = []

    def connect_to(self, channel: FakeVoiceChannel | None) -> None:
        """Place the member in ``channel`` without recording an API call."""
        if self.voice and self.voice.channel and self in self.voice.channel.members:
            self.voice.channel.members.remove(self)
        if channel is None:
            self.voice = None
            return
        channel.members.append(self)
        self.voice = FakeVoiceState(channel)

    async def move_to(self, channel: FakeVoiceChannel | None) -> None:
        self.moves.append(channel)
        self.connect_to(channel)

    def __repr__(self) -> str:
        return f"<FakeMember id={self.id} name={self.name!r}>"


class FakeMessage:
    """Fake Discord Message posted by a fake channel."""

    _next_id = 5000

    def __init__(
        self,
        channel: Any,
        author: FakeUser,
        content: str | None = None,
        embeds: list[discord.Embed] | None = None,
        view: Any = None,
    ) -> None:
        FakeMessage._next_id += 1
        self.id = FakeMessage._next_id
        self.channel = channel
        self.guild = channel.guild
        self.author = author
        self.content = content
        self.embeds = embeds or []
        self.view = view
        self.edits: list[dict[str, Any]] = []
        self.deleted = False

    async def edit(self, **kwargs: Any) -> FakeMessage:
        self.edits.append(kwargs)
        if "embed" in kwargs:
            self.embeds = [kwargs["embed"]]
        if "content" in kwargs:
            self.content = kwargs["content"]
        if "view" in kwargs:
            self.view = kwargs["view"]
        return self

    async def delete(self) -> None:
        self.deleted = True
        if self in self.channel.messages:
            self.channel.messages.remove(self)


class _MessageableMixin:
    """Send and history support shared by text and voice channel fakes."""

    messages: list[FakeMessage]
    guild: FakeGuild

    async def send(self, content: str | None = None, **kwargs: Any) -> FakeMessage:
        embeds = [kwargs["embed"]] if kwargs.get("embed") is not None else []
        message = FakeMessage(
            self, self.guild.me, content=content, embeds=embeds, view=kwargs.get("view")
        )
        message.allowed_mentions = kwargs.get("allowed_mentions")
        self.messages.append(message)
        return message

    def add_message(self, author: FakeUser, content: str = "hi", embeds=None) -> FakeMessage:
        """Seed a message in the channel history."""
        message = FakeMessage(self, author, content=content, embeds=embeds)
        self.messages.append(message)
        return message

    async def history(self, limit: int | None = 100):
        # Newest first, like the real API
        for message in list(reversed(self.messages))[:limit]:
            yield message

    async def fetch_message(self, message_id: int) -> FakeMessage:
        for message in self.messages:
            if message.id == message_id:
                return message
        raise make_not_found("Unknown Message")


class FakeCategory:
    """Fake category holding the overwrites managed channels inherit from."""

    def __init__(self, category_id: int = 777000, overwrites: dict | None = None) -> None:
        self.id = category_id
        self.overwrites = overwrites or {}


class FakeChannel(_MessageableMixin):
    """Fake Discord TextChannel for testing."""

    def __init__(
        self,
        channel_id: int = 111222333,
        name: str = "test-channel",
        guild: FakeGuild | None = None,
    ) -> None:
        self.id = channel_id
        self.name = name
        self.guild = guild
        self.mention = f"<#{channel_id}>"
        self.messages: list[FakeMessage] = []

    def __repr__(self) -> str:
        return f"<FakeChannel id={self.id} name={self.name!r}>"


class FakeVoiceChannel(_MessageableMixin):
    """Fake Discord VoiceChannel that records edits, sends and deletes."""

    def __init__(
        self,
        channel_id: int = 444555666,
        name: str = "Test Voice",
        guild: FakeGuild | None = None,
        category: FakeCategory | None = None,
        position: int = 0,
        user_limit: int = 0,
        bitrate: int = 64000,
        overwrites: dict | None = None,
    ) -> None:
        self.id = channel_id
        self.name = name
        self.guild = guild
        self.category = category
        self.position = position
        self.user_limit = user_limit
        self.bitrate = bitrate
        self.overwrites: dict[Any, discord.PermissionOverwrite] = dict(overwrites or {})
        self.members: list[FakeMember] = []
        self.mention = f"<#{channel_id}>"
        self.messages: list[FakeMessage] = []
        self.edits: list[dict[str, Any]] = []
        self.deleted = False

    def overwrites_for(self, target: Any) -> discord.PermissionOverwrite:
        for subject, overwrite in self.overwrites.items():
            if subject.id == target.id:
                return overwrite
        return discord.PermissionOverwrite()

    def overwrite_ids(self) -> dict[int, discord.PermissionOverwrite]:
        """Overwrites keyed by subject id, for assertions."""
        return {subject.id: overwrite for subject, overwrite in self.overwrites.items()}

    async def edit(self, **kwargs: Any) -> FakeVoiceChannel:
        self.edits.append(kwargs)
        if "overwrites" in kwargs:
            self.overwrites = dict(kwargs["overwrites"])
        for key in ("user_limit", "bitrate", "name"):
            if key in kwargs:
                setattr(self, key, kwargs[key])
        return self

    async def delete(self, reason: str | None = None) -> None:
        self.deleted = True
        if self.guild and self in self.guild.channels:
            self.guild.channels.remove(self)

    def __repr__(self) -> str:
        return f"<FakeVoiceChannel id={self.id} name={self.name!r}>"


class FakeGuild:
    """Fake Discord Guild for testing."""

    def __init__(
        self,
        guild_id: int = GUILD_ID,
        name: str = "Test Guild",
        bitrate_limit: float = 96000.0,
    ) -> None:
        self.id = guild_id
        self.name = name
        self.bitrate_limit = bitrate_limit
        self.default_role = FakeRole(guild_id, "@everyone")
        self.bot_role = FakeRole(555000, "VC Bot")
        self.me = FakeMember(
            BOT_USER_ID, "VCBot", bot=True, roles=[self.default_role, self.bot_role], guild=self
        )
        self._members: dict[int, FakeMember] = {self.me.id: self.me}
        self._remote_members: dict[int, FakeMember] = {}
        self.channels: list[Any] = []
        self._next_channel_id = 900000

    @property
    def members(self) -> list[FakeMember]:
        return list(self._members.values())

    def add_member(self, member: FakeMember, cached: bool = True) -> FakeMember:
        member.guild = self
        if cached:
            self._members[member.id] = member
        else:
            self._remote_members[member.id] = member
        return member

    def get_member(self, user_id: int) -> FakeMember | None:
        return self._members.get(user_id)

    async def fetch_member(self, user_id: int) -> FakeMember:
        member = self._members.get(user_id) or self._remote_members.get(user_id)
        if member is None:
            raise make_not_found("Unknown Member")
        return member

    def get_channel(self, channel_id: int) -> Any:
        for channel in self.channels:
            if channel.id == channel_id:
                return channel
        return None

    def add_channel(self, channel: Any) -> Any:
        channel.guild = self
        self.channels.append(channel)
        return channel

    async def create_voice_channel(
        self,
        name: str,
        *,
        category: FakeCategory | None = None,
        position: int | None = None,
        overwrites: dict | None = None,
    ) -> FakeVoiceChannel:
        self._next_channel_id += 1
        channel = FakeVoiceChannel(
            self._next_channel_id,
            name,
            guild=self,
            category=category,
            position=position or 0,
            overwrites=overwrites,
        )
        self.channels.append(channel)
        return channel

    def __repr__(self) -> str:
        return f"<FakeGuild id={self.id} name={self.name!r}>"


class FakeResponse:
    """Fake Interaction Response for testing."""

    def __init__(self) -> None:
        self._is_done = False
        self.sent_modal: Any = None
        self._deferred = False
        self._messages: list[dict[str, Any]] = []

    def is_done(self) -> bool:
        return self._is_done

    async def send_message(
        self, content: str | None = None, ephemeral: bool = False, **kwargs: Any
    ) -> None:
        self._is_done = True
        self._messages.append({"content": content, "ephemeral": ephemeral, **kwargs})

    async def defer(self, ephemeral: bool = False, thinking: bool = False) -> None:
        self._is_done = True
        self._deferred = True

    async def send_modal(self, modal: Any) -> None:
        self._is_done = True
        self.sent_modal = modal


class FakeFollowup:
    """Fake Interaction Followup for testing."""

    def __init__(self) -> None:
        self._messages: list[dict[str, Any]] = []

    async def send(
        self, content: str | None = None, ephemeral: bool = False, **kwargs: Any
    ) -> MagicMock:
        msg = MagicMock()
        msg.content = content
        msg.id = len(self._messages) + 1
        self._messages.append({"content": content, "ephemeral": ephemeral, **kwargs})
        return msg


class FakeInteraction:
    """Fake component interaction for router tests."""

    def __init__(
        self,
        user: FakeMember | FakeUser | None = None,
        guild: FakeGuild | None = None,
        message: FakeMessage | None = None,
        client: Any = None,
        no_guild: bool = False,
    ) -> None:
        self.user = user or FakeMember()
        self.guild = None if no_guild else (guild or FakeGuild())
        self.message = message or SimpleNamespace(id=4242)
        self.client = client
        self.response = FakeResponse()
        self.followup = FakeFollowup()

    @property
    def replies(self) -> list[dict[str, Any]]:
        """Everything sent back to the user, in order."""
        return self.response._messages + self.followup._messages

    @property
    def last_reply(self) -> dict[str, Any]:
        return self.replies[-1]


class FakeBot:
    """Fake Discord Bot exposing the lookups the services use."""

    def __init__(self, guild: FakeGuild | None = None) -> None:
        self.guild = guild or FakeGuild()
        self.user = self.guild.me
        self.services: Any = None
        self.http = SimpleNamespace(request=AsyncMock(return_value=None))

    def get_channel(self, channel_id: int) -> Any:
        return self.guild.get_channel(channel_id)

    def get_guild(self, guild_id: int) -> FakeGuild | None:
        return self.guild if self.guild.id == guild_id else None


# Factory functions for convenient creation


def make_member(
    guild: FakeGuild,
    user_id: int,
    name: str | None = None,
    cached: bool = True,
    **kwargs: Any,
) -> FakeMember:
    """Create a FakeMember registered with ``guild``."""
    member = FakeMember(user_id=user_id, name=name or f"user{user_id}", **kwargs)
    return guild.add_member(member, cached=cached)


def make_voice_channel(
    guild: FakeGuild,
    channel_id: int = 444555666,
    name: str = "Test Voice",
    with_bot_category: bool = True,
    **kwargs: Any,
) -> FakeVoiceChannel:
    """
    Create a FakeVoiceChannel registered with ``guild``.

    By default the channel sits in a category granting the bot's role
    ``manage_channels``, which is the overwrite managed channels inherit.
    """
    category = None
    if with_bot_category:
        category = FakeCategory(
            overwrites={
                guild.bot_role: discord.PermissionOverwrite(
                    view_channel=True, connect=True, manage_channels=True
                ),
                guild.default_role: discord.PermissionOverwrite(view_channel=True),
            }
        )
    channel = FakeVoiceChannel(channel_id=channel_id, name=name, category=category, **kwargs)
    return guild.add_channel(channel)


def make_text_channel(guild: FakeGuild, channel_id: int = 111222333, name: str = "panel") -> FakeChannel:
    return guild.add_channel(FakeChannel(channel_id=channel_id, name=name))


def make_interaction(
    user: FakeMember | FakeUser | None = None,
    guild: FakeGuild | None = None,
    **kwargs: Any,
) -> FakeInteraction:
    """Create a FakeInteraction with defaults."""
    return FakeInteraction(user=user, guild=guild, **kwargs)
