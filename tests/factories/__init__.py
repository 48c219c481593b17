"""
Test Factories Module

Centralized factory functions and fixtures for creating test objects.
Provides DRY utilities for Discord mocks, config fixtures, and DB seeding.
"""

from .config_factories import (
    COMPANION_BOT_ID,
    MANAGED_CHANNEL_ID,
    PANEL_CHANNEL_ID,
    SECOND_MANAGED_CHANNEL_ID,
    make_bot_config,
    make_config,
    temp_config_file,
)
from .db_factories import (
    seed_block_list,
    seed_pairing,
    seed_session,
)
from .discord_factories import (
    BOT_USER_ID,
    FakeBot,
    FakeCategory,
    FakeChannel,
    FakeGuild,
    FakeInteraction,
    FakeMember,
    FakeMessage,
    FakeRole,
    FakeUser,
    FakeVoiceChannel,
    FakeVoiceState,
    make_interaction,
    make_member,
    make_not_found,
    make_text_channel,
    make_voice_channel,
)

__all__ = [
    "BOT_USER_ID",
    "COMPANION_BOT_ID",
    "MANAGED_CHANNEL_ID",
    "PANEL_CHANNEL_ID",
    "SECOND_MANAGED_CHANNEL_ID",
    "FakeBot",
    "FakeCategory",
    "FakeChannel",
    "FakeGuild",
    "FakeInteraction",
    "FakeMember",
    "FakeMessage",
    "FakeRole",
    "FakeUser",
    "FakeVoiceChannel",
    "FakeVoiceState",
    "make_bot_config",
    "make_config",
    "make_interaction",
    "make_member",
    "make_not_found",
    "make_text_channel",
    "make_voice_channel",
    "seed_block_list",
    "seed_pairing",
    "seed_session",
    "temp_config_file",
]
