import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
import pytest_asyncio

# Ensure project root is on sys.path for CI environments where
# Python might not automatically include it (e.g., some GitHub
# Actions runners invoking pytest differently).
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from services.db.database import Database
from services.service_container import ServiceContainer
from tests.factories import (
    COMPANION_BOT_ID,
    MANAGED_CHANNEL_ID,
    PANEL_CHANNEL_ID,
    SECOND_MANAGED_CHANNEL_ID,
    FakeBot,
    FakeGuild,
    make_bot_config,
    make_member,
    make_text_channel,
    make_voice_channel,
)
from utils.tasks import cancel_background_tasks


@pytest_asyncio.fixture()
async def temp_db(tmp_path):
    """Initialize Database to a temporary file for isolation across tests."""
    # Save original state
    orig_path = Database._db_path
    orig_initialized = Database._initialized

    # Reset and initialize with temp database
    Database._initialized = False
    db_file = tmp_path / "test.db"
    await Database.initialize(str(db_file))

    # Verify initialization worked
    assert Database._initialized is True
    assert Database._db_path == str(db_file)

    yield str(db_file)

    # Restore original state completely
    Database._db_path = orig_path
    Database._initialized = orig_initialized


@pytest.fixture
def bot_config():
    return make_bot_config()


@pytest.fixture
def guild():
    return FakeGuild()


@pytest.fixture
def vc(guild):
    """
    A guild with two managed voice channels, an unmanaged one and the panel channel.
    """
    return SimpleNamespace(
        guild=guild,
        channel=make_voice_channel(guild, MANAGED_CHANNEL_ID, "Custom VC 1", position=3),
        second=make_voice_channel(guild, SECOND_MANAGED_CHANNEL_ID, "Custom VC 2", position=4),
        unmanaged=make_voice_channel(guild, 444000999, "Lobby"),
        panel=make_text_channel(guild, PANEL_CHANNEL_ID),
        alice=make_member(guild, 1001, "alice", display_name="Alice"),
        bob=make_member(guild, 1002, "bob", display_name="Bob"),
        carol=make_member(guild, 1003, "carol", display_name="Carol"),
        mod=make_member(guild, 1004, "mod", display_name="Mod", move_members=True),
        companion=make_member(guild, COMPANION_BOT_ID, "reader", bot=True),
    )


@pytest_asyncio.fixture()
async def services(temp_db, bot_config, vc):
    """Real services wired to the fake guild and bot."""
    bot = FakeBot(vc.guild)
    container = ServiceContainer(bot_config, bot)
    bot.services = container
    await container.initialize()

    yield container

    await cancel_background_tasks()
    await container.cleanup()
