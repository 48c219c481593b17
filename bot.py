import os
import sys
import time

import discord
from discord.ext import commands
from dotenv import load_dotenv

from config.config_loader import ConfigLoader
from utils.errors import ConfigError
from utils.logging import get_logger, setup_logging
from utils.tasks import cancel_background_tasks

# Initialize logger
logger = get_logger(__name__)

# Load environment variables
load_dotenv()

# Load configuration using ConfigLoader; a bad config file is fatal
try:
    config = ConfigLoader.load_config()
except ConfigError as e:
    logger.critical(f"Invalid configuration: {e}")
    sys.exit(1)

setup_logging(config.logging_level)

# Load sensitive information from .env
TOKEN = os.getenv("DISCORD_TOKEN")
if not TOKEN:
    logger.critical("DISCORD_TOKEN not found in environment variables.")
    raise ValueError("DISCORD_TOKEN not set.")

# Configure intents - start from none and enable only what's required
intents = discord.Intents.none()
intents.guilds = True  # Required: Guild events, channels, roles
intents.members = True  # Required: Member cache for owners, block targets and requesters
intents.voice_states = True  # Required: Voice channel join/leave for managed channels

# List of initial extensions to load
initial_extensions = [
    "cogs.voice.events",
]


class MyBot(commands.Bot):
    """Bot with project-specific attributes and helpers."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)

        # Assign the validated config to the bot instance
        self.config = config
        self.services = None

        # Initialize uptime tracking
        self.start_time = time.monotonic()

    async def setup_hook(self) -> None:
        """Initialize the database and services, load cogs and register persistent views."""
        from services.db.database import Database

        await Database.initialize(self.config.database_path)

        from services.service_container import ServiceContainer

        self.services = ServiceContainer(self.config, self)
        await self.services.initialize()
        logger.info("ServiceContainer initialized")

        for ext in initial_extensions:
            await self.load_extension(ext)
            logger.info(f"Loaded extension: {ext}")

        # Register persistent views (must happen every startup for persistence to work)
        from helpers.views import ControlPanelView, RequestCardView

        self.add_view(ControlPanelView())
        self.add_view(RequestCardView())

    async def on_ready(self) -> None:
        """Called when the bot is ready."""
        if not self.user:
            logger.warning("Bot user is not initialized")
            return
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        logger.info("Bot is ready and online!")

        for guild in self.guilds:
            await self.check_bot_permissions(guild)

    async def check_bot_permissions(self, guild: discord.Guild) -> None:
        """Verify required guild-level permissions and log any missing ones."""
        required_permissions = [
            "manage_channels",
            "manage_roles",
            "view_channel",
            "send_messages",
            "embed_links",
            "read_message_history",
            "connect",
            "move_members",
        ]

        if not guild or not guild.me:
            logger.warning(
                "Bot permissions cannot be checked because the bot is not in the guild or the guild is None."
            )
            return

        bot_member = guild.me
        if missing_permissions := [
            perm
            for perm in required_permissions
            if not getattr(bot_member.guild_permissions, perm, False)
        ]:
            logger.warning(
                f"Missing permissions in guild '{guild.name}': {', '.join(missing_permissions)}"
            )
        else:
            logger.info(
                f"All required permissions are present in guild '{guild.name}'."
            )

    async def close(self) -> None:
        """Stop background work and services before closing the gateway connection."""
        await cancel_background_tasks()
        if self.services is not None:
            await self.services.cleanup()
        await super().close()


# Raw gateway events are needed for voice channel status updates
bot = MyBot(
    command_prefix=commands.when_mentioned,
    intents=intents,
    enable_debug_events=True,
)

# Only auto-run if not in explicit dry-run context (TESTBOT_DRY_RUN)
if os.getenv("TESTBOT_DRY_RUN") != "1":
    bot.run(TOKEN)
