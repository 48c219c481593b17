"""
Voice Events Cog

Handles Discord voice state, channel deletion and voice status events and
delegates them to the services.
"""

import json
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from utils.logging import get_logger

if TYPE_CHECKING:
    from services.service_container import ServiceContainer

logger = get_logger(__name__)

VOICE_STATUS_EVENT = "VOICE_CHANNEL_STATUS_UPDATE"


class VoiceEvents(commands.Cog):
    """Handles voice state change events."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    @property
    def services(self) -> "ServiceContainer":
        """Get the bot's service container."""
        if getattr(self.bot, "services", None) is None:
            raise RuntimeError("Bot services not initialized")
        return self.bot.services

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        try:
            await self.services.panel.update_control_panel()
        except Exception as e:
            logger.exception("Error refreshing control panel on ready", exc_info=e)

    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        try:
            await self.services.voice.handle_voice_state_change(
                member=member,
                before_channel=before.channel,
                after_channel=after.channel,
            )

        except Exception as e:
            logger.exception(
                f"Error handling voice state update for {member} "
                f"(before: {before.channel}, after: {after.channel}): {e}"
            )

    @commands.Cog.listener()
    async def on_guild_channel_delete(self, channel: discord.abc.GuildChannel) -> None:
        """Forget the pairing when a waiting channel is deleted out from under us."""
        if not isinstance(channel, discord.VoiceChannel):
            return

        try:
            await self.services.approval.on_waiting_channel_deleted(channel.id)

        except Exception as e:
            logger.exception("Error handling channel deletion for %s", channel, exc_info=e)

    @commands.Cog.listener()
    async def on_socket_raw_receive(self, msg: str) -> None:
        """
        Voice channel status updates have no typed event in discord.py; pick
        them out of the raw gateway stream (needs ``enable_debug_events``).
        """
        if VOICE_STATUS_EVENT not in msg:
            return
        try:
            payload = json.loads(msg)
            if payload.get("t") != VOICE_STATUS_EVENT:
                return
            data = payload.get("d") or {}
            await self.services.panel.on_status_event(int(data["id"]), data.get("status"))

        except Exception as e:
            logger.exception("Error handling voice status update", exc_info=e)


async def setup(bot: commands.Bot) -> None:
    """Set up the Voice Events cog."""
    await bot.add_cog(VoiceEvents(bot))
