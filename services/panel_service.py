"""
Control panel message and voice channel status.
"""

import re
from typing import TYPE_CHECKING

import discord
from discord.http import Route

from helpers import discord_api, embeds
from helpers.discord_api import api_limiter
from helpers.session_store import ExpiringStore
from helpers.views import ControlPanelView
from services.base import BaseService

if TYPE_CHECKING:
    from services.permission_engine import PermissionService

OWNER_STATUS_PATTERN = re.compile(r"\(👑(.+)\)")
STATUS_CACHE_TTL_SECONDS = 6 * 60 * 60


def owner_status_tag(owner_name: str) -> str:
    return f"(👑{owner_name})"


def compose_voice_status(current: str | None, owner_name: str) -> str | None:
    """
    Status text carrying the owner's name.

    An empty status becomes just the owner tag, an existing tag is replaced,
    and any other status gets the tag appended.

    Returns:
        The new status, or None when ``current`` already names the owner
    """
    tag = owner_status_tag(owner_name)
    if not current:
        return tag
    match = OWNER_STATUS_PATTERN.search(current)
    if match:
        if match.group(1) == owner_name:
            return None
        return OWNER_STATUS_PATTERN.sub(lambda _: tag, current, count=1)
    return f"{current} {tag}"


class PanelService(BaseService):
    def __init__(self, config, bot=None, permissions: "PermissionService | None" = None) -> None:
        super().__init__("panel", config, bot)
        self.permissions = permissions
        self._panel_message: discord.Message | None = None
        # channel_id -> last status seen from the gateway or set by us
        self.status_cache = ExpiringStore(ttl=STATUS_CACHE_TTL_SECONDS)

    async def _initialize_impl(self) -> None:
        if self.permissions is None:
            raise RuntimeError("PanelService requires the permission service")

    async def _shutdown_impl(self) -> None:
        self.status_cache.clear()
        self._panel_message = None

    # ------------------------------------------------------------------
    # Control panel
    # ------------------------------------------------------------------

    async def build_control_panel_embed(self) -> discord.Embed:
        rows = []
        for channel_id in self.config.managed_channel_ids:
            channel = self.bot.get_channel(channel_id) if self.bot else None
            owner_id = await self.permissions.get_owner_id(channel) if channel else None
            rows.append((channel_id, owner_id))
        return embeds.create_control_panel_embed(rows, self.config.bot_color)

    async def _get_panel_message(
        self, panel_channel: discord.TextChannel
    ) -> discord.Message | None:
        if self._panel_message is not None:
            return self._panel_message
        message_id = self.config.control_panel_message_id
        if message_id is None:
            return None
        try:
            self._panel_message = await panel_channel.fetch_message(message_id)
        except discord.NotFound:
            self.logger.warning(
                f"Control panel message {message_id} not found; posting a new one"
            )
            return None
        return self._panel_message

    async def update_control_panel(self) -> discord.Message | None:
        """Re-render the control panel, posting it first if it doesn't exist yet."""
        panel_channel = self.bot.get_channel(self.config.control_panel_channel_id)
        if panel_channel is None:
            self.logger.warning(
                "Control panel channel not found",
                extra={"channel_id": self.config.control_panel_channel_id},
            )
            return None

        embed = await self.build_control_panel_embed()
        message = await self._get_panel_message(panel_channel)
        if message is not None:
            self._panel_message = await discord_api.edit_message(
                message, embed=embed, view=ControlPanelView()
            )
            return self._panel_message

        self._panel_message = await discord_api.channel_send(
            panel_channel, embed=embed, view=ControlPanelView()
        )
        self.logger.info(
            f"Posted control panel message {self._panel_message.id}; "
            "set control_panel.message_id to reuse it",
            extra={"channel_id": panel_channel.id},
        )
        return self._panel_message

    # ------------------------------------------------------------------
    # Voice status
    # ------------------------------------------------------------------

    async def _put_voice_status(self, channel: discord.VoiceChannel, status: str) -> None:
        route = Route("PUT", "/channels/{channel_id}/voice-status", channel_id=channel.id)
        async with api_limiter:
            await self.bot.http.request(route, json={"status": status})
        self.status_cache.set(channel.id, status)
        self.logger.debug("Voice status set", extra={"channel_id": channel.id})

    async def set_owner_status(
        self, channel: discord.VoiceChannel, owner: discord.Member
    ) -> None:
        status = compose_voice_status(self.status_cache.get(channel.id), owner.display_name)
        if status is not None:
            await self._put_voice_status(channel, status)

    async def on_status_event(self, channel_id: int, status: str | None) -> None:
        """
        Status change received from the gateway: keep the owner tag in place.

        A cleared status usually means the channel emptied, so it is only
        dropped from the cache.
        """
        if not self.config.is_managed(channel_id):
            return
        if status is None:
            self.status_cache.pop(channel_id)
            return
        self.status_cache.set(channel_id, status)

        channel = self.bot.get_channel(channel_id)
        if channel is None:
            return
        owner_id = await self.permissions.get_owner_id(channel)
        owner = channel.guild.get_member(owner_id) if owner_id else None
        if owner is None:
            return
        new_status = compose_voice_status(status, owner.display_name)
        if new_status is not None:
            await self._put_voice_status(channel, new_status)
