"""
Approval workflow: the waiting channel paired with a managed channel and the
join-request cards posted while approval mode is on.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import discord

from helpers import discord_api, embeds, voice_repo
from helpers.views import RequestCardView
from services.base import BaseService
from services.permission_engine import (
    compose_waiting_overwrites,
    get_own_category_overwrites,
)
from utils.types import MemberPermission, VoiceChannelResult

if TYPE_CHECKING:
    from services.permission_engine import PermissionService

WAITING_CHANNEL_NAME = "↓ Waiting Room"
RECENT_MESSAGE_WINDOW = 10


class ApprovalService(BaseService):
    def __init__(self, config, bot=None) -> None:
        super().__init__("approval", config, bot)
        self.permissions: "PermissionService | None" = None

    async def _initialize_impl(self) -> None:
        if self.permissions is None:
            raise RuntimeError("ApprovalService requires the permission service")

    # ------------------------------------------------------------------
    # Waiting channel
    # ------------------------------------------------------------------

    async def get_waiting_channel(
        self, channel: discord.VoiceChannel
    ) -> discord.VoiceChannel | None:
        wait_id = await voice_repo.get_wait_channel_id(channel.id)
        if wait_id is None:
            return None
        return channel.guild.get_channel(wait_id)

    async def get_managed_channel_for_waiting(
        self, wait_channel: discord.abc.GuildChannel
    ) -> discord.VoiceChannel | None:
        channel_id = await voice_repo.get_channel_id_by_wait_channel(wait_channel.id)
        if channel_id is None:
            return None
        return wait_channel.guild.get_channel(channel_id)

    async def reconcile_waiting_channel(
        self,
        channel: discord.VoiceChannel,
        blocked: Iterable[Any],
        approval: bool,
    ) -> discord.VoiceChannel | None:
        """
        Make the waiting channel exist exactly when ``approval`` is on.

        Returns:
            The waiting channel while approval is on, otherwise None
        """
        blocked = list(blocked)
        wait_id = await voice_repo.get_wait_channel_id(channel.id)
        wait_channel = channel.guild.get_channel(wait_id) if wait_id else None

        if not approval:
            if wait_channel is not None:
                await self._close_pending_requests(channel, wait_channel)
                await discord_api.delete_channel(wait_channel)
            if wait_id is not None:
                await voice_repo.set_wait_channel_id(channel.id, None)
                self.logger.info("Waiting channel removed", extra={"channel_id": channel.id})
            return None

        overwrites = compose_waiting_overwrites(
            inherited=get_own_category_overwrites(channel),
            everyone=channel.guild.default_role,
            blocked=blocked,
        )
        if wait_channel is None:
            # Placed at the managed channel's position so it sits directly above it
            wait_channel = await discord_api.create_voice_channel(
                channel.guild,
                WAITING_CHANNEL_NAME,
                category=channel.category,
                position=channel.position,
                overwrites=overwrites,
            )
            await voice_repo.set_wait_channel_id(channel.id, wait_channel.id)
            self.logger.info(
                "Waiting channel created", extra={"channel_id": channel.id}
            )
            return wait_channel

        await discord_api.edit_channel(wait_channel, overwrites=overwrites)
        blocked_ids = {target.id for target in blocked}
        for member in list(wait_channel.members):
            if member.id in blocked_ids:
                await discord_api.disconnect_member(member)
        return wait_channel

    async def _close_pending_requests(
        self, channel: discord.VoiceChannel, wait_channel: discord.VoiceChannel
    ) -> None:
        # Leave events for the waiting room arrive after the pairing is gone
        waiting_ids = {member.id for member in wait_channel.members}
        if not waiting_ids:
            return
        async for message in channel.history(limit=RECENT_MESSAGE_WINDOW):
            if message.author.id != channel.guild.me.id:
                continue
            if embeds.parse_request_user_id(message) in waiting_ids:
                await discord_api.delete_message(message)

    async def toggle_approval(
        self, channel: discord.VoiceChannel, owner: discord.Member
    ) -> bool:
        """
        Flip approval mode. Everyone already connected is approved so they
        can reconnect after it turns on.

        Returns:
            The new approval flag
        """
        session = await self.permissions.get_session(channel)
        approval = not session.approval
        await self.permissions.apply_owner_permissions(
            channel,
            owner,
            approval=approval,
            member_permissions=[
                MemberPermission(member.id, approve=True)
                for member in channel.members
                if member.id != owner.id
            ],
        )
        self.logger.info(
            f"Approval mode {'enabled' if approval else 'disabled'}",
            extra={"channel_id": channel.id, "owner_id": owner.id},
        )
        return approval

    # ------------------------------------------------------------------
    # Request cards
    # ------------------------------------------------------------------

    async def on_waiting_room_join(
        self, member: discord.Member, wait_channel: discord.VoiceChannel
    ) -> discord.Message | None:
        """Post a request card for ``member`` into the paired managed channel."""
        channel = await self.get_managed_channel_for_waiting(wait_channel)
        if channel is None:
            return None
        owner_id = await self.permissions.get_owner_id(channel)
        content = f"<@{owner_id}>" if owner_id else None
        message = await discord_api.channel_send(
            channel,
            content,
            embed=embeds.create_request_embed(member, self.config.bot_color),
            view=RequestCardView(),
            allowed_mentions=discord.AllowedMentions(users=True),
        )
        self.logger.info(
            "Join request posted",
            extra={"channel_id": channel.id, "user_id": member.id},
        )
        return message

    async def find_request_message(
        self, channel: discord.VoiceChannel, user_id: int
    ) -> discord.Message | None:
        async for message in channel.history(limit=RECENT_MESSAGE_WINDOW):
            if message.author.id != channel.guild.me.id:
                continue
            if embeds.parse_request_user_id(message) == user_id:
                return message
        return None

    async def on_waiting_room_leave(
        self,
        member: discord.Member,
        wait_channel: discord.VoiceChannel,
        moved_to: discord.abc.GuildChannel | None,
    ) -> None:
        """
        Close the member's request card: mark it approved when they moved into
        the managed channel, delete it otherwise.
        """
        channel = await self.get_managed_channel_for_waiting(wait_channel)
        if channel is None:
            return
        message = await self.find_request_message(channel, member.id)
        if message is None:
            return
        if moved_to is not None and moved_to.id == channel.id:
            await discord_api.edit_message(
                message,
                embed=embeds.create_request_embed(member, self.config.bot_color, done=True),
            )
        else:
            await discord_api.delete_message(message)

    async def _resolve_requester(
        self, channel: discord.VoiceChannel, message: discord.Message
    ) -> discord.Member | None:
        user_id = embeds.parse_request_user_id(message)
        if user_id is None:
            return None
        member = channel.guild.get_member(user_id)
        if member is None:
            try:
                member = await channel.guild.fetch_member(user_id)
            except discord.NotFound:
                return None
        return member

    async def approve_request(
        self,
        channel: discord.VoiceChannel,
        owner: discord.Member,
        message: discord.Message,
    ) -> VoiceChannelResult:
        """Let the requester on ``message`` into ``channel``."""
        requester = await self._resolve_requester(channel, message)
        if requester is None:
            return VoiceChannelResult(False, channel.id, channel.mention, "REQUESTER_NOT_FOUND")

        current = requester.voice.channel if requester.voice else None
        related = (
            await self.get_managed_channel_for_waiting(current) if current else None
        )
        if related is None or related.id != channel.id:
            return VoiceChannelResult(
                False, channel.id, channel.mention, "REQUESTER_NOT_WAITING"
            )

        await self.permissions.apply_owner_permissions(
            channel,
            owner,
            member_permissions=[MemberPermission(requester.id, approve=True)],
        )
        await discord_api.move_member(requester, channel)
        self.logger.info(
            "Join request approved",
            extra={"channel_id": channel.id, "user_id": requester.id},
        )
        return VoiceChannelResult(
            True,
            channel.id,
            channel.mention,
            metadata={"user_mention": requester.mention},
        )

    async def reject_request(
        self,
        channel: discord.VoiceChannel,
        owner: discord.Member,
        message: discord.Message,
        block: bool = False,
    ) -> VoiceChannelResult:
        """
        Turn the requester away: disconnect them from the managed or waiting
        channel, optionally block them, and revoke any connect grant.
        """
        requester = await self._resolve_requester(channel, message)
        if requester is None:
            return VoiceChannelResult(False, channel.id, channel.mention, "REQUESTER_NOT_FOUND")

        current = requester.voice.channel if requester.voice else None
        if current is not None:
            if current.id == channel.id:
                related = channel
            else:
                related = await self.get_managed_channel_for_waiting(current)
            if related is not None and related.id == channel.id:
                await discord_api.disconnect_member(requester)

        blocked = False
        if block:
            result = await self.permissions.block_users(owner, [requester.id])
            # Privileged requesters are turned away but never land on the list
            blocked = requester.id in result.blocked or requester.id in result.already_blocked

        await self.permissions.apply_owner_permissions(
            channel,
            owner,
            member_permissions=[MemberPermission(requester.id, approve=False)],
        )
        self.logger.info(
            "Join request rejected",
            extra={"channel_id": channel.id, "user_id": requester.id},
        )
        return VoiceChannelResult(
            True,
            channel.id,
            channel.mention,
            metadata={"user_mention": requester.mention, "blocked": blocked},
        )

    async def on_waiting_channel_deleted(self, wait_channel_id: int) -> None:
        cleared = await voice_repo.clear_wait_channel(wait_channel_id)
        if cleared:
            self.logger.info(f"Cleared pairing for deleted waiting channel {wait_channel_id}")
