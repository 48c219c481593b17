"""
Voice service: membership transitions of managed channels and the owner
operations offered by the control panel.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING

import discord

from helpers import blocklist_repo, discord_api, embeds, voice_repo
from services.base import BaseService
from utils.errors import AuthorizationError, NotFoundError, UserFacingError
from utils.tasks import spawn
from utils.types import BlockEditResult, MemberPermission, VoiceChannelResult

if TYPE_CHECKING:
    from services.approval_service import ApprovalService
    from services.panel_service import PanelService
    from services.permission_engine import PermissionService

MAX_USER_LIMIT = 99
MIN_BITRATE_KBPS = 8
MAX_BITRATE_KBPS = 384
RECENT_MESSAGE_WINDOW = 10


def max_bitrate_kbps(guild: discord.Guild) -> int:
    return min(MAX_BITRATE_KBPS, int(guild.bitrate_limit) // 1000)


class VoiceService(BaseService):
    """
    Drives the per-channel session ``EMPTY -> OWNED -> EMPTY``.

    The first non-exempt member to join a free managed channel becomes its
    owner. When the owner leaves while others remain, the channel is reset
    to an ownerless state and anyone left may claim it. When the last
    non-exempt member leaves, the channel is reset to its defaults.
    """

    def __init__(
        self,
        config,
        bot=None,
        permissions: "PermissionService | None" = None,
        approval: "ApprovalService | None" = None,
        panel: "PanelService | None" = None,
    ) -> None:
        super().__init__("voice", config, bot)
        self.permissions = permissions
        self.approval = approval
        self.panel = panel

    async def _initialize_impl(self) -> None:
        if self.permissions is None or self.approval is None or self.panel is None:
            raise RuntimeError("VoiceService requires permission, approval and panel services")

    def _non_exempt_members(self, channel: discord.VoiceChannel) -> list[discord.Member]:
        return [m for m in channel.members if not self.config.is_exempt_bot(m.id)]

    # ------------------------------------------------------------------
    # Membership transitions
    # ------------------------------------------------------------------

    async def handle_voice_state_change(
        self,
        member: discord.Member,
        before_channel: discord.VoiceChannel | None,
        after_channel: discord.VoiceChannel | None,
    ) -> None:
        """
        Route a voice state change to the join and leave handlers.

        Same-channel updates (mute, deafen, stream) are ignored. Each
        transition runs behind its own error boundary so a failure while
        leaving one channel never blocks handling the join of another.
        """
        if (
            before_channel is not None
            and after_channel is not None
            and before_channel.id == after_channel.id
        ):
            return

        if after_channel is not None:
            try:
                if self.config.is_managed(after_channel.id):
                    await self._on_managed_join(member, after_channel)
                elif await voice_repo.get_channel_id_by_wait_channel(after_channel.id):
                    await self.approval.on_waiting_room_join(member, after_channel)
            except Exception as e:
                self.logger.exception(
                    "Error handling voice channel join",
                    exc_info=e,
                    extra={"user_id": member.id, "channel_id": after_channel.id},
                )

        if before_channel is not None:
            try:
                if self.config.is_managed(before_channel.id):
                    await self._on_managed_leave(member, before_channel)
                elif await voice_repo.get_channel_id_by_wait_channel(before_channel.id):
                    await self.approval.on_waiting_room_leave(
                        member, before_channel, after_channel
                    )
            except Exception as e:
                self.logger.exception(
                    "Error handling voice channel leave",
                    exc_info=e,
                    extra={"user_id": member.id, "channel_id": before_channel.id},
                )

    async def _on_managed_join(
        self, member: discord.Member, channel: discord.VoiceChannel
    ) -> None:
        if self.config.is_exempt_bot(member.id) or member.bot:
            return
        if len(self._non_exempt_members(channel)) != 1:
            return
        self.logger.info(
            "First member joined, assigning owner",
            extra={"channel_id": channel.id, "owner_id": member.id},
        )
        await self.permissions.apply_owner_permissions(channel, member, approval=False)
        await self.panel.update_control_panel()
        await discord_api.channel_send(
            channel,
            f"<@{member.id}>",
            embed=embeds.create_welcome_embed(self.config.bot_color),
            allowed_mentions=discord.AllowedMentions(users=True),
        )
        spawn(self.panel.set_owner_status(channel, member), name=f"voice_status:{channel.id}")

    async def _on_managed_leave(
        self, member: discord.Member, channel: discord.VoiceChannel
    ) -> None:
        # Companion departures never change ownership or release the channel
        if self.config.is_exempt_bot(member.id):
            return
        if not self._non_exempt_members(channel):
            await self._release_channel(channel)
            return

        owner_id = await self.permissions.get_owner_id(channel)
        if owner_id != member.id:
            return
        # No automatic promotion: the channel stays ownerless until someone claims it
        await self.permissions.reset_channel_permissions(channel)
        await self.panel.update_control_panel()
        await discord_api.channel_send(
            channel, embed=embeds.create_no_owner_embed(member, self.config.bot_color)
        )
        self.logger.info(
            "Owner left, channel is now ownerless",
            extra={"channel_id": channel.id, "user_id": member.id},
        )

    async def _release_channel(self, channel: discord.VoiceChannel) -> None:
        await self.permissions.reset_channel_to_default(channel)
        await self.panel.update_control_panel()

        companions = list(channel.members)
        if companions:
            for companion in companions:
                await discord_api.disconnect_member(companion)
            await discord_api.channel_send(
                channel, embed=embeds.create_companion_embed(self.config.bot_color)
            )
            self.logger.info(
                f"Disconnected {len(companions)} companion bots",
                extra={"channel_id": channel.id},
            )
            return

        await self._post_disband_notice(channel)
        self.logger.info("Channel released", extra={"channel_id": channel.id})

    def _is_system_message(self, message: discord.Message) -> bool:
        if message.author.id != message.guild.me.id or not message.embeds:
            return False
        embed = message.embeds[0]
        return embed.title in embeds.SYSTEM_TITLES or embeds.is_request_embed(embed)

    async def _post_disband_notice(self, channel: discord.VoiceChannel) -> None:
        """
        Delete the session's own messages when nobody chatted, otherwise
        post the disbanded notice.

        Looks at the recent window for the latest welcome message. If every
        message from it onward is one of the bot's own notices, the session
        had no human chat and those messages are removed.
        """
        session_messages: list[discord.Message] = []
        found_welcome = False
        async for message in channel.history(limit=RECENT_MESSAGE_WINDOW):
            if not self._is_system_message(message):
                break
            session_messages.append(message)
            if message.embeds[0].title == embeds.WELCOME_TITLE:
                found_welcome = True
                break

        if found_welcome:
            for message in session_messages:
                await discord_api.delete_message(message)
            return
        await discord_api.channel_send(
            channel, embed=embeds.create_disbanded_embed(self.config.bot_color)
        )

    # ------------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------------

    async def get_connected_editable_channel(
        self, member: discord.Member | None, allow_claim: bool = False
    ) -> discord.VoiceChannel:
        """
        The managed channel ``member`` is connected to and may edit.

        Args:
            member: The acting member
            allow_claim: Also accept a member whose channel owner is absent

        Raises:
            NotFoundError: MEMBER_NOT_FOUND
            AuthorizationError: NOT_IN_VOICE, NOT_MANAGED or NOT_OWNER
        """
        if member is None:
            raise NotFoundError("MEMBER_NOT_FOUND")
        channel = member.voice.channel if member.voice else None
        if channel is None:
            raise AuthorizationError(
                "NOT_IN_VOICE", panel_mention=f"<#{self.config.control_panel_channel_id}>"
            )
        if not self.config.is_managed(channel.id):
            raise AuthorizationError("NOT_MANAGED")

        owner_id = await self.permissions.get_owner_id(channel)
        if owner_id == member.id:
            return channel
        owner_present = owner_id is not None and any(m.id == owner_id for m in channel.members)
        if allow_claim and not owner_present:
            return channel
        raise AuthorizationError("NOT_OWNER")

    async def _resolve_member(self, guild: discord.Guild, user_id: int) -> discord.Member:
        member = guild.get_member(user_id)
        if member is not None:
            return member
        try:
            return await guild.fetch_member(user_id)
        except discord.NotFound as e:
            raise NotFoundError("USER_NOT_FOUND") from e

    # ------------------------------------------------------------------
    # Channel settings
    # ------------------------------------------------------------------

    async def set_user_limit(self, actor: discord.Member, raw_value: str) -> VoiceChannelResult:
        channel = await self.get_connected_editable_channel(actor)
        try:
            limit = int(raw_value)
        except (TypeError, ValueError):
            return VoiceChannelResult(success=False, error="INVALID_NUMBER")
        if not 0 <= limit <= MAX_USER_LIMIT:
            return VoiceChannelResult(success=False, error="INVALID_USER_LIMIT")

        await discord_api.edit_channel(channel, user_limit=limit)
        await self.panel.update_control_panel()
        return VoiceChannelResult(
            success=True,
            channel_id=channel.id,
            channel_mention=channel.mention,
            metadata={"limit_text": f"{limit} users" if limit else "unlimited users"},
        )

    async def set_bitrate(self, actor: discord.Member, raw_value: str) -> VoiceChannelResult:
        channel = await self.get_connected_editable_channel(actor)
        max_kbps = max_bitrate_kbps(channel.guild)
        try:
            kbps = int(raw_value)
        except (TypeError, ValueError):
            return VoiceChannelResult(success=False, error="INVALID_NUMBER")
        if not MIN_BITRATE_KBPS <= kbps <= max_kbps:
            return VoiceChannelResult(
                success=False, error="INVALID_BITRATE", metadata={"max_kbps": max_kbps}
            )

        await discord_api.edit_channel(channel, bitrate=kbps * 1000)
        await self.panel.update_control_panel()
        return VoiceChannelResult(
            success=True,
            channel_id=channel.id,
            channel_mention=channel.mention,
            metadata={"kbps": kbps},
        )

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    async def transfer_ownership(
        self, actor: discord.Member, target_id: int
    ) -> VoiceChannelResult:
        """
        Hand the actor's channel to ``target_id``.

        Picking yourself while the owner is absent claims the channel.
        """
        target = await self._resolve_member(actor.guild, target_id)
        if target.bot:
            return VoiceChannelResult(success=False, error="CANNOT_TRANSFER_TO_BOT")

        channel = await self.get_connected_editable_channel(actor, allow_claim=True)
        owner_id = await self.permissions.get_owner_id(channel)
        if target.id == actor.id and owner_id == actor.id:
            return VoiceChannelResult(
                success=False, channel_id=channel.id, error="ALREADY_OWNER"
            )
        target_channel = target.voice.channel if target.voice else None
        if target_channel is None or target_channel.id != channel.id:
            return VoiceChannelResult(
                success=False, channel_id=channel.id, error="NOT_IN_CHANNEL"
            )

        await self.permissions.apply_owner_permissions(channel, target)
        await self.panel.update_control_panel()
        await discord_api.channel_send(
            channel,
            f"<@{target.id}>",
            embed=embeds.create_transferred_embed(target, self.config.bot_color),
            allowed_mentions=discord.AllowedMentions(users=True),
        )
        spawn(self.panel.set_owner_status(channel, target), name=f"voice_status:{channel.id}")
        self.logger.info(
            "Ownership transferred",
            extra={"channel_id": channel.id, "owner_id": target.id, "user_id": actor.id},
        )
        return VoiceChannelResult(
            success=True,
            channel_id=channel.id,
            channel_mention=channel.mention,
            metadata={"user_mention": target.mention, "claimed": target.id == actor.id},
        )

    # ------------------------------------------------------------------
    # Block list
    # ------------------------------------------------------------------

    async def _reconcile_if_editable(self, actor: discord.Member) -> None:
        """Blocking works anywhere; it only touches a channel the actor currently owns."""
        try:
            channel = await self.get_connected_editable_channel(actor)
        except UserFacingError:
            return
        await self.permissions.apply_owner_permissions(channel, actor)

    async def block_users(
        self, actor: discord.Member, user_ids: Iterable[int]
    ) -> BlockEditResult:
        result = await self.permissions.block_users(actor, user_ids)
        await self._reconcile_if_editable(actor)
        return result

    async def unblock_users(self, actor: discord.Member, user_ids: Iterable[int]) -> list[int]:
        removed = await self.permissions.unblock_users(actor, user_ids)
        await self._reconcile_if_editable(actor)
        return removed

    async def list_blocked(self, actor: discord.abc.User) -> list[int]:
        return await blocklist_repo.list_blocked_user_ids(actor.id)

    # ------------------------------------------------------------------
    # Member moderation
    # ------------------------------------------------------------------

    async def kick_users(
        self, actor: discord.Member, user_ids: Iterable[int]
    ) -> VoiceChannelResult:
        """Disconnect the selected members and revoke their connect grant."""
        channel = await self.get_connected_editable_channel(actor)
        user_ids = [user_id for user_id in user_ids if user_id != actor.id]
        for member in list(channel.members):
            if member.id in user_ids:
                await discord_api.disconnect_member(member)
        await self.permissions.apply_owner_permissions(
            channel,
            actor,
            member_permissions=[MemberPermission(user_id, approve=False) for user_id in user_ids],
        )
        return VoiceChannelResult(success=True, channel_id=channel.id, channel_mention=channel.mention)

    async def set_muted(
        self, actor: discord.Member, user_ids: Iterable[int], muted: bool
    ) -> VoiceChannelResult:
        channel = await self.get_connected_editable_channel(actor)
        await self.permissions.apply_owner_permissions(
            channel,
            actor,
            member_permissions=[
                MemberPermission(user_id, muted=muted)
                for user_id in user_ids
                if user_id != actor.id
            ],
        )
        return VoiceChannelResult(success=True, channel_id=channel.id, channel_mention=channel.mention)

    # ------------------------------------------------------------------
    # Approval mode
    # ------------------------------------------------------------------

    async def toggle_approval(self, actor: discord.Member) -> bool:
        channel = await self.get_connected_editable_channel(actor)
        return await self.approval.toggle_approval(channel, actor)

    async def approve_request(
        self, actor: discord.Member, message: discord.Message
    ) -> VoiceChannelResult:
        channel = await self.get_connected_editable_channel(actor)
        return await self.approval.approve_request(channel, actor, message)

    async def reject_request(
        self, actor: discord.Member, message: discord.Message, block: bool = False
    ) -> VoiceChannelResult:
        channel = await self.get_connected_editable_channel(actor)
        return await self.approval.reject_request(channel, actor, message, block=block)
