"""
Interaction router: one handler per panel command type.

Views and modals parse their payloads into commands; the router resolves the
acting member, runs the matching handler and turns every outcome into an
ephemeral reply. ``UserFacingError`` raised anywhere below becomes the
formatted message for its code.
"""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import discord

from helpers import embeds
from helpers.discord_reply import respond, send_user_error, send_user_success
from helpers.error_messages import (
    format_block_result,
    format_user_error,
    format_user_success,
)
from helpers.modals import BitrateModal, UserLimitModal
from helpers.panel_commands import (
    ApproveRequest,
    BlockUsers,
    KickSelected,
    MuteSelected,
    OpenBitrateModal,
    OpenLimitModal,
    OpenTransferPicker,
    PanelCommand,
    RejectRequest,
    SelectMembers,
    ShowBlockList,
    SubmitBitrate,
    SubmitUserLimit,
    ToggleApproval,
    TransferOwnership,
    UnblockUsers,
    UnmuteSelected,
)
from helpers.session_store import SelectionStore
from helpers.views import TransferPickerView
from services.base import BaseService
from services.voice_service import max_bitrate_kbps
from utils.errors import NotFoundError, UserFacingError
from utils.types import VoiceChannelResult

if TYPE_CHECKING:
    from services.voice_service import VoiceService

Handler = Callable[[discord.Interaction, discord.Member, PanelCommand], Awaitable[None]]

# Commands answered with a modal must not be deferred first
_MODAL_COMMANDS = (OpenLimitModal, OpenBitrateModal)


class InteractionRouter(BaseService):
    def __init__(self, config, bot=None, voice: "VoiceService | None" = None) -> None:
        super().__init__("router", config, bot)
        self.voice = voice
        self.selections = SelectionStore()
        self._handlers: dict[type, Handler] = {
            OpenLimitModal: self._open_limit_modal,
            OpenBitrateModal: self._open_bitrate_modal,
            OpenTransferPicker: self._open_transfer_picker,
            SubmitUserLimit: self._submit_user_limit,
            SubmitBitrate: self._submit_bitrate,
            TransferOwnership: self._transfer_ownership,
            BlockUsers: self._block_users,
            UnblockUsers: self._unblock_users,
            ShowBlockList: self._show_block_list,
            SelectMembers: self._select_members,
            KickSelected: self._kick_selected,
            MuteSelected: self._mute_selected,
            UnmuteSelected: self._unmute_selected,
            ToggleApproval: self._toggle_approval,
            ApproveRequest: self._approve_request,
            RejectRequest: self._reject_request,
        }

    async def _initialize_impl(self) -> None:
        if self.voice is None:
            raise RuntimeError("InteractionRouter requires the voice service")

    async def _shutdown_impl(self) -> None:
        self.selections.clear()

    @property
    def handled_types(self) -> frozenset[type]:
        return frozenset(self._handlers)

    def _resolve_actor(self, interaction: discord.Interaction) -> discord.Member:
        guild = interaction.guild
        if guild is None:
            raise NotFoundError("MEMBER_NOT_FOUND")
        member = guild.get_member(interaction.user.id)
        if member is None and isinstance(interaction.user, discord.Member):
            member = interaction.user
        if member is None:
            raise NotFoundError("MEMBER_NOT_FOUND")
        return member

    async def dispatch(self, interaction: discord.Interaction, command: PanelCommand) -> None:
        """Run the handler for ``command`` and reply to ``interaction``."""
        handler = self._handlers.get(type(command))
        if handler is None:
            self.logger.warning(f"No handler for command {type(command).__name__}")
            return

        extra = {
            "user_id": interaction.user.id,
            "command_name": type(command).__name__,
        }
        try:
            actor = self._resolve_actor(interaction)
            if not isinstance(command, (*_MODAL_COMMANDS, SelectMembers)):
                await interaction.response.defer(ephemeral=True, thinking=True)
            await handler(interaction, actor, command)
        except UserFacingError as e:
            self.logger.info(f"Interaction refused: {e.code}", extra=extra)
            await send_user_error(interaction, format_user_error(e.code, **e.kwargs))
        except Exception as e:
            self.logger.exception("Unhandled error while handling interaction", exc_info=e, extra=extra)
            await send_user_error(interaction, format_user_error("UNKNOWN"))

    async def _reply_result(
        self, interaction: discord.Interaction, result: VoiceChannelResult, success_code: str
    ) -> None:
        metadata = result.metadata or {}
        if not result.success:
            await send_user_error(
                interaction, format_user_error(result.error or "UNKNOWN", **metadata)
            )
            return
        await send_user_success(
            interaction,
            format_user_success(
                success_code, channel_mention=result.channel_mention, **metadata
            ),
        )

    # ------------------------------------------------------------------
    # Operation menu
    # ------------------------------------------------------------------

    async def _open_limit_modal(self, interaction, actor, command: OpenLimitModal) -> None:
        await self.voice.get_connected_editable_channel(actor)
        await interaction.response.send_modal(UserLimitModal())

    async def _open_bitrate_modal(self, interaction, actor, command: OpenBitrateModal) -> None:
        channel = await self.voice.get_connected_editable_channel(actor)
        await interaction.response.send_modal(BitrateModal(max_bitrate_kbps(channel.guild)))

    async def _open_transfer_picker(
        self, interaction, actor, command: OpenTransferPicker
    ) -> None:
        await self.voice.get_connected_editable_channel(actor, allow_claim=True)
        await respond(interaction, "Select the new owner.", view=TransferPickerView())

    async def _submit_user_limit(self, interaction, actor, command: SubmitUserLimit) -> None:
        result = await self.voice.set_user_limit(actor, command.raw_value)
        await self._reply_result(interaction, result, "USER_LIMIT_SET")

    async def _submit_bitrate(self, interaction, actor, command: SubmitBitrate) -> None:
        result = await self.voice.set_bitrate(actor, command.raw_value)
        await self._reply_result(interaction, result, "BITRATE_SET")

    async def _transfer_ownership(self, interaction, actor, command: TransferOwnership) -> None:
        result = await self.voice.transfer_ownership(actor, command.target_id)
        claimed = bool(result.metadata and result.metadata.get("claimed"))
        await self._reply_result(interaction, result, "CLAIMED" if claimed else "TRANSFERRED")

    # ------------------------------------------------------------------
    # Block list
    # ------------------------------------------------------------------

    async def _block_users(self, interaction, actor, command: BlockUsers) -> None:
        result = await self.voice.block_users(actor, command.user_ids)
        await send_user_success(
            interaction,
            format_block_result(
                result.requested, result.blocked, result.privileged, result.already_blocked
            ),
        )

    async def _unblock_users(self, interaction, actor, command: UnblockUsers) -> None:
        await self.voice.unblock_users(actor, command.user_ids)
        await send_user_success(interaction, format_user_success("UNBLOCKED"))

    async def _show_block_list(self, interaction, actor, command: ShowBlockList) -> None:
        user_ids = await self.voice.list_blocked(actor)
        await respond(
            interaction,
            embed=embeds.create_block_list_embed(actor, user_ids, self.config.bot_color),
        )

    # ------------------------------------------------------------------
    # Member moderation
    # ------------------------------------------------------------------

    def _selection_key(self, interaction: discord.Interaction) -> tuple[int, int]:
        message_id = interaction.message.id if interaction.message else 0
        return message_id, interaction.user.id

    async def _select_members(self, interaction, actor, command: SelectMembers) -> None:
        self.selections.remember(*self._selection_key(interaction), command.user_ids)
        await interaction.response.defer()

    async def _kick_selected(self, interaction, actor, command: KickSelected) -> None:
        user_ids = self.selections.recall(*self._selection_key(interaction))
        if not user_ids:
            await send_user_error(interaction, format_user_error("NO_SELECTION"))
            return
        result = await self.voice.kick_users(actor, user_ids)
        # Only a successful kick uses up the selection
        self.selections.consume(*self._selection_key(interaction))
        await self._reply_result(interaction, result, "KICKED")

    async def _set_muted(self, interaction, actor, muted: bool) -> None:
        user_ids = self.selections.recall(*self._selection_key(interaction))
        if not user_ids:
            await send_user_error(interaction, format_user_error("NO_SELECTION"))
            return
        result = await self.voice.set_muted(actor, user_ids, muted)
        await self._reply_result(interaction, result, "MUTED" if muted else "UNMUTED")

    async def _mute_selected(self, interaction, actor, command: MuteSelected) -> None:
        await self._set_muted(interaction, actor, True)

    async def _unmute_selected(self, interaction, actor, command: UnmuteSelected) -> None:
        await self._set_muted(interaction, actor, False)

    # ------------------------------------------------------------------
    # Approval mode
    # ------------------------------------------------------------------

    async def _toggle_approval(self, interaction, actor, command: ToggleApproval) -> None:
        enabled = await self.voice.toggle_approval(actor)
        await respond(
            interaction, embed=embeds.create_approval_embed(enabled, self.config.bot_color)
        )

    async def _approve_request(self, interaction, actor, command: ApproveRequest) -> None:
        result = await self.voice.approve_request(actor, interaction.message)
        await self._reply_result(interaction, result, "APPROVED")

    async def _reject_request(self, interaction, actor, command: RejectRequest) -> None:
        result = await self.voice.reject_request(actor, interaction.message, block=command.block)
        blocked = bool(result.metadata and result.metadata.get("blocked"))
        await self._reply_result(interaction, result, "REJECTED_BLOCKED" if blocked else "REJECTED")
