# Helpers/views.py
"""
Interactive Views Module

The control panel, the join-request card and the transfer picker. Every
component callback parses its raw payload into a typed command and hands it
to the interaction router; no view performs channel operations itself.
"""

import discord
from discord import SelectOption
from discord.ui import Button, Select, UserSelect, View

from helpers.panel_commands import (
    APPROVE_BUTTON_ID,
    BLOCK_SELECT_ID,
    KICK_BUTTON_ID,
    MEMBER_SELECT_ID,
    MUTE_BUTTON_ID,
    OPERATION_BITRATE,
    OPERATION_SELECT_ID,
    OPERATION_TRANSFER,
    OPERATION_USER_LIMIT,
    REJECT_BUTTON_ID,
    REQUEST_BLOCK_BUTTON_ID,
    SHOW_BLOCKS_BUTTON_ID,
    TOGGLE_APPROVAL_BUTTON_ID,
    TRANSFER_SELECT_ID,
    UNBLOCK_SELECT_ID,
    UNMUTE_BUTTON_ID,
    parse_interaction,
)
from utils.logging import get_logger

logger = get_logger(__name__)

MAX_SELECTED_USERS = 10


async def dispatch_component(
    interaction: discord.Interaction, custom_id: str, values=()
) -> None:
    """Parse a component payload and route it. Incomplete payloads are acknowledged silently."""
    command = parse_interaction(custom_id, values)
    if command is None:
        logger.debug(f"Ignoring interaction with incomplete payload: {custom_id}")
        if not interaction.response.is_done():
            await interaction.response.defer(ephemeral=True)
        return
    await interaction.client.services.router.dispatch(interaction, command)


class ControlPanelView(View):
    """
    Control panel posted in the panel channel.

    Rows:
      - Block users / Unblock users
      - Member selection used by the kick, mute and unmute buttons
      - Kick, Mute, Unmute, Show block list, Toggle approval
      - Channel operations: user limit, bitrate, transfer owner
    """

    def __init__(self) -> None:
        # This view is persistent across restarts (timeout=None) and must have stable custom_ids
        super().__init__(timeout=None)

        self.block_select = UserSelect(
            placeholder="Block users",
            min_values=1,
            max_values=MAX_SELECTED_USERS,
            custom_id=BLOCK_SELECT_ID,
            row=0,
        )
        self.block_select.callback = self.block_callback
        self.add_item(self.block_select)

        self.unblock_select = UserSelect(
            placeholder="Unblock users",
            min_values=1,
            max_values=MAX_SELECTED_USERS,
            custom_id=UNBLOCK_SELECT_ID,
            row=1,
        )
        self.unblock_select.callback = self.unblock_callback
        self.add_item(self.unblock_select)

        self.member_select = UserSelect(
            placeholder="Select members to kick, mute or unmute",
            min_values=0,
            max_values=MAX_SELECTED_USERS,
            custom_id=MEMBER_SELECT_ID,
            row=2,
        )
        self.member_select.callback = self.member_callback
        self.add_item(self.member_select)

        for label, emoji, style, custom_id in (
            ("Kick", "👢", discord.ButtonStyle.danger, KICK_BUTTON_ID),
            ("Mute", "🔇", discord.ButtonStyle.secondary, MUTE_BUTTON_ID),
            ("Unmute", "🔊", discord.ButtonStyle.secondary, UNMUTE_BUTTON_ID),
            ("Block list", "📜", discord.ButtonStyle.secondary, SHOW_BLOCKS_BUTTON_ID),
            ("Approval", "🔐", discord.ButtonStyle.primary, TOGGLE_APPROVAL_BUTTON_ID),
        ):
            button = Button(label=label, emoji=emoji, style=style, custom_id=custom_id, row=3)
            button.callback = self._button_callback(custom_id)
            self.add_item(button)

        self.operation_select = Select(
            placeholder="Channel settings",
            min_values=1,
            max_values=1,
            custom_id=OPERATION_SELECT_ID,
            row=4,
            options=[
                SelectOption(
                    label="User limit",
                    value=OPERATION_USER_LIMIT,
                    description="Limit how many users can join",
                    emoji="🔢",
                ),
                SelectOption(
                    label="Bitrate",
                    value=OPERATION_BITRATE,
                    description="Change the audio quality",
                    emoji="🎚️",
                ),
                SelectOption(
                    label="Transfer owner",
                    value=OPERATION_TRANSFER,
                    description="Hand the channel to someone else, or claim it",
                    emoji="👑",
                ),
            ],
        )
        self.operation_select.callback = self.operation_callback
        self.add_item(self.operation_select)

    def _button_callback(self, custom_id: str):
        async def callback(interaction: discord.Interaction) -> None:
            await dispatch_component(interaction, custom_id)

        return callback

    async def block_callback(self, interaction: discord.Interaction) -> None:
        await dispatch_component(interaction, BLOCK_SELECT_ID, self.block_select.values)

    async def unblock_callback(self, interaction: discord.Interaction) -> None:
        await dispatch_component(interaction, UNBLOCK_SELECT_ID, self.unblock_select.values)

    async def member_callback(self, interaction: discord.Interaction) -> None:
        await dispatch_component(interaction, MEMBER_SELECT_ID, self.member_select.values)

    async def operation_callback(self, interaction: discord.Interaction) -> None:
        await dispatch_component(
            interaction, OPERATION_SELECT_ID, self.operation_select.values
        )


class RequestCardView(View):
    """Approve / Reject / Block buttons attached to a join-request card."""

    def __init__(self) -> None:
        # This view is persistent across restarts (timeout=None) and must have stable custom_ids
        super().__init__(timeout=None)
        for label, emoji, style, custom_id in (
            ("Approve", "✅", discord.ButtonStyle.success, APPROVE_BUTTON_ID),
            ("Reject", "❌", discord.ButtonStyle.primary, REJECT_BUTTON_ID),
            ("Block", "🚫", discord.ButtonStyle.secondary, REQUEST_BLOCK_BUTTON_ID),
        ):
            button = Button(label=label, emoji=emoji, style=style, custom_id=custom_id)
            button.callback = self._button_callback(custom_id)
            self.add_item(button)

    def _button_callback(self, custom_id: str):
        async def callback(interaction: discord.Interaction) -> None:
            await dispatch_component(interaction, custom_id)

        return callback


class TransferPickerView(View):
    def __init__(self) -> None:
        # Temporary helper view -> finite timeout
        super().__init__(timeout=180)
        self.user_select = UserSelect(
            placeholder="Select the new owner",
            min_values=1,
            max_values=1,
            custom_id=TRANSFER_SELECT_ID,
        )
        self.user_select.callback = self.select_callback
        self.add_item(self.user_select)

    async def select_callback(self, interaction: discord.Interaction) -> None:
        await dispatch_component(interaction, TRANSFER_SELECT_ID, self.user_select.values)
