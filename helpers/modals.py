import discord
from discord.ui import Modal, TextInput

from helpers.panel_commands import (
    BITRATE_INPUT_ID,
    BITRATE_MODAL_ID,
    USER_LIMIT_INPUT_ID,
    USER_LIMIT_MODAL_ID,
    parse_interaction,
)
from utils.logging import get_logger

logger = get_logger(__name__)


class _CommandModal(Modal):
    """Modal whose submission is parsed into a command and routed."""

    modal_id: str = ""

    async def on_submit(self, interaction: discord.Interaction) -> None:
        fields = {
            item.custom_id: item.value.strip()
            for item in self.children
            if isinstance(item, TextInput)
        }
        command = parse_interaction(self.modal_id, fields=fields)
        if command is None:
            logger.warning(f"Unparseable modal submission: {self.modal_id}")
            return
        await interaction.client.services.router.dispatch(interaction, command)


class UserLimitModal(_CommandModal):
    """
    Modal to set the user limit for the voice channel.
    """

    modal_id = USER_LIMIT_MODAL_ID

    def __init__(self) -> None:
        super().__init__(title="Set User Limit", timeout=None, custom_id=USER_LIMIT_MODAL_ID)
        self.user_limit = TextInput(
            label="User Limit",
            placeholder="Enter a number between 0 and 99 (0 = unlimited)",
            required=True,
            max_length=2,
            custom_id=USER_LIMIT_INPUT_ID,
        )
        self.add_item(self.user_limit)


class BitrateModal(_CommandModal):
    modal_id = BITRATE_MODAL_ID

    def __init__(self, max_kbps: int = 96) -> None:
        super().__init__(title="Set Bitrate", timeout=None, custom_id=BITRATE_MODAL_ID)
        self.bitrate = TextInput(
            label="Bitrate (kbps)",
            placeholder=f"Enter a number between 8 and {max_kbps}",
            required=True,
            max_length=3,
            custom_id=BITRATE_INPUT_ID,
        )
        self.add_item(self.bitrate)
