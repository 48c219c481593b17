"""
Embed Helper Module

Builds the embeds posted into managed voice channels and the control panel
channel. Titles and footers double as identity markers: the disband
heuristic and the request-card lookup recognise the bot's own messages by
them, so changing a marker orphans messages posted under the old text.
"""

import re
from collections.abc import Iterable

import discord

from utils.logging import get_logger

logger = get_logger(__name__)

WELCOME_TITLE = "Custom VC created"
TRANSFERRED_TITLE = "Custom VC owner changed"
NO_OWNER_TITLE = "The custom VC owner left"
DISBANDED_TITLE = "Custom VC disbanded"
COMPANION_TITLE = "Only the companion bot remains"
APPROVAL_TITLE = "Approval mode updated"
BLOCK_LIST_TITLE = "Blocked users"
CONTROL_PANEL_TITLE = "Custom VC control panel"

REQUEST_TIPS = "(Tips) Even after approving, you can kick with the Reject button"
REQUEST_MENTION_PATTERN = re.compile(r"<@!?(\d+)>")

# Messages the disband heuristic may delete without losing human chat
SYSTEM_TITLES = frozenset(
    {WELCOME_TITLE, TRANSFERRED_TITLE, NO_OWNER_TITLE, APPROVAL_TITLE}
)


def create_embed(title: str | None, description: str, color: int) -> discord.Embed:
    """
    Creates a Discord embed with the given parameters.

    Args:
        title (str | None): The title of the embed.
        description (str): The description/content of the embed.
        color (int): The configured bot color.

    Returns:
        discord.Embed: The created embed object.
    """
    return discord.Embed(title=title, description=description, color=color)


def create_welcome_embed(color: int) -> discord.Embed:
    return create_embed(
        WELCOME_TITLE,
        "You are the owner of this channel.\n"
        "Use the control panel to block users, change the user limit, "
        "or turn on approval mode.",
        color,
    )


def create_disbanded_embed(color: int) -> discord.Embed:
    return create_embed(
        DISBANDED_TITLE,
        "Everyone left, so the VC is now free for anyone to use.",
        color,
    )


def create_no_owner_embed(previous_owner: discord.abc.User, color: int) -> discord.Embed:
    """Posted when the owner leaves while others stay behind."""
    return create_embed(
        NO_OWNER_TITLE,
        f"<@{previous_owner.id}> left the channel, so its settings were reset.\n"
        "Anyone still here can take ownership from the control panel "
        "(Operation menu > Transfer owner).",
        color,
    )


def create_companion_embed(color: int) -> discord.Embed:
    return create_embed(
        COMPANION_TITLE,
        "Everyone else left, so the read-aloud bot was disconnected "
        "and the VC is free for anyone to use.",
        color,
    )


def create_transferred_embed(new_owner: discord.abc.User, color: int) -> discord.Embed:
    return create_embed(
        TRANSFERRED_TITLE,
        f"<@{new_owner.id}> is now the owner of this channel.",
        color,
    )


def create_approval_embed(enabled: bool, color: int) -> discord.Embed:
    if enabled:
        description = (
            "Approval mode is ON.\n"
            "Join the waiting room VC to send a join request to the owner."
        )
    else:
        description = "Approval mode is OFF."
    return create_embed(APPROVAL_TITLE, description, color)


def create_request_embed(requester: discord.abc.User, color: int, done: bool = False) -> discord.Embed:
    """
    Join-request card. The footer identifies the card and the description
    carries the requester mention parsed back by ``parse_request_user_id``.
    """
    if done:
        description = f"✅️ <@{requester.id}> is requesting to join (approved)"
    else:
        description = f"➡️ <@{requester.id}> is requesting to join"
    embed = create_embed(None, description, color)
    embed.set_footer(text=REQUEST_TIPS)
    return embed


def is_request_embed(embed: discord.Embed) -> bool:
    return embed.footer is not None and embed.footer.text == REQUEST_TIPS


def parse_request_user_id(message: discord.Message) -> int | None:
    """Requester id from a request card, or None when the message is not one."""
    if not message.embeds or not is_request_embed(message.embeds[0]):
        return None
    match = REQUEST_MENTION_PATTERN.search(message.embeds[0].description or "")
    return int(match.group(1)) if match else None


def create_block_list_embed(
    actor: discord.abc.User, blocked_ids: Iterable[int], color: int
) -> discord.Embed:
    mentions = "\n".join(f"<@{user_id}>" for user_id in blocked_ids)
    embed = create_embed(BLOCK_LIST_TITLE, mentions or "None", color)
    embed.set_author(name=actor.name, icon_url=actor.display_avatar.url)
    return embed


def create_control_panel_embed(
    rows: Iterable[tuple[int, int | None]], color: int
) -> discord.Embed:
    """
    Control panel listing each managed channel and its owner.

    Args:
        rows: ``(channel_id, owner_id)`` pairs in configuration order
        color: The configured bot color
    """
    embed = create_embed(
        CONTROL_PANEL_TITLE,
        "Join one of the channels below and use this panel to manage it.\n"
        "The first person to join a free channel becomes its owner.",
        color,
    )
    lines = []
    for channel_id, owner_id in rows:
        owner_text = f"<@{owner_id}>" if owner_id else "Free"
        lines.append(f"<#{channel_id}>: {owner_text}")
    embed.add_field(name="Channels", value="\n".join(lines) or "None", inline=False)
    return embed
