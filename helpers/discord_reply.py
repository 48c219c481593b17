"""
Centralized Discord reply helpers for consistent message delivery.

All replies to panel interactions are ephemeral. These helpers pick
``response.send_message`` or ``followup.send`` depending on whether the
interaction was already acknowledged, and log delivery failures instead of
raising them into the handler that produced the reply.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord

from utils.logging import get_logger

if TYPE_CHECKING:
    from discord import Embed, Interaction, Message

logger = get_logger(__name__)


async def respond(
    interaction: Interaction,
    content: str | None = None,
    *,
    embed: Embed | None = None,
    ephemeral: bool = True,
    view: discord.ui.View | None = None,
    suppress_mentions: bool = False,
) -> Message | None:
    """
    Unified response helper that handles all interaction response patterns.

    Args:
        interaction: Discord interaction
        content: Optional text content
        embed: Optional single embed
        ephemeral: Whether to send as ephemeral (default: True)
        view: Optional UI view
        suppress_mentions: Render ``<@id>`` mentions without pinging

    Returns:
        The sent message for followups, otherwise None
    """
    try:
        kwargs: dict = {"ephemeral": ephemeral}
        if content:
            kwargs["content"] = content
        if embed:
            kwargs["embed"] = embed
        if view:
            kwargs["view"] = view
        if suppress_mentions:
            kwargs["allowed_mentions"] = discord.AllowedMentions.none()

        if interaction.response.is_done():
            return await interaction.followup.send(**kwargs)
        await interaction.response.send_message(**kwargs)
        return None

    except discord.NotFound:
        logger.warning("Interaction expired before response could be sent")
        return None
    except discord.HTTPException as e:
        logger.exception(f"Failed to send response: {e}")
        return None


async def send_user_error(
    interaction: discord.Interaction, text: str, ephemeral: bool = True
) -> None:
    """
    Send an error message to the user via interaction response or followup.

    Example:
        await send_user_error(interaction, format_user_error("NOT_OWNER"))
    """
    if not text.startswith(("❌", "⚠️")):
        text = f"❌ {text}"
    await respond(interaction, text, ephemeral=ephemeral)


async def send_user_success(
    interaction: discord.Interaction,
    text: str,
    ephemeral: bool = True,
    suppress_mentions: bool = True,
) -> None:
    """Send a success message; mentions in it never ping by default."""
    if not text.startswith("✅"):
        text = f"✅ {text}"
    await respond(
        interaction, text, ephemeral=ephemeral, suppress_mentions=suppress_mentions
    )


async def send_user_info(
    interaction: discord.Interaction, text: str, ephemeral: bool = True
) -> None:
    await respond(interaction, text, ephemeral=ephemeral, suppress_mentions=True)


__all__ = [
    "respond",
    "send_user_error",
    "send_user_info",
    "send_user_success",
]
