"""
Centralized module for all Discord API mutations.

Every call runs under one shared rate limiter and is awaited in place, so the
steps of a reconciliation keep their order and failures reach the caller.
"""

from typing import Any

import discord  # type: ignore[import-not-found]
from aiolimiter import AsyncLimiter

from utils.logging import get_logger

logger = get_logger(__name__)

# Global rate limiter: 45 requests per second
api_limiter = AsyncLimiter(max_rate=45, time_period=1)

_NO_MENTIONS = discord.AllowedMentions.none()


async def edit_channel(channel: discord.abc.GuildChannel, **kwargs: Any) -> None:
    async with api_limiter:
        await channel.edit(**kwargs)  # type: ignore[attr-defined]
    logger.debug(
        f"Edited channel with {sorted(kwargs)}", extra={"channel_id": channel.id}
    )


async def create_voice_channel(
    guild: discord.Guild,
    name: str,
    *,
    category: discord.CategoryChannel | None = None,
    position: int | None = None,
    overwrites: dict | None = None,
) -> discord.VoiceChannel:
    kwargs: dict[str, Any] = {"category": category}
    if position is not None:
        kwargs["position"] = position
    if overwrites is not None:
        kwargs["overwrites"] = overwrites
    async with api_limiter:
        channel = await guild.create_voice_channel(name, **kwargs)
    logger.info(f"Created voice channel '{name}'", extra={"channel_id": channel.id})
    return channel


async def delete_channel(channel: discord.abc.GuildChannel) -> None:
    """Delete ``channel``; a channel that is already gone counts as deleted."""
    try:
        async with api_limiter:
            await channel.delete()
    except discord.NotFound:
        logger.warning(
            "Channel not found. It may have already been deleted.",
            extra={"channel_id": channel.id},
        )
        return
    logger.info(f"Deleted channel '{channel.name}'", extra={"channel_id": channel.id})


async def move_member(member: discord.Member, channel: discord.VoiceChannel) -> None:
    async with api_limiter:
        await member.move_to(channel)
    logger.debug(
        "Moved member to voice channel",
        extra={"user_id": member.id, "channel_id": channel.id},
    )


async def disconnect_member(member: discord.Member) -> None:
    """Force-disconnect ``member`` from voice."""
    async with api_limiter:
        await member.move_to(None)
    logger.debug("Disconnected member from voice", extra={"user_id": member.id})


async def channel_send(
    channel: discord.abc.Messageable,
    content: str | None = None,
    *,
    embed: discord.Embed | None = None,
    view: discord.ui.View | None = None,
    allowed_mentions: discord.AllowedMentions | None = None,
) -> discord.Message:
    kwargs: dict[str, Any] = {
        "allowed_mentions": allowed_mentions or _NO_MENTIONS,
    }
    if content is not None:
        kwargs["content"] = content
    if embed is not None:
        kwargs["embed"] = embed
    if view is not None:
        kwargs["view"] = view
    async with api_limiter:
        return await channel.send(**kwargs)


async def edit_message(message: discord.Message, **kwargs: Any) -> discord.Message:
    async with api_limiter:
        return await message.edit(**kwargs)


async def delete_message(message: discord.Message) -> None:
    try:
        async with api_limiter:
            await message.delete()
    except discord.NotFound:
        logger.debug(f"Message {message.id} already deleted")
