"""
Centralized error message formatting for user-facing Discord errors.

All error messages are short, actionable, and never expose internal technical
details to users.

Format: emoji + **Bold Title** + newline + actionable body
"""

from utils.logging import get_logger

logger = get_logger(__name__)

ERROR_MESSAGES = {
    "MEMBER_NOT_FOUND": "❌ **Member not found**\nWe couldn't look you up in this server. Please try again.",
    "NOT_IN_VOICE": "❌ **Not in voice**\nJoin a custom VC first, then use {panel_mention} again.",
    "NOT_MANAGED": "❌ **Not a custom VC**\nThe channel you're in isn't managed. Join a custom VC first.",
    "NOT_OWNER": "❌ **Not your channel**\nOnly the channel owner can do that.",
    "USER_NOT_FOUND": "❌ **User not found**\nThat user couldn't be found in this server.",
    "CANNOT_TRANSFER_TO_BOT": "❌ **Invalid owner**\nA bot can't become the channel owner.",
    "ALREADY_OWNER": "⚠️ **Already owner**\nYou already own this channel.",
    "NOT_IN_CHANNEL": "❌ **User not present**\nThe new owner must be in your voice channel.",
    "INVALID_NUMBER": "❌ **Not a number**\nPlease enter a whole number.",
    "INVALID_USER_LIMIT": "❌ **Invalid limit**\nThe user limit must be between 0 and 99.",
    "INVALID_BITRATE": "❌ **Invalid bitrate**\nThe bitrate must be between 8 and {max_kbps} kbps.",
    "NO_SELECTION": "⚠️ **No users selected**\nPick users in the member menu, then press the button again.",
    "REQUESTER_NOT_FOUND": "❌ **Requester not found**\nThe user who sent this request couldn't be found.",
    "REQUESTER_NOT_WAITING": "❌ **Not waiting**\nThe requester is no longer in the waiting room.",
    "CHANNEL_NOT_FOUND": "❌ **Channel gone**\nThat voice channel no longer exists.",
    "UNKNOWN": "❌ **Something went wrong**\nAn unexpected error occurred. The issue was logged.",
}

SUCCESS_MESSAGES = {
    "CLAIMED": "✅ **Channel claimed**\nYou now own {channel_mention}.",
    "TRANSFERRED": "✅ **Ownership transferred**\n{user_mention} now owns {channel_mention}.",
    "USER_LIMIT_SET": "✅ **User limit updated**\n{channel_mention} now allows {limit_text}.",
    "BITRATE_SET": "✅ **Bitrate updated**\n{channel_mention} now uses {kbps} kbps.",
    "UNBLOCKED": "✅ **Unblocked**\nThe selected users were removed from your block list.",
    "KICKED": "✅ **Kicked**\nThe selected users were disconnected.",
    "MUTED": "✅ **Muted**\nThe selected users can no longer speak here.",
    "UNMUTED": "✅ **Unmuted**\nThe selected users can speak again.",
    "APPROVED": "✅ **Approved**\n{user_mention} was let in.",
    "REJECTED": "✅ **Rejected**\n{user_mention} was turned away.",
    "REJECTED_BLOCKED": "✅ **Blocked**\n{user_mention} was turned away and blocked.",
}


def format_user_error(code: str, **kwargs) -> str:
    """
    Format a user-friendly error message based on an error code.

    Args:
        code: Error code identifying the type of error
        **kwargs: Dynamic values to insert into error messages
            - panel_mention: Control panel channel mention (for NOT_IN_VOICE)
            - max_kbps: Highest bitrate the guild allows (for INVALID_BITRATE)

    Returns:
        User-friendly error message string

    Examples:
        >>> format_user_error("NOT_OWNER")
        "❌ **Not your channel**\\nOnly the channel owner can do that."
    """
    if code not in ERROR_MESSAGES:
        logger.warning(f"Unknown error code used in format_user_error: {code}")

    message = ERROR_MESSAGES.get(code, ERROR_MESSAGES["UNKNOWN"])

    try:
        return message.format(**kwargs)
    except KeyError as e:
        # Missing template values degrade to a placeholder rather than failing the reply
        return message.replace("{" + str(e).strip("'") + "}", "???")


def format_user_success(code: str, **kwargs) -> str:
    """
    Format a user-friendly success message based on a success code.

    Format: ✅ + **Bold Title** + \\n + confirmation sentence
    """
    message = SUCCESS_MESSAGES.get(code, "✅ **Success**\nOperation completed.")

    try:
        return message.format(**kwargs)
    except KeyError:
        return "✅ **Success**\nOperation completed."


def format_block_result(
    requested: int, blocked: list[int], privileged: list[int], already_blocked: list[int]
) -> str:
    """Reply for a block request, listing the users that were skipped and why."""
    if len(blocked) == requested:
        lines = [f"✅ **Blocked**\nBlocked the {requested} selected users."]
    else:
        lines = [f"✅ **Blocked**\nBlocked {len(blocked)} of the {requested} selected users."]
    if privileged:
        mentions = ", ".join(f"<@{user_id}>" for user_id in privileged)
        lines.append(f"{mentions} can't be blocked.")
    if already_blocked:
        mentions = ", ".join(f"<@{user_id}>" for user_id in already_blocked)
        lines.append(f"{mentions} were already blocked.")
    return "\n".join(lines)
