"""
Voice Repository

Data access for the room pairing (managed channel -> waiting channel) and
for the explicit per-channel session record (owner, approval mode).

Note: Database imports are done lazily inside functions to avoid circular imports
through services/__init__.py -> VoiceService -> voice_repo.py
"""

from utils.logging import get_logger
from utils.types import ChannelSession

logger = get_logger(__name__)


async def get_wait_channel_id(channel_id: int) -> int | None:
    """Return the paired waiting channel id for a managed channel, if any."""
    from services.db.repository import BaseRepository

    return await BaseRepository.fetch_value(
        "SELECT wait_channel_id FROM room_lists WHERE channel_id = ?",
        (channel_id,),
    )


async def get_channel_id_by_wait_channel(wait_channel_id: int) -> int | None:
    """Reverse lookup: which managed channel owns this waiting channel."""
    from services.db.repository import BaseRepository

    return await BaseRepository.fetch_value(
        "SELECT channel_id FROM room_lists WHERE wait_channel_id = ?",
        (wait_channel_id,),
    )


async def set_wait_channel_id(channel_id: int, wait_channel_id: int | None) -> None:
    """
    Upsert the pairing for ``channel_id``.

    Passing ``None`` clears the waiting-channel field but keeps the row so the
    pairing can be reused the next time approval mode is switched on.
    """
    from services.db.repository import BaseRepository

    await BaseRepository.execute(
        """
        INSERT INTO room_lists (channel_id, wait_channel_id) VALUES (?, ?)
        ON CONFLICT(channel_id) DO UPDATE SET wait_channel_id = excluded.wait_channel_id
        """,
        (channel_id, wait_channel_id),
    )
    logger.debug(
        "Room pairing updated",
        extra={"channel_id": channel_id, "wait_channel_id": wait_channel_id},
    )


async def clear_wait_channel(wait_channel_id: int) -> int:
    """Clear every pairing pointing at ``wait_channel_id``. Returns rows touched."""
    from services.db.repository import BaseRepository

    return await BaseRepository.execute(
        "UPDATE room_lists SET wait_channel_id = NULL WHERE wait_channel_id = ?",
        (wait_channel_id,),
    )


async def get_session(channel_id: int) -> ChannelSession | None:
    from services.db.repository import BaseRepository

    row = await BaseRepository.fetch_one(
        "SELECT channel_id, owner_id, approval FROM channel_sessions WHERE channel_id = ?",
        (channel_id,),
    )
    if row is None:
        return None
    return ChannelSession(
        channel_id=int(row["channel_id"]),
        owner_id=int(row["owner_id"]) if row["owner_id"] is not None else None,
        approval=bool(row["approval"]),
    )


async def save_session(
    channel_id: int, owner_id: int | None, approval: bool
) -> ChannelSession:
    """Record the owner and approval mode for ``channel_id``."""
    from services.db.repository import BaseRepository

    await BaseRepository.execute(
        """
        INSERT INTO channel_sessions (channel_id, owner_id, approval, updated_at)
        VALUES (?, ?, ?, strftime('%s','now'))
        ON CONFLICT(channel_id) DO UPDATE SET
            owner_id = excluded.owner_id,
            approval = excluded.approval,
            updated_at = excluded.updated_at
        """,
        (channel_id, owner_id, int(approval)),
    )
    return ChannelSession(channel_id=channel_id, owner_id=owner_id, approval=approval)


async def clear_session(channel_id: int) -> None:
    from services.db.repository import BaseRepository

    await BaseRepository.execute(
        "DELETE FROM channel_sessions WHERE channel_id = ?", (channel_id,)
    )

