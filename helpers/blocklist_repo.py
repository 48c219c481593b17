"""
Block-List Repository

Owner-scoped block list. Rows are keyed by user, not by channel session,
so a block survives the owner leaving and re-claiming any managed channel.
"""

from collections.abc import Iterable

from services.db.repository import BaseRepository
from utils.logging import get_logger

logger = get_logger(__name__)


async def list_blocked_user_ids(owner_user_id: int) -> list[int]:
    """Return the ids blocked by ``owner_user_id`` in insertion order."""
    rows = await BaseRepository.fetch_all(
        "SELECT blocked_user_id FROM black_lists WHERE owner_user_id = ? ORDER BY rowid",
        (owner_user_id,),
    )
    return [int(row[0]) for row in rows]


async def add_blocked_users(owner_user_id: int, user_ids: Iterable[int]) -> int:
    """
    Insert block rows for ``user_ids``.

    Existing pairs are ignored, so the call is safe to repeat.

    Returns:
        Number of ids submitted
    """
    params = [(owner_user_id, user_id) for user_id in dict.fromkeys(user_ids)]
    count = await BaseRepository.execute_many(
        "INSERT OR IGNORE INTO black_lists (owner_user_id, blocked_user_id) VALUES (?, ?)",
        params,
    )
    logger.debug(f"Wrote {count} block rows", extra={"owner_id": owner_user_id})
    return count


async def remove_blocked_users(owner_user_id: int, user_ids: Iterable[int]) -> list[int]:
    """
    Delete block rows for the ids that are actually blocked.

    Returns:
        The ids whose rows were removed
    """
    removed: list[int] = []
    async with BaseRepository.transaction() as db:
        for user_id in dict.fromkeys(user_ids):
            cursor = await db.execute(
                "DELETE FROM black_lists WHERE owner_user_id = ? AND blocked_user_id = ?",
                (owner_user_id, user_id),
            )
            if cursor.rowcount:
                removed.append(user_id)
    return removed
