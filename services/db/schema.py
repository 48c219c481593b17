"""
Canonical schema definition (version=1).

Centralizes all table creation so the bot and the tests build the same
database.
"""

import aiosqlite

from utils.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1


async def init_schema(db: aiosqlite.Connection) -> None:
    """
    Initialize the database schema with all required tables.

    Args:
        db: An open database connection
    """
    await db.execute("PRAGMA foreign_keys=ON")

    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version INTEGER PRIMARY KEY,
            applied_at INTEGER DEFAULT (strftime('%s','now'))
        )
        """
    )
    await db.execute(
        "INSERT OR IGNORE INTO schema_migrations (version) VALUES (?)",
        (SCHEMA_VERSION,),
    )

    # Owner-scoped block list; rows outlive any single channel session
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS black_lists (
            owner_user_id INTEGER NOT NULL,
            blocked_user_id INTEGER NOT NULL,
            created_at INTEGER DEFAULT (strftime('%s','now')),
            UNIQUE (owner_user_id, blocked_user_id)
        )
        """
    )
    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_black_lists_owner ON black_lists(owner_user_id)"
    )

    # Managed channel -> waiting channel pairing (wait_channel_id cleared, row kept)
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS room_lists (
            channel_id INTEGER PRIMARY KEY,
            wait_channel_id INTEGER DEFAULT NULL
        )
        """
    )
    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_room_lists_wait ON room_lists(wait_channel_id)"
    )

    # Explicit owner / approval-mode record per managed channel
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS channel_sessions (
            channel_id INTEGER PRIMARY KEY,
            owner_id INTEGER DEFAULT NULL,
            approval INTEGER NOT NULL DEFAULT 0,
            updated_at INTEGER DEFAULT (strftime('%s','now'))
        )
        """
    )

    await db.commit()
    logger.debug("Database schema initialized", extra={"schema_version": SCHEMA_VERSION})
