"""
Base Repository Pattern for Database Access.

Provides a unified interface for database operations, eliminating
repetitive connection/cursor patterns throughout the codebase.

Usage:
    class RoomRepository(BaseRepository):
        async def get_wait_channel_id(self, channel_id: int) -> int | None:
            return await self.fetch_value(
                "SELECT wait_channel_id FROM room_lists WHERE channel_id = ?",
                (channel_id,),
            )
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, TypeVar

from .database import Database

if TYPE_CHECKING:
    from collections.abc import Sequence

    from aiosqlite import Row

T = TypeVar("T")


class BaseRepository:
    """
    Base class for repository pattern database access.

    Provides common query methods that handle connection management,
    cursor operations, and result processing uniformly.
    """

    @staticmethod
    @asynccontextmanager
    async def transaction():
        """
        Context manager for explicit transaction control.

        Usage:
            async with BaseRepository.transaction() as db:
                await db.execute("INSERT ...", params)
                await db.execute("UPDATE ...", params)
                # Auto-commits on success, rolls back on exception
        """
        async with Database.get_connection() as db:
            try:
                yield db
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    @staticmethod
    async def fetch_one(
        query: str,
        params: tuple[Any, ...] = (),
    ) -> Row | None:
        """
        Execute a query and return a single row.

        Args:
            query: SQL query string with ? placeholders
            params: Query parameters

        Returns:
            Single row or None if not found
        """
        async with Database.get_connection() as db:
            cursor = await db.execute(query, params)
            return await cursor.fetchone()

    @staticmethod
    async def fetch_all(
        query: str,
        params: tuple[Any, ...] = (),
    ) -> list[Row]:
        """
        Execute a query and return all rows.

        Returns:
            List of rows (empty list if none found)
        """
        async with Database.get_connection() as db:
            cursor = await db.execute(query, params)
            return list(await cursor.fetchall())

    @staticmethod
    async def fetch_value(
        query: str,
        params: tuple[Any, ...] = (),
        default: T = None,
    ) -> T | Any:
        """Execute a query and return the first column of the first row, or ``default``."""
        row = await BaseRepository.fetch_one(query, params)
        return row[0] if row else default

    @staticmethod
    async def execute(
        query: str,
        params: tuple[Any, ...] = (),
        commit: bool = True,
    ) -> int:
        """
        Execute a write query (INSERT, UPDATE, DELETE).

        Returns:
            Number of rows affected
        """
        async with Database.get_connection() as db:
            cursor = await db.execute(query, params)
            if commit:
                await db.commit()
            return cursor.rowcount

    @staticmethod
    async def execute_many(
        query: str,
        params_list: Sequence[tuple[Any, ...]],
        commit: bool = True,
    ) -> int:
        """
        Execute a query with multiple parameter sets.

        Returns:
            Number of parameter sets submitted
        """
        if not params_list:
            return 0
        async with Database.get_connection() as db:
            await db.executemany(query, params_list)
            if commit:
                await db.commit()
            return len(params_list)

    @staticmethod
    async def exists(
        query: str,
        params: tuple[Any, ...] = (),
    ) -> bool:
        """Return True if the query yields at least one row."""
        row = await BaseRepository.fetch_one(query, params)
        return row is not None


__all__ = ["BaseRepository"]
