"""
Repository tests against a temporary SQLite database.
"""

import pytest

from helpers import blocklist_repo, voice_repo
from services.db.repository import BaseRepository


class TestBlockListRepository:
    @pytest.mark.asyncio
    async def test_add_and_list_in_insertion_order(self, temp_db):
        await blocklist_repo.add_blocked_users(1, [30, 10, 20])

        assert await blocklist_repo.list_blocked_user_ids(1) == [30, 10, 20]

    @pytest.mark.asyncio
    async def test_add_is_idempotent(self, temp_db):
        await blocklist_repo.add_blocked_users(1, [10, 10])
        await blocklist_repo.add_blocked_users(1, [10])

        assert await blocklist_repo.list_blocked_user_ids(1) == [10]

    @pytest.mark.asyncio
    async def test_lists_are_owner_scoped(self, temp_db):
        await blocklist_repo.add_blocked_users(1, [10])
        await blocklist_repo.add_blocked_users(2, [20])

        assert await blocklist_repo.list_blocked_user_ids(2) == [20]

    @pytest.mark.asyncio
    async def test_remove_reports_only_existing_rows(self, temp_db):
        await blocklist_repo.add_blocked_users(1, [10, 20])

        removed = await blocklist_repo.remove_blocked_users(1, [20, 99])

        assert removed == [20]
        assert await blocklist_repo.list_blocked_user_ids(1) == [10]

    @pytest.mark.asyncio
    async def test_add_nothing(self, temp_db):
        assert await blocklist_repo.add_blocked_users(1, []) == 0


class TestRoomPairing:
    @pytest.mark.asyncio
    async def test_pairing_lookup_both_ways(self, temp_db):
        await voice_repo.set_wait_channel_id(100, 900)

        assert await voice_repo.get_wait_channel_id(100) == 900
        assert await voice_repo.get_channel_id_by_wait_channel(900) == 100

    @pytest.mark.asyncio
    async def test_clearing_keeps_row(self, temp_db):
        await voice_repo.set_wait_channel_id(100, 900)
        await voice_repo.set_wait_channel_id(100, None)

        assert await voice_repo.get_wait_channel_id(100) is None
        assert await BaseRepository.exists(
            "SELECT 1 FROM room_lists WHERE channel_id = ?", (100,)
        )

    @pytest.mark.asyncio
    async def test_clear_wait_channel(self, temp_db):
        await voice_repo.set_wait_channel_id(100, 900)

        assert await voice_repo.clear_wait_channel(900) == 1
        assert await voice_repo.clear_wait_channel(900) == 0
        assert await voice_repo.get_channel_id_by_wait_channel(900) is None


class TestChannelSessions:
    @pytest.mark.asyncio
    async def test_save_and_read(self, temp_db):
        await voice_repo.save_session(100, 1, True)

        session = await voice_repo.get_session(100)

        assert session.owner_id == 1
        assert session.approval is True
        assert session.is_owned

    @pytest.mark.asyncio
    async def test_save_overwrites(self, temp_db):
        await voice_repo.save_session(100, 1, True)
        await voice_repo.save_session(100, 2, False)

        session = await voice_repo.get_session(100)

        assert (session.owner_id, session.approval) == (2, False)

    @pytest.mark.asyncio
    async def test_clear(self, temp_db):
        await voice_repo.save_session(100, 1, False)
        await voice_repo.clear_session(100)

        assert await voice_repo.get_session(100) is None


class TestBaseRepository:
    @pytest.mark.asyncio
    async def test_transaction_rolls_back(self, temp_db):
        with pytest.raises(RuntimeError):
            async with BaseRepository.transaction() as db:
                await db.execute(
                    "INSERT INTO black_lists (owner_user_id, blocked_user_id) VALUES (1, 2)"
                )
                raise RuntimeError("abort")

        assert not await BaseRepository.exists("SELECT 1 FROM black_lists")

    @pytest.mark.asyncio
    async def test_fetch_value_default(self, temp_db):
        value = await BaseRepository.fetch_value(
            "SELECT wait_channel_id FROM room_lists WHERE channel_id = ?", (1,), default=-1
        )

        assert value == -1
