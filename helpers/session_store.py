"""
Bounded in-memory stores for transient interaction state.

Entries expire after a TTL and the oldest entries are evicted once the
store is full, so state left behind by abandoned interactions cannot
accumulate for the lifetime of the process.
"""

import time
from collections import OrderedDict
from collections.abc import Callable, Hashable, Sequence
from typing import Any

DEFAULT_TTL_SECONDS = 15 * 60
DEFAULT_MAX_ENTRIES = 1000


class ExpiringStore:
    """TTL and size bounded mapping with oldest-first eviction."""

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        # key -> (value, stored_at)
        self._entries: OrderedDict[Hashable, tuple[Any, float]] = OrderedDict()

    def __len__(self) -> int:
        self.evict_expired()
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def set(self, key: Hashable, value: Any) -> None:
        self._entries.pop(key, None)
        self._entries[key] = (value, self._clock())
        self.evict_expired()
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def get(self, key: Hashable, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        value, stored_at = entry
        if self._clock() - stored_at >= self.ttl:
            del self._entries[key]
            return default
        return value

    def pop(self, key: Hashable, default: Any = None) -> Any:
        """Return and remove ``key``. Expired entries count as missing."""
        value = self.get(key, default)
        self._entries.pop(key, None)
        return value

    def evict_expired(self) -> int:
        """Drop expired entries. Returns count removed."""
        now = self._clock()
        expired = [
            key for key, (_, stored_at) in self._entries.items() if now - stored_at >= self.ttl
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()


class SelectionStore(ExpiringStore):
    """
    Pending member selections from the control panel member picker.

    Keyed by (message id, acting user id) so two owners using the same panel
    never see each other's picks.
    """

    def remember(self, message_id: int, user_id: int, selected_ids: Sequence[int]) -> None:
        self.set((message_id, user_id), tuple(selected_ids))

    def recall(self, message_id: int, user_id: int) -> tuple[int, ...]:
        return self.get((message_id, user_id), ())

    def consume(self, message_id: int, user_id: int) -> tuple[int, ...]:
        return self.pop((message_id, user_id), ())
