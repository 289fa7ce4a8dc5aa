"""In-memory chapter cache.

One ChapterCache is created per session and handed to the fetcher that
uses it. By default it grows for the lifetime of the session and never
evicts; a size bound (LRU) and/or a TTL can be switched on.

The cache is only touched from the event loop thread, so it has no lock.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from bibleplan.books import fold_diacritics

if TYPE_CHECKING:
    from bibleplan.fetcher import ChapterContent

logger = logging.getLogger(__name__)


def cache_key(book: str, chapter: int) -> str:
    """Build the cache key for a (resolved) book and chapter.

    "Génesis", 1 -> "genesis-1"; "1 Corintios", 13 -> "1 corintios-13"
    """
    return f"{fold_diacritics(book).lower()}-{chapter}"


@dataclass
class _Entry:
    content: "ChapterContent"
    stored_at: float


class ChapterCache:
    """Chapter content keyed by cache_key().

    Args:
        max_entries: Evict least recently used entries beyond this size
            (None = unbounded)
        ttl_seconds: Treat entries older than this as missing
            (None = never expire)
        clock: Monotonic clock, injectable for tests
    """

    def __init__(
        self,
        max_entries: int | None = None,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> "ChapterContent | None":
        """Return cached content, or None on a miss or expired entry."""
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        if self._is_expired(entry):
            logger.debug(f"Cache entry expired: {key}")
            del self._entries[key]
            self.misses += 1
            return None

        self._entries.move_to_end(key)
        self.hits += 1
        return entry.content

    def put(self, key: str, content: "ChapterContent") -> None:
        """Store content under key, evicting the oldest entries if bounded."""
        self._entries[key] = _Entry(content=content, stored_at=self._clock())
        self._entries.move_to_end(key)

        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Cache evicted: {evicted}")

    def clear(self) -> None:
        """Drop every entry and reset the hit/miss counters."""
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def _is_expired(self, entry: _Entry) -> bool:
        if self.ttl_seconds is None:
            return False
        return self._clock() - entry.stored_at >= self.ttl_seconds

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key)  # type: ignore[arg-type]
        return entry is not None and not self._is_expired(entry)

    def __len__(self) -> int:
        return len(self._entries)
