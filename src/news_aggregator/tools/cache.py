import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from ..models.news import Article


DEFAULT_KEY = "news:general"
KEY_PREFIX = "news:"
KEY_DELIMITER = ","


def derive_key(preferences: Sequence[str] | None) -> str:
    """Build the cache key for a preference set.

    Order does not matter: preferences are sorted before joining. The
    caller's sequence is never reordered in place.
    """

    if not preferences:
        return DEFAULT_KEY
    return KEY_PREFIX + KEY_DELIMITER.join(sorted(preferences))


@dataclass
class CacheEntry:
    data: List[Article]
    stored_at: float
    expires_at: float


@dataclass
class CacheStats:
    total: int
    valid: int
    expired: int
    ttl_seconds: float


class ArticleCache:
    """In-memory article cache with a per-entry TTL.

    Expired entries are evicted lazily, the first time ``get`` observes
    them. There is no background sweep, so a key that is never read again
    keeps its memory until ``clear`` or ``delete``.

    Articles are copied on the way in and out, so callers never share
    objects with a stored entry.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    derive_key = staticmethod(derive_key)

    def get(self, key: str) -> Optional[List[Article]]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() > entry.expires_at:
                del self._entries[key]
                return None
            data = entry.data
        return [article.model_copy(deep=True) for article in data]

    def set(self, key: str, data: List[Article], ttl: float | None = None) -> None:
        ttl = self.ttl_seconds if ttl is None else ttl
        data = [article.model_copy(deep=True) for article in data]
        now = self._clock()
        with self._lock:
            self._entries[key] = CacheEntry(data=data, stored_at=now, expires_at=now + ttl)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> CacheStats:
        # Read-only scan; expired entries are counted, not evicted.
        now = self._clock()
        with self._lock:
            total = len(self._entries)
            expired = sum(1 for entry in self._entries.values() if now > entry.expires_at)
        return CacheStats(
            total=total,
            valid=total - expired,
            expired=expired,
            ttl_seconds=self.ttl_seconds,
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
