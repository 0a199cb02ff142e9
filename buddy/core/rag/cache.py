"""
Similarity search result cache.

In-memory, TTL-bounded, size-bounded cache keyed by a lossy fingerprint of the
query embedding: the first 16 dimensions rounded to 3 decimals. Near-identical
queries share an entry; distinct queries whose prefixes round identically can
collide. Expiry is checked lazily on read. When full, the earliest-inserted
entry is evicted.

There is no invalidation signal from the chunk store: every path that adds,
updates or removes documents must call clear().

Dependencies: None
System role: Latency optimization in front of similarity search
"""

import logging
import math
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Sequence
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

KEY_DIMENSIONS = 16
DEFAULT_TTL_SECONDS = 300.0
DEFAULT_MAX_SIZE = 100


def cache_key(embedding: Sequence[float]) -> str:
    """
    Fingerprint an embedding.

    Args:
        embedding: Query embedding

    Returns:
        str: First 16 values as integer thousandths (half rounds up), comma-joined
    """
    return ",".join(str(math.floor(v * 1000 + 0.5)) for v in embedding[:KEY_DIMENSIONS])


class SimilarityCache(Generic[T]):
    """Process-local cache of search results keyed by embedding fingerprint."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, list[T]]] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, embedding: Sequence[float]) -> list[T] | None:
        """Return cached results for the embedding, or None on miss/expiry."""
        key = cache_key(embedding)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            stored_at, results = entry
            if self._clock() - stored_at > self.ttl_seconds:
                del self._entries[key]
                self._misses += 1
                return None

            self._hits += 1
            return results

    def set(self, embedding: Sequence[float], results: list[T]) -> None:
        """Store results, evicting the earliest-inserted entry when full."""
        key = cache_key(embedding)
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.max_size:
                self._entries.popitem(last=False)
            self._entries[key] = (self._clock(), list(results))

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"{__name__}:clear - Cleared {count} cached search results")

    def stats(self) -> dict[str, Any]:
        """Size, capacity, TTL and hit/miss counters."""
        with self._lock:
            return {
                "size": len(self._entries),
                "max_size": self.max_size,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
            }
