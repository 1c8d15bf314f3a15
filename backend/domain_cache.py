import time
from typing import Callable, List, Optional

# Allowed domains are re-read from the store at most once a minute
CACHE_TTL_MS = 60_000


def now_ms() -> int:
    return int(time.time() * 1000)


class DomainCache:
    """Holds the last fetched allow-list and when it was fetched.

    A single entry with a fixed time-to-live; there is no explicit
    invalidation. Concurrent cold reads may both refill it, last write wins.
    """

    def __init__(self, ttl_ms: int = CACHE_TTL_MS, clock: Callable[[], int] = now_ms):
        self.ttl_ms = ttl_ms
        self.clock = clock
        self.value: Optional[List[str]] = None
        self.fetched_at_ms = 0

    def get(self) -> Optional[List[str]]:
        '''Return the cached domains while still fresh, otherwise None.'''
        if self.value is not None and self.clock() - self.fetched_at_ms < self.ttl_ms:
            return self.value
        return None

    def put(self, domains: List[str], fetched_at_ms: Optional[int] = None) -> List[str]:
        self.value = domains
        self.fetched_at_ms = self.clock() if fetched_at_ms is None else fetched_at_ms
        return domains
