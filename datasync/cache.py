"""In-memory collection cache with per-entry time-to-live."""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional


@dataclass(frozen=True)
class CachedCollection:
    """A fetched collection and the moment it was fetched."""

    data: List[Any]
    fetched_at: float
    ttl: float

    def is_valid(self, now: float) -> bool:
        return now < self.fetched_at + self.ttl


class TTLCache:
    """
    Key -> CachedCollection store.

    Entries are replaced wholesale on each set and never mutated in place.
    The clock is injectable so expiry can be driven deterministically.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, CachedCollection] = {}

    def get(self, key: str) -> Optional[CachedCollection]:
        return self._entries.get(key)

    def set(self, key: str, data: List[Any], ttl: float) -> CachedCollection:
        entry = CachedCollection(data=data, fetched_at=self._clock(), ttl=ttl)
        self._entries[key] = entry
        return entry

    def is_valid(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.is_valid(self._clock())

    def clear(self, key: str) -> None:
        self._entries.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._entries)
