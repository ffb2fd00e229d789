"""
Persisted collection cache backed by the local key/value table.

Each collection entry is stored under two keys:
  "<collection>_<entity_id>"            JSON-encoded list of records
  "<collection>_<entity_id>_timestamp"  epoch milliseconds of the write
Absent, malformed or expired entries all read as a cache miss.
"""

import json
import math
import logging
import time
from typing import Any, Callable, List, Optional

from database import db_manager

logger = logging.getLogger(__name__)


class PersistentCollectionCache:
    """Namespaced, JSON-serialized collection cache that survives restarts."""

    def __init__(self, collection: str, ttl: float, clock: Callable[[], float] = time.time) -> None:
        self.collection = collection
        self.ttl = ttl
        self._clock = clock

    def data_key(self, entity_id: Any) -> str:
        return f"{self.collection}_{entity_id}"

    def timestamp_key(self, entity_id: Any) -> str:
        return f"{self.collection}_{entity_id}_timestamp"

    async def load(self, entity_id: Any) -> Optional[List[Any]]:
        raw_data = await db_manager.get_value(self.data_key(entity_id))
        raw_ts = await db_manager.get_value(self.timestamp_key(entity_id))
        if raw_data is None or raw_ts is None:
            return None

        try:
            written_ms = float(raw_ts)
            data = json.loads(raw_data)
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed cache entry %s", self.data_key(entity_id))
            return None

        if not math.isfinite(written_ms):
            logger.warning("Ignoring cache entry %s with invalid timestamp", self.data_key(entity_id))
            return None

        if not isinstance(data, list):
            logger.warning("Ignoring non-list cache entry %s", self.data_key(entity_id))
            return None

        age = self._clock() - written_ms / 1000.0
        if age >= self.ttl:
            return None
        return data

    async def save(self, entity_id: Any, data: List[Any]) -> None:
        await db_manager.set_value(self.data_key(entity_id), json.dumps(data))
        await db_manager.set_value(self.timestamp_key(entity_id), str(int(self._clock() * 1000)))

    async def clear(self, entity_id: Any) -> None:
        await db_manager.delete_value(self.data_key(entity_id))
        await db_manager.delete_value(self.timestamp_key(entity_id))

    async def clear_all(self) -> int:
        """Remove every entry of this collection. Returns the number of keys removed."""
        keys = await db_manager.list_keys(f"{self.collection}_")
        for key in keys:
            await db_manager.delete_value(key)
        return len(keys)
