"""
Last-good list snapshots.
The list screens show the most recent successful fetch when a reload fails,
including on a fresh request, so the snapshot has to outlive the request.
"""
import json
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from redis.exceptions import RedisError

from .extensions import redis_client
from .logging import get_logger

log = get_logger(__name__)

SNAPSHOT_PREFIX = "wardrobe:snapshot:"


class MemorySnapshotStore:
    """Process-local store, used when Redis is not configured and in tests."""

    def __init__(self, ttl: int = 900, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._data: Dict[str, Tuple[float, List[Dict[str, Any]]]] = {}

    def _sweep(self) -> None:
        now = self._clock()
        for key in [k for k, (expires, _) in self._data.items() if expires <= now]:
            del self._data[key]

    def get(self, key: str) -> Optional[List[Dict[str, Any]]]:
        self._sweep()
        entry = self._data.get(key)
        return list(entry[1]) if entry is not None else None

    def put(self, key: str, records: List[Dict[str, Any]]) -> None:
        self._sweep()
        self._data[key] = (self._clock() + self.ttl, list(records))

    def invalidate(self, prefix: str = "") -> None:
        for key in [k for k in self._data if k.startswith(prefix)]:
            del self._data[key]


class RedisSnapshotStore:
    def __init__(self, ttl: int) -> None:
        self.ttl = ttl

    def get(self, key: str) -> Optional[List[Dict[str, Any]]]:
        try:
            raw = redis_client.client.get(f"{SNAPSHOT_PREFIX}{key}")
        except RedisError as e:
            log.warning("Snapshot read failed for %s: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            log.warning("Corrupted snapshot %s, ignoring", key)
            return None

    def put(self, key: str, records: List[Dict[str, Any]]) -> None:
        try:
            redis_client.client.set(f"{SNAPSHOT_PREFIX}{key}", json.dumps(records), ex=self.ttl)
        except RedisError as e:
            log.warning("Snapshot write failed for %s: %s", key, e)

    def invalidate(self, prefix: str = "") -> None:
        try:
            keys = list(redis_client.client.scan_iter(match=f"{SNAPSHOT_PREFIX}{prefix}*"))
            if keys:
                redis_client.client.delete(*keys)
        except RedisError as e:
            log.warning("Snapshot cleanup failed for %r: %s", prefix, e)
            return
        log.info("Dropped %d list snapshots for %r", len(keys), prefix)


_memory_store = MemorySnapshotStore()


def get_snapshot_store(ttl: int = 900):
    if redis_client.enabled:
        return RedisSnapshotStore(ttl)
    _memory_store.ttl = ttl
    return _memory_store


class ScopedSnapshots:
    """Binds a store to one user and one resource so callers only see get/put."""

    def __init__(self, store, scope: str) -> None:
        self._store = store
        self.scope = scope

    def get(self) -> Optional[List[Dict[str, Any]]]:
        return self._store.get(self.scope)

    def put(self, records: List[Dict[str, Any]]) -> None:
        self._store.put(self.scope, records)
