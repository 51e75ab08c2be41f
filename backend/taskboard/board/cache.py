"""In-process caches for board reads.

Two namespaces share the same policy: entries expire after a TTL and each
container holds a bounded number of entries, evicting the least recently
touched one (reads and writes both count as a touch). Cache operations never
raise; a miss is a normal outcome and the caller fetches from the store.
"""

import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Iterator, Optional, TypeVar

import structlog

logger = structlog.get_logger()

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

Clock = Callable[[], float]

DEFAULT_TTL_SECONDS = 5 * 60
DEFAULT_MAX_ENTRIES = 50
DEFAULT_SWEEP_INTERVAL_SECONDS = 60


class LRUCache(Generic[K, V]):
    """Bounded mapping that evicts the least recently touched key."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._data: OrderedDict[K, V] = OrderedDict()

    def get(self, key: K) -> Optional[V]:
        if key not in self._data:
            return None
        self._data.move_to_end(key)
        return self._data[key]

    def peek(self, key: K) -> Optional[V]:
        """Read without counting as a touch."""
        return self._data.get(key)

    def put(self, key: K, value: V) -> Optional[K]:
        """Insert or replace; returns the evicted key, if any."""
        evicted = None
        if key in self._data:
            self._data.move_to_end(key)
        elif len(self._data) >= self.capacity:
            evicted, _ = self._data.popitem(last=False)
        self._data[key] = value
        return evicted

    def delete(self, key: K) -> bool:
        if key in self._data:
            del self._data[key]
            return True
        return False

    def clear(self) -> None:
        self._data.clear()

    def keys(self) -> list[K]:
        """Keys from least to most recently touched."""
        return list(self._data.keys())

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[K]:
        return iter(list(self._data.keys()))


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    key: str
    value: V
    inserted_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class TTLCache(Generic[V]):
    """LRU-bounded cache whose entries expire ``ttl`` seconds after insertion."""

    def __init__(
        self,
        name: str,
        ttl: float = DEFAULT_TTL_SECONDS,
        capacity: int = DEFAULT_MAX_ENTRIES,
        clock: Clock = time.monotonic,
    ):
        self.name = name
        self.ttl = ttl
        self.clock = clock
        self._entries: LRUCache[str, CacheEntry[V]] = LRUCache(capacity)

    def get(self, key: str, default: Optional[V] = None) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return default
        if entry.is_expired(self.clock()):
            self._entries.delete(key)
            return default
        return entry.value

    def put(self, key: str, value: V) -> None:
        now = self.clock()
        evicted = self._entries.put(
            key, CacheEntry(key=key, value=value, inserted_at=now, expires_at=now + self.ttl)
        )
        if evicted is not None:
            logger.debug("cache_evicted", cache=self.name, key=evicted)

    def delete(self, key: str) -> bool:
        """Physically remove an entry."""
        return self._entries.delete(key)

    def invalidate(self, key: str) -> None:
        """Expire an entry now; the next read misses and the sweep drops it."""
        entry = self._entries.peek(key)
        if entry is None:
            return
        now = self.clock()
        self._entries.put(
            key,
            CacheEntry(key=key, value=entry.value, inserted_at=entry.inserted_at, expires_at=now - 1),
        )

    def entry(self, key: str) -> Optional[CacheEntry[V]]:
        return self._entries.peek(key)

    def sweep(self, now: Optional[float] = None) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self.clock() if now is None else now
        expired = [
            key
            for key in self._entries
            if (entry := self._entries.peek(key)) is not None and entry.is_expired(now)
        ]
        for key in expired:
            self._entries.delete(key)
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class LocalCache:
    """The two cache namespaces used by the board, plus their sweeper.

    ``entities`` holds single lookups and small lists (``projects:all``,
    ``project:{id}``, ``task:{id}``, ``fields:{project_id}``); ``task_lists``
    holds each project's task list keyed by project id.

    Owned by whoever builds the workspace: ``start()`` launches the periodic
    sweep, ``aclose()`` stops it.
    """

    PROJECTS_KEY = "projects:all"

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        capacity: int = DEFAULT_MAX_ENTRIES,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Clock = time.monotonic,
    ):
        self.entities: TTLCache = TTLCache("entities", ttl=ttl, capacity=capacity, clock=clock)
        self.task_lists: TTLCache = TTLCache("task_lists", ttl=ttl, capacity=capacity, clock=clock)
        self.sweep_interval = sweep_interval
        self._sweeper: Optional[asyncio.Task[None]] = None

    @staticmethod
    def project_key(project_id: str) -> str:
        return f"project:{project_id}"

    @staticmethod
    def task_key(task_id: str) -> str:
        return f"task:{task_id}"

    @staticmethod
    def fields_key(project_id: str) -> str:
        return f"fields:{project_id}"

    def sweep(self) -> int:
        removed = self.entities.sweep() + self.task_lists.sweep()
        if removed:
            logger.debug("cache_swept", removed=removed)
        return removed

    def invalidate_project(self, project_id: str) -> None:
        """Drop everything cached about one project (and the project list)."""
        self.entities.delete(self.project_key(project_id))
        self.entities.delete(self.fields_key(project_id))
        self.entities.delete(self.PROJECTS_KEY)
        self.task_lists.delete(project_id)

    def clear(self) -> None:
        self.entities.clear()
        self.task_lists.clear()

    @property
    def running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self.running:
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            self.sweep()

    async def aclose(self) -> None:
        """Stop the sweeper and drop all entries."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        self.clear()

    async def __aenter__(self) -> "LocalCache":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
