import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Dict, Generic, Hashable, List, Optional, TypeVar

from whackamole.core.window import is_expired

K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class Entry:
    content: str
    timestamp: datetime
    origin_ref: Any = field(default=None, compare=False, repr=False)


@dataclass
class SweepResult:
    evicted: int = 0
    dropped: int = 0

    def __add__(self, other: "SweepResult") -> "SweepResult":
        return SweepResult(self.evicted + other.evicted, self.dropped + other.dropped)


class History:
    """Timestamped entries for one key, oldest first."""

    def __init__(self):
        self.entries: List[Entry] = []
        self.lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def append(self, entry: Entry) -> None:
        self.entries.append(entry)

    def count_matching(self, predicate: Callable[[Entry], bool]) -> int:
        return sum(1 for entry in self.entries if predicate(entry))

    def remove_matching(self, predicate: Callable[[Entry], bool]) -> List[Entry]:
        kept: List[Entry] = []
        removed: List[Entry] = []
        for entry in self.entries:
            (removed if predicate(entry) else kept).append(entry)
        self.entries = kept
        return removed

    def evict_expired(self, now: datetime, window_minutes: int) -> bool:
        self.entries = [
            e for e in self.entries if not is_expired(e.timestamp, now, window_minutes)
        ]
        return not self.entries

    @property
    def latest(self) -> Optional[datetime]:
        if not self.entries:
            return None
        return max(e.timestamp for e in self.entries)

    def is_stale(self, now: datetime, window_minutes: int) -> bool:
        latest = self.latest
        return latest is None or is_expired(latest, now, window_minutes)


class WindowedLog(Generic[K]):
    """Per-key append logs sharing one sliding window.

    Every key owns its own lock. Callers mutate a History only inside
    ``scope(key)``; ``sweep`` takes the same per-key locks, so a sweep never
    observes a half-updated History and different keys never wait on each
    other.
    """

    def __init__(self, window_minutes: int):
        self.window_minutes = window_minutes
        self.histories: Dict[K, History] = {}

    def __len__(self) -> int:
        return len(self.histories)

    def __contains__(self, key: object) -> bool:
        return key in self.histories

    def get(self, key: K) -> Optional[History]:
        return self.histories.get(key)

    def keys(self) -> List[K]:
        return list(self.histories)

    def entry_count(self) -> int:
        return sum(len(h) for h in self.histories.values())

    @asynccontextmanager
    async def scope(self, key: K) -> AsyncIterator[History]:
        while True:
            history = self.histories.get(key)
            if history is None:
                history = self.histories[key] = History()
            async with history.lock:
                # dropped by a sweep while we were waiting; resolve the key again
                if self.histories.get(key) is not history:
                    continue
                try:
                    yield history
                finally:
                    if not history.entries:
                        del self.histories[key]
                return

    async def sweep(self, now: datetime) -> SweepResult:
        result = SweepResult()
        for key in list(self.histories):
            history = self.histories.get(key)
            if history is None:
                continue
            async with history.lock:
                if self.histories.get(key) is not history:
                    continue
                before = len(history)
                history.evict_expired(now, self.window_minutes)
                result.evicted += before - len(history)
                if history.is_stale(now, self.window_minutes):
                    del self.histories[key]
                    result.dropped += 1
        return result
