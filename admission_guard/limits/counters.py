"""Fixed-window hit counters keyed by actor.

Each window kind keeps its own key→counter map. A counter accumulates hits
until its window elapses; the next hit after that starts a fresh counter at
1. Bursts that straddle a boundary can therefore reach roughly twice the
nominal limit.
"""

from __future__ import annotations

import threading
from enum import Enum

from admission_guard.utils.clock import Clock, now_ms
from admission_guard.utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_COUNTER_SHARDS = 32


class WindowKind(Enum):
    """Counter families tracked by the engine."""

    CONNECTIONS_PER_SECOND = "connections_per_second"
    CONNECTIONS_PER_MINUTE = "connections_per_minute"
    AUTH_FAILURES_PER_MINUTE = "auth_failures_per_minute"
    COMMANDS_PER_SECOND = "commands_per_second"

    @property
    def window_ms(self) -> int:
        return _WINDOW_MS[self]


_WINDOW_MS: dict[WindowKind, int] = {
    WindowKind.CONNECTIONS_PER_SECOND: 1_000,
    WindowKind.CONNECTIONS_PER_MINUTE: 60_000,
    WindowKind.AUTH_FAILURES_PER_MINUTE: 60_000,
    WindowKind.COMMANDS_PER_SECOND: 1_000,
}


class WindowCounter:
    __slots__ = ("count", "started_at")

    def __init__(self, started_at: int):
        self.count = 0
        self.started_at = started_at

    def expired(self, now: int, window_ms: int) -> bool:
        return now - self.started_at >= window_ms


class _CounterShard:
    __slots__ = ("lock", "counters")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.counters: dict[tuple[WindowKind, str], WindowCounter] = {}


class WindowedCounterSet:
    """Thread-safe family of fixed-window counters."""

    def __init__(self, shards: int = DEFAULT_COUNTER_SHARDS, *, clock: Clock = now_ms):
        self._shards = [_CounterShard() for _ in range(max(1, shards))]
        self._clock = clock

    def _shard(self, kind: WindowKind, key: str) -> _CounterShard:
        return self._shards[hash((kind, key)) % len(self._shards)]

    def increment(self, kind: WindowKind, key: str) -> int:
        """Record one hit and return the count in the current window."""
        now = self._clock()
        shard = self._shard(kind, key)
        with shard.lock:
            counter = shard.counters.get((kind, key))
            if counter is None or counter.expired(now, kind.window_ms):
                counter = WindowCounter(now)
                shard.counters[(kind, key)] = counter
            counter.count += 1
            return counter.count

    def count(self, kind: WindowKind, key: str) -> int:
        """Current count without recording a hit; 0 when absent or expired."""
        now = self._clock()
        shard = self._shard(kind, key)
        with shard.lock:
            counter = shard.counters.get((kind, key))
            if counter is None or counter.expired(now, kind.window_ms):
                return 0
            return counter.count

    def reset(self, kind: WindowKind, key: str) -> None:
        shard = self._shard(kind, key)
        with shard.lock:
            shard.counters.pop((kind, key), None)

    def size(self, kind: WindowKind | None = None) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += sum(
                    1 for (k, _key) in shard.counters if kind is None or k is kind
                )
        return total

    def purge_expired(self) -> int:
        """Drop counters whose window has elapsed; returns how many went."""
        now = self._clock()
        removed = 0
        for shard in self._shards:
            with shard.lock:
                stale = [
                    ident
                    for ident, counter in shard.counters.items()
                    if counter.expired(now, ident[0].window_ms)
                ]
                for ident in stale:
                    del shard.counters[ident]
                removed += len(stale)
        if removed:
            logger.debug(
                "Purged expired window counters",
                event="admission.counters.purged",
                removed=removed,
            )
        return removed
