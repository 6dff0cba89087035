"""Blocked-event statistics for the admission engine."""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from typing import Any

from admission_guard.utils import metrics
from admission_guard.utils.logging_config import get_logger

logger = get_logger(__name__)

BLOCKED_CONNECTIONS = "blocked_connections"
BLOCKED_AUTH_ATTEMPTS = "blocked_auth_attempts"
BLOCKED_COMMANDS = "blocked_commands"


@dataclass(frozen=True)
class StatisticsSnapshot:
    blocked_connections: int
    blocked_auth_attempts: int
    blocked_commands: int
    cached_actor_count: int
    active_block_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class StatisticsCollector:
    """Monotonic counters of denied requests.

    Counters only grow; nothing in the engine resets them. Each increment is
    mirrored to the ``admission_blocked_events_total`` Prometheus counter.
    """

    def __init__(self):
        self._stats_lock = threading.Lock()
        self._counts = {
            BLOCKED_CONNECTIONS: 0,
            BLOCKED_AUTH_ATTEMPTS: 0,
            BLOCKED_COMMANDS: 0,
        }

    def increment(self, key: str, value: int = 1) -> None:
        with self._stats_lock:
            self._counts[key] = self._counts.get(key, 0) + value
        metrics.blocked_events.labels(kind=key).inc(value)

    def get(self, key: str) -> int:
        with self._stats_lock:
            return self._counts.get(key, 0)

    def snapshot(
        self, *, cached_actor_count: int, active_block_count: int
    ) -> StatisticsSnapshot:
        with self._stats_lock:
            counts = dict(self._counts)
        metrics.cached_actors.set(cached_actor_count)
        metrics.active_blocks.set(active_block_count)
        return StatisticsSnapshot(
            blocked_connections=counts[BLOCKED_CONNECTIONS],
            blocked_auth_attempts=counts[BLOCKED_AUTH_ATTEMPTS],
            blocked_commands=counts[BLOCKED_COMMANDS],
            cached_actor_count=cached_actor_count,
            active_block_count=active_block_count,
        )
