"""
Concurrent reputation store.

Records live in a fixed number of hash-partitioned shards, each guarded by
its own ``threading.RLock``, so operations on different actors do not
contend on a single lock. All per-actor read-modify-write work happens inside
``ReputationStore.locked()``, which holds the shard lock for the duration of
the block.

Durable storage is pluggable through ``ReputationRepository``: the store
loads on a cache miss, saves after every mutation and deletes on sweep. The
default repository keeps nothing, so reputation is process-local.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Protocol

from admission_guard.config.defaults import DEFAULT_STORE_SHARDS
from admission_guard.exceptions import PersistenceError
from admission_guard.utils.clock import Clock, now_ms
from admission_guard.utils.logging_config import get_logger

from .models import ReputationRecord, ReputationSnapshot

logger = get_logger(__name__)


class ReputationRepository(Protocol):
    def load(self, actor: str) -> ReputationSnapshot | None: ...

    def save(self, snapshot: ReputationSnapshot) -> None: ...

    def delete(self, actor: str) -> None: ...


class NullReputationRepository:
    """Repository that stores nothing; the store's memory is the only copy."""

    def load(self, actor: str) -> ReputationSnapshot | None:
        return None

    def save(self, snapshot: ReputationSnapshot) -> None:
        return None

    def delete(self, actor: str) -> None:
        return None


class InMemoryReputationRepository:
    """Dict-backed repository, useful for sharing state between store instances."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._data: dict[str, ReputationSnapshot] = {}

    def load(self, actor: str) -> ReputationSnapshot | None:
        with self._lock:
            return self._data.get(actor)

    def save(self, snapshot: ReputationSnapshot) -> None:
        with self._lock:
            self._data[snapshot.actor] = snapshot

    def delete(self, actor: str) -> None:
        with self._lock:
            self._data.pop(actor, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, actor: object) -> bool:
        with self._lock:
            return actor in self._data


class _Shard:
    __slots__ = ("lock", "records")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.records: dict[str, ReputationRecord] = {}


class ReputationStore:
    """Sharded map from actor identifier to ``ReputationRecord``."""

    def __init__(
        self,
        shards: int = DEFAULT_STORE_SHARDS,
        *,
        repository: ReputationRepository | None = None,
        clock: Clock = now_ms,
    ):
        self._shards = [_Shard() for _ in range(max(1, shards))]
        self.repository: ReputationRepository = (
            repository if repository is not None else NullReputationRepository()
        )
        self._clock = clock

    def _shard(self, actor: str) -> _Shard:
        return self._shards[hash(actor) % len(self._shards)]

    def _load(self, actor: str) -> ReputationRecord | None:
        try:
            snap = self.repository.load(actor)
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError(
                f"Failed to load reputation for {actor!r}", {"actor": actor}
            ) from exc
        return ReputationRecord.from_snapshot(snap) if snap is not None else None

    @contextmanager
    def locked(
        self, actor: str, *, create: bool = True
    ) -> Iterator[ReputationRecord | None]:
        """Hold the actor's shard lock and yield its record.

        Missing records are loaded from the repository, then created when
        ``create`` is true. Only ``create=True`` lookups add the record to the
        store; otherwise a repository hit is yielded uncached and a miss
        yields ``None``.
        """
        shard = self._shard(actor)
        with shard.lock:
            record = shard.records.get(actor)
            if record is None:
                record = self._load(actor)
                if record is None and create:
                    record = ReputationRecord(actor, created_at=self._clock())
                if record is not None and create:
                    shard.records[actor] = record
            yield record

    def save(self, record: ReputationRecord) -> None:
        """Hand a copy of ``record`` to the repository; failures are logged."""
        try:
            self.repository.save(record.snapshot())
        except Exception as exc:
            logger.warning(
                "Failed to persist reputation record",
                event="admission.store.save_failed",
                actor=record.actor,
                error=str(exc),
            )

    def get_snapshot(self, actor: str, *, create: bool = True) -> ReputationSnapshot | None:
        with self.locked(actor, create=create) as record:
            return record.snapshot() if record is not None else None

    def __len__(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.records)
        return total

    def __contains__(self, actor: object) -> bool:
        if not isinstance(actor, str):
            return False
        shard = self._shard(actor)
        with shard.lock:
            return actor in shard.records

    def snapshots(
        self, predicate: Callable[[ReputationRecord], bool] | None = None
    ) -> list[ReputationSnapshot]:
        """Copy every record matching ``predicate``, one shard at a time."""
        out: list[ReputationSnapshot] = []
        for shard in self._shards:
            with shard.lock:
                for record in shard.records.values():
                    if predicate is None or predicate(record):
                        out.append(record.snapshot())
        return out

    def count_blocked(self, now: int) -> int:
        """Count records with an active block, expiring lapsed ones on the way."""
        count = 0
        for shard in self._shards:
            with shard.lock:
                count += sum(1 for r in shard.records.values() if r.is_blocked(now))
        return count

    def sweep(self, retention_ms: int, now: int) -> int:
        """Evict idle records that are neither whitelisted nor blacklisted."""
        removed = 0
        for shard in self._shards:
            with shard.lock:
                stale = [
                    actor
                    for actor, record in shard.records.items()
                    if now - record.last_activity > retention_ms
                    and not record.whitelisted
                    and not record.blacklisted
                ]
                for actor in stale:
                    del shard.records[actor]
                    try:
                        self.repository.delete(actor)
                    except Exception as exc:
                        logger.warning(
                            "Failed to delete swept reputation record",
                            event="admission.store.delete_failed",
                            actor=actor,
                            error=str(exc),
                        )
                removed += len(stale)
        return removed
