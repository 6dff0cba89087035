"""
Admission engine

Answers "may this actor connect?", feeds authentication outcomes back into
the actor's reputation and applies escalating blocks. Every per-actor
operation runs under the actor's store shard lock, so the read-modify-write
of a record and the counter increments it depends on happen as one unit and
a block is visible to the next call for the same actor on any thread.
"""

from __future__ import annotations

from admission_guard.config.config import AdmissionConfig
from admission_guard.config.schema import AdmissionSettings
from admission_guard.exceptions import InvalidActorError
from admission_guard.limits.counters import WindowedCounterSet, WindowKind
from admission_guard.reputation.models import (
    MAX_SCORE,
    AdmissionDecision,
    ReputationRecord,
    ReputationSnapshot,
)
from admission_guard.reputation.store import ReputationRepository, ReputationStore
from admission_guard.utils.clock import Clock, now_ms
from admission_guard.utils.logging_config import get_logger

from .backoff import block_duration_ms
from .stats import (
    BLOCKED_AUTH_ATTEMPTS,
    BLOCKED_COMMANDS,
    BLOCKED_CONNECTIONS,
    StatisticsCollector,
    StatisticsSnapshot,
)

logger = get_logger(__name__)

REASON_BLACKLISTED = "IP is blacklisted"
REASON_LOW_REPUTATION = "Low reputation score"
REASON_CONNECTIONS_PER_SECOND = "Too many connections per second"
REASON_CONNECTIONS_PER_MINUTE = "Too many connections per minute"
REASON_AUTH_FAILURES = "Too many failed auth attempts"
REASON_MANUAL_BLOCK = "Manual block by admin"
REASON_UNKNOWN_BLOCK = "Blocked"


def _require_actor(actor: object) -> str:
    if not isinstance(actor, str):
        raise InvalidActorError(
            "Actor identifier must be a string",
            {"actor_type": type(actor).__name__},
        )
    return actor


class AdmissionEngine:
    """Reputation-aware gatekeeper for connections, logins and commands.

    The engine owns its store, counters and statistics; nothing is shared
    through module globals. Settings are read from ``config`` at the start
    of each operation, so ``config.update()`` takes effect immediately.
    """

    def __init__(
        self,
        config: AdmissionConfig | AdmissionSettings | None = None,
        *,
        store: ReputationStore | None = None,
        counters: WindowedCounterSet | None = None,
        stats: StatisticsCollector | None = None,
        repository: ReputationRepository | None = None,
        clock: Clock = now_ms,
    ):
        if config is None or isinstance(config, AdmissionSettings):
            config = AdmissionConfig(config)
        self.config = config
        self._clock = clock
        self.store = (
            store
            if store is not None
            else ReputationStore(repository=repository, clock=clock)
        )
        self.counters = (
            counters if counters is not None else WindowedCounterSet(clock=clock)
        )
        self.stats = stats if stats is not None else StatisticsCollector()
        s = config.settings
        logger.info(
            "Admission engine initialized",
            event="admission.engine.initialized",
            max_connections_per_second=s.max_connections_per_second,
            max_connections_per_minute=s.max_connections_per_minute,
            max_auth_attempts_per_minute=s.max_auth_attempts_per_minute,
            min_reputation_for_connection=s.min_reputation_for_connection,
        )

    # ------------------------------------------------------------------
    # Decision pipeline
    # ------------------------------------------------------------------
    def check_connection(self, actor: str) -> AdmissionDecision:
        """Decide whether a new connection from ``actor`` is admitted."""
        _require_actor(actor)
        settings = self.config.settings
        with self.store.locked(actor) as record:
            assert record is not None
            now = self._clock()

            if record.blacklisted:
                self.stats.increment(BLOCKED_CONNECTIONS)
                logger.debug(
                    "Blacklisted actor denied",
                    event="admission.connection.blacklisted",
                    actor=actor,
                )
                return AdmissionDecision.blocked(REASON_BLACKLISTED, 0)

            if record.whitelisted:
                return AdmissionDecision.allow(MAX_SCORE)

            if record.is_blocked(now):
                self.stats.increment(BLOCKED_CONNECTIONS)
                return AdmissionDecision.blocked(
                    record.block_reason or REASON_UNKNOWN_BLOCK, record.blocked_until
                )

            if record.score < settings.min_reputation_for_connection:
                self._apply_block(record, settings, REASON_LOW_REPUTATION, now)
                self.stats.increment(BLOCKED_CONNECTIONS)
                return AdmissionDecision.blocked(
                    REASON_LOW_REPUTATION, record.blocked_until
                )

            per_second = self.counters.increment(
                WindowKind.CONNECTIONS_PER_SECOND, actor
            )
            if per_second > settings.max_connections_per_second:
                self._apply_block(record, settings, REASON_CONNECTIONS_PER_SECOND, now)
                self.stats.increment(BLOCKED_CONNECTIONS)
                return AdmissionDecision.rate_limited(record.blocked_until)

            per_minute = self.counters.increment(
                WindowKind.CONNECTIONS_PER_MINUTE, actor
            )
            if per_minute > settings.max_connections_per_minute:
                self._apply_block(record, settings, REASON_CONNECTIONS_PER_MINUTE, now)
                self.stats.increment(BLOCKED_CONNECTIONS)
                return AdmissionDecision.rate_limited(record.blocked_until)

            return AdmissionDecision.allow(record.score)

    def register_outcome(self, actor: str, success: bool) -> None:
        """Feed an authentication result back into the actor's reputation."""
        _require_actor(actor)
        settings = self.config.settings
        with self.store.locked(actor) as record:
            assert record is not None
            now = self._clock()
            if success:
                record.record_success(now)
            else:
                record.record_failure(now)
                attempts = self.counters.increment(
                    WindowKind.AUTH_FAILURES_PER_MINUTE, actor
                )
                if attempts > settings.max_auth_attempts_per_minute:
                    self._apply_block(record, settings, REASON_AUTH_FAILURES, now)
                    self.stats.increment(BLOCKED_AUTH_ATTEMPTS)
            self.store.save(record)

    def check_command_limit(self, actor: str, command: str | None = None) -> bool:
        """Return False once ``actor`` exceeds the per-second command limit.

        Reputation is neither read nor changed.
        """
        _require_actor(actor)
        limit = self.config.settings.max_commands_per_second
        if self.counters.increment(WindowKind.COMMANDS_PER_SECOND, actor) > limit:
            self.stats.increment(BLOCKED_COMMANDS)
            logger.debug(
                "Command rate limit exceeded",
                event="admission.command.limited",
                actor=actor,
                command=command,
                limit=limit,
            )
            return False
        return True

    def _apply_block(
        self,
        record: ReputationRecord,
        settings: AdmissionSettings,
        reason: str,
        now: int,
    ) -> None:
        duration = block_duration_ms(
            record.failed_attempts,
            settings.base_block_duration_ms,
            settings.backoff_multiplier,
        )
        record.block(duration, reason, now)
        self.store.save(record)
        logger.warning(
            "Actor blocked",
            event="admission.block.applied",
            actor=record.actor,
            reason=reason,
            duration_ms=duration,
            failed_attempts=record.failed_attempts,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_reputation(self, actor: str) -> ReputationSnapshot:
        """Snapshot of the actor's record, creating it on first reference."""
        _require_actor(actor)
        snap = self.store.get_snapshot(actor, create=True)
        assert snap is not None
        return snap

    def peek_reputation(self, actor: str) -> ReputationSnapshot | None:
        """Snapshot of the actor's record, or None when it is unknown. Never caches."""
        _require_actor(actor)
        return self.store.get_snapshot(actor, create=False)

    def list_whitelisted(self) -> list[str]:
        return sorted(s.actor for s in self.store.snapshots(lambda r: r.whitelisted))

    def list_blacklisted(self) -> list[str]:
        return sorted(s.actor for s in self.store.snapshots(lambda r: r.blacklisted))

    def statistics(self) -> StatisticsSnapshot:
        return self.stats.snapshot(
            cached_actor_count=len(self.store),
            active_block_count=self.store.count_blocked(self._clock()),
        )

    # ------------------------------------------------------------------
    # Administrative operations
    # ------------------------------------------------------------------
    def block(
        self, actor: str, duration_ms: int, reason: str = REASON_MANUAL_BLOCK
    ) -> None:
        _require_actor(actor)
        with self.store.locked(actor) as record:
            assert record is not None
            record.block(duration_ms, reason, self._clock())
            self.store.save(record)
        logger.info(
            "Blocked actor",
            event="admission.admin.block",
            actor=actor,
            duration_s=duration_ms // 1000,
            reason=reason,
        )

    def unblock(self, actor: str) -> bool:
        """Lift an active block. Unknown actors are left untouched."""
        _require_actor(actor)
        with self.store.locked(actor, create=False) as record:
            if record is None:
                return False
            record.unblock()
            self.store.save(record)
        logger.info("Unblocked actor", event="admission.admin.unblock", actor=actor)
        return True

    def whitelist(self, actor: str) -> None:
        _require_actor(actor)
        with self.store.locked(actor) as record:
            assert record is not None
            record.set_whitelisted(True)
            record.unblock()
            self.store.save(record)
        logger.info(
            "Added actor to whitelist", event="admission.admin.whitelist", actor=actor
        )

    def blacklist(self, actor: str) -> None:
        _require_actor(actor)
        with self.store.locked(actor) as record:
            assert record is not None
            record.set_blacklisted(True)
            self.store.save(record)
        logger.info(
            "Added actor to blacklist", event="admission.admin.blacklist", actor=actor
        )

    def remove_from_whitelist(self, actor: str) -> bool:
        _require_actor(actor)
        with self.store.locked(actor, create=False) as record:
            if record is None:
                return False
            record.set_whitelisted(False)
            self.store.save(record)
        logger.info(
            "Removed actor from whitelist",
            event="admission.admin.whitelist_removed",
            actor=actor,
        )
        return True

    def remove_from_blacklist(self, actor: str) -> bool:
        _require_actor(actor)
        with self.store.locked(actor, create=False) as record:
            if record is None:
                return False
            record.set_blacklisted(False)
            self.store.save(record)
        logger.info(
            "Removed actor from blacklist",
            event="admission.admin.blacklist_removed",
            actor=actor,
        )
        return True

    def set_origin_hint(self, actor: str, origin_hint: bool) -> None:
        """Flag an actor's network origin as suspicious (e.g. a VPN range)."""
        _require_actor(actor)
        with self.store.locked(actor) as record:
            assert record is not None
            record.set_origin_hint(origin_hint)
            self.store.save(record)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------
    def sweep(self, retention_seconds: float | None = None) -> int:
        """Evict idle plain records and expired counters; returns records removed."""
        if retention_seconds is None:
            retention_seconds = self.config.settings.retention_seconds
        removed = self.store.sweep(int(retention_seconds * 1000), self._clock())
        self.counters.purge_expired()
        logger.info(
            "Reputation sweep completed",
            event="admission.sweep.completed",
            removed=removed,
            cached_actors=len(self.store),
        )
        return removed
