"""Reputation data model and admission decision value objects."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

DEFAULT_SCORE = 50
MIN_SCORE = 0
MAX_SCORE = 100
BLOCKED_SCORE_CAP = 20

SUCCESS_BONUS = 2
SUCCESS_BONUS_CAP = 30
FAILURE_PENALTY = 5
FAILURE_PENALTY_CAP = 40
ORIGIN_HINT_PENALTY = 20

REASON_ALLOWED = "Connection allowed"
REASON_RATE_LIMITED = "Rate limit exceeded"


@dataclass(frozen=True)
class ReputationSnapshot:
    """Read-only copy of a ``ReputationRecord`` handed to callers."""

    actor: str
    score: int
    successful_logins: int
    failed_attempts: int
    last_activity: int
    whitelisted: bool
    blacklisted: bool
    blocked_until: int
    block_reason: str | None
    origin_hint: bool
    country: str | None
    block_count: int

    def is_blocked(self, now: int) -> bool:
        return self.blocked_until != 0 and now < self.blocked_until

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ReputationRecord:
    """Trust and block state for one actor.

    Instances are owned by ``ReputationStore`` and mutated only while the
    owning shard lock is held. Timestamps are epoch milliseconds, ``0`` when
    unset.
    """

    __slots__ = (
        "actor",
        "score",
        "successful_logins",
        "failed_attempts",
        "last_activity",
        "whitelisted",
        "blacklisted",
        "blocked_until",
        "block_reason",
        "origin_hint",
        "country",
        "block_count",
    )

    def __init__(self, actor: str, *, created_at: int = 0):
        self.actor = actor
        self.score = DEFAULT_SCORE
        self.successful_logins = 0
        self.failed_attempts = 0
        self.last_activity = created_at
        self.whitelisted = False
        self.blacklisted = False
        self.blocked_until = 0
        self.block_reason: str | None = None
        self.origin_hint = False
        self.country: str | None = None
        self.block_count = 0

    def __repr__(self) -> str:
        return (
            f"ReputationRecord(actor={self.actor!r}, score={self.score}, "
            f"blocked_until={self.blocked_until})"
        )

    # --- outcomes ---
    def record_success(self, now: int) -> None:
        self.successful_logins += 1
        # each success forgives one earlier failure
        self.failed_attempts = max(0, self.failed_attempts - 1)
        self.last_activity = now
        self.recompute()

    def record_failure(self, now: int) -> None:
        self.failed_attempts += 1
        self.last_activity = now
        self.recompute()

    def recompute(self) -> None:
        if self.whitelisted:
            self.score = MAX_SCORE
            return
        if self.blacklisted:
            self.score = MIN_SCORE
            return
        score = DEFAULT_SCORE
        score += min(SUCCESS_BONUS_CAP, self.successful_logins * SUCCESS_BONUS)
        score -= min(FAILURE_PENALTY_CAP, self.failed_attempts * FAILURE_PENALTY)
        if self.origin_hint:
            score -= ORIGIN_HINT_PENALTY
        self.score = max(MIN_SCORE, min(MAX_SCORE, score))

    # --- blocking ---
    def block(self, duration_ms: int, reason: str, now: int) -> None:
        self.blocked_until = now + duration_ms
        self.block_reason = reason
        self.block_count += 1
        if not self.whitelisted:
            self.score = min(self.score, BLOCKED_SCORE_CAP)

    def unblock(self) -> None:
        self.blocked_until = 0
        self.block_reason = None

    def is_blocked(self, now: int) -> bool:
        """Report an active block, clearing it first if it has expired."""
        if self.blocked_until == 0:
            return False
        if now >= self.blocked_until:
            self.unblock()
            return False
        return True

    # --- overrides ---
    def set_whitelisted(self, whitelisted: bool) -> None:
        self.whitelisted = whitelisted
        if whitelisted:
            self.score = MAX_SCORE
            self.blacklisted = False

    def set_blacklisted(self, blacklisted: bool) -> None:
        self.blacklisted = blacklisted
        if blacklisted:
            self.score = MIN_SCORE
            self.whitelisted = False

    def set_origin_hint(self, origin_hint: bool) -> None:
        self.origin_hint = origin_hint
        self.recompute()

    # --- copies ---
    def snapshot(self) -> ReputationSnapshot:
        return ReputationSnapshot(
            actor=self.actor,
            score=self.score,
            successful_logins=self.successful_logins,
            failed_attempts=self.failed_attempts,
            last_activity=self.last_activity,
            whitelisted=self.whitelisted,
            blacklisted=self.blacklisted,
            blocked_until=self.blocked_until,
            block_reason=self.block_reason,
            origin_hint=self.origin_hint,
            country=self.country,
            block_count=self.block_count,
        )

    @classmethod
    def from_snapshot(cls, snap: ReputationSnapshot) -> ReputationRecord:
        record = cls(snap.actor)
        for name in cls.__slots__:
            setattr(record, name, getattr(snap, name))
        return record


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of ``AdmissionEngine.check_connection``.

    ``blocked_until`` is epoch milliseconds; ``0`` means no expiry applies
    (allowed decisions, or a blacklist block that never lapses).
    """

    allowed: bool
    reason: str
    reputation: int
    blocked_until: int = 0

    @classmethod
    def allow(cls, reputation: int) -> AdmissionDecision:
        return cls(True, REASON_ALLOWED, reputation, 0)

    @classmethod
    def blocked(cls, reason: str, blocked_until: int) -> AdmissionDecision:
        return cls(False, reason, 0, blocked_until)

    @classmethod
    def rate_limited(cls, blocked_until: int) -> AdmissionDecision:
        return cls(False, REASON_RATE_LIMITED, 0, blocked_until)

    @property
    def is_blocked(self) -> bool:
        return not self.allowed

    def remaining_ms(self, now: int) -> int:
        """Milliseconds until the block lapses; 0 when unset or past."""
        if self.blocked_until == 0:
            return 0
        return max(0, self.blocked_until - now)
