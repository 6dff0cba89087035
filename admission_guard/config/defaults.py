"""Centralized default values for the admission engine."""

from __future__ import annotations

from typing import Any

SECTION_ADMISSION = "admission"  # INI section holding engine settings
ENV_PREFIX = "ADMISSION"  # environment overrides: ADMISSION_<KEY>

# Rate limits (hits per fixed window)
DEFAULT_MAX_CONNECTIONS_PER_SECOND = 5
DEFAULT_MAX_CONNECTIONS_PER_MINUTE = 20
DEFAULT_MAX_AUTH_ATTEMPTS_PER_MINUTE = 5
DEFAULT_MAX_COMMANDS_PER_SECOND = 10

# Reputation / blocking
DEFAULT_MIN_REPUTATION_FOR_CONNECTION = 20
DEFAULT_BASE_BLOCK_DURATION_MS = 60_000
DEFAULT_BACKOFF_MULTIPLIER = 2.0

# Maintenance
DEFAULT_RETENTION_SECONDS = 7 * 24 * 3600  # idle records older than this are swept
DEFAULT_SWEEP_INTERVAL_SECONDS = 3600
DEFAULT_STORE_SHARDS = 64


def default_values() -> dict[str, Any]:
    """Return the engine defaults keyed by setting name."""
    return {
        "max_connections_per_second": DEFAULT_MAX_CONNECTIONS_PER_SECOND,
        "max_connections_per_minute": DEFAULT_MAX_CONNECTIONS_PER_MINUTE,
        "max_auth_attempts_per_minute": DEFAULT_MAX_AUTH_ATTEMPTS_PER_MINUTE,
        "max_commands_per_second": DEFAULT_MAX_COMMANDS_PER_SECOND,
        "min_reputation_for_connection": DEFAULT_MIN_REPUTATION_FOR_CONNECTION,
        "base_block_duration_ms": DEFAULT_BASE_BLOCK_DURATION_MS,
        "backoff_multiplier": DEFAULT_BACKOFF_MULTIPLIER,
        "retention_seconds": DEFAULT_RETENTION_SECONDS,
        "sweep_interval_seconds": DEFAULT_SWEEP_INTERVAL_SECONDS,
    }
