"""Pydantic schema for admission engine settings.

Values are type-checked and coerced (INI and environment values arrive as
strings) but deliberately not range-checked: a zero or negative limit is a
valid, if aggressive, configuration that blocks everything.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .defaults import (
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_BASE_BLOCK_DURATION_MS,
    DEFAULT_MAX_AUTH_ATTEMPTS_PER_MINUTE,
    DEFAULT_MAX_COMMANDS_PER_SECOND,
    DEFAULT_MAX_CONNECTIONS_PER_MINUTE,
    DEFAULT_MAX_CONNECTIONS_PER_SECOND,
    DEFAULT_MIN_REPUTATION_FOR_CONNECTION,
    DEFAULT_RETENTION_SECONDS,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
)


class AdmissionSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    max_connections_per_second: int = Field(default=DEFAULT_MAX_CONNECTIONS_PER_SECOND)
    max_connections_per_minute: int = Field(default=DEFAULT_MAX_CONNECTIONS_PER_MINUTE)
    max_auth_attempts_per_minute: int = Field(
        default=DEFAULT_MAX_AUTH_ATTEMPTS_PER_MINUTE
    )
    max_commands_per_second: int = Field(default=DEFAULT_MAX_COMMANDS_PER_SECOND)
    min_reputation_for_connection: int = Field(
        default=DEFAULT_MIN_REPUTATION_FOR_CONNECTION
    )
    base_block_duration_ms: int = Field(
        default=DEFAULT_BASE_BLOCK_DURATION_MS,
        description="Block duration before backoff is applied",
    )
    backoff_multiplier: float = Field(default=DEFAULT_BACKOFF_MULTIPLIER)
    retention_seconds: float = Field(
        default=DEFAULT_RETENTION_SECONDS,
        description="Idle time after which a plain reputation record is swept",
    )
    sweep_interval_seconds: float = Field(default=DEFAULT_SWEEP_INTERVAL_SECONDS)
