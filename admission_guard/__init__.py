"""Reputation-based admission control for connections, logins and commands."""

from admission_guard.config.config import AdmissionConfig
from admission_guard.config.schema import AdmissionSettings
from admission_guard.engine.async_engine import AsyncAdmissionEngine
from admission_guard.engine.engine import AdmissionEngine
from admission_guard.engine.stats import StatisticsSnapshot
from admission_guard.exceptions import (
    AdmissionGuardError,
    ConfigError,
    ConfigValidationError,
    InvalidActorError,
    PersistenceError,
)
from admission_guard.reputation.models import (
    AdmissionDecision,
    ReputationRecord,
    ReputationSnapshot,
)
from admission_guard.reputation.store import (
    InMemoryReputationRepository,
    ReputationRepository,
    ReputationStore,
)

__version__ = "0.1.0"

__all__ = [
    "AdmissionConfig",
    "AdmissionDecision",
    "AdmissionEngine",
    "AdmissionGuardError",
    "AdmissionSettings",
    "AsyncAdmissionEngine",
    "ConfigError",
    "ConfigValidationError",
    "InMemoryReputationRepository",
    "InvalidActorError",
    "PersistenceError",
    "ReputationRecord",
    "ReputationRepository",
    "ReputationSnapshot",
    "ReputationStore",
    "StatisticsSnapshot",
]
