# admission_guard/exceptions.py
"""
Custom exceptions for the admission engine.
"""

from typing import Any


class AdmissionGuardError(Exception):
    """Base exception for all admission engine errors."""

    error_code = "admission_error"

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


# Config exceptions
class ConfigError(AdmissionGuardError):
    """Base exception for configuration-related errors."""

    error_code = "config_error"


class ConfigValidationError(ConfigError):
    """Raised when configuration validation fails."""

    error_code = "config_validation_error"

    def __init__(
        self, message: str, field: str | None = None, value: Any = None, **kwargs: Any
    ):
        details = {"field": field, "value": value, **kwargs}
        super().__init__(message, details)
        self.field = field
        self.value = value


# Caller contract violations
class InvalidActorError(AdmissionGuardError, ValueError):
    """Raised when an operation receives a missing or non-string actor.

    Subclasses ValueError so callers treating it as a plain argument error
    keep working.
    """

    error_code = "invalid_actor"


# Persistence
class PersistenceError(AdmissionGuardError):
    """Raised when a reputation repository fails to load a record."""

    error_code = "persistence_error"
