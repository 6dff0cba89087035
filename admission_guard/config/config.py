"""
Runtime configuration holder for the admission engine.

The engine reads ``AdmissionConfig.settings`` once per operation, so values
swapped in by ``update()`` or ``reload()`` take effect on the next call
without rebuilding the engine or losing accumulated reputation and counters.
"""

from __future__ import annotations

import threading
from typing import Any

from admission_guard.utils.logging_config import get_logger

from .loader import load_settings, validate_settings
from .schema import AdmissionSettings

logger = get_logger(__name__)


class AdmissionConfig:
    """Thread-safe holder of the current ``AdmissionSettings`` snapshot."""

    def __init__(
        self,
        settings: AdmissionSettings | None = None,
        *,
        config_file: str | None = None,
    ):
        self.config_file = config_file
        self._lock = threading.RLock()
        if settings is None:
            settings = load_settings(config_file) if config_file else AdmissionSettings()
        self._settings = settings

    @classmethod
    def from_file(cls, config_file: str) -> AdmissionConfig:
        return cls(config_file=config_file)

    @property
    def settings(self) -> AdmissionSettings:
        with self._lock:
            return self._settings

    def update(self, **changes: Any) -> AdmissionSettings:
        """Validate ``changes`` on top of the current values and swap them in."""
        with self._lock:
            merged = {**self._settings.model_dump(), **changes}
            new_settings = validate_settings(merged)
            self._settings = new_settings
        logger.info(
            "Admission settings updated",
            event="admission.config.updated",
            changed=sorted(changes),
        )
        return new_settings

    def reload(self) -> AdmissionSettings:
        """Re-read the configuration file (or defaults) and swap it in."""
        new_settings = load_settings(self.config_file)
        with self._lock:
            self._settings = new_settings
        logger.info(
            "Admission settings reloaded",
            event="admission.config.reloaded",
            source=self.config_file or "defaults",
        )
        return new_settings

    def as_dict(self) -> dict[str, Any]:
        return self.settings.model_dump()
