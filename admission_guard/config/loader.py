"""
Settings loader for the admission engine.

Load order: config file → environment variables → defaults. An environment
variable only fills a key the file leaves unset.
"""

from __future__ import annotations

import configparser
import os
from typing import Any

from pydantic import ValidationError

from admission_guard.exceptions import ConfigError, ConfigValidationError
from admission_guard.utils.logging_config import get_logger

from .defaults import ENV_PREFIX, SECTION_ADMISSION, default_values
from .schema import AdmissionSettings

logger = get_logger(__name__)


def env_var_name(key: str) -> str:
    return f"{ENV_PREFIX}_{key.upper()}"


def apply_env_overrides(config: configparser.ConfigParser) -> None:
    """Fill unset keys of the admission section from ADMISSION_<KEY> variables."""
    if not config.has_section(SECTION_ADMISSION):
        config.add_section(SECTION_ADMISSION)
    for key in default_values():
        env_var = env_var_name(key)
        value = os.environ.get(env_var)
        if value is None:
            continue
        if config.has_option(SECTION_ADMISSION, key):
            logger.debug(
                "Skipping environment override because config already defines the value",
                event="admission.config.env_override_skipped",
                key=key,
            )
            continue
        config.set(SECTION_ADMISSION, key, value)
        logger.debug(
            "Applied environment override for config key",
            event="admission.config.env_override_applied",
            key=key,
            env_var=env_var,
        )


def read_config(path: str | None) -> configparser.ConfigParser:
    config = configparser.ConfigParser(interpolation=None)
    if path:
        try:
            with open(path, encoding="utf-8") as fh:
                config.read_file(fh)
        except FileNotFoundError as exc:
            raise ConfigError(
                f"Configuration file not found: {path}", {"path": path}
            ) from exc
        except configparser.Error as exc:
            raise ConfigError(
                f"Malformed configuration file: {path}", {"path": path}
            ) from exc
    apply_env_overrides(config)
    return config


def validate_settings(values: dict[str, Any]) -> AdmissionSettings:
    """Build settings from raw values, mapping pydantic errors to ours."""
    try:
        return AdmissionSettings.model_validate(values)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or None
        raise ConfigValidationError(
            f"Invalid admission setting: {first.get('msg')}",
            field=field,
            value=first.get("input"),
        ) from exc


def load_settings(path: str | None = None) -> AdmissionSettings:
    """Load settings from an optional INI file plus environment overrides."""
    config = read_config(path)
    raw = dict(config.items(SECTION_ADMISSION))
    settings = validate_settings(raw)
    logger.info(
        "Admission settings loaded",
        event="admission.config.loaded",
        source=path or "defaults",
    )
    return settings
