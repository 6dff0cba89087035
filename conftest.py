"""
Early pytest configuration plugin.

Loaded before test modules are imported; keeps the engine's structured log
output quiet during test runs.
"""

import logging


def pytest_configure(config):
    """Route structured logs to stderr at WARNING for the whole session."""
    from admission_guard.utils.logging_config import configure_logging

    configure_logging(level=logging.WARNING)
