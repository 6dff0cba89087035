"""
Shared fixtures: a manually driven clock and engines bound to it.
"""

from __future__ import annotations

import pytest

from admission_guard.config.schema import AdmissionSettings
from admission_guard.engine.engine import AdmissionEngine
from tests.utils.fake_clock import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_engine(clock):
    """Build an engine on the fake clock, overriding any settings given."""

    def _make(**overrides) -> AdmissionEngine:
        return AdmissionEngine(AdmissionSettings(**overrides), clock=clock)

    return _make


@pytest.fixture
def engine(make_engine) -> AdmissionEngine:
    return make_engine()
