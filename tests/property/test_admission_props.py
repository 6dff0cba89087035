"""Property tests for the admission pipeline.

Each example builds a fresh engine on its own fake clock; hypothesis does
not reset function-scoped fixtures between examples.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from admission_guard.config.schema import AdmissionSettings
from admission_guard.engine.engine import AdmissionEngine
from tests.utils.fake_clock import FakeClock

actors = st.text(min_size=7, max_size=15)
fast = settings(max_examples=50, deadline=None)


def _engine(**overrides) -> tuple[AdmissionEngine, FakeClock]:
    clock = FakeClock()
    return AdmissionEngine(AdmissionSettings(**overrides), clock=clock), clock


@fast
@given(actor=actors, attempts=st.integers(min_value=6, max_value=20))
def test_rate_limit_activates_past_threshold(actor, attempts):
    engine, _ = _engine()
    last = None
    for _ in range(attempts):
        last = engine.check_connection(actor)
    assert last is not None and not last.allowed
    assert any(
        marker in last.reason
        for marker in ("Too many connections", "Rate limit", "Low reputation")
    )


@fast
@given(actor=actors, limit=st.integers(min_value=1, max_value=20))
def test_threshold_boundary(actor, limit):
    engine, _ = _engine(max_connections_per_second=limit, max_connections_per_minute=100)
    assert all(engine.check_connection(actor).allowed for _ in range(limit))
    assert not engine.check_connection(actor).allowed


@fast
@given(actor=actors, failures=st.integers(min_value=1, max_value=5))
def test_backoff_grows_with_failures(actor, failures):
    engine, clock = _engine(max_auth_attempts_per_minute=0)
    for _ in range(failures):
        engine.register_outcome(actor, False)
    snap = engine.get_reputation(actor)
    s = engine.config.settings
    assert snap.failed_attempts == failures
    assert snap.is_blocked(clock())
    expected_min = s.base_block_duration_ms * s.backoff_multiplier ** (failures - 1)
    assert snap.blocked_until - clock() >= 0.8 * expected_min


@fast
@given(actor=actors, n=st.integers(min_value=1, max_value=30))
def test_successes_never_lower_score(actor, n):
    engine, _ = _engine()
    previous = engine.get_reputation(actor).score
    for _ in range(n):
        engine.register_outcome(actor, True)
        score = engine.get_reputation(actor).score
        assert score >= previous
        previous = score
    assert engine.get_reputation(actor).successful_logins == n


@fast
@given(actor=actors, n=st.integers(min_value=1, max_value=30))
def test_failures_never_raise_score(actor, n):
    engine, _ = _engine()
    previous = engine.get_reputation(actor).score
    for _ in range(n):
        engine.register_outcome(actor, False)
        score = engine.get_reputation(actor).score
        assert score <= previous
        previous = score
    assert engine.get_reputation(actor).failed_attempts == n


@fast
@given(actor=actors, attempts=st.integers(min_value=10, max_value=50))
def test_whitelist_bypasses_limits(actor, attempts):
    engine, _ = _engine()
    engine.whitelist(actor)
    for _ in range(attempts):
        decision = engine.check_connection(actor)
        assert decision.allowed and decision.reputation == 100


@fast
@given(
    actor=actors,
    history=st.lists(
        st.sampled_from(["connect", "success", "failure", "whitelist", "block"]),
        max_size=15,
    ),
)
def test_blacklist_is_absolute(actor, history):
    engine, _ = _engine()
    for step in history:
        if step == "connect":
            engine.check_connection(actor)
        elif step == "success":
            engine.register_outcome(actor, True)
        elif step == "failure":
            engine.register_outcome(actor, False)
        elif step == "whitelist":
            engine.whitelist(actor)
        else:
            engine.block(actor, 1_000, "manual")
    engine.blacklist(actor)
    decision = engine.check_connection(actor)
    assert not decision.allowed
    assert "blacklist" in decision.reason.lower()


@fast
@given(
    idle_seconds=st.integers(min_value=0, max_value=30 * 24 * 3600),
    override=st.sampled_from([None, "whitelist", "blacklist"]),
)
def test_sweep_safety(idle_seconds, override):
    retention = 7 * 24 * 3600
    engine, clock = _engine()
    engine.register_outcome("actor", True)
    if override == "whitelist":
        engine.whitelist("actor")
    elif override == "blacklist":
        engine.blacklist("actor")
    clock.advance_seconds(idle_seconds)

    engine.sweep(retention)
    survived = engine.peek_reputation("actor") is not None
    if override is not None or idle_seconds <= retention:
        assert survived
    else:
        assert not survived
