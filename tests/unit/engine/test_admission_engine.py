"""
Decision pipeline tests for ``AdmissionEngine``.

All tests run on the fake clock from ``conftest.py`` so windows and block
expiry are driven explicitly.
"""

import threading

import pytest

from admission_guard.exceptions import InvalidActorError


def test_six_rapid_connections_trip_the_per_second_limit(engine, clock):
    start = clock()
    results = [engine.check_connection("1.2.3.4") for _ in range(6)]

    assert all(r.allowed for r in results[:5])
    last = results[5]
    assert not last.allowed
    assert last.reason == "Rate limit exceeded"
    assert last.blocked_until > start


def test_allowed_decision_carries_current_score(engine):
    engine.register_outcome("5.5.5.5", True)
    decision = engine.check_connection("5.5.5.5")
    assert decision.allowed
    assert decision.reputation == 52


def test_block_is_visible_to_the_next_call(engine, clock):
    for _ in range(6):
        engine.check_connection("ip")
    follow_up = engine.check_connection("ip")
    assert not follow_up.allowed
    assert follow_up.reason == "Too many connections per second"
    assert follow_up.blocked_until == clock() + 60_000
    assert engine.statistics().blocked_connections == 2


def test_block_lapses_on_read_after_expiry(engine, clock):
    for _ in range(6):
        engine.check_connection("ip")
    clock.advance(60_000)
    decision = engine.check_connection("ip")
    assert decision.allowed
    assert decision.reputation == 20
    assert engine.get_reputation("ip").block_reason is None


def test_per_minute_limit(make_engine):
    engine = make_engine(max_connections_per_second=100, max_connections_per_minute=3)
    assert all(engine.check_connection("ip").allowed for _ in range(3))
    fourth = engine.check_connection("ip")
    assert fourth.reason == "Rate limit exceeded"
    assert engine.get_reputation("ip").block_reason == "Too many connections per minute"


def test_per_minute_window_spans_second_windows(make_engine, clock):
    engine = make_engine(max_connections_per_second=2, max_connections_per_minute=4)
    for _ in range(2):
        assert engine.check_connection("ip").allowed
        assert engine.check_connection("ip").allowed
        clock.advance(1_000)
    assert not engine.check_connection("ip").allowed
    assert engine.get_reputation("ip").block_reason == "Too many connections per minute"


def test_low_reputation_blocks_with_backoff(make_engine, clock):
    engine = make_engine(max_auth_attempts_per_minute=100)
    for _ in range(7):
        engine.register_outcome("bad", False)
    assert engine.get_reputation("bad").score == 15

    decision = engine.check_connection("bad")
    assert not decision.allowed
    assert decision.reason == "Low reputation score"
    assert decision.blocked_until == clock() + 60_000 * 2**7


def test_auth_failure_burst_blocks(make_engine, clock):
    engine = make_engine(max_auth_attempts_per_minute=2)
    engine.register_outcome("brute", False)
    engine.register_outcome("brute", False)
    assert engine.get_reputation("brute").blocked_until == 0

    engine.register_outcome("brute", False)
    snap = engine.get_reputation("brute")
    assert snap.block_reason == "Too many failed auth attempts"
    assert snap.blocked_until - clock() == 60_000 * 2**3
    assert snap.score == 20
    assert engine.statistics().blocked_auth_attempts == 1

    decision = engine.check_connection("brute")
    assert decision.reason == "Too many failed auth attempts"


def test_success_updates_history(engine, clock):
    clock.advance(10)
    engine.register_outcome("good", True)
    snap = engine.get_reputation("good")
    assert snap.successful_logins == 1
    assert snap.last_activity == clock()


def test_command_limit_ignores_reputation(engine):
    assert all(engine.check_command_limit("steve", "/login") for _ in range(10))
    assert engine.check_command_limit("steve", "/login") is False
    assert engine.statistics().blocked_commands == 1
    assert engine.peek_reputation("steve") is None


def test_command_limit_resets_each_second(engine, clock):
    for _ in range(11):
        engine.check_command_limit("steve")
    clock.advance(1_000)
    assert engine.check_command_limit("steve")


def test_blacklist_denies_immediately(engine):
    engine.register_outcome("evil", True)
    engine.blacklist("evil")
    decision = engine.check_connection("evil")
    assert not decision.allowed
    assert "blacklist" in decision.reason.lower()
    assert decision.blocked_until == 0
    assert engine.statistics().blocked_connections == 1


def test_whitelist_bypasses_every_limit(engine):
    engine.whitelist("friend")
    decisions = [engine.check_connection("friend") for _ in range(50)]
    assert all(d.allowed and d.reputation == 100 for d in decisions)
    assert engine.statistics().blocked_connections == 0


def test_zero_limit_blocks_everything(make_engine):
    engine = make_engine(max_connections_per_second=0)
    assert not engine.check_connection("ip").allowed


def test_empty_actor_is_an_ordinary_key(engine):
    assert engine.check_connection("").allowed
    assert engine.get_reputation("").actor == ""


@pytest.mark.parametrize(
    "call",
    [
        lambda e: e.check_connection(None),
        lambda e: e.register_outcome(None, False),
        lambda e: e.check_command_limit(None),
        lambda e: e.get_reputation(None),
        lambda e: e.block(None, 1_000, "x"),
        lambda e: e.unblock(None),
        lambda e: e.whitelist(None),
    ],
)
def test_missing_actor_fails_fast(engine, call):
    with pytest.raises(InvalidActorError):
        call(engine)
    assert len(engine.store) == 0


def test_invalid_actor_is_a_value_error(engine):
    with pytest.raises(ValueError):
        engine.check_connection(1234)


def test_config_changes_apply_without_losing_state(engine):
    for _ in range(5):
        assert engine.check_connection("ip").allowed
    engine.register_outcome("ip", True)

    engine.config.update(max_connections_per_second=10)
    for _ in range(5):
        assert engine.check_connection("ip").allowed
    assert not engine.check_connection("ip").allowed
    assert engine.get_reputation("ip").successful_logins == 1


def test_concurrent_checks_share_one_window(make_engine):
    engine = make_engine(max_connections_per_second=50, max_connections_per_minute=1000)
    workers = 120
    barrier = threading.Barrier(workers)
    decisions = []
    lock = threading.Lock()

    def connect():
        barrier.wait()
        d = engine.check_connection("10.0.0.9")
        with lock:
            decisions.append(d)

    threads = [threading.Thread(target=connect) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(d.allowed for d in decisions) == 50
    assert engine.statistics().blocked_connections == workers - 50


def test_sweep_evicts_idle_plain_records(engine, clock):
    engine.register_outcome("old", False)
    engine.whitelist("vip")
    engine.blacklist("banned")
    clock.advance_seconds(8 * 24 * 3600)
    engine.register_outcome("fresh", True)

    assert engine.sweep() == 1
    assert engine.peek_reputation("old") is None
    for actor in ("vip", "banned", "fresh"):
        assert engine.peek_reputation(actor) is not None
    assert engine.sweep() == 0


def test_sweep_with_explicit_retention(engine, clock):
    engine.register_outcome("a", True)
    clock.advance_seconds(30)
    assert engine.sweep(retention_seconds=60) == 0
    clock.advance_seconds(31)
    assert engine.sweep(retention_seconds=60) == 1


def test_statistics_snapshot(engine, clock):
    engine.block("x", 1_000, "manual")
    engine.block("y", 5_000, "manual")
    engine.get_reputation("z")
    stats = engine.statistics()
    assert stats.cached_actor_count == 3
    assert stats.active_block_count == 2

    clock.advance(2_000)
    assert engine.statistics().active_block_count == 1
    assert engine.statistics().to_dict()["cached_actor_count"] == 3


def test_block_emits_structured_event(engine, caplog):
    with caplog.at_level("WARNING"):
        for _ in range(6):
            engine.check_connection("noisy")
    events = [getattr(r, "event", None) for r in caplog.records]
    assert "admission.block.applied" in events


def test_huge_backoff_multiplier_blocks_for_one_day(make_engine, clock):
    engine = make_engine(backoff_multiplier=1e40, max_auth_attempts_per_minute=100)
    for _ in range(10):
        engine.register_outcome("x", False)

    decision = engine.check_connection("x")

    assert not decision.allowed
    assert decision.reason == "Low reputation score"
    assert decision.blocked_until == clock() + 24 * 60 * 60 * 1000
    assert engine.statistics().blocked_connections == 1
