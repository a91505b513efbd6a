import pytest

from oniongen import worker
from oniongen.codec import derive_onion_address
from oniongen.errors import KeyGenerationError
from oniongen.keys import KeyPair, derive_public_key_from_seed, expand_secret_key
from oniongen.matcher import PatternMatcher
from oniongen.worker import ERROR, MATCH, STATS, run_search_loop

SEED = bytes(range(32))
KEYPAIR = KeyPair(public_key=derive_public_key_from_seed(SEED), seed=SEED)


class StopAfter:
    """Stop event that reports set after n checks."""

    def __init__(self, n):
        self.remaining = n

    def is_set(self):
        self.remaining -= 1
        return self.remaining < 0


class Collector:

    def __init__(self):
        self.events = []

    def put(self, event):
        self.events.append(event)


class EveryNth:

    def __init__(self, *hits):
        self.hits = set(hits)
        self.calls = 0

    def test(self, address):
        self.calls += 1
        return self.calls in self.hits


@pytest.fixture
def fixed_keys(monkeypatch):
    monkeypatch.setattr(worker, "generate_random_keypair", lambda: KEYPAIR)


def test_stops_when_signalled():
    events = Collector()
    attempts = run_search_loop(0, PatternMatcher("9"), events, StopAfter(0))
    assert attempts == 0
    assert events.events == []


def test_stats_cadence():
    events = Collector()
    # "9" is outside the base32 alphabet, nothing ever matches
    attempts = run_search_loop(3, PatternMatcher("9"), events, StopAfter(25), stats_every=10)
    assert attempts == 25
    assert [e.kind for e in events.events] == [STATS, STATS]
    assert [e.attempts for e in events.events] == [10, 10]
    assert all(e.worker_id == 3 for e in events.events)


def test_match_event_carries_record(fixed_keys):
    events = Collector()
    run_search_loop(1, PatternMatcher("."), events, StopAfter(1))
    (event,) = events.events
    assert event.kind == MATCH
    assert event.attempts == 1
    record = event.record
    assert record.onion_address == derive_onion_address(KEYPAIR.public_key)
    assert record.public_key == KEYPAIR.public_key.hex()
    assert record.seed == SEED.hex()
    assert record.expanded_secret_key == expand_secret_key(SEED).hex()


def test_attempts_counted_exactly_once(fixed_keys):
    events = Collector()
    attempts = run_search_loop(0, EveryNth(3, 4, 9), events, StopAfter(10), stats_every=4)

    assert [(e.kind, e.attempts) for e in events.events] == [
        (MATCH, 3), (MATCH, 1), (STATS, 4), (MATCH, 1),
    ]
    # attempt 10 has not been reported yet
    assert attempts == 10
    assert sum(e.attempts for e in events.events) == 9


def test_generation_errors_do_not_stop_the_loop(monkeypatch):
    calls = {"n": 0}

    def flaky():
        calls["n"] += 1
        if calls["n"] % 2:
            raise KeyGenerationError("primitive failed")
        return KEYPAIR

    monkeypatch.setattr(worker, "generate_random_keypair", flaky)
    events = Collector()
    attempts = run_search_loop(2, PatternMatcher("9"), events, StopAfter(6), stats_every=3)

    errors = [e for e in events.events if e.kind == ERROR]
    assert len(errors) == 3
    assert errors[0].error == "primitive failed"
    assert errors[0].worker_id == 2
    assert attempts == 3
    assert [(e.kind, e.attempts) for e in events.events if e.kind == STATS] == [(STATS, 3)]
