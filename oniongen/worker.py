"""
Search worker: generate -> derive -> test, until told to stop.

Each worker runs in its own process and owns nothing but its counters.
Everything it learns is sent to the coordinator as an immutable
WorkerEvent on the shared queue.
"""
from dataclasses import dataclass
from typing import Optional

from .codec import derive_onion_address
from .keys import expand_secret_key, generate_random_keypair
from .matcher import PatternMatcher
from .records import MatchRecord

MATCH = "match"
STATS = "stats"
ERROR = "error"

STATS_EVERY = 1000


@dataclass(frozen=True)
class WorkerEvent:
    kind: str
    worker_id: int
    attempts: int = 0
    record: Optional[MatchRecord] = None
    error: Optional[str] = None


def run_search_loop(worker_id, matcher, events, stop_event, stats_every=STATS_EVERY):
    """
    The worker state machine. Runs while stop_event is clear.

    `attempts` is the raw running counter driving the stats cadence;
    `pending` holds attempts not yet reported and is zeroed by every
    event that carries it, so each candidate is counted exactly once.
    Returns the raw attempt count when stopped.
    """
    attempts = 0
    pending = 0

    while not stop_event.is_set():
        try:
            keypair = generate_random_keypair()
            onion_address = derive_onion_address(keypair.public_key)
            attempts += 1
            pending += 1

            if matcher.test(onion_address):
                record = MatchRecord.from_keys(
                    onion_address,
                    keypair.public_key,
                    keypair.seed,
                    expand_secret_key(keypair.seed),
                )
                events.put(WorkerEvent(MATCH, worker_id, pending, record=record))
                pending = 0

            if attempts % stats_every == 0 and pending:
                events.put(WorkerEvent(STATS, worker_id, pending))
                pending = 0
        except Exception as e:
            events.put(WorkerEvent(ERROR, worker_id, error=str(e) or e.__class__.__name__))

    return attempts


def search_worker(worker_id, pattern, events, stop_event, stats_every=STATS_EVERY):
    """Process entry point."""
    # nobody drains the queue after a stop, so never block exit on flushing it
    events.cancel_join_thread()
    matcher = PatternMatcher(pattern)
    try:
        run_search_loop(worker_id, matcher, events, stop_event, stats_every)
    except KeyboardInterrupt:
        # Ctrl+C reaches the whole process group; the coordinator handles it
        pass
