"""
Search coordinator.

Owns the worker processes and is the only place SearchStats changes:
every worker message is folded in here, one at a time, from a single
queue. Workers never see the totals.
"""
import logging
import multiprocessing
import os
import queue
import sys
import time
from dataclasses import dataclass, field
from typing import List

from .errors import SearchError, ValidationError
from .matcher import PatternMatcher
from .records import save_match_record
from .worker import ERROR, MATCH, STATS, STATS_EVERY, search_worker

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 1.0
STOP_GRACE = 2.0


@dataclass(frozen=True)
class SearchConfig:
    pattern: str
    target_count: int
    worker_count: int = field(default_factory=multiprocessing.cpu_count)
    output_dir: str = "."
    stats_every: int = STATS_EVERY


@dataclass
class SearchStats:
    worker_attempts: List[int]
    total_attempts: int = 0
    found_count: int = 0
    start_time: float = field(default_factory=time.time)

    @property
    def elapsed(self):
        return time.time() - self.start_time

    @property
    def rate(self):
        elapsed = self.elapsed
        return self.total_attempts / elapsed if elapsed > 0 else 0


def format_duration(seconds):
    seconds = int(seconds)
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


class SearchCoordinator:

    def __init__(self, config):
        if config.target_count < 1:
            raise ValidationError("number must be a positive integer")
        if config.worker_count < 1:
            raise ValidationError("worker count must be a positive integer")
        if config.stats_every < 1:
            raise ValidationError("stats interval must be a positive integer")

        self.config = config
        # compiled once here so a bad pattern fails before any process starts
        self.matcher = PatternMatcher(config.pattern)
        self.stats = SearchStats(worker_attempts=[0] * config.worker_count)
        self.records = []
        self.saved_files = []

        self._ctx = multiprocessing.get_context("spawn")
        self._events = None
        self._stop_event = None
        self._workers = {}
        self._stopped = False
        self._last_progress = 0.0

    @property
    def done(self):
        return self.stats.found_count >= self.config.target_count

    # --- Event folding ---

    def handle_event(self, event):
        if event.kind == MATCH:
            if self.done:
                # overshoot from a worker that had not seen the stop yet
                logger.debug("Discarding late match %s", event.record.onion_address)
                return
            self._count(event)
            self.stats.found_count += 1
            self.records.append(event.record)
            self._persist_and_report(event)
        elif event.kind == STATS:
            self._count(event)
        elif event.kind == ERROR:
            print(f"\nWorker #{event.worker_id + 1} error: {event.error}", file=sys.stderr)
        else:
            logger.warning("Unknown worker event %r", event.kind)

    def _count(self, event):
        self.stats.total_attempts += event.attempts
        self.stats.worker_attempts[event.worker_id] += event.attempts

    def _persist_and_report(self, event):
        record = event.record
        saved_to = None
        try:
            saved_to = save_match_record(record, self.config.output_dir)
            self.saved_files.append(saved_to)
        except OSError as e:
            logger.debug("Persisting %s failed", record.onion_address, exc_info=True)
            print(f"\nFailed to save {record.onion_address}.json: {e}", file=sys.stderr)

        stats = self.stats
        print("")
        print(f"Match #{stats.found_count} found after {event.attempts:,} attempts")
        print(f"Onion Address: {record.onion_address}.onion")
        print(f"Public Key: {record.public_key}")
        print(f"Seed: {record.seed}")
        print(f"Expanded Secret Key: {record.expanded_secret_key}")
        if saved_to:
            print(f"Saved to: {saved_to}")
        print(f"Time: {format_duration(stats.elapsed)} | "
              f"Found: {stats.found_count}/{self.config.target_count} | "
              f"Attempts: {stats.total_attempts:,} | Rate: {stats.rate:,.0f}/s", flush=True)

    # --- Output ---

    def print_header(self):
        print("Tor v3 .onion Address Vanity Generator")
        print(f"Pattern: {self.matcher.pattern}")
        if self.matcher.was_anchored:
            print(f"(Original: {self.matcher.original} -> auto-prefixed with '^')")
        print(f"Target: {self.config.target_count} matching address(es)")
        print(f"Workers: {self.config.worker_count} CPU core(s)", flush=True)

    def print_progress(self):
        stats = self.stats
        sys.stdout.write(
            f"\rProgress: {stats.found_count}/{self.config.target_count} found | "
            f"Attempts: {stats.total_attempts:,} | Rate: {stats.rate:,.0f}/s | "
            f"Time: {format_duration(stats.elapsed)}"
        )
        sys.stdout.flush()
        self._last_progress = time.time()

    def print_summary(self):
        stats = self.stats
        print("")
        print("Generation Complete!")
        print(f"Addresses found: {stats.found_count}/{self.config.target_count}")
        print(f"Total attempts: {stats.total_attempts:,}")
        print(f"Total time: {format_duration(stats.elapsed)}")
        print(f"Average rate: {stats.rate:,.2f} attempts/sec", flush=True)

    # --- Worker lifecycle ---

    def start(self):
        os.makedirs(self.config.output_dir, exist_ok=True)
        self._events = self._ctx.Queue()
        self._stop_event = self._ctx.Event()
        self.stats.start_time = time.time()
        self._last_progress = self.stats.start_time

        for worker_id in range(self.config.worker_count):
            proc = self._ctx.Process(
                target=search_worker,
                args=(worker_id, self.matcher.pattern, self._events,
                      self._stop_event, self.config.stats_every),
                daemon=True,
            )
            proc.start()
            self._workers[worker_id] = proc
            logger.debug("Started worker #%d (pid %s)", worker_id + 1, proc.pid)

    def stop(self):
        """Stops every worker. Safe to call more than once."""
        if self._stopped:
            return
        self._stopped = True
        if self._stop_event is not None:
            self._stop_event.set()

        deadline = time.time() + STOP_GRACE
        for proc in self._workers.values():
            proc.join(timeout=max(0.0, deadline - time.time()))
        for worker_id, proc in self._workers.items():
            if proc.is_alive():
                logger.debug("Terminating worker #%d", worker_id + 1)
                proc.terminate()
                proc.join()

        if self._events is not None:
            self._events.close()
        logger.debug("All workers stopped")

    def _check_workers(self):
        for worker_id, proc in list(self._workers.items()):
            if proc.is_alive():
                continue
            print(f"\nWorker #{worker_id + 1} exited unexpectedly (code {proc.exitcode})",
                  file=sys.stderr)
            del self._workers[worker_id]

        if not self._workers:
            # the last worker may have reported before dying
            self._drain()
            if not self.done:
                raise SearchError("All workers exited before the target was reached")

    def _drain(self):
        while not self.done:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                return
            self.handle_event(event)

    # --- Main loop ---

    def _next_event(self):
        timeout = PROGRESS_INTERVAL - (time.time() - self._last_progress)
        try:
            return self._events.get(timeout=max(0.01, timeout))
        except queue.Empty:
            return None

    def run(self):
        """Searches until target_count matches are saved or Ctrl+C. Returns the stats."""
        self.print_header()
        try:
            self.start()
            while not self.done:
                event = self._next_event()
                if event is not None:
                    self.handle_event(event)
                if self.done:
                    break
                if time.time() - self._last_progress >= PROGRESS_INTERVAL:
                    self._check_workers()
                    self.print_progress()

            self.stop()
            self.print_summary()
        except KeyboardInterrupt:
            print("\n\nInterrupted by user")
            self.print_summary()
            self.stop()
        finally:
            self.stop()
        return self.stats
