"""Deduplicating work queue with per-key exclusivity.

A key is held in at most one of three places at a time:

- queued: waiting to be handed out by get();
- processing: handed to a worker and not yet marked done();
- dirty while processing: added again during processing, re-queued on done().

This guarantees that no two workers ever hold the same key, while a change
that arrives mid-pass is never lost.
"""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from collections import deque
from typing import Callable

from . import metrics
from .utils.rate_limit import exponential_backoff


class WorkQueue:
    """Thread-safe queue of object keys with delayed and rate limited re-adds."""

    def __init__(
        self,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the queue.

        Args:
            base_delay: Delay of the first rate limited re-add in seconds
            max_delay: Upper bound for rate limited re-adds in seconds
            clock: Monotonic clock, replaceable for tests
        """
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._clock = clock
        self._cond = threading.Condition()
        self._queue: deque[str] = deque()
        self._dirty: set[str] = set()
        self._processing: set[str] = set()
        self._failures: dict[str, int] = {}
        self._waiting: list[tuple[float, int, str]] = []
        self._waiting_ready_at: dict[str, float] = {}
        self._seq = itertools.count()
        self._shutting_down = False

    def add(self, key: str) -> None:
        """Mark key as needing a pass."""
        with self._cond:
            self._add_locked(key)

    def _add_locked(self, key: str) -> None:
        if self._shutting_down or key in self._dirty:
            return
        self._dirty.add(key)
        if key in self._processing:
            # Re-queued by done()
            return
        self._queue.append(key)
        metrics.workqueue_depth.set(len(self._queue))
        self._cond.notify()

    def add_after(self, key: str, delay: float) -> None:
        """Add key once delay seconds have passed.

        If the key is already waiting, the earlier of the two times wins.
        """
        if delay <= 0:
            self.add(key)
            return
        with self._cond:
            if self._shutting_down:
                return
            ready_at = self._clock() + delay
            existing = self._waiting_ready_at.get(key)
            if existing is not None and existing <= ready_at:
                return
            self._waiting_ready_at[key] = ready_at
            heapq.heappush(self._waiting, (ready_at, next(self._seq), key))
            self._cond.notify()

    def add_rate_limited(self, key: str) -> float:
        """Add key after an exponential backoff based on its failure count.

        Returns:
            The delay applied, in seconds
        """
        with self._cond:
            failures = self._failures.get(key, 0)
            self._failures[key] = failures + 1
        delay = exponential_backoff(failures, self.base_delay, self.max_delay)
        metrics.workqueue_retries_total.inc()
        self.add_after(key, delay)
        return delay

    def forget(self, key: str) -> None:
        """Reset the failure count of key."""
        with self._cond:
            self._failures.pop(key, None)

    def num_requeues(self, key: str) -> int:
        with self._cond:
            return self._failures.get(key, 0)

    def _promote_waiting_locked(self) -> float | None:
        """Move due delayed keys to the queue, return seconds until the next one."""
        now = self._clock()
        while self._waiting:
            ready_at, _, key = self._waiting[0]
            if self._waiting_ready_at.get(key) != ready_at:
                # Superseded by an earlier add_after for the same key
                heapq.heappop(self._waiting)
                continue
            if ready_at > now:
                return ready_at - now
            heapq.heappop(self._waiting)
            del self._waiting_ready_at[key]
            self._add_locked(key)
        return None

    def get(self, timeout: float | None = None) -> str | None:
        """Take the next key, blocking until one is available.

        The caller owns the key until it calls done(key).

        Args:
            timeout: Give up after this many seconds, None waits forever

        Returns:
            The key, or None on timeout or shutdown
        """
        deadline = None if timeout is None else self._clock() + timeout
        with self._cond:
            while True:
                next_due = self._promote_waiting_locked()
                if self._queue:
                    key = self._queue.popleft()
                    self._dirty.discard(key)
                    self._processing.add(key)
                    metrics.workqueue_depth.set(len(self._queue))
                    return key
                if self._shutting_down:
                    return None

                wait_for = next_due
                if deadline is not None:
                    remaining = deadline - self._clock()
                    if remaining <= 0:
                        return None
                    wait_for = remaining if wait_for is None else min(wait_for, remaining)
                self._cond.wait(wait_for)

    def done(self, key: str) -> None:
        """Release key; if it was added during processing it is queued again."""
        with self._cond:
            self._processing.discard(key)
            if key in self._dirty:
                self._queue.append(key)
                metrics.workqueue_depth.set(len(self._queue))
                self._cond.notify()

    def is_processing(self, key: str) -> bool:
        with self._cond:
            return key in self._processing

    def shut_down(self) -> None:
        """Stop handing out keys and wake every waiting worker."""
        with self._cond:
            self._shutting_down = True
            self._cond.notify_all()

    @property
    def shutting_down(self) -> bool:
        with self._cond:
            return self._shutting_down

    def __len__(self) -> int:
        with self._cond:
            return len(self._queue)
