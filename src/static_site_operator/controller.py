"""Worker pool draining the work queue into the reconciler."""

from __future__ import annotations

import contextvars
import logging
import threading
from typing import Protocol

from .logging import log_site_event
from .reconciler import ReconcileResult, split_key
from .workqueue import WorkQueue

logger = logging.getLogger(__name__)

# How often idle workers wake up to notice a shutdown
_POLL_INTERVAL_SECONDS = 1.0


class Reconciles(Protocol):
    def reconcile(self, key: str) -> ReconcileResult:
        ...


def make_key(namespace: str | None, name: str) -> str:
    """Work queue key of a namespaced object."""
    return f"{namespace or 'default'}/{name}"


class Controller:
    """Runs reconcile passes on a bounded pool of worker threads.

    Keys for different StaticSites are processed in parallel; the work queue
    guarantees a single key is never handed to two workers at once.
    """

    def __init__(
        self,
        reconciler: Reconciles,
        queue: WorkQueue,
        workers: int = 4,
        resync_interval: float | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            reconciler: Runs one pass for a key
            queue: Work queue shared with the event handlers
            workers: Number of worker threads
            resync_interval: Seconds between full resyncs of every tracked
                key, None disables periodic resync
        """
        self.reconciler = reconciler
        self.queue = queue
        self.workers = workers
        self.resync_interval = resync_interval
        self.ready = threading.Event()
        self._threads: list[threading.Thread] = []
        self._in_flight: set[str] = set()
        self._in_flight_lock = threading.Lock()
        self._known: set[str] = set()
        self._known_lock = threading.Lock()
        self._stopping = threading.Event()

    def enqueue(self, key: str) -> None:
        """Request a reconcile pass for key."""
        self.queue.add(key)

    def track(self, key: str) -> None:
        """Include key in periodic resyncs."""
        with self._known_lock:
            self._known.add(key)

    def untrack(self, key: str) -> None:
        with self._known_lock:
            self._known.discard(key)

    def resync(self) -> int:
        """Enqueue every tracked key, return how many were enqueued."""
        with self._known_lock:
            keys = sorted(self._known)
        for key in keys:
            self.queue.add(key)
        return len(keys)

    def start(self) -> None:
        """Start the worker threads.

        Each worker runs in a copy of the caller's context, so context
        variables set by the operator framework (event posting) stay visible.
        """
        for index in range(self.workers):
            ctx = contextvars.copy_context()
            thread = threading.Thread(
                target=ctx.run,
                args=(self._worker,),
                name=f"reconcile-worker-{index}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)
        if self.resync_interval:
            thread = threading.Thread(target=self._resync_loop, name="resync", daemon=True)
            thread.start()
            self._threads.append(thread)
        self.ready.set()
        logger.info(f"Started {self.workers} reconcile workers")

    def stop(self, timeout: float | None = None) -> None:
        """Shut the queue down and wait for running passes to finish."""
        self.ready.clear()
        self._stopping.set()
        self.queue.shut_down()
        for thread in self._threads:
            thread.join(timeout)
        self._threads = []

    def _resync_loop(self) -> None:
        while not self._stopping.wait(self.resync_interval):
            count = self.resync()
            logger.debug(f"Resync enqueued {count} keys")

    def _worker(self) -> None:
        while not self.queue.shutting_down:
            self.process_next_item(timeout=_POLL_INTERVAL_SECONDS)

    def process_next_item(self, timeout: float | None = None) -> bool:
        """Take one key from the queue and reconcile it.

        Returns:
            True if a key was processed, False if none was available
        """
        key = self.queue.get(timeout=timeout)
        if key is None:
            return False
        try:
            self._process(key)
        finally:
            self.queue.done(key)
        return True

    def _process(self, key: str) -> None:
        with self._in_flight_lock:
            overlapping = key in self._in_flight
            if not overlapping:
                self._in_flight.add(key)
        if overlapping:
            # The queue hands out a key only once; reaching this is a queue defect
            namespace, name = split_key(key)
            log_site_event(
                logger, {"namespace": namespace, "name": name},
                "Overlapping reconcile pass detected, deferring", event="overlap",
                reason="OverlappingPass", level=logging.CRITICAL,
            )
            self.queue.add_rate_limited(key)
            return

        try:
            result = self._run(key)
        finally:
            with self._in_flight_lock:
                self._in_flight.discard(key)

        self._handle_result(key, result)

    def _run(self, key: str) -> ReconcileResult:
        try:
            return self.reconciler.reconcile(key)
        except Exception as e:
            # Unexpected failures must not kill the worker; retry with backoff
            namespace, name = split_key(key)
            log_site_event(
                logger, {"namespace": namespace, "name": name},
                "Unexpected error during reconcile", event="error",
                reason="UnexpectedError", level=logging.ERROR, error=e,
            )
            return ReconcileResult(error=e)

    def _handle_result(self, key: str, result: ReconcileResult) -> None:
        if result.error is not None:
            delay = self.queue.add_rate_limited(key)
            logger.debug(f"Requeued {key} in {delay:.1f}s after failure")
            return

        self.queue.forget(key)
        if result.requeue_after is not None:
            self.queue.add_after(key, result.requeue_after)
