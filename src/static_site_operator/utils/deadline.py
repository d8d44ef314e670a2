"""Per-pass deadline tracking."""

from __future__ import annotations

import time
from typing import Callable

from .errors import PassTimeoutError


class Deadline:
    """Wall-clock budget of a reconcile pass.

    Cluster calls check the deadline before they start and use the time left
    as their request timeout; once it has passed every remaining call fails
    fast with PassTimeoutError.
    """

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self._clock())

    def expired(self) -> bool:
        return self._clock() >= self.expires_at

    def check(self, operation: str) -> float:
        """Raise PassTimeoutError if the deadline has passed.

        Returns:
            Seconds left, to bound the request about to be made
        """
        remaining = self.remaining()
        if remaining <= 0:
            raise PassTimeoutError(f"pass deadline exceeded before {operation}")
        return remaining
