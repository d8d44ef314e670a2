"""Rate limiting and backoff utilities for API calls."""

from __future__ import annotations

import threading
import time
from functools import wraps
from typing import Any, Callable, TypeVar

_F = TypeVar("_F", bound=Callable[..., Any])


class RateLimiter:
    """Spaces calls at least 1/rate seconds apart across all threads."""

    def __init__(self, per_second: float) -> None:
        self.min_interval = 1.0 / per_second
        self._lock = threading.Lock()
        self._next_call_time = 0.0

    def wait(self) -> None:
        """Block until the next call slot is available."""
        with self._lock:
            now = time.monotonic()
            slot = max(now, self._next_call_time)
            self._next_call_time = slot + self.min_interval
        if slot > now:
            time.sleep(slot - now)

    def __call__(self, func: _F) -> _F:
        """Decorate func so that every invocation waits for a slot."""
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            self.wait()
            return func(*args, **kwargs)

        return wrapper  # type: ignore


def exponential_backoff(failures: int, base: float, cap: float) -> float:
    """Delay before retry number failures + 1.

    Exponential backoff: base, 2*base, 4*base, ... capped at cap.
    """
    if failures <= 0:
        return base
    # Avoid huge exponents once we are past the cap anyway
    exponent = min(failures, 62)
    return min(base * (2 ** exponent), cap)
