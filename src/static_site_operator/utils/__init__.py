"""Utility functions for the Static Site Operator."""

from .conditions import get_condition, set_ready_condition, update_condition
from .context import get_context_dict, get_correlation_id, with_correlation_id
from .diff import compute_merge_patch, is_subset, prune_nulls
from .errors import sanitize_exception
from .events import emit_event
from .rate_limit import RateLimiter, exponential_backoff

__all__ = [
    "update_condition",
    "set_ready_condition",
    "get_condition",
    "get_correlation_id",
    "with_correlation_id",
    "get_context_dict",
    "compute_merge_patch",
    "is_subset",
    "prune_nulls",
    "sanitize_exception",
    "emit_event",
    "RateLimiter",
    "exponential_backoff",
]
