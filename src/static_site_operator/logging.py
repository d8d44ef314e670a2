"""Structured logging configuration for the Static Site Operator."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

from .constants import KIND_STATIC_SITE
from .utils.context import get_context_dict
from .utils.errors import sanitize_exception

CONTROLLER_NAME = "static-site-operator"


def setup_structured_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def log_resource_event(
    logger: logging.Logger,
    resource_kind: str,
    resource_name: str,
    namespace: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured resource event."""
    log_data = get_context_dict({
        "controller": CONTROLLER_NAME,
        "resource": resource_kind,
        "name": resource_name,
        "namespace": namespace,
        "event": event,
        "reason": reason,
        "message": message,
    })
    log_data.update(kwargs)
    logger.log(level, json.dumps(log_data, default=str))


def log_site_event(
    logger: logging.Logger,
    meta: dict[str, Any],
    message: str,
    event: str = "info",
    reason: str = "Info",
    level: int = logging.INFO,
    error: Exception | None = None,
    resource_kind: str = KIND_STATIC_SITE,
    **kwargs: Any,
) -> None:
    """Log a structured event about a StaticSite.

    Args:
        logger: Logger to write to
        meta: StaticSite metadata (name and namespace are used)
        message: Log message
        event: Event type
        reason: Machine readable reason
        level: Logging level
        error: Optional exception, logged sanitized together with its type
        resource_kind: Kind reported in the log line
        **kwargs: Additional fields to include in the log
    """
    if error is not None:
        kwargs["error"] = sanitize_exception(error)
        kwargs["error_type"] = type(error).__name__
    log_resource_event(
        logger,
        resource_kind=resource_kind,
        resource_name=meta.get("name", "unknown"),
        namespace=meta.get("namespace", "default"),
        event=event,
        reason=reason,
        message=message,
        level=level,
        **kwargs,
    )
