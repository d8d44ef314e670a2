"""Main entry point for the Static Site Operator.

Run with ``kopf run -m static_site_operator.main --all-namespaces`` or
``python -m static_site_operator``.
"""

from __future__ import annotations

import logging
from typing import Any

import kopf

from . import handlers  # noqa: F401
from . import health
from . import logging as structured_logging
from .config import OperatorConfig
from .runtime import OperatorContext
from .tracing import initialize_tracing

logger = logging.getLogger(__name__)

# How long shutdown waits for running passes
SHUTDOWN_TIMEOUT_SECONDS = 30.0


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Configure the operator and start the reconcile workers."""
    config = OperatorConfig.from_env()

    # Set up structured JSON logging
    structured_logging.setup_structured_logging(config.log_level)
    initialize_tracing()

    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = 30.0
    # kopf's own executor only runs the enqueue handlers
    settings.execution.max_workers = 2

    operator = OperatorContext.build(config)
    memo.operator = operator

    # Metrics and health checks share one port
    memo.health_server = health.start_health_server(config.metrics_port, operator.controller.ready)

    operator.controller.start()
    logger.info(f"Static site operator started with {config.workers} workers")


@kopf.on.cleanup()
def shutdown(memo: kopf.Memo, **_: Any) -> None:
    """Stop the workers and the health server."""
    operator = getattr(memo, "operator", None)
    if operator is not None:
        operator.controller.stop(timeout=SHUTDOWN_TIMEOUT_SECONDS)
    server = getattr(memo, "health_server", None)
    if server is not None:
        server.shutdown()
    logger.info("Static site operator stopped")
