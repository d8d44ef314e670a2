"""Process-wide operator handles, built once at startup."""

from __future__ import annotations

from dataclasses import dataclass

from .config import OperatorConfig
from .controller import Controller
from .reconciler import Reconciler
from .services.kube.base import ClusterClient
from .services.kube.client import KubernetesClusterClient
from .workqueue import WorkQueue


@dataclass
class OperatorContext:
    """Everything the event handlers and workers share.

    Built explicitly at startup and handed around (through the kopf memo),
    instead of living in module globals.
    """

    config: OperatorConfig
    client: ClusterClient
    reconciler: Reconciler
    queue: WorkQueue
    controller: Controller

    @classmethod
    def build(cls, config: OperatorConfig, client: ClusterClient | None = None) -> OperatorContext:
        """Wire the reconciler, queue and controller together.

        Args:
            config: Operator configuration
            client: Cluster client, a KubernetesClusterClient when omitted
        """
        if client is None:
            client = KubernetesClusterClient(
                request_timeout=config.request_timeout_seconds,
                rate_limit_per_second=config.rate_limit_per_second,
            )
        reconciler = Reconciler(client, config)
        queue = WorkQueue(base_delay=config.backoff_base_seconds, max_delay=config.backoff_max_seconds)
        controller = Controller(
            reconciler,
            queue,
            workers=config.workers,
            resync_interval=config.resync_interval_seconds,
        )
        return cls(config=config, client=client, reconciler=reconciler, queue=queue, controller=controller)
