"""Reconciler for StaticSite resources."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from . import metrics
from .builders.site import ChildKind, build_children, child_name, is_owned_by
from .config import OperatorConfig
from .constants import KIND_STATIC_SITE
from .finalizer import FinalizerManager, has_finalizer, is_deleting
from .logging import log_site_event
from .services.kube.base import ClusterClient
from .status import Observation, is_ready, project_status, status_changed
from .tracing import trace_span
from .utils.context import with_correlation_id
from .utils.deadline import Deadline
from .utils.diff import compute_merge_patch, prune_nulls
from .utils.errors import (
    BuildError,
    ConflictError,
    NotFoundError,
    ReconcileError,
    StaticSiteOperatorError,
    sanitize_exception,
)
from .utils.events import (
    emit_child_created,
    emit_child_deleted,
    emit_child_updated,
    emit_reconcile_failed,
)

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of one reconcile pass.

    Attributes:
        requeue_after: Seconds until the key should be processed again, None
            to wait for the next event or resync
        error: Failure of the pass; the caller requeues with backoff
        ready: True when the site reported Ready=True
    """

    requeue_after: float | None = None
    error: Exception | None = None
    ready: bool = False


def split_key(key: str) -> tuple[str, str]:
    """Split a "namespace/name" work queue key."""
    namespace, sep, name = key.partition("/")
    if not sep:
        return "default", namespace
    return namespace, name


class Reconciler:
    """Drives one StaticSite toward its desired children, one pass at a time.

    A pass never holds state across calls; everything is re-read from the
    cluster, so running it again for the same key is always safe.
    """

    def __init__(self, client: ClusterClient, config: OperatorConfig) -> None:
        self.client = client
        self.config = config
        self.finalizers = FinalizerManager(client, config.conflict_retries)

    def reconcile(self, key: str) -> ReconcileResult:
        """Run a single reconcile pass for key."""
        namespace, name = split_key(key)
        meta = {"namespace": namespace, "name": name}
        deadline = Deadline(self.config.pass_timeout_seconds)

        start_time = time.time()
        with with_correlation_id(), trace_span(
            "reconcile_static_site", kind=KIND_STATIC_SITE, attributes={"static_site.key": key}
        ):
            try:
                result = self._reconcile(namespace, name, deadline)
            except StaticSiteOperatorError as e:
                log_site_event(
                    logger, meta, "Reconciliation failed", event="error",
                    reason="ReconcileFailed", level=logging.ERROR, error=e,
                )
                result = ReconcileResult(error=e)
            finally:
                metrics.reconcile_duration_seconds.labels(kind=KIND_STATIC_SITE).observe(time.time() - start_time)

        if result.error is not None:
            metrics.error_total.labels(kind=KIND_STATIC_SITE, error_type=type(result.error).__name__).inc()
            metrics.reconcile_total.labels(kind=KIND_STATIC_SITE, result="error").inc()
        elif result.ready:
            metrics.reconcile_total.labels(kind=KIND_STATIC_SITE, result="success").inc()
        else:
            metrics.reconcile_total.labels(kind=KIND_STATIC_SITE, result="requeued").inc()
        return result

    def _reconcile(self, namespace: str, name: str, deadline: Deadline) -> ReconcileResult:
        timeout = deadline.check(f"get {KIND_STATIC_SITE} {namespace}/{name}")
        site = self.client.get(KIND_STATIC_SITE, namespace, name, timeout=timeout)
        if site is None:
            log_site_event(
                logger, {"namespace": namespace, "name": name},
                "StaticSite not found, nothing to do", event="skip", reason="NotFound", level=logging.DEBUG,
            )
            return ReconcileResult()
        meta = site["metadata"]

        if is_deleting(site):
            self.finalizers.finalize(site, deadline)
            return ReconcileResult()

        if not has_finalizer(site):
            if self.finalizers.add(site, deadline) is None:
                return ReconcileResult()
            log_site_event(logger, meta, "Finalizer added", event="finalizer", reason="FinalizerAdded")
            return ReconcileResult(requeue_after=0)

        failures: list[tuple[str, Exception]] = []
        observation = Observation()

        try:
            desired = build_children(site, self.config.image)
        except BuildError as e:
            failures.append(("build", e))
            observation.children_ok = False
            observation.workload_known = False
            desired = {}

        for kind, manifest in desired.items():
            try:
                live = self._sync_child(site, kind, manifest, deadline)
            except StaticSiteOperatorError as e:
                failures.append((f"{kind.value} {child_name(kind, name)}", e))
                observation.children_ok = False
                if kind is ChildKind.DEPLOYMENT:
                    observation.workload_known = False
                continue
            if kind is ChildKind.DEPLOYMENT:
                observation.workload = live

        if failures:
            observation.error = ReconcileError(failures)

        status = None
        try:
            status = self._update_status(site, observation, deadline)
        except StaticSiteOperatorError as e:
            failures.append(("status", e))

        if failures:
            error = ReconcileError(failures)
            message = f"Reconciliation failed: {sanitize_exception(error)}"
            log_site_event(
                logger, meta, message, event="error", reason="ReconcileFailed", level=logging.ERROR, error=error,
            )
            emit_reconcile_failed(site, message)
            return ReconcileResult(error=error)

        if status is None:
            # The StaticSite moved on while we were writing; look again right away
            return ReconcileResult(requeue_after=0)

        ready = is_ready(status)
        metrics.resource_status_total.labels(kind=KIND_STATIC_SITE, status="ready" if ready else "not_ready").inc()
        if ready:
            return ReconcileResult(ready=True)
        return ReconcileResult(requeue_after=self.config.progress_requeue_seconds)

    def _sync_child(
        self,
        site: dict[str, Any],
        kind: ChildKind,
        desired: dict[str, Any] | None,
        deadline: Deadline,
    ) -> dict[str, Any] | None:
        """Bring one child in line with its manifest.

        A None manifest means the child should not exist. Writes are guarded
        by the live resourceVersion and retried after a re-read on conflict.

        Returns:
            The live child after the sync, None if it is absent
        """
        meta = site["metadata"]
        namespace = meta.get("namespace", "default")
        name = child_name(kind, meta["name"])

        with trace_span(f"sync_{kind.name.lower()}", kind=kind.value, attributes={"child.name": name}):
            for attempt in range(self.config.conflict_retries):
                timeout = deadline.check(f"get {kind.value} {namespace}/{name}")
                live = self.client.get(kind.value, namespace, name, timeout=timeout)

                if desired is None:
                    if live is None:
                        return None
                    if not is_owned_by(live, site):
                        log_site_event(
                            logger, meta, f"{kind.value} {name} is not owned by this site, leaving it alone",
                            event="skip", reason="NotOwned", level=logging.WARNING, child=name,
                        )
                        return None
                    timeout = deadline.check(f"delete {kind.value} {namespace}/{name}")
                    self.client.delete(kind.value, namespace, name, timeout=timeout)
                    emit_child_deleted(site, kind.value, name)
                    metrics.child_operations_total.labels(kind=kind.value, operation="delete", result="success").inc()
                    log_site_event(logger, meta, f"Deleted {kind.value} {name}", event="delete", reason="ChildDeleted", child=name)
                    return None

                if live is None:
                    timeout = deadline.check(f"create {kind.value} {namespace}/{name}")
                    try:
                        created = self.client.create(prune_nulls(desired), timeout=timeout)
                    except ConflictError:
                        log_site_event(
                            logger, meta, f"{kind.value} {name} appeared concurrently, re-reading",
                            event="conflict", reason="Conflict", attempt=attempt + 1, child=name,
                        )
                        continue
                    emit_child_created(site, kind.value, name)
                    metrics.child_operations_total.labels(kind=kind.value, operation="create", result="success").inc()
                    log_site_event(logger, meta, f"Created {kind.value} {name}", event="create", reason="ChildCreated", child=name)
                    return created

                patch = compute_merge_patch(desired, live)
                if not patch:
                    return live

                metrics.drift_detected_total.labels(kind=kind.value).inc()
                log_site_event(
                    logger, meta, f"Drift detected on {kind.value} {name}",
                    event="drift", reason="DriftDetected", child=name, fields=sorted(patch),
                )
                resource_version = (live.get("metadata") or {}).get("resourceVersion")
                if resource_version:
                    patch.setdefault("metadata", {})["resourceVersion"] = resource_version

                timeout = deadline.check(f"patch {kind.value} {namespace}/{name}")
                try:
                    patched = self.client.patch(kind.value, namespace, name, patch, timeout=timeout)
                except (ConflictError, NotFoundError) as e:
                    log_site_event(
                        logger, meta, f"{kind.value} {name} changed underneath us, re-reading",
                        event="conflict", reason=type(e).__name__, attempt=attempt + 1, child=name,
                    )
                    continue
                emit_child_updated(site, kind.value, name)
                metrics.child_operations_total.labels(kind=kind.value, operation="patch", result="success").inc()
                log_site_event(logger, meta, f"Updated {kind.value} {name}", event="update", reason="ChildUpdated", child=name)
                return patched

        metrics.child_operations_total.labels(kind=kind.value, operation="sync", result="conflict").inc()
        raise ConflictError(
            f"{kind.value} {namespace}/{name} still conflicting after {self.config.conflict_retries} attempts"
        )

    def _update_status(
        self,
        site: dict[str, Any],
        observation: Observation,
        deadline: Deadline,
    ) -> dict[str, Any] | None:
        """Write the projected status if it differs from the stored one.

        Returns:
            The status now stored, or None if the StaticSite was deleted or
            its spec changed before the write could land
        """
        meta = site["metadata"]
        namespace = meta.get("namespace", "default")
        name = meta["name"]
        generation = meta.get("generation")
        current = site

        for attempt in range(self.config.conflict_retries):
            desired = project_status(current, observation)
            if not status_changed(current.get("status"), desired):
                return desired

            timeout = deadline.check(f"patch status of {namespace}/{name}")
            patch = {
                "metadata": {"resourceVersion": current["metadata"].get("resourceVersion")},
                "status": desired,
            }
            try:
                self.client.patch_status(KIND_STATIC_SITE, namespace, name, patch, timeout=timeout)
                return desired
            except ConflictError:
                log_site_event(
                    logger, meta, "Conflict writing status, re-reading",
                    event="conflict", reason="Conflict", attempt=attempt + 1,
                )
            except NotFoundError:
                return None

            timeout = deadline.check(f"get {KIND_STATIC_SITE} {namespace}/{name}")
            refreshed = self.client.get(KIND_STATIC_SITE, namespace, name, timeout=timeout)
            if refreshed is None or refreshed["metadata"].get("generation") != generation:
                return None
            current = refreshed

        raise ConflictError(
            f"status of {namespace}/{name} still conflicting after {self.config.conflict_retries} attempts"
        )
