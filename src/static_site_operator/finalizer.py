"""Finalizer management for StaticSite resources."""

from __future__ import annotations

import logging
from typing import Any

from . import metrics
from .builders.site import ChildKind, child_name, is_owned_by
from .constants import FINALIZER, KIND_STATIC_SITE
from .logging import log_site_event
from .services.kube.base import ClusterClient
from .utils.deadline import Deadline
from .utils.errors import ConflictError, NotFoundError, ReconcileError, StaticSiteOperatorError
from .utils.events import emit_child_deleted, emit_finalizer_removed

logger = logging.getLogger(__name__)

# Dependents first, so nothing references an object that is already gone
CLEANUP_ORDER = (ChildKind.INGRESS, ChildKind.SERVICE, ChildKind.DEPLOYMENT, ChildKind.CONFIG_MAP)


def has_finalizer(site: dict[str, Any]) -> bool:
    """True when the operator finalizer is present on site."""
    return FINALIZER in ((site.get("metadata") or {}).get("finalizers") or [])


def is_deleting(site: dict[str, Any]) -> bool:
    """True when a deletion timestamp has been set on site."""
    return bool((site.get("metadata") or {}).get("deletionTimestamp"))


class FinalizerManager:
    """Adds, honours and removes the StaticSite finalizer."""

    def __init__(self, client: ClusterClient, conflict_retries: int = 3) -> None:
        self.client = client
        self.conflict_retries = conflict_retries

    def add(self, site: dict[str, Any], deadline: Deadline) -> dict[str, Any] | None:
        """Add the finalizer, re-reading the object after a conflicting write.

        Returns:
            The updated StaticSite, or None if it disappeared meanwhile

        Raises:
            ConflictError: If every attempt hit a conflict
        """
        return self._update_finalizers(site, deadline, add=True)

    def remove(self, site: dict[str, Any], deadline: Deadline) -> dict[str, Any] | None:
        """Remove the finalizer, re-reading the object after a conflicting write."""
        return self._update_finalizers(site, deadline, add=False)

    def _update_finalizers(self, site: dict[str, Any], deadline: Deadline, add: bool) -> dict[str, Any] | None:
        meta = site["metadata"]
        namespace = meta.get("namespace", "default")
        name = meta["name"]
        current: dict[str, Any] | None = site

        for attempt in range(self.conflict_retries):
            if current is None:
                return None
            cur_meta = current["metadata"]
            finalizers = list(cur_meta.get("finalizers") or [])
            if add == (FINALIZER in finalizers):
                return current
            if add and is_deleting(current):
                # Never block a deletion that is already under way
                return current

            if add:
                finalizers.append(FINALIZER)
            else:
                finalizers = [f for f in finalizers if f != FINALIZER]
            patch = {
                "metadata": {
                    "finalizers": finalizers,
                    "resourceVersion": cur_meta.get("resourceVersion"),
                }
            }

            timeout = deadline.check(f"patch finalizers of {namespace}/{name}")
            try:
                return self.client.patch(KIND_STATIC_SITE, namespace, name, patch, timeout=timeout)
            except NotFoundError:
                return None
            except ConflictError:
                log_site_event(
                    logger, meta, "Conflict updating finalizers, re-reading",
                    event="conflict", reason="Conflict", attempt=attempt + 1,
                )
                timeout = deadline.check(f"get {namespace}/{name}")
                current = self.client.get(KIND_STATIC_SITE, namespace, name, timeout=timeout)

        raise ConflictError(
            f"finalizer update of {namespace}/{name} still conflicting after {self.conflict_retries} attempts"
        )

    def cleanup(self, site: dict[str, Any], deadline: Deadline) -> None:
        """Delete every child still owned by site.

        Children that are already gone count as deleted, so this is safe to
        run again after a partial failure.

        Raises:
            ReconcileError: Aggregating every child that could not be deleted
        """
        meta = site["metadata"]
        namespace = meta.get("namespace", "default")
        failures: list[tuple[str, Exception]] = []

        for kind in CLEANUP_ORDER:
            name = child_name(kind, meta["name"])
            try:
                timeout = deadline.check(f"get {kind.value} {namespace}/{name}")
                live = self.client.get(kind.value, namespace, name, timeout=timeout)
                if live is None or not is_owned_by(live, site):
                    continue
                timeout = deadline.check(f"delete {kind.value} {namespace}/{name}")
                if self.client.delete(kind.value, namespace, name, timeout=timeout):
                    emit_child_deleted(site, kind.value, name)
                    metrics.child_operations_total.labels(kind=kind.value, operation="delete", result="success").inc()
                    log_site_event(
                        logger, meta, f"Deleted {kind.value} {name}",
                        event="cleanup", reason="ChildDeleted", child=name,
                    )
            except StaticSiteOperatorError as e:
                metrics.child_operations_total.labels(kind=kind.value, operation="delete", result="failed").inc()
                failures.append((f"delete {kind.value} {name}", e))

        if failures:
            raise ReconcileError(failures)

    def finalize(self, site: dict[str, Any], deadline: Deadline) -> bool:
        """Run cleanup and release the StaticSite for deletion.

        Returns:
            True if the finalizer was removed in this call, False if it was
            already absent or the StaticSite vanished before the removal
        """
        if not has_finalizer(site):
            return False

        self.cleanup(site, deadline)
        if self.remove(site, deadline) is None:
            log_site_event(
                logger, site["metadata"], "StaticSite already gone, nothing to release",
                event="skip", reason="NotFound", level=logging.DEBUG,
            )
            return False
        emit_finalizer_removed(site)
        log_site_event(logger, site["metadata"], "Cleanup finished, finalizer removed", event="finalize", reason="FinalizerRemoved")
        return True
