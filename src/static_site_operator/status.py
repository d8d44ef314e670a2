"""Projection of observed state onto the StaticSite status."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .constants import (
    COND_READY,
    DEFAULT_REPLICAS,
    REASON_AVAILABLE,
    REASON_ERROR,
    REASON_PENDING,
    REASON_PROGRESSING,
)
from .utils.conditions import get_condition, set_ready_condition
from .utils.errors import sanitize_exception

STATUS_FIELDS = ("observed_message", "ready_replicas", "conditions")


@dataclass
class Observation:
    """What one reconcile pass saw and did.

    Attributes:
        workload: Live Deployment after the pass applied it, None if absent
        workload_known: False when the Deployment could not be read or written
        children_ok: True when every child exists and matches its manifest
        error: Aggregated failure of the pass, None on success
    """

    workload: dict[str, Any] | None = None
    workload_known: bool = True
    children_ok: bool = True
    error: Exception | None = None


def ready_replicas(workload: dict[str, Any] | None) -> int:
    """Ready replica count reported by a Deployment, 0 when unknown."""
    if not workload:
        return 0
    return int((workload.get("status") or {}).get("readyReplicas") or 0)


def workload_observed(workload: dict[str, Any] | None) -> bool:
    """True once the Deployment controller has processed the current spec."""
    if not workload:
        return False
    observed = (workload.get("status") or {}).get("observedGeneration")
    if observed is None:
        return False
    return observed >= (workload.get("metadata") or {}).get("generation", 0)


def _desired_replicas(spec: dict[str, Any]) -> int:
    replicas = spec.get("replicas", DEFAULT_REPLICAS)
    if isinstance(replicas, int) and not isinstance(replicas, bool) and replicas >= 0:
        return replicas
    return DEFAULT_REPLICAS


def project_status(
    site: dict[str, Any],
    observation: Observation,
    now: str | None = None,
) -> dict[str, Any]:
    """Compute the status a StaticSite should carry after a pass.

    Args:
        site: The StaticSite as read at the start of the pass
        observation: Outcome of the pass
        now: Timestamp used if the Ready status value changes

    Returns:
        Status dict with observed_message, ready_replicas and conditions
    """
    spec = site.get("spec") or {}
    current = site.get("status") or {}
    generation = (site.get("metadata") or {}).get("generation")
    desired = _desired_replicas(spec)

    if observation.workload_known:
        ready = ready_replicas(observation.workload)
    else:
        ready = int(current.get("ready_replicas") or 0)

    if observation.error is None:
        observed_message = spec.get("message")
    else:
        observed_message = current.get("observed_message")

    previous = get_condition(current.get("conditions") or [], COND_READY)
    never_observed = previous is None or previous.get("status") == "Unknown"
    observed = workload_observed(observation.workload)

    if observation.error is not None:
        cond_status, reason = "False", REASON_ERROR
        message = sanitize_exception(observation.error)
    elif not observed and never_observed:
        cond_status, reason = "Unknown", REASON_PENDING
        message = "Waiting for the workload to be observed"
    elif observation.children_ok and observed and ready == desired:
        cond_status, reason = "True", REASON_AVAILABLE
        message = f"{ready}/{desired} replicas ready"
    else:
        cond_status, reason = "False", REASON_PROGRESSING
        message = f"{ready}/{desired} replicas ready"

    status: dict[str, Any] = {
        "observed_message": observed_message,
        "ready_replicas": ready,
        "conditions": set_ready_condition(
            current.get("conditions") or [],
            cond_status,
            reason,
            message,
            observed_generation=generation,
            now=now,
        ),
    }
    return status


def status_changed(current: dict[str, Any] | None, desired: dict[str, Any]) -> bool:
    """True when writing desired would change the stored status."""
    current = current or {}
    return any(current.get(field) != desired.get(field) for field in STATUS_FIELDS)


def is_ready(status: dict[str, Any] | None) -> bool:
    """True when the Ready condition of status is True."""
    cond = get_condition((status or {}).get("conditions") or [], COND_READY)
    return cond is not None and cond.get("status") == "True"
