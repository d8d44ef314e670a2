"""Utilities for managing Kubernetes conditions."""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any

from ..constants import COND_READY


def utcnow_iso() -> str:
    """Current time in the RFC 3339 form the API server uses."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def get_condition(conditions: list[dict[str, Any]], condition_type: str) -> dict[str, Any] | None:
    """Return the first condition of the given type, if any."""
    for cond in conditions:
        if cond.get("type") == condition_type:
            return cond
    return None


def update_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
    now: str | None = None,
) -> list[dict[str, Any]]:
    """Return a copy of conditions with the given condition set.

    Any duplicates of condition_type are collapsed into the single updated
    entry. lastTransitionTime is carried over unless the status value changed.

    Args:
        conditions: List of existing conditions (not modified)
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition
        message: Human-readable message
        observed_generation: Generation when condition was observed
        now: Transition timestamp to use when the status changes

    Returns:
        Updated list of conditions
    """
    existing = get_condition(conditions, condition_type)

    new_condition: dict[str, Any] = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
    }
    if existing is not None and existing.get("status") == status and existing.get("lastTransitionTime"):
        new_condition["lastTransitionTime"] = existing["lastTransitionTime"]
    else:
        new_condition["lastTransitionTime"] = now or utcnow_iso()

    if observed_generation is not None:
        new_condition["observedGeneration"] = observed_generation

    updated: list[dict[str, Any]] = []
    placed = False
    for cond in conditions:
        if cond.get("type") == condition_type:
            if not placed:
                updated.append(new_condition)
                placed = True
            continue
        updated.append(copy.deepcopy(cond))
    if not placed:
        updated.append(new_condition)

    return updated


def set_ready_condition(
    conditions: list[dict[str, Any]],
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
    now: str | None = None,
) -> list[dict[str, Any]]:
    """Set the Ready condition."""
    return update_condition(
        conditions,
        COND_READY,
        status,
        reason,
        message,
        observed_generation,
        now,
    )
