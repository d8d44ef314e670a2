"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_CHILD_CREATED,
    EVENT_REASON_CHILD_DELETED,
    EVENT_REASON_CHILD_UPDATED,
    EVENT_REASON_FINALIZER_REMOVED,
    EVENT_REASON_RECONCILE_FAILED,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event attached to body.

    Args:
        body: Full resource object (apiVersion, kind and metadata are used)
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_child_created(body: dict[str, Any], kind: str, name: str) -> None:
    """Emit child created event."""
    emit_event(body, EVENT_REASON_CHILD_CREATED, f"{kind} {name} created")


def emit_child_updated(body: dict[str, Any], kind: str, name: str) -> None:
    """Emit child updated event."""
    emit_event(body, EVENT_REASON_CHILD_UPDATED, f"{kind} {name} updated")


def emit_child_deleted(body: dict[str, Any], kind: str, name: str) -> None:
    """Emit child deleted event."""
    emit_event(body, EVENT_REASON_CHILD_DELETED, f"{kind} {name} deleted")


def emit_finalizer_removed(body: dict[str, Any]) -> None:
    """Emit finalizer removed event."""
    emit_event(body, EVENT_REASON_FINALIZER_REMOVED, "Cleanup finished, finalizer removed")
