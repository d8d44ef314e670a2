"""Watch handlers turning cluster events into work queue keys.

kopf owns the watch streams; these handlers only enqueue. All decisions are
made by the reconciler, which re-reads current state on every pass.
"""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import API_GROUP_VERSION, FIELD_MANAGER, KIND_STATIC_SITE, LABEL_INSTANCE, LABEL_MANAGED_BY
from ..controller import make_key

MANAGED_SELECTOR = {LABEL_MANAGED_BY: FIELD_MANAGER}


@kopf.on.event(API_GROUP_VERSION, KIND_STATIC_SITE)
def on_static_site_event(
    event: dict[str, Any],
    name: str,
    namespace: str | None,
    memo: kopf.Memo,
    **_: Any,
) -> None:
    """Enqueue a StaticSite on every change and track it for resync."""
    controller = memo.operator.controller
    key = make_key(namespace, name)
    if event.get("type") == "DELETED":
        controller.untrack(key)
    else:
        controller.track(key)
    controller.enqueue(key)


@kopf.on.event("v1", "configmaps", labels=MANAGED_SELECTOR)
@kopf.on.event("apps/v1", "deployments", labels=MANAGED_SELECTOR)
@kopf.on.event("v1", "services", labels=MANAGED_SELECTOR)
@kopf.on.event("networking.k8s.io/v1", "ingresses", labels=MANAGED_SELECTOR)
def on_child_event(
    labels: dict[str, str],
    namespace: str | None,
    memo: kopf.Memo,
    **_: Any,
) -> None:
    """Enqueue the owning StaticSite when one of its children changes."""
    site_name = labels.get(LABEL_INSTANCE)
    if site_name:
        memo.operator.controller.enqueue(make_key(namespace, site_name))
