"""Owned-field comparison and merge patch computation.

Desired manifests mark fields the operator wants removed with None, which is
also how a JSON merge patch expresses deletion.

Lists that Kubernetes merges by key under a strategic merge patch
(containers, volumes, ports, owner references) are compared element by
element on that key, so entries added by other actors are neither reported
as drift nor removed by the patch.
"""

from __future__ import annotations

import copy
from typing import Any

# Strategic merge keys of the list fields found in child manifests. Where a
# field name is shared between kinds the first candidate present wins
# (container ports use containerPort, Service ports use port).
MERGE_KEYS: dict[str, tuple[str, ...]] = {
    "containers": ("name",),
    "initContainers": ("name",),
    "volumes": ("name",),
    "volumeMounts": ("mountPath",),
    "env": ("name",),
    "ports": ("containerPort", "port"),
    "ownerReferences": ("uid",),
}


def list_merge_key(field: str | None, items: list[Any]) -> str | None:
    """Merge key for the list stored under field, None for atomic lists."""
    for candidate in MERGE_KEYS.get(field or "", ()):
        if items and all(isinstance(item, dict) and candidate in item for item in items):
            return candidate
    return None


def is_subset(desired: Any, live: Any, field: str | None = None) -> bool:
    """True when every field set in desired has the same value in live.

    Dicts are compared key by key, so fields present only in live (defaults,
    values written by other actors) are ignored. A None in desired matches a
    missing or null field. Keyed lists match when every desired element has a
    matching live element with the same key; other lists must have the same
    length and match element by element.
    """
    if desired is None:
        return live is None
    if isinstance(desired, dict):
        if not isinstance(live, dict):
            return False
        return all(is_subset(value, live.get(key), key) for key, value in desired.items())
    if isinstance(desired, list):
        if not isinstance(live, list):
            return False
        merge_key = list_merge_key(field, desired)
        if merge_key is not None:
            by_key = {item.get(merge_key): item for item in live if isinstance(item, dict)}
            return all(
                item[merge_key] in by_key and is_subset(item, by_key[item[merge_key]])
                for item in desired
            )
        if len(desired) != len(live):
            return False
        return all(is_subset(d, l) for d, l in zip(desired, live))
    return desired == live


def compute_merge_patch(desired: dict[str, Any], live: dict[str, Any]) -> dict[str, Any]:
    """Minimal patch that makes the owned fields of live equal desired.

    Only keys present in desired are ever emitted, so fields owned by other
    writers survive. A list that differs is sent with its desired elements;
    under a strategic merge patch keyed lists merge into the live entries and
    atomic lists replace them.

    Returns:
        The patch body, empty when live already matches
    """
    patch: dict[str, Any] = {}
    for key, value in desired.items():
        current = live.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            nested = compute_merge_patch(value, current)
            if nested:
                patch[key] = nested
        elif not is_subset(value, current, key):
            patch[key] = copy.deepcopy(value)
    return patch


def prune_nulls(obj: Any) -> Any:
    """Copy of obj without None-valued dict entries, for create bodies."""
    if isinstance(obj, dict):
        return {key: prune_nulls(value) for key, value in obj.items() if value is not None}
    if isinstance(obj, list):
        return [prune_nulls(item) for item in obj]
    return obj
