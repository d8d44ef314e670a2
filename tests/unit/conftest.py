"""Shared fixtures for unit tests."""

from __future__ import annotations

import copy
import itertools
from typing import Any, Callable
from unittest.mock import patch

import pytest

from static_site_operator.config import OperatorConfig
from static_site_operator.constants import API_GROUP_VERSION, FINALIZER, KIND_DEPLOYMENT, KIND_SERVICE, KIND_STATIC_SITE
from static_site_operator.utils.errors import ConflictError, NotFoundError

WRITE_VERBS = ("create", "patch", "patch_status", "delete")


def merge_patch(target: Any, patch: Any) -> Any:
    """Apply a JSON merge patch: dicts merge, None deletes, everything else replaces."""
    if not isinstance(patch, dict):
        return copy.deepcopy(patch)
    result = copy.deepcopy(target) if isinstance(target, dict) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = merge_patch(result.get(key), value)
    return result


# List fields the API server merges by key under a strategic merge patch
STRATEGIC_LIST_KEYS = {
    "containers": ("name",),
    "initContainers": ("name",),
    "volumes": ("name",),
    "volumeMounts": ("mountPath",),
    "env": ("name",),
    "ports": ("containerPort", "port"),
    "ownerReferences": ("uid",),
}


def strategic_merge(target: Any, patch: Any, field: str | None = None) -> Any:
    """Apply a strategic merge patch the way the API server does for native kinds.

    Keyed lists merge element by element and keep live entries the patch does
    not mention; other lists replace.
    """
    if isinstance(patch, list):
        key = next(
            (
                candidate
                for candidate in STRATEGIC_LIST_KEYS.get(field or "", ())
                if patch and all(isinstance(item, dict) and candidate in item for item in patch)
            ),
            None,
        )
        if key is None or not isinstance(target, list):
            return copy.deepcopy(patch)
        result = copy.deepcopy(target)
        positions = {item.get(key): index for index, item in enumerate(result) if isinstance(item, dict)}
        for item in patch:
            if item[key] in positions:
                index = positions[item[key]]
                result[index] = strategic_merge(result[index], item)
            else:
                result.append(copy.deepcopy(item))
        return result
    if not isinstance(patch, dict):
        return copy.deepcopy(patch)
    result = copy.deepcopy(target) if isinstance(target, dict) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = strategic_merge(result.get(key), value, key)
    return result


class FakeClusterClient:
    """In-memory cluster with resource versions, generations and finalizers."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, str, str]] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.timeouts: list[float | None] = []
        self._rv = itertools.count(1)
        self._uid = itertools.count(1)

    # helpers

    def writes(self) -> list[tuple[str, str, str]]:
        return [call for call in self.calls if call[0] in WRITE_VERBS]

    def reset_calls(self) -> None:
        self.calls = []
        self.timeouts = []

    def fail(self, verb: str, kind: str, error: Exception) -> None:
        """Make every verb call on kind raise error until cleared."""
        self.failures[(verb, kind)] = error

    def clear_failures(self) -> None:
        self.failures = {}

    def stored(self, kind: str, name: str, namespace: str = "default") -> dict[str, Any] | None:
        return self.objects.get((kind, namespace, name))

    def add_site(self, name: str = "site", spec: dict[str, Any] | None = None, namespace: str = "default") -> dict[str, Any]:
        return self.create({
            "apiVersion": API_GROUP_VERSION,
            "kind": KIND_STATIC_SITE,
            "metadata": {"name": name, "namespace": namespace},
            "spec": {"message": "hello", **(spec or {})},
        }, record=False)

    def update_spec(self, name: str, changes: dict[str, Any], namespace: str = "default") -> None:
        """Simulate a user editing the CR spec; None values remove fields."""
        self.mutate(KIND_STATIC_SITE, name, lambda obj: obj.update(spec=merge_patch(obj["spec"], changes)), namespace)

    def mutate(self, kind: str, name: str, func: Callable[[dict[str, Any]], Any], namespace: str = "default") -> None:
        """Change a stored object out of band, like another actor would."""
        obj = self.objects[(kind, namespace, name)]
        old_spec = copy.deepcopy(obj.get("spec"))
        func(obj)
        self._bump(obj, spec_changed=obj.get("spec") != old_spec)

    def set_deployment_ready(self, name: str, ready: int | None = None, namespace: str = "default") -> None:
        """Simulate the Deployment controller catching up with the current spec."""
        def _ready(obj: dict[str, Any]) -> None:
            replicas = obj["spec"].get("replicas", 1)
            obj["status"] = {
                "observedGeneration": obj["metadata"]["generation"],
                "replicas": replicas,
                "readyReplicas": replicas if ready is None else ready,
            }

        self.mutate(KIND_DEPLOYMENT, name, _ready, namespace)

    def delete_site(self, name: str, namespace: str = "default") -> bool:
        return self.delete(KIND_STATIC_SITE, namespace, name, record=False)

    def _bump(self, obj: dict[str, Any], spec_changed: bool = False) -> None:
        meta = obj["metadata"]
        meta["resourceVersion"] = str(next(self._rv))
        if spec_changed:
            meta["generation"] = meta.get("generation", 1) + 1

    def _check(self, verb: str, kind: str) -> None:
        error = self.failures.get((verb, kind))
        if error is not None:
            raise error

    def _check_version(self, obj: dict[str, Any], patch: dict[str, Any]) -> None:
        expected = (patch.get("metadata") or {}).get("resourceVersion")
        if expected is not None and expected != obj["metadata"]["resourceVersion"]:
            raise ConflictError(f"stale resourceVersion {expected}", 409)

    # ClusterClient

    def get(self, kind: str, namespace: str, name: str, timeout: float | None = None) -> dict[str, Any] | None:
        self.timeouts.append(timeout)
        self.calls.append(("get", kind, name))
        self._check("get", kind)
        obj = self.objects.get((kind, namespace, name))
        return copy.deepcopy(obj) if obj is not None else None

    def create(self, obj: dict[str, Any], record: bool = True, timeout: float | None = None) -> dict[str, Any]:
        kind = obj["kind"]
        meta = obj["metadata"]
        namespace = meta.get("namespace", "default")
        if record:
            self.timeouts.append(timeout)
            self.calls.append(("create", kind, meta["name"]))
            self._check("create", kind)
        key = (kind, namespace, meta["name"])
        if key in self.objects:
            raise ConflictError(f"{kind} {meta['name']} already exists", 409)

        stored = copy.deepcopy(obj)
        stored["metadata"].update(
            namespace=namespace,
            uid=f"uid-{next(self._uid)}",
            generation=1,
            creationTimestamp="2024-01-01T00:00:00Z",
        )
        # Server side defaults the operator never asks for
        if kind == KIND_DEPLOYMENT:
            stored["spec"].setdefault("revisionHistoryLimit", 10)
            stored["spec"].setdefault("progressDeadlineSeconds", 600)
            stored["status"] = {}
        elif kind == KIND_SERVICE:
            stored["spec"]["clusterIP"] = "10.0.0.10"
            if stored["spec"].get("type") == "NodePort":
                for port in stored["spec"]["ports"]:
                    port.setdefault("nodePort", 30080)
        self._bump(stored)
        self.objects[key] = stored
        return copy.deepcopy(stored)

    def patch(
        self, kind: str, namespace: str, name: str, patch: dict[str, Any], timeout: float | None = None
    ) -> dict[str, Any]:
        self.timeouts.append(timeout)
        self.calls.append(("patch", kind, name))
        self._check("patch", kind)
        obj = self.objects.get((kind, namespace, name))
        if obj is None:
            raise NotFoundError(f"{kind} {name} not found", 404)
        self._check_version(obj, patch)

        body = copy.deepcopy(patch)
        (body.get("metadata") or {}).pop("resourceVersion", None)
        body.pop("status", None)
        # Custom resources only accept JSON merge patch
        if kind == KIND_STATIC_SITE:
            updated = merge_patch(obj, body)
        else:
            updated = strategic_merge(obj, body)
        self._bump(updated, spec_changed=updated.get("spec") != obj.get("spec"))
        meta = updated["metadata"]
        if meta.get("deletionTimestamp") and not meta.get("finalizers"):
            del self.objects[(kind, namespace, name)]
        else:
            self.objects[(kind, namespace, name)] = updated
        return copy.deepcopy(updated)

    def patch_status(
        self, kind: str, namespace: str, name: str, patch: dict[str, Any], timeout: float | None = None
    ) -> dict[str, Any]:
        self.timeouts.append(timeout)
        self.calls.append(("patch_status", kind, name))
        self._check("patch_status", kind)
        obj = self.objects.get((kind, namespace, name))
        if obj is None:
            raise NotFoundError(f"{kind} {name} not found", 404)
        self._check_version(obj, patch)

        obj["status"] = merge_patch(obj.get("status") or {}, patch.get("status") or {})
        self._bump(obj)
        return copy.deepcopy(obj)

    def delete(self, kind: str, namespace: str, name: str, record: bool = True, timeout: float | None = None) -> bool:
        if record:
            self.timeouts.append(timeout)
            self.calls.append(("delete", kind, name))
            self._check("delete", kind)
        obj = self.objects.get((kind, namespace, name))
        if obj is None:
            return False
        if obj["metadata"].get("finalizers"):
            obj["metadata"]["deletionTimestamp"] = "2024-01-02T00:00:00Z"
            self._bump(obj)
        else:
            del self.objects[(kind, namespace, name)]
        return True


@pytest.fixture(autouse=True)
def mock_kopf_event():
    """kopf.event needs a running operator; record calls instead."""
    with patch("static_site_operator.utils.events.kopf.event") as mock_event:
        yield mock_event


@pytest.fixture
def cluster() -> FakeClusterClient:
    return FakeClusterClient()


@pytest.fixture
def config() -> OperatorConfig:
    return OperatorConfig(conflict_retries=3, pass_timeout_seconds=30.0)


@pytest.fixture
def site() -> dict[str, Any]:
    """A StaticSite as read from the cluster, finalizer already in place."""
    return {
        "apiVersion": API_GROUP_VERSION,
        "kind": KIND_STATIC_SITE,
        "metadata": {
            "name": "site",
            "namespace": "default",
            "uid": "site-uid",
            "generation": 1,
            "resourceVersion": "1",
            "finalizers": [FINALIZER],
        },
        "spec": {
            "message": "hello",
            "html": "<h1>hi</h1>",
            "replicas": 2,
            "service_type": "NodePort",
        },
    }
