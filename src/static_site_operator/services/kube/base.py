"""Cluster resource client interface."""

from __future__ import annotations

from typing import Any, Protocol


class ClusterClient(Protocol):
    """Protocol defining the cluster operations the reconciler relies on.

    Objects are plain dicts in API wire form (camelCase keys). Writes that
    carry metadata.resourceVersion are rejected with ConflictError when the
    stored object has moved on. A timeout, when given, bounds the request in
    seconds on top of the client default.
    """

    def get(self, kind: str, namespace: str, name: str, timeout: float | None = None) -> dict[str, Any] | None:
        """Fetch an object, None when it does not exist."""
        ...

    def create(self, obj: dict[str, Any], timeout: float | None = None) -> dict[str, Any]:
        """Create an object.

        Raises:
            ConflictError: If an object with that name already exists
        """
        ...

    def patch(
        self, kind: str, namespace: str, name: str, patch: dict[str, Any], timeout: float | None = None
    ) -> dict[str, Any]:
        """Apply a merge patch to an object.

        Native kinds are patched with strategic merge, so keyed lists merge
        with the live entries by key.

        Raises:
            ConflictError: If the patch carries a stale resourceVersion
            NotFoundError: If the object does not exist
        """
        ...

    def patch_status(
        self, kind: str, namespace: str, name: str, patch: dict[str, Any], timeout: float | None = None
    ) -> dict[str, Any]:
        """Apply a merge patch to the status subresource of an object."""
        ...

    def delete(self, kind: str, namespace: str, name: str, timeout: float | None = None) -> bool:
        """Delete an object, False when it was already gone."""
        ...
