"""Kubernetes implementation of the cluster resource client."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from ... import metrics
from ...constants import (
    API_GROUP,
    API_VERSION,
    KIND_CONFIG_MAP,
    KIND_DEPLOYMENT,
    KIND_INGRESS,
    KIND_SERVICE,
    KIND_STATIC_SITE,
    PLURAL_STATIC_SITE,
)
from ...utils.errors import (
    ClusterAPIError,
    ClusterUnavailableError,
    NotFoundError,
    from_api_exception,
)
from ...utils.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

MERGE_PATCH = "application/merge-patch+json"
STRATEGIC_MERGE_PATCH = "application/strategic-merge-patch+json"

# kind -> (typed API attribute, method suffix)
_NATIVE_KINDS = {
    KIND_CONFIG_MAP: ("core_v1", "namespaced_config_map"),
    KIND_SERVICE: ("core_v1", "namespaced_service"),
    KIND_DEPLOYMENT: ("apps_v1", "namespaced_deployment"),
    KIND_INGRESS: ("networking_v1", "namespaced_ingress"),
}

# kind -> (group, version, plural)
_CUSTOM_KINDS = {
    KIND_STATIC_SITE: (API_GROUP, API_VERSION, PLURAL_STATIC_SITE),
}


def load_api_client() -> client.ApiClient:
    """Load in-cluster configuration, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()
    return client.ApiClient()


class KubernetesClusterClient:
    """ClusterClient backed by the official kubernetes client."""

    def __init__(
        self,
        api_client: client.ApiClient | None = None,
        request_timeout: float = 10.0,
        rate_limit_per_second: float = 10.0,
    ) -> None:
        """Initialize the client.

        Args:
            api_client: Configured ApiClient, loaded from the environment when omitted
            request_timeout: Per-request timeout in seconds
            rate_limit_per_second: Maximum cluster API calls per second
        """
        self.api_client = api_client or load_api_client()
        self.request_timeout = request_timeout
        self.rate_limiter = RateLimiter(rate_limit_per_second)
        self.core_v1 = client.CoreV1Api(self.api_client)
        self.apps_v1 = client.AppsV1Api(self.api_client)
        self.networking_v1 = client.NetworkingV1Api(self.api_client)
        self.custom_objects = client.CustomObjectsApi(self.api_client)

    def _call(
        self,
        operation: str,
        func: Callable[..., Any],
        *args: Any,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> Any:
        """Invoke an API method with rate limiting, metrics and error translation.

        The request timeout is the client default, shortened to timeout when
        the caller has less time left.
        """
        request_timeout = self.request_timeout if timeout is None else min(self.request_timeout, timeout)
        start_time = time.time()
        try:
            result = self.rate_limiter(func)(*args, _request_timeout=request_timeout, **kwargs)
            metrics.api_call_total.labels(operation=operation, result="success").inc()
            return result
        except ApiException as e:
            metrics.api_call_total.labels(operation=operation, result=str(e.status)).inc()
            raise from_api_exception(e, operation) from e
        except (HTTPError, OSError) as e:
            metrics.api_call_total.labels(operation=operation, result="unavailable").inc()
            raise ClusterUnavailableError(f"{operation} failed: {e}") from e
        finally:
            metrics.api_call_duration_seconds.labels(operation=operation).observe(time.time() - start_time)

    def _native(self, kind: str, verb: str) -> Callable[..., Any]:
        api_attr, suffix = _NATIVE_KINDS[kind]
        return getattr(getattr(self, api_attr), f"{verb}_{suffix}")

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        if isinstance(obj, dict):
            return obj
        return self.api_client.sanitize_for_serialization(obj)

    def _check_kind(self, kind: str) -> None:
        if kind not in _NATIVE_KINDS and kind not in _CUSTOM_KINDS:
            raise ClusterAPIError(f"Unsupported kind {kind}")

    def get(self, kind: str, namespace: str, name: str, timeout: float | None = None) -> dict[str, Any] | None:
        """Fetch an object, None when it does not exist."""
        self._check_kind(kind)
        try:
            if kind in _CUSTOM_KINDS:
                group, version, plural = _CUSTOM_KINDS[kind]
                obj = self._call(
                    f"get_{kind.lower()}",
                    self.custom_objects.get_namespaced_custom_object,
                    group, version, namespace, plural, name,
                    timeout=timeout,
                )
            else:
                obj = self._call(f"get_{kind.lower()}", self._native(kind, "read"), name, namespace, timeout=timeout)
        except NotFoundError:
            return None
        return self._to_dict(obj)

    def create(self, obj: dict[str, Any], timeout: float | None = None) -> dict[str, Any]:
        """Create an object in the namespace named by its metadata."""
        kind = obj["kind"]
        self._check_kind(kind)
        namespace = obj["metadata"].get("namespace", "default")
        if kind in _CUSTOM_KINDS:
            group, version, plural = _CUSTOM_KINDS[kind]
            created = self._call(
                f"create_{kind.lower()}",
                self.custom_objects.create_namespaced_custom_object,
                group, version, namespace, plural, obj,
                timeout=timeout,
            )
        else:
            created = self._call(f"create_{kind.lower()}", self._native(kind, "create"), namespace, obj, timeout=timeout)
        return self._to_dict(created)

    def patch(
        self, kind: str, namespace: str, name: str, patch: dict[str, Any], timeout: float | None = None
    ) -> dict[str, Any]:
        """Merge-patch an object.

        Native kinds use strategic merge so that keyed lists (containers,
        ports) merge by key instead of being replaced.
        """
        self._check_kind(kind)
        if kind in _CUSTOM_KINDS:
            group, version, plural = _CUSTOM_KINDS[kind]
            patched = self._call(
                f"patch_{kind.lower()}",
                self.custom_objects.patch_namespaced_custom_object,
                group, version, namespace, plural, name, patch,
                _content_type=MERGE_PATCH,
                timeout=timeout,
            )
        else:
            patched = self._call(
                f"patch_{kind.lower()}",
                self._native(kind, "patch"),
                name, namespace, patch,
                _content_type=STRATEGIC_MERGE_PATCH,
                timeout=timeout,
            )
        return self._to_dict(patched)

    def patch_status(
        self, kind: str, namespace: str, name: str, patch: dict[str, Any], timeout: float | None = None
    ) -> dict[str, Any]:
        """Merge-patch the status subresource of a custom object."""
        if kind not in _CUSTOM_KINDS:
            raise ClusterAPIError(f"Status patches are only supported for {', '.join(_CUSTOM_KINDS)}")
        group, version, plural = _CUSTOM_KINDS[kind]
        patched = self._call(
            f"patch_{kind.lower()}_status",
            self.custom_objects.patch_namespaced_custom_object_status,
            group, version, namespace, plural, name, patch,
            _content_type=MERGE_PATCH,
            timeout=timeout,
        )
        return self._to_dict(patched)

    def delete(self, kind: str, namespace: str, name: str, timeout: float | None = None) -> bool:
        """Delete an object with background propagation, False when it was already gone."""
        self._check_kind(kind)
        body = client.V1DeleteOptions(propagation_policy="Background")
        try:
            if kind in _CUSTOM_KINDS:
                group, version, plural = _CUSTOM_KINDS[kind]
                self._call(
                    f"delete_{kind.lower()}",
                    self.custom_objects.delete_namespaced_custom_object,
                    group, version, namespace, plural, name,
                    body=body,
                    timeout=timeout,
                )
            else:
                self._call(f"delete_{kind.lower()}", self._native(kind, "delete"), name, namespace, body=body, timeout=timeout)
        except NotFoundError:
            logger.debug(f"{kind} {namespace}/{name} already deleted")
            return False
        return True
