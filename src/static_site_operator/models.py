"""Models for StaticSite resources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .constants import DEFAULT_HTML, DEFAULT_REPLICAS, SERVICE_TYPE_CLUSTER_IP, SERVICE_TYPES
from .utils.errors import BuildError


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@dataclass(frozen=True)
class StaticSiteSpec:
    """Desired state of a StaticSite, with defaults applied."""

    message: str = ""
    html: str = ""
    replicas: int = DEFAULT_REPLICAS
    service_type: str = SERVICE_TYPE_CLUSTER_IP
    ingress_host: str | None = None
    tls_secret_name: str | None = None

    @classmethod
    def from_dict(cls, spec: dict[str, Any] | None) -> StaticSiteSpec:
        """Parse a CR spec dict.

        Raises:
            BuildError: If a field has a value the schema should have rejected
        """
        spec = spec or {}
        replicas = spec.get("replicas", DEFAULT_REPLICAS)
        if replicas is None:
            replicas = DEFAULT_REPLICAS
        if isinstance(replicas, bool) or not isinstance(replicas, int) or replicas < 0:
            raise BuildError(f"replicas must be a non-negative integer, got {replicas!r}")

        service_type = spec.get("service_type") or SERVICE_TYPE_CLUSTER_IP
        if service_type not in SERVICE_TYPES:
            raise BuildError(f"service_type must be one of {', '.join(SERVICE_TYPES)}, got {service_type!r}")

        return cls(
            message=str(spec.get("message") or ""),
            html=str(spec.get("html") or ""),
            replicas=replicas,
            service_type=service_type,
            ingress_host=_optional_str(spec.get("ingress_host")),
            tls_secret_name=_optional_str(spec.get("tls_secret_name")),
        )

    @property
    def effective_html(self) -> str:
        """The page served, falling back to the built-in default."""
        return self.html if self.html.strip() else DEFAULT_HTML

    @property
    def wants_ingress(self) -> bool:
        return self.ingress_host is not None
