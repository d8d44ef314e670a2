"""Builders for the child resources of a StaticSite.

Every function here is pure: the same CR always yields the same manifests.
"""

from __future__ import annotations

import hashlib
from enum import Enum
from typing import Any

from ..constants import (
    ANNOTATION_ROLLOUT_HASH,
    API_GROUP_VERSION,
    APP_NAME,
    CONTAINER_NAME,
    DEFAULT_IMAGE,
    DOCUMENT_ROOT,
    FIELD_MANAGER,
    HTML_KEY,
    HTML_VOLUME,
    HTTP_PORT,
    KIND_CONFIG_MAP,
    KIND_DEPLOYMENT,
    KIND_INGRESS,
    KIND_SERVICE,
    KIND_STATIC_SITE,
    LABEL_APP_NAME,
    LABEL_INSTANCE,
    LABEL_MANAGED_BY,
    SERVICE_SUFFIX,
)
from ..models import StaticSiteSpec
from ..utils.errors import BuildError


class ChildKind(str, Enum):
    """The closed set of child resources, in processing order."""

    CONFIG_MAP = KIND_CONFIG_MAP
    DEPLOYMENT = KIND_DEPLOYMENT
    SERVICE = KIND_SERVICE
    INGRESS = KIND_INGRESS

    @property
    def api_version(self) -> str:
        return _API_VERSIONS[self]


_API_VERSIONS = {
    ChildKind.CONFIG_MAP: "v1",
    ChildKind.DEPLOYMENT: "apps/v1",
    ChildKind.SERVICE: "v1",
    ChildKind.INGRESS: "networking.k8s.io/v1",
}


def child_name(kind: ChildKind, site_name: str) -> str:
    """Deterministic name of a child object."""
    if kind is ChildKind.SERVICE:
        return f"{site_name}{SERVICE_SUFFIX}"
    return site_name


def selector_labels(site_name: str) -> dict[str, str]:
    """Pod selector labels. These must never change for an existing site."""
    return {
        LABEL_APP_NAME: APP_NAME,
        LABEL_INSTANCE: site_name,
    }


def managed_labels(site_name: str) -> dict[str, str]:
    """Labels carried by every child object."""
    return {
        **selector_labels(site_name),
        LABEL_MANAGED_BY: FIELD_MANAGER,
    }


def owner_reference(site: dict[str, Any]) -> dict[str, Any]:
    """Controller owner reference pointing at the StaticSite."""
    meta = site.get("metadata", {})
    name = meta.get("name")
    uid = meta.get("uid")
    if not name or not uid:
        raise BuildError("StaticSite metadata must carry a name and uid")
    return {
        "apiVersion": API_GROUP_VERSION,
        "kind": KIND_STATIC_SITE,
        "name": name,
        "uid": uid,
        "controller": True,
        "blockOwnerDeletion": True,
    }


def rollout_hash(html: str) -> str:
    """Content fingerprint that rolls the pods when the page changes."""
    return hashlib.sha256(html.encode("utf-8")).hexdigest()


def _metadata(site: dict[str, Any], kind: ChildKind) -> dict[str, Any]:
    meta = site.get("metadata", {})
    return {
        "name": child_name(kind, meta["name"]),
        "namespace": meta.get("namespace", "default"),
        "labels": managed_labels(meta["name"]),
        "ownerReferences": [owner_reference(site)],
    }


def build_config_map(site: dict[str, Any], spec: StaticSiteSpec) -> dict[str, Any]:
    """ConfigMap holding the page as index.html."""
    return {
        "apiVersion": ChildKind.CONFIG_MAP.api_version,
        "kind": KIND_CONFIG_MAP,
        "metadata": _metadata(site, ChildKind.CONFIG_MAP),
        "data": {HTML_KEY: spec.effective_html},
    }


def build_deployment(
    site: dict[str, Any],
    spec: StaticSiteSpec,
    image: str = DEFAULT_IMAGE,
) -> dict[str, Any]:
    """Deployment serving the ConfigMap through nginx."""
    name = site["metadata"]["name"]
    selector = selector_labels(name)
    return {
        "apiVersion": ChildKind.DEPLOYMENT.api_version,
        "kind": KIND_DEPLOYMENT,
        "metadata": _metadata(site, ChildKind.DEPLOYMENT),
        "spec": {
            "replicas": spec.replicas,
            "selector": {"matchLabels": selector},
            "template": {
                "metadata": {
                    "labels": dict(selector),
                    "annotations": {ANNOTATION_ROLLOUT_HASH: rollout_hash(spec.effective_html)},
                },
                "spec": {
                    "containers": [
                        {
                            "name": CONTAINER_NAME,
                            "image": image,
                            "ports": [{"containerPort": HTTP_PORT}],
                            "volumeMounts": [
                                {
                                    "name": HTML_VOLUME,
                                    "mountPath": DOCUMENT_ROOT,
                                    "readOnly": True,
                                }
                            ],
                        }
                    ],
                    "volumes": [
                        {
                            "name": HTML_VOLUME,
                            "configMap": {"name": child_name(ChildKind.CONFIG_MAP, name)},
                        }
                    ],
                },
            },
        },
    }


def build_service(site: dict[str, Any], spec: StaticSiteSpec) -> dict[str, Any]:
    """Service exposing port 80 of the site pods."""
    return {
        "apiVersion": ChildKind.SERVICE.api_version,
        "kind": KIND_SERVICE,
        "metadata": _metadata(site, ChildKind.SERVICE),
        "spec": {
            "type": spec.service_type,
            "selector": selector_labels(site["metadata"]["name"]),
            "ports": [
                {
                    "name": "http",
                    "port": HTTP_PORT,
                    "targetPort": HTTP_PORT,
                    "protocol": "TCP",
                }
            ],
        },
    }


def build_ingress(site: dict[str, Any], spec: StaticSiteSpec) -> dict[str, Any] | None:
    """Ingress routing ingress_host to the Service, None when no host is set."""
    if not spec.wants_ingress:
        return None

    name = site["metadata"]["name"]
    tls = None
    if spec.tls_secret_name:
        tls = [{"hosts": [spec.ingress_host], "secretName": spec.tls_secret_name}]

    return {
        "apiVersion": ChildKind.INGRESS.api_version,
        "kind": KIND_INGRESS,
        "metadata": _metadata(site, ChildKind.INGRESS),
        "spec": {
            "rules": [
                {
                    "host": spec.ingress_host,
                    "http": {
                        "paths": [
                            {
                                "path": "/",
                                "pathType": "Prefix",
                                "backend": {
                                    "service": {
                                        "name": child_name(ChildKind.SERVICE, name),
                                        "port": {"number": HTTP_PORT},
                                    }
                                },
                            }
                        ]
                    },
                }
            ],
            # None asks for removal of a TLS block left from an earlier spec
            "tls": tls,
        },
    }


def build_children(
    site: dict[str, Any],
    image: str = DEFAULT_IMAGE,
) -> dict[ChildKind, dict[str, Any] | None]:
    """Desired manifests for every child kind, in processing order.

    The ingress entry is None when the site wants no ingress.

    Raises:
        BuildError: If the CR is structurally invalid
    """
    spec = StaticSiteSpec.from_dict(site.get("spec"))
    owner_reference(site)  # validates name and uid up front
    return {
        ChildKind.CONFIG_MAP: build_config_map(site, spec),
        ChildKind.DEPLOYMENT: build_deployment(site, spec, image),
        ChildKind.SERVICE: build_service(site, spec),
        ChildKind.INGRESS: build_ingress(site, spec),
    }


def is_owned_by(obj: dict[str, Any], site: dict[str, Any]) -> bool:
    """True when obj carries an owner reference to site."""
    uid = (site.get("metadata") or {}).get("uid")
    refs = (obj.get("metadata") or {}).get("ownerReferences") or []
    return uid is not None and any(ref.get("uid") == uid for ref in refs)
