"""CustomResourceDefinition manifest for StaticSite."""

from __future__ import annotations

from typing import Any

import yaml

from .constants import (
    API_GROUP,
    API_VERSION,
    DEFAULT_REPLICAS,
    KIND_STATIC_SITE,
    PLURAL_STATIC_SITE,
    SERVICE_TYPE_CLUSTER_IP,
    SERVICE_TYPES,
)


def _spec_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "required": ["message"],
        "properties": {
            "message": {"type": "string", "description": "Echoed into status"},
            "html": {"type": "string", "default": "", "description": "Inline HTML served as index.html"},
            "replicas": {
                "type": "integer",
                "minimum": 0,
                "default": DEFAULT_REPLICAS,
                "description": "nginx replicas",
            },
            "service_type": {
                "type": "string",
                "enum": list(SERVICE_TYPES),
                "default": SERVICE_TYPE_CLUSTER_IP,
            },
            "ingress_host": {
                "type": "string",
                "default": "",
                "description": "Optional Ingress host. If set, an Ingress will be created.",
            },
            "tls_secret_name": {
                "type": "string",
                "default": "",
                "description": "Optional TLS secret name for the Ingress",
            },
        },
    }


def _status_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "observed_message": {"type": "string"},
            "ready_replicas": {"type": "integer"},
            "conditions": {
                "type": "array",
                "items": {
                    "type": "object",
                    "required": ["type", "status"],
                    "properties": {
                        "type": {"type": "string"},
                        "status": {"type": "string", "enum": ["True", "False", "Unknown"]},
                        "reason": {"type": "string"},
                        "message": {"type": "string"},
                        "lastTransitionTime": {"type": "string"},
                        "observedGeneration": {"type": "integer"},
                    },
                },
            },
        },
    }


def build_crd() -> dict[str, Any]:
    """The StaticSite CustomResourceDefinition."""
    return {
        "apiVersion": "apiextensions.k8s.io/v1",
        "kind": "CustomResourceDefinition",
        "metadata": {"name": f"{PLURAL_STATIC_SITE}.{API_GROUP}"},
        "spec": {
            "group": API_GROUP,
            "scope": "Namespaced",
            "names": {
                "kind": KIND_STATIC_SITE,
                "plural": PLURAL_STATIC_SITE,
                "singular": KIND_STATIC_SITE.lower(),
                "shortNames": ["site"],
            },
            "versions": [
                {
                    "name": API_VERSION,
                    "served": True,
                    "storage": True,
                    "subresources": {"status": {}},
                    "additionalPrinterColumns": [
                        {"name": "Replicas", "type": "integer", "jsonPath": ".spec.replicas"},
                        {"name": "Ready", "type": "integer", "jsonPath": ".status.ready_replicas"},
                        {
                            "name": "Status",
                            "type": "string",
                            "jsonPath": '.status.conditions[?(@.type=="Ready")].status',
                        },
                        {"name": "Age", "type": "date", "jsonPath": ".metadata.creationTimestamp"},
                    ],
                    "schema": {
                        "openAPIV3Schema": {
                            "type": "object",
                            "properties": {
                                "spec": _spec_schema(),
                                "status": _status_schema(),
                            },
                        }
                    },
                }
            ],
        },
    }


def render_crd() -> str:
    """The CRD as a YAML document."""
    return yaml.safe_dump(build_crd(), sort_keys=False)
