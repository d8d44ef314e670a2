"""Builders for StaticSite child resources."""

from .site import (
    ChildKind,
    build_children,
    build_config_map,
    build_deployment,
    build_ingress,
    build_service,
    child_name,
    is_owned_by,
    managed_labels,
    owner_reference,
    rollout_hash,
    selector_labels,
)

__all__ = [
    "ChildKind",
    "build_children",
    "build_config_map",
    "build_deployment",
    "build_ingress",
    "build_service",
    "child_name",
    "is_owned_by",
    "managed_labels",
    "owner_reference",
    "rollout_hash",
    "selector_labels",
]
