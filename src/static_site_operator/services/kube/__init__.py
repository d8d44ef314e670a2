"""Cluster resource client."""

from .base import ClusterClient
from .client import KubernetesClusterClient

__all__ = ["ClusterClient", "KubernetesClusterClient"]
