"""Kubernetes operator serving static web sites from StaticSite resources."""

__version__ = "0.1.0"
