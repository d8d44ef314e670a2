"""Tests for health check and metrics endpoints."""

from __future__ import annotations

import threading

from werkzeug.test import Client

from static_site_operator.health import create_combined_wsgi_app


class TestCombinedApp:
    """Test routing of the combined WSGI app."""

    def test_healthz(self) -> None:
        response = Client(create_combined_wsgi_app()).get("/healthz")

        assert response.status_code == 200
        assert response.get_json() == {"status": "ok"}

    def test_readyz_without_event(self) -> None:
        response = Client(create_combined_wsgi_app()).get("/readyz")
        assert response.status_code == 200

    def test_readyz_follows_event(self) -> None:
        ready = threading.Event()
        client = Client(create_combined_wsgi_app(ready))

        assert client.get("/readyz").status_code == 503
        ready.set()
        assert client.get("/readyz").status_code == 200

    def test_metrics_delegated(self) -> None:
        # Importing the metrics module registers the operator collectors
        from static_site_operator import metrics  # noqa: F401

        response = Client(create_combined_wsgi_app()).get("/metrics")

        assert response.status_code == 200
        assert b"static_site_operator_workqueue_depth" in response.data
