"""Tests for Kubernetes event utilities."""

from __future__ import annotations

from static_site_operator.utils.events import (
    emit_child_created,
    emit_child_deleted,
    emit_child_updated,
    emit_event,
    emit_finalizer_removed,
    emit_reconcile_failed,
)


class TestEmitEvent:
    """Test cases for emit_event function."""

    def test_emit_event_normal(self, site, mock_kopf_event):
        """Test emitting normal event."""
        emit_event(site, "TestReason", "Test message")

        mock_event = mock_kopf_event
        mock_event.assert_called_once_with(
            site,
            reason="TestReason",
            message="Test message",
            type="Normal",
        )

    def test_emit_event_warning(self, site, mock_kopf_event):
        """Test emitting warning event."""
        emit_event(site, "ErrorReason", "Error occurred", type_="Warning")

        assert mock_kopf_event.call_args.kwargs["type"] == "Warning"


class TestSiteEvents:
    """Test the StaticSite event helpers."""

    def test_reconcile_failed_is_warning(self, site, mock_kopf_event):
        emit_reconcile_failed(site, "Reconciliation failed: boom")

        kwargs = mock_kopf_event.call_args.kwargs
        assert kwargs["reason"] == "ReconcileFailed"
        assert kwargs["message"] == "Reconciliation failed: boom"
        assert kwargs["type"] == "Warning"

    def test_child_events(self, site, mock_kopf_event):
        emit_child_created(site, "Deployment", "site")
        emit_child_updated(site, "Service", "site-service")
        emit_child_deleted(site, "Ingress", "site")

        calls = [(c.kwargs["reason"], c.kwargs["message"]) for c in mock_kopf_event.call_args_list]
        assert calls == [
            ("ChildCreated", "Deployment site created"),
            ("ChildUpdated", "Service site-service updated"),
            ("ChildDeleted", "Ingress site deleted"),
        ]

    def test_finalizer_removed(self, site, mock_kopf_event):
        emit_finalizer_removed(site)
        assert mock_kopf_event.call_args.kwargs["reason"] == "FinalizerRemoved"
