"""Unit tests for the StaticSite spec model."""

from __future__ import annotations

import pytest

from static_site_operator.constants import DEFAULT_HTML
from static_site_operator.models import StaticSiteSpec
from static_site_operator.utils.errors import BuildError


class TestStaticSiteSpec:
    """Test parsing of CR specs."""

    def test_defaults(self) -> None:
        spec = StaticSiteSpec.from_dict({"message": "hi"})
        assert spec.message == "hi"
        assert spec.replicas == 1
        assert spec.service_type == "ClusterIP"
        assert spec.ingress_host is None
        assert spec.effective_html == DEFAULT_HTML
        assert not spec.wants_ingress

    def test_none_spec(self) -> None:
        assert StaticSiteSpec.from_dict(None) == StaticSiteSpec()

    def test_strips_optional_strings(self) -> None:
        spec = StaticSiteSpec.from_dict({"ingress_host": " example.local ", "tls_secret_name": ""})
        assert spec.ingress_host == "example.local"
        assert spec.tls_secret_name is None
        assert spec.wants_ingress

    def test_zero_replicas_allowed(self) -> None:
        assert StaticSiteSpec.from_dict({"replicas": 0}).replicas == 0

    @pytest.mark.parametrize("replicas", [-1, "2", 1.5, True])
    def test_invalid_replicas(self, replicas) -> None:
        with pytest.raises(BuildError):
            StaticSiteSpec.from_dict({"replicas": replicas})

    def test_invalid_service_type(self) -> None:
        with pytest.raises(BuildError, match="service_type"):
            StaticSiteSpec.from_dict({"service_type": "LoadBalancer"})
