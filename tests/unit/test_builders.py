"""Unit tests for child resource builders."""

from __future__ import annotations

import copy

import pytest

from static_site_operator.builders import (
    ChildKind,
    build_children,
    build_config_map,
    build_deployment,
    build_ingress,
    build_service,
    child_name,
    is_owned_by,
    owner_reference,
    rollout_hash,
)
from static_site_operator.constants import (
    ANNOTATION_ROLLOUT_HASH,
    DEFAULT_HTML,
    DOCUMENT_ROOT,
    LABEL_INSTANCE,
    LABEL_MANAGED_BY,
)
from static_site_operator.models import StaticSiteSpec
from static_site_operator.utils.errors import BuildError


class TestChildNames:
    """Test deterministic child naming."""

    def test_service_has_suffix(self) -> None:
        assert child_name(ChildKind.SERVICE, "site") == "site-service"

    @pytest.mark.parametrize("kind", [ChildKind.CONFIG_MAP, ChildKind.DEPLOYMENT, ChildKind.INGRESS])
    def test_other_kinds_use_site_name(self, kind: ChildKind) -> None:
        assert child_name(kind, "site") == "site"

    def test_processing_order(self) -> None:
        assert list(ChildKind) == [
            ChildKind.CONFIG_MAP,
            ChildKind.DEPLOYMENT,
            ChildKind.SERVICE,
            ChildKind.INGRESS,
        ]


class TestBuildChildren:
    """Test building the full set of children."""

    def test_deterministic(self, site) -> None:
        """Building twice yields identical manifests."""
        assert build_children(site) == build_children(copy.deepcopy(site))

    def test_no_ingress_without_host(self, site) -> None:
        children = build_children(site)
        assert children[ChildKind.INGRESS] is None
        assert list(children) == list(ChildKind)

    def test_every_child_is_owned_and_labelled(self, site) -> None:
        site["spec"]["ingress_host"] = "example.local"
        for kind, manifest in build_children(site).items():
            meta = manifest["metadata"]
            assert meta["name"] == child_name(kind, "site")
            assert meta["namespace"] == "default"
            assert meta["labels"][LABEL_INSTANCE] == "site"
            assert meta["labels"][LABEL_MANAGED_BY] == "static-site-operator"
            assert is_owned_by(manifest, site)

    def test_missing_uid_raises(self, site) -> None:
        del site["metadata"]["uid"]
        with pytest.raises(BuildError):
            build_children(site)

    def test_negative_replicas_raise(self, site) -> None:
        site["spec"]["replicas"] = -1
        with pytest.raises(BuildError):
            build_children(site)

    def test_unknown_service_type_raises(self, site) -> None:
        site["spec"]["service_type"] = "LoadBalancer"
        with pytest.raises(BuildError):
            build_children(site)


class TestConfigMap:
    def test_holds_html(self, site) -> None:
        cm = build_config_map(site, StaticSiteSpec.from_dict(site["spec"]))
        assert cm["data"] == {"index.html": "<h1>hi</h1>"}

    def test_default_html(self, site) -> None:
        site["spec"]["html"] = ""
        cm = build_config_map(site, StaticSiteSpec.from_dict(site["spec"]))
        assert cm["data"]["index.html"] == DEFAULT_HTML


class TestDeployment:
    """Test the nginx Deployment manifest."""

    def test_replicas_and_mount(self, site) -> None:
        deployment = build_deployment(site, StaticSiteSpec.from_dict(site["spec"]), image="nginx:1.27")
        spec = deployment["spec"]
        assert spec["replicas"] == 2

        container = spec["template"]["spec"]["containers"][0]
        assert container["image"] == "nginx:1.27"
        assert container["ports"] == [{"containerPort": 80}]
        assert container["volumeMounts"][0]["mountPath"] == DOCUMENT_ROOT
        assert container["volumeMounts"][0]["readOnly"] is True
        assert spec["template"]["spec"]["volumes"][0]["configMap"] == {"name": "site"}

    def test_selector_matches_template(self, site) -> None:
        spec = build_deployment(site, StaticSiteSpec.from_dict(site["spec"]))["spec"]
        assert spec["selector"]["matchLabels"] == spec["template"]["metadata"]["labels"]
        assert LABEL_MANAGED_BY not in spec["selector"]["matchLabels"]

    def test_rollout_hash_follows_html(self, site) -> None:
        first = build_deployment(site, StaticSiteSpec.from_dict(site["spec"]))
        site["spec"]["html"] = "<h1>changed</h1>"
        second = build_deployment(site, StaticSiteSpec.from_dict(site["spec"]))

        first_hash = first["spec"]["template"]["metadata"]["annotations"][ANNOTATION_ROLLOUT_HASH]
        second_hash = second["spec"]["template"]["metadata"]["annotations"][ANNOTATION_ROLLOUT_HASH]
        assert first_hash == rollout_hash("<h1>hi</h1>")
        assert first_hash != second_hash

    def test_replicas_do_not_change_hash(self, site) -> None:
        first = build_deployment(site, StaticSiteSpec.from_dict(site["spec"]))
        site["spec"]["replicas"] = 5
        second = build_deployment(site, StaticSiteSpec.from_dict(site["spec"]))
        assert first["spec"]["template"] == second["spec"]["template"]


class TestService:
    def test_node_port(self, site) -> None:
        service = build_service(site, StaticSiteSpec.from_dict(site["spec"]))
        assert service["metadata"]["name"] == "site-service"
        assert service["spec"]["type"] == "NodePort"
        assert service["spec"]["ports"] == [{"name": "http", "port": 80, "targetPort": 80, "protocol": "TCP"}]
        assert "nodePort" not in service["spec"]["ports"][0]

    def test_defaults_to_cluster_ip(self, site) -> None:
        del site["spec"]["service_type"]
        service = build_service(site, StaticSiteSpec.from_dict(site["spec"]))
        assert service["spec"]["type"] == "ClusterIP"


class TestIngress:
    """Test the optional Ingress."""

    def test_routes_host_to_service(self, site) -> None:
        site["spec"]["ingress_host"] = "example.local"
        ingress = build_ingress(site, StaticSiteSpec.from_dict(site["spec"]))

        rule = ingress["spec"]["rules"][0]
        assert rule["host"] == "example.local"
        path = rule["http"]["paths"][0]
        assert path["path"] == "/"
        assert path["pathType"] == "Prefix"
        assert path["backend"]["service"] == {"name": "site-service", "port": {"number": 80}}
        assert ingress["spec"]["tls"] is None

    def test_tls_block(self, site) -> None:
        site["spec"]["ingress_host"] = "example.local"
        site["spec"]["tls_secret_name"] = "site-tls"
        ingress = build_ingress(site, StaticSiteSpec.from_dict(site["spec"]))
        assert ingress["spec"]["tls"] == [{"hosts": ["example.local"], "secretName": "site-tls"}]

    def test_tls_without_host_builds_nothing(self, site) -> None:
        site["spec"]["tls_secret_name"] = "site-tls"
        assert build_ingress(site, StaticSiteSpec.from_dict(site["spec"])) is None

    def test_blank_host_builds_nothing(self, site) -> None:
        site["spec"]["ingress_host"] = "   "
        assert build_ingress(site, StaticSiteSpec.from_dict(site["spec"])) is None


class TestOwnership:
    def test_owner_reference(self, site) -> None:
        ref = owner_reference(site)
        assert ref["uid"] == "site-uid"
        assert ref["kind"] == "StaticSite"
        assert ref["controller"] is True
        assert ref["blockOwnerDeletion"] is True

    def test_is_owned_by(self, site) -> None:
        assert not is_owned_by({"metadata": {}}, site)
        assert not is_owned_by({"metadata": {"ownerReferences": [{"uid": "other"}]}}, site)
        assert is_owned_by({"metadata": {"ownerReferences": [{"uid": "site-uid"}]}}, site)
