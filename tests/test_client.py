"""Tests for Compute API client construction"""

from unittest.mock import Mock

import httplib2
import pytest
from googleapiclient import errors as api_errors

from gce_cloud_provider.auth import TokenSource
from gce_cloud_provider.client import create_cloud_services, user_agent
from gce_cloud_provider.exceptions import ClientConstructionError

from conftest import FakeCredentials


@pytest.fixture
def token_source():
    return TokenSource.default_credential(FakeCredentials())


@pytest.fixture
def mock_build(monkeypatch):
    """Patch discovery.build to return one sentinel per API version"""
    build = Mock(side_effect=lambda name, version, **kwargs: Mock(version=version))
    monkeypatch.setattr("googleapiclient.discovery.build", build)
    return build


class TestUserAgent:
    """Test the user agent string"""

    def test_format(self, monkeypatch):
        """Test product, version and platform are included"""
        monkeypatch.setattr("platform.system", lambda: "Linux")
        monkeypatch.setattr("platform.machine", lambda: "x86_64")

        assert user_agent("v1.2.3") == "GCE CSI Driver/v1.2.3 (linux amd64)"

    @pytest.mark.parametrize(
        "machine,arch",
        [
            ("aarch64", "arm64"),
            ("arm64", "arm64"),
            ("AMD64", "amd64"),
            ("i686", "386"),
            ("ppc64le", "ppc64le"),
        ],
    )
    def test_arch_uses_go_names(self, monkeypatch, machine, arch):
        """Test machine names are reported the way Go names architectures"""
        monkeypatch.setattr("platform.system", lambda: "Linux")
        monkeypatch.setattr("platform.machine", lambda: machine)

        assert user_agent("v1").endswith(f"(linux {arch})")

    def test_unknown_platform(self, monkeypatch):
        """Test empty platform details are reported as unknown"""
        monkeypatch.setattr("platform.system", lambda: "")
        monkeypatch.setattr("platform.machine", lambda: "")

        assert user_agent("dev") == "GCE CSI Driver/dev (unknown unknown)"


class TestCreateCloudServices:
    """Test building the v1 and alpha clients"""

    def test_builds_both_versions(self, token_source, mock_build):
        """Test one client per API surface"""
        services = create_cloud_services("v1.2.3", token_source)

        assert services.service.version == "v1"
        assert services.alpha_service.version == "alpha"
        assert services.user_agent.startswith("GCE CSI Driver/v1.2.3 (")
        assert [c.args[:2] for c in mock_build.call_args_list] == [
            ("compute", "v1"),
            ("compute", "alpha"),
        ]

    def test_clients_use_separate_transports(self, token_source, mock_build):
        """Test each client gets its own authorized http"""
        create_cloud_services("v1.2.3", token_source)

        first, second = (c.kwargs["http"] for c in mock_build.call_args_list)
        assert first is not second

    def test_requests_are_authorized_and_tagged(
        self, token_source, mock_build, monkeypatch
    ):
        """Test outgoing requests carry the bearer token and user agent"""
        sent = []

        def fake_request(self, uri, method="GET", body=None, headers=None, **kwargs):
            sent.append(headers)
            return httplib2.Response({"status": 200}), b"{}"

        monkeypatch.setattr(httplib2.Http, "request", fake_request)
        services = create_cloud_services("v1.2.3", token_source)
        http = mock_build.call_args_list[0].kwargs["http"]

        http.request("https://compute.googleapis.com/compute/v1/projects/p")

        assert sent[0]["user-agent"] == services.user_agent
        assert sent[0]["authorization"] == "Bearer fake-token"

    def test_v1_failure_skips_alpha(self, token_source, monkeypatch):
        """Test construction is fail-fast"""
        build = Mock(
            side_effect=api_errors.UnknownApiNameOrVersion("name: compute version: v1")
        )
        monkeypatch.setattr("googleapiclient.discovery.build", build)

        with pytest.raises(ClientConstructionError) as exc_info:
            create_cloud_services("v1.2.3", token_source)

        assert build.call_count == 1
        assert exc_info.value.context["version"] == "v1"

    def test_alpha_failure(self, token_source, monkeypatch):
        """Test an alpha failure is fatal too"""

        def build(name, version, **kwargs):
            if version == "alpha":
                raise api_errors.UnknownApiNameOrVersion("name: compute version: alpha")
            return Mock()

        monkeypatch.setattr("googleapiclient.discovery.build", build)

        with pytest.raises(ClientConstructionError) as exc_info:
            create_cloud_services("v1.2.3", token_source)

        assert exc_info.value.context["version"] == "alpha"
        assert isinstance(exc_info.value.__cause__, api_errors.UnknownApiNameOrVersion)
