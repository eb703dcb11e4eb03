"""Pytest configuration and shared fixtures"""

import os
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from google.auth import credentials as google_credentials
from google.auth import exceptions as google_exceptions

from gce_cloud_provider.config import Settings
from gce_cloud_provider.metadata import MetadataClient

# Configure pytest-asyncio
pytest_plugins = ("pytest_asyncio",)

MANAGED_ENV_VARS = ("GOOGLE_APPLICATION_CREDENTIALS", "GCE_METADATA_HOST")


class FakeCredentials(google_credentials.Credentials):
    """Credentials whose refresh fails ``failures`` times before succeeding."""

    def __init__(self, failures: int = 0, always_fail: bool = False):
        super().__init__()
        self.failures = failures
        self.always_fail = always_fail
        self.refresh_calls = 0

    def refresh(self, request):
        self.refresh_calls += 1
        if self.always_fail or self.refresh_calls <= self.failures:
            raise google_exceptions.RefreshError("metadata server not ready")
        self.token = "fake-token"


@pytest.fixture
def clean_env():
    """Fixture that temporarily clears GCE_PROVIDER_* and credential env vars.

    This ensures tests see the true defaults without interference from
    environment variables that might be set in the user's shell.
    """
    saved = {
        key: value
        for key, value in os.environ.items()
        if key.startswith("GCE_PROVIDER_") or key in MANAGED_ENV_VARS
    }

    for key in saved:
        os.environ.pop(key, None)

    try:
        yield
    finally:
        for key in list(os.environ):
            if key.startswith("GCE_PROVIDER_") or key in MANAGED_ENV_VARS:
                os.environ.pop(key)
        for key, value in saved.items():
            os.environ[key] = value


@pytest.fixture
def fast_settings(clean_env):
    """Settings with a short token warm-up window."""
    return Settings(
        token_poll_interval_seconds=0.01,
        token_poll_timeout_seconds=0.1,
    )


@pytest.fixture
def write_config(tmp_path):
    """Write a cloud provider config file and return its path."""

    def _write(content: str) -> str:
        path = tmp_path / "gce.conf"
        path.write_text(content)
        return str(path)

    return _write


def metadata_handler(project: str = "my-project", zone: str = "us-central1-a"):
    """Build an httpx handler that imitates the metadata server."""

    def handler(request: httpx.Request) -> httpx.Response:
        flavor = {"Metadata-Flavor": "Google"}
        if request.url.path == "/":
            return httpx.Response(200, headers=flavor)
        if request.headers.get("Metadata-Flavor") != "Google":
            return httpx.Response(403)
        if request.url.path == "/computeMetadata/v1/project/project-id":
            return httpx.Response(200, text=project, headers=flavor)
        if request.url.path == "/computeMetadata/v1/instance/zone":
            return httpx.Response(
                200, text=f"projects/123456789/zones/{zone}", headers=flavor
            )
        return httpx.Response(404)

    return handler


@pytest.fixture
def make_metadata_client(clean_env):
    """Factory for MetadataClients answering through an httpx handler."""

    def _make(handler=None, host=None, **kwargs) -> MetadataClient:
        transport = httpx.MockTransport(handler or metadata_handler(**kwargs))
        return MetadataClient(
            host=host, http_client=httpx.AsyncClient(transport=transport)
        )

    return _make


@pytest.fixture
def metadata_client(make_metadata_client):
    """MetadataClient backed by an in-memory metadata server."""
    return make_metadata_client()


@pytest.fixture
def mock_metadata():
    """Mock metadata client"""
    metadata = Mock(spec=MetadataClient)
    metadata.host = "metadata.google.internal"
    metadata.on_gce = AsyncMock(return_value=False)
    metadata.shares_credentials_host = Mock(return_value=True)
    metadata.project_id = AsyncMock(return_value="metadata-project")
    metadata.zone = AsyncMock(return_value="metadata-zone")
    return metadata
