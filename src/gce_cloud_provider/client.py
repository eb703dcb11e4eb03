"""Compute API clients bound to a token source."""

import logging
import platform
from dataclasses import dataclass

import google_auth_httplib2
import httplib2
from google.auth import exceptions as google_exceptions
from googleapiclient import discovery
from googleapiclient import errors as api_errors
from googleapiclient.discovery import Resource
from googleapiclient.http import set_user_agent

from .auth import TokenSource
from .consts import (
    COMPUTE_ALPHA_API_VERSION,
    COMPUTE_API_NAME,
    COMPUTE_API_VERSION,
    HTTP_TIMEOUT_SECONDS,
    PRODUCT_NAME,
)
from .exceptions import ClientConstructionError

logger = logging.getLogger("gce-cloud-provider.client")


@dataclass(frozen=True)
class ComputeServices:
    """Stable and alpha Compute API clients sharing one credential."""

    service: Resource
    alpha_service: Resource
    user_agent: str


# platform.machine() names that differ from their GOARCH names
_ARCH_NAMES = {
    "x86_64": "amd64",
    "aarch64": "arm64",
    "armv7l": "arm",
    "i386": "386",
    "i686": "386",
}


def user_agent(vendor_version: str) -> str:
    """User agent sent with every Compute API request."""
    system = platform.system().lower() or "unknown"
    machine = platform.machine().lower() or "unknown"
    machine = _ARCH_NAMES.get(machine, machine)
    return f"{PRODUCT_NAME}/{vendor_version} ({system} {machine})"


def create_cloud_services(
    vendor_version: str,
    token_source: TokenSource,
    timeout: int = HTTP_TIMEOUT_SECONDS,
) -> ComputeServices:
    """Build the v1 and alpha Compute API clients.

    The v1 client is built first; if it fails the alpha client is not built.

    Args:
        vendor_version: Driver version reported in the user agent.
        token_source: Warmed-up token source authorizing every request.
        timeout: Per-request timeout in seconds.

    Returns:
        ComputeServices with both clients.

    Raises:
        ClientConstructionError: If either client cannot be built.
    """
    agent = user_agent(vendor_version)
    service = _build_service(COMPUTE_API_VERSION, token_source, agent, timeout)
    alpha_service = _build_service(
        COMPUTE_ALPHA_API_VERSION, token_source, agent, timeout
    )
    return ComputeServices(
        service=service, alpha_service=alpha_service, user_agent=agent
    )


def _build_service(
    version: str, token_source: TokenSource, agent: str, timeout: int
) -> Resource:
    """Build one Compute API client on its own authorized transport."""
    # httplib2.Http is not thread safe, so each client gets its own.
    http = google_auth_httplib2.AuthorizedHttp(
        token_source.credentials, http=httplib2.Http(timeout=timeout)
    )
    http = set_user_agent(http, agent)

    logger.debug(f"Building {COMPUTE_API_NAME} {version} client with {agent!r}")
    try:
        service = discovery.build(
            COMPUTE_API_NAME,
            version,
            http=http,
            cache_discovery=False,
            static_discovery=True,
        )
    except (api_errors.Error, google_exceptions.GoogleAuthError) as e:
        raise ClientConstructionError(
            f"Failed to create {COMPUTE_API_NAME} {version} client",
            errors=[str(e)],
            context={
                "api": COMPUTE_API_NAME,
                "version": version,
                "token_source": token_source.kind.value,
            },
        ) from e

    logger.info(f"Created {COMPUTE_API_NAME} {version} client")
    return service
