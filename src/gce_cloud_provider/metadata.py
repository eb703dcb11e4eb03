"""Instance metadata server client."""

import asyncio
import logging
import os

import httpx

from .consts import (
    METADATA_DEFAULT_HOST,
    METADATA_FLAVOR,
    METADATA_FLAVOR_HEADER,
    METADATA_HOST_ENV_VAR,
    METADATA_IP,
    METADATA_PATH_PREFIX,
    METADATA_PROJECT_ID_PATH,
    METADATA_TIMEOUT_SECONDS,
    METADATA_ZONE_PATH,
    PACKAGE_NAME,
    PACKAGE_VERSION,
)

logger = logging.getLogger("gce-cloud-provider.metadata")


def credentials_metadata_host() -> str:
    """Metadata host google-auth's compute engine credentials talk to."""
    return os.environ.get(METADATA_HOST_ENV_VAR) or METADATA_DEFAULT_HOST


class MetadataClient:
    """Client for the Compute Engine instance metadata server.

    Responsibilities:
    - Detect whether the process runs on Compute Engine
    - Read the current project id and zone

    Errors are propagated as httpx exceptions; callers decide whether they
    are fatal.
    """

    def __init__(
        self,
        host: str | None = None,
        timeout: float = METADATA_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize MetadataClient.

        Args:
            host: Metadata host override. Defaults to ``GCE_METADATA_HOST``,
                then to the well-known metadata host.
            timeout: Per-request timeout in seconds.
            http_client: HTTP client. If None, creates a new one.
        """
        self.host_override = host or os.environ.get(METADATA_HOST_ENV_VAR) or None
        self.host = self.host_override or METADATA_DEFAULT_HOST
        self.base_url = f"http://{self.host}{METADATA_PATH_PREFIX}"
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            headers={"User-Agent": f"{PACKAGE_NAME}/{PACKAGE_VERSION}"},
            timeout=timeout,
        )

    async def __aenter__(self) -> "MetadataClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self.http_client.aclose()

    async def get(self, path: str) -> str:
        """Fetch a metadata value.

        Args:
            path: Path relative to ``/computeMetadata/v1/``.

        Returns:
            The response body with surrounding whitespace removed.

        Raises:
            httpx.HTTPStatusError: For HTTP 4xx/5xx responses.
            httpx.RequestError: If the metadata server cannot be reached.
        """
        url = f"{self.base_url}{path}"
        logger.debug(f"GET {url}")
        response = await self.http_client.get(
            url, headers={METADATA_FLAVOR_HEADER: METADATA_FLAVOR}
        )
        response.raise_for_status()
        return response.text.strip()

    async def on_gce(self) -> bool:
        """Report whether the metadata server is reachable from this host.

        A host taken from ``GCE_METADATA_HOST`` counts as running on Compute
        Engine, as it does for google-auth. Any other host must answer with
        the ``Metadata-Flavor: Google`` header. Without an override both the
        metadata IP and the DNS name are tried, so hosts where the name does
        not resolve are still detected.
        """
        if self.host_override and self.host_override == os.environ.get(
            METADATA_HOST_ENV_VAR
        ):
            return True

        hosts = [self.host] if self.host_override else [METADATA_IP, self.host]
        answers = await asyncio.gather(*(self._ping(host) for host in hosts))
        return any(answers)

    def shares_credentials_host(self) -> bool:
        """True if compute engine credentials use this client's host."""
        return self.host == credentials_metadata_host()

    async def _ping(self, host: str) -> bool:
        try:
            response = await self.http_client.get(f"http://{host}/")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"Metadata server at {host} not reachable: {e}")
            return False
        return response.headers.get(METADATA_FLAVOR_HEADER) == METADATA_FLAVOR

    async def project_id(self) -> str:
        """Get the project id of the current instance."""
        return await self.get(METADATA_PROJECT_ID_PATH)

    async def zone(self) -> str:
        """Get the zone of the current instance.

        The server answers ``projects/<number>/zones/<zone>``; only the zone
        name is returned.
        """
        value = await self.get(METADATA_ZONE_PATH)
        return value.rsplit("/", 1)[-1]
