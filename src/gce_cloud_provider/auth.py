"""OAuth2 token source selection and warm-up."""

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

import google.auth
import google_auth_httplib2
import httplib2
from google.auth import compute_engine
from google.auth import credentials as google_credentials
from google.auth import exceptions as google_exceptions

from .config import ConfigFile
from .consts import (
    ALT_TOKEN_CONTENT_TYPE,
    CLOUD_PLATFORM_SCOPE,
    CREDENTIALS_ENV_VAR,
    DEFAULT_CREDENTIAL_SCOPES,
    HTTP_TIMEOUT_SECONDS,
    METADATA_HOST_ENV_VAR,
    NIL_TOKEN_URL,
    TOKEN_POLL_INTERVAL_SECONDS,
    TOKEN_POLL_TIMEOUT_SECONDS,
)
from .exceptions import CredentialsUnavailableError
from .metadata import MetadataClient, credentials_metadata_host

logger = logging.getLogger("gce-cloud-provider.auth")


class AltTokenCredentials(google_credentials.Credentials):
    """Credentials minted by an operator-supplied token endpoint.

    Each refresh POSTs the configured body to the configured URL and expects
    ``{"accessToken": "...", "expireTime": "<RFC 3339>"}`` back.
    """

    def __init__(self, token_url: str, token_body: str):
        super().__init__()
        self.token_url = token_url
        self._token_body = token_body

    def refresh(self, request) -> None:
        """Fetch a new access token from the token endpoint.

        Args:
            request: google.auth.transport.Request used to make the call.

        Raises:
            google.auth.exceptions.RefreshError: If the endpoint rejects the
                request, cannot be reached, or answers with an unexpected body.
        """
        try:
            response = request(
                url=self.token_url,
                method="POST",
                body=self._token_body.encode("utf-8"),
                headers={"Content-Type": ALT_TOKEN_CONTENT_TYPE},
            )
        except google_exceptions.TransportError as e:
            raise google_exceptions.RefreshError(
                f"Token endpoint {self.token_url} unreachable: {e}"
            ) from e

        if response.status != 200:
            raise google_exceptions.RefreshError(
                f"Token endpoint {self.token_url} returned HTTP {response.status}"
            )

        try:
            payload = json.loads(response.data)
            token = payload["accessToken"]
            expiry = _parse_expire_time(payload["expireTime"])
        except (ValueError, KeyError, TypeError) as e:
            raise google_exceptions.RefreshError(
                f"Unexpected response from token endpoint {self.token_url}: {e}"
            ) from e

        self.token = token
        self.expiry = expiry


def _parse_expire_time(value: str) -> datetime:
    """Convert an RFC 3339 timestamp to the naive UTC datetime google-auth uses."""
    expiry = datetime.fromisoformat(value)
    if expiry.tzinfo is not None:
        expiry = expiry.astimezone(UTC).replace(tzinfo=None)
    return expiry


class TokenSourceKind(StrEnum):
    """Where a TokenSource gets its tokens from."""

    ALTERNATE = "alternate"
    DEFAULT_CREDENTIAL = "default-credential"
    METADATA_OVERRIDE = "metadata-override"


@dataclass(frozen=True)
class TokenSource:
    """A renewable bearer token source.

    Build instances with the per-kind constructors rather than directly.
    """

    kind: TokenSourceKind
    credentials: google_credentials.Credentials

    @classmethod
    def alternate(cls, token_url: str, token_body: str) -> "TokenSource":
        return cls(TokenSourceKind.ALTERNATE, AltTokenCredentials(token_url, token_body))

    @classmethod
    def default_credential(
        cls, credentials: google_credentials.Credentials
    ) -> "TokenSource":
        return cls(TokenSourceKind.DEFAULT_CREDENTIAL, credentials)

    @classmethod
    def metadata_override(cls) -> "TokenSource":
        return cls(
            TokenSourceKind.METADATA_OVERRIDE,
            compute_engine.Credentials(scopes=[CLOUD_PLATFORM_SCOPE]),
        )

    def token(self) -> str:
        """Return a current access token, refreshing it first if needed.

        This call blocks on network I/O.

        Raises:
            google.auth.exceptions.GoogleAuthError: If no token can be obtained.
        """
        if not self.credentials.valid:
            request = google_auth_httplib2.Request(
                httplib2.Http(timeout=HTTP_TIMEOUT_SECONDS)
            )
            try:
                self.credentials.refresh(request)
            except OSError as e:
                raise google_exceptions.TransportError(e) from e

        if not self.credentials.token:
            raise google_exceptions.RefreshError(
                f"{self.kind} token source produced an empty token"
            )
        return self.credentials.token


async def generate_token_source(
    config: ConfigFile | None, metadata: MetadataClient
) -> TokenSource:
    """Pick the token source for the provider.

    Order of preference:
    1. ``token-url`` from the config file (unless empty or ``"nil"``)
    2. Default application credentials, except when
       ``GOOGLE_APPLICATION_CREDENTIALS`` is unset and the process runs on
       Compute Engine: then metadata credentials scoped to cloud-platform are
       used, as the default chain would drop the requested scopes there.
       The override is skipped when the metadata client talks to a host other
       than the one those credentials use.

    Args:
        config: Parsed config file, or None.
        metadata: Metadata client used to detect Compute Engine.

    Returns:
        The selected TokenSource. No token has been fetched yet.

    Raises:
        CredentialsUnavailableError: If default application credentials are
            needed but cannot be loaded.
    """
    if config is not None and config.global_.token_url not in ("", NIL_TOKEN_URL):
        token_source = TokenSource.alternate(
            config.global_.token_url, config.global_.token_body
        )
        logger.info(f"Using alternate token source at {config.global_.token_url}")
        return token_source

    credentials = None
    default_error = None
    try:
        credentials, _ = await asyncio.to_thread(
            google.auth.default, scopes=list(DEFAULT_CREDENTIAL_SCOPES)
        )
    except google_exceptions.DefaultCredentialsError as e:
        default_error = e

    on_gce = await metadata.on_gce()
    logger.debug(f"Metadata info: on GCE: {on_gce}")

    credentials_path = os.environ.get(CREDENTIALS_ENV_VAR)
    if credentials_path is not None:
        logger.debug(f"{CREDENTIALS_ENV_VAR} env var set {credentials_path}")
    else:
        logger.warning(f"{CREDENTIALS_ENV_VAR} env var not set")
        if on_gce and not metadata.shares_credentials_host():
            logger.warning(
                f"Metadata server {metadata.host} differs from the one compute "
                f"engine credentials use ({credentials_metadata_host()}); "
                f"set {METADATA_HOST_ENV_VAR} to override both"
            )
        elif on_gce:
            if default_error is not None:
                logger.debug(f"Ignoring default credentials error: {default_error}")
            logger.info("Using compute engine token source")
            return TokenSource.metadata_override()

    if default_error is not None:
        raise CredentialsUnavailableError(
            "Could not load default application credentials",
            errors=[str(default_error)],
            suggestions=[
                f"Point {CREDENTIALS_ENV_VAR} at a service account key file",
                "Or set token-url in the cloud provider config file",
            ],
            context={"token_source": TokenSourceKind.DEFAULT_CREDENTIAL.value},
        ) from default_error

    logger.info(
        f"Using default credentials token source ({type(credentials).__name__})"
    )
    return TokenSource.default_credential(credentials)


async def warm_up(
    token_source: TokenSource,
    interval: float = TOKEN_POLL_INTERVAL_SECONDS,
    timeout: float = TOKEN_POLL_TIMEOUT_SECONDS,
) -> None:
    """Wait until the token source can mint a token.

    Tries immediately, then every ``interval`` seconds until ``timeout``
    seconds have passed. Failed attempts are retried. Cancelling the awaiting
    task stops the loop.

    Args:
        token_source: Source to poll.
        interval: Seconds between attempts.
        timeout: Total seconds allowed.

    Raises:
        CredentialsUnavailableError: If no attempt succeeded in time.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    attempts = 0
    last_error = None

    while True:
        attempts += 1
        try:
            await asyncio.to_thread(token_source.token)
        except google_exceptions.GoogleAuthError as e:
            last_error = e
            logger.warning(f"Error fetching initial token (attempt {attempts}): {e}")
        else:
            logger.debug(
                f"Fetched initial token from {token_source.kind} token source "
                f"after {attempts} attempt(s)"
            )
            return

        remaining = deadline - loop.time()
        if remaining <= 0:
            break
        await asyncio.sleep(min(interval, remaining))

    logger.error(f"No token from {token_source.kind} token source after {timeout}s")
    raise CredentialsUnavailableError(
        f"Timed out fetching initial token from {token_source.kind} token source",
        errors=[str(last_error)] if last_error else [],
        suggestions=[
            "Check that the metadata server or token endpoint is reachable",
            "Check the service account has the required scopes",
        ],
        context={
            "token_source": token_source.kind.value,
            "attempts": attempts,
            "timeout_seconds": timeout,
        },
    ) from last_error
