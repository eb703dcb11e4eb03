"""CloudProvider facade and Compute API error classification."""

import asyncio
import json
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError

from .auth import generate_token_source, warm_up
from .client import create_cloud_services
from .config import ConfigFile, Settings, get_settings, read_config
from .consts import INVALID_REASON, NOT_FOUND_REASON
from .identity import get_project_and_zone
from .metadata import MetadataClient

logger = logging.getLogger("gce-cloud-provider.provider")


class ZonesCache:
    """Per-provider cache of zone names discovered for a region.

    Entries are written once and never expire; build a new provider to
    refresh them.
    """

    def __init__(self):
        self._entries: dict[str, tuple[str, ...]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> tuple[str, ...] | None:
        with self._lock:
            return self._entries.get(key)

    def set_once(self, key: str, values: Iterable[str]) -> tuple[str, ...]:
        """Store ``values`` unless ``key`` is already cached.

        Returns:
            The cached values for ``key``, which are the existing ones if
            another caller stored them first.
        """
        with self._lock:
            return self._entries.setdefault(key, tuple(values))

    def get_or_fill(
        self, key: str, loader: Callable[[], Iterable[str]]
    ) -> tuple[str, ...]:
        """Return the cached values for ``key``, loading them on first use.

        The lock is held while ``loader`` runs so concurrent callers for the
        same key never see a partial entry.
        """
        with self._lock:
            if key not in self._entries:
                self._entries[key] = tuple(loader())
            return self._entries[key]

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


@dataclass
class CloudProvider:
    """Authenticated Compute API handle for one project and zone."""

    service: Resource
    alpha_service: Resource
    project: str
    zone: str
    user_agent: str = ""
    zones_cache: ZonesCache = field(default_factory=ZonesCache, repr=False)


async def create_cloud_provider(
    vendor_version: str,
    config_path: str | None,
    *,
    settings: Settings | None = None,
    metadata: MetadataClient | None = None,
) -> CloudProvider:
    """Build a ready-to-use CloudProvider.

    Steps run in order and the first failure is raised: read the config
    file, pick a token source, warm it up, build the API clients, resolve
    project and zone.

    Args:
        vendor_version: Driver version reported in the user agent.
        config_path: Cloud provider config file, or empty/None for none.
        settings: Settings instance. If None, uses get_settings().
        metadata: Metadata client. If None, one is created for the duration
            of the call.

    Returns:
        A fully populated CloudProvider.

    Raises:
        ConfigUnreadableError, ConfigMalformedError: From the config file.
        CredentialsUnavailableError: If no token can be obtained.
        ClientConstructionError: If an API client cannot be built.
        ZoneUndiscoverableError, ProjectUndiscoverableError: From identity
            resolution.
    """
    settings = settings or get_settings()

    config = read_config(config_path)
    # config may still be None past this point
    logger.debug(f"Using GCE provider config {config!r}")

    if metadata is None:
        async with MetadataClient(
            host=settings.metadata_host, timeout=settings.metadata_timeout_seconds
        ) as owned_metadata:
            return await _assemble(vendor_version, config, settings, owned_metadata)
    return await _assemble(vendor_version, config, settings, metadata)


async def _assemble(
    vendor_version: str,
    config: ConfigFile | None,
    settings: Settings,
    metadata: MetadataClient,
) -> CloudProvider:
    token_source = await generate_token_source(config, metadata)
    await warm_up(
        token_source,
        interval=settings.token_poll_interval_seconds,
        timeout=settings.token_poll_timeout_seconds,
    )
    services = await asyncio.to_thread(
        create_cloud_services,
        vendor_version,
        token_source,
        settings.http_timeout_seconds,
    )

    identity = await get_project_and_zone(config, metadata)

    logger.info(
        f"Cloud provider ready for project {identity.project_id!r} "
        f"zone {identity.zone!r}"
    )
    return CloudProvider(
        service=services.service,
        alpha_service=services.alpha_service,
        project=identity.project_id,
        zone=identity.zone,
        user_agent=services.user_agent,
    )


def is_gce_error(err: BaseException | None, reason: str) -> bool:
    """Check whether ``err`` is a Compute API error with the given reason.

    Args:
        err: Any exception (or None).
        reason: Reason to look for, e.g. "resourceInUseByAnotherResource".

    Returns:
        True if ``err`` is an HttpError listing ``reason`` among its errors.
    """
    if not isinstance(err, HttpError):
        return False
    return reason in _error_reasons(err)


def is_gce_not_found_error(err: BaseException | None) -> bool:
    """True if ``err`` is a Compute API error with reason "notFound"."""
    return is_gce_error(err, NOT_FOUND_REASON)


def is_gce_invalid_error(err: BaseException | None) -> bool:
    """True if ``err`` is a Compute API error with reason "invalid"."""
    return is_gce_error(err, INVALID_REASON)


def _error_reasons(err: HttpError) -> list[str]:
    """Extract ``error.errors[*].reason`` from an HttpError body."""
    try:
        payload = json.loads(err.content)
    except (TypeError, ValueError):
        return []

    error = payload.get("error") if isinstance(payload, dict) else None
    sub_errors = error.get("errors") if isinstance(error, dict) else None
    if not isinstance(sub_errors, list):
        return []
    return [e.get("reason") for e in sub_errors if isinstance(e, dict)]
