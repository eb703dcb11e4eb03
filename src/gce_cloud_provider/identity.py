"""Project and zone resolution."""

import logging

import httpx

from .config import ConfigFile
from .exceptions import (
    GCEProviderError,
    ProjectUndiscoverableError,
    ZoneUndiscoverableError,
)
from .metadata import MetadataClient
from .models import ResolvedIdentity

logger = logging.getLogger("gce-cloud-provider.identity")


async def get_project_and_zone(
    config: ConfigFile | None, metadata: MetadataClient
) -> ResolvedIdentity:
    """Determine the project id and zone.

    Each field comes from the config file when set there, and from the
    metadata server otherwise. The two are resolved independently and
    metadata failures are not retried.

    Args:
        config: Parsed config file, or None.
        metadata: Metadata client used for missing fields.

    Returns:
        ResolvedIdentity with both fields set.

    Raises:
        ZoneUndiscoverableError: If the zone is not configured and the
            metadata server does not provide it.
        ProjectUndiscoverableError: Likewise for the project id.
    """
    if config is None or not config.global_.zone:
        zone = await _from_metadata(metadata.zone, "zone", ZoneUndiscoverableError)
        logger.info(f"Using GCP zone from the metadata server: {zone!r}")
    else:
        zone = config.global_.zone
        logger.info(f"Using GCP zone from the cloud provider config file: {zone!r}")

    if config is None or not config.global_.project_id:
        # Happens when the driver does not run on a control plane VM.
        project_id = await _from_metadata(
            metadata.project_id, "project ID", ProjectUndiscoverableError
        )
        logger.info(f"Using GCP project ID from the metadata server: {project_id!r}")
    else:
        project_id = config.global_.project_id
        logger.info(
            f"Using GCP project ID from the cloud provider config file: {project_id!r}"
        )

    return ResolvedIdentity(project_id=project_id, zone=zone)


async def _from_metadata(
    fetch, field: str, error_cls: type[GCEProviderError]
) -> str:
    """Read one identity field from the metadata server or raise ``error_cls``."""
    try:
        value = await fetch()
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise error_cls(
            f"Failed getting GCP {field} from the metadata server",
            errors=[str(e)],
            suggestions=[
                f"Set the {field} in the cloud provider config file",
                "Check that the metadata server is reachable",
            ],
            context={"source": "metadata"},
        ) from e

    if not value:
        raise error_cls(
            f"Metadata server returned an empty GCP {field}",
            suggestions=[f"Set the {field} in the cloud provider config file"],
            context={"source": "metadata"},
        )
    return value
