"""GCE Cloud Provider Package

Builds authenticated Compute Engine API clients for a persistent disk CSI
driver, resolving credentials, project and zone from a cloud provider config
file, the environment and the instance metadata server.
"""

from .auth import (
    AltTokenCredentials,
    TokenSource,
    TokenSourceKind,
    generate_token_source,
    warm_up,
)
from .client import ComputeServices, create_cloud_services, user_agent
from .config import ConfigFile, ConfigGlobal, Settings, get_settings, read_config
from .consts import PACKAGE_VERSION
from .exceptions import (
    ClientConstructionError,
    ConfigMalformedError,
    ConfigUnreadableError,
    CredentialsUnavailableError,
    GCEProviderError,
    ProjectUndiscoverableError,
    ZoneUndiscoverableError,
)
from .identity import get_project_and_zone
from .metadata import MetadataClient
from .models import ResolvedIdentity
from .provider import (
    CloudProvider,
    ZonesCache,
    create_cloud_provider,
    is_gce_error,
    is_gce_invalid_error,
    is_gce_not_found_error,
)

__version__ = PACKAGE_VERSION

__all__ = [
    "__version__",
    "read_config",
    "get_settings",
    "generate_token_source",
    "warm_up",
    "create_cloud_services",
    "user_agent",
    "get_project_and_zone",
    "create_cloud_provider",
    "is_gce_error",
    "is_gce_not_found_error",
    "is_gce_invalid_error",
    "AltTokenCredentials",
    "CloudProvider",
    "ComputeServices",
    "ConfigFile",
    "ConfigGlobal",
    "MetadataClient",
    "ResolvedIdentity",
    "Settings",
    "TokenSource",
    "TokenSourceKind",
    "ZonesCache",
    "GCEProviderError",
    "ConfigUnreadableError",
    "ConfigMalformedError",
    "CredentialsUnavailableError",
    "ClientConstructionError",
    "ZoneUndiscoverableError",
    "ProjectUndiscoverableError",
]
