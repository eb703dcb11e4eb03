"""High-value constants for the GCE cloud provider package."""

# Package metadata
PACKAGE_VERSION = "0.4.0"
PACKAGE_NAME = "gce-cloud-provider"
PRODUCT_NAME = "GCE CSI Driver"

# OAuth2 scopes
CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
COMPUTE_SCOPE = "https://www.googleapis.com/auth/compute"
DEFAULT_CREDENTIAL_SCOPES = (CLOUD_PLATFORM_SCOPE, COMPUTE_SCOPE)

# Environment contract
CREDENTIALS_ENV_VAR = "GOOGLE_APPLICATION_CREDENTIALS"
METADATA_HOST_ENV_VAR = "GCE_METADATA_HOST"

# Metadata server contract
METADATA_DEFAULT_HOST = "metadata.google.internal"
METADATA_IP = "169.254.169.254"
METADATA_PATH_PREFIX = "/computeMetadata/v1/"
METADATA_FLAVOR_HEADER = "Metadata-Flavor"
METADATA_FLAVOR = "Google"
METADATA_PROJECT_ID_PATH = "project/project-id"
METADATA_ZONE_PATH = "instance/zone"

# Alternate token endpoint contract
ALT_TOKEN_CONTENT_TYPE = "application/json"

# Compute API surfaces
COMPUTE_API_NAME = "compute"
COMPUTE_API_VERSION = "v1"
COMPUTE_ALPHA_API_VERSION = "alpha"

# Remote error reasons
NOT_FOUND_REASON = "notFound"
INVALID_REASON = "invalid"

# Business logic consts
TOKEN_POLL_INTERVAL_SECONDS = 5.0
TOKEN_POLL_TIMEOUT_SECONDS = 30.0
METADATA_TIMEOUT_SECONDS = 5.0
HTTP_TIMEOUT_SECONDS = 30
NIL_TOKEN_URL = "nil"  # legacy placeholder meaning "no alternate token url"
