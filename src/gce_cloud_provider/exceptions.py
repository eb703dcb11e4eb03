"""GCE cloud provider custom exceptions.

Exception Design Principles:
1. Every exception raised while building a provider is fatal to startup
2. Wrap the underlying cause with ``raise ... from`` and record the source
   that was attempted in ``context`` so the call site can log it once
3. Split on the stage that failed:
   - Local configuration file (ConfigUnreadableError, ConfigMalformedError)
   - Credential chain (CredentialsUnavailableError)
   - API client construction (ClientConstructionError)
   - Identity discovery (ZoneUndiscoverableError, ProjectUndiscoverableError)

Errors returned by the Compute API after construction are not wrapped here;
they stay as ``googleapiclient.errors.HttpError`` and are classified with the
helpers in ``provider``.
"""


class GCEProviderError(Exception):
    """Base exception for all GCE cloud provider errors.

    Provides rich context and actionable suggestions beyond standard exceptions.
    """

    def __init__(
        self,
        message: str,  # the error message
        *,
        errors: list[str] = None,  # detailed list of errors (if available)
        suggestions: list[str] = None,  # remedial actions
        context: dict = None,  # additional detailed context
    ):
        """Initialize GCEProviderError.

        Args:
            message: Primary error message for operators
            errors: List of specific error details
            suggestions: List of actionable suggestions for resolution
            context: Additional context information as key-value pairs
        """
        super().__init__(message)
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        self.context = context or {}


class ConfigError(GCEProviderError):
    """Local cloud provider configuration file problems."""

    pass


class ConfigUnreadableError(ConfigError):
    """The configuration file path was given but the file could not be opened."""

    pass


class ConfigMalformedError(ConfigError):
    """The configuration file was opened but does not parse into the schema."""

    pass


class CredentialsUnavailableError(GCEProviderError):
    """No usable OAuth2 token could be obtained from the selected source.

    Raised when default application credentials cannot be loaded at all, and
    when the token warm-up window elapses without a single successful fetch.
    """

    pass


class ClientConstructionError(GCEProviderError):
    """A versioned Compute API client could not be built."""

    pass


class IdentityError(GCEProviderError):
    """Project or zone could not be determined."""

    pass


class ZoneUndiscoverableError(IdentityError):
    """No zone in the config file and the metadata server did not provide one."""

    pass


class ProjectUndiscoverableError(IdentityError):
    """No project in the config file and the metadata server did not provide one."""

    pass
