"""Runtime settings with Pydantic v2"""

from functools import cache

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings

from ..consts import (
    HTTP_TIMEOUT_SECONDS,
    METADATA_HOST_ENV_VAR,
    METADATA_TIMEOUT_SECONDS,
    TOKEN_POLL_INTERVAL_SECONDS,
    TOKEN_POLL_TIMEOUT_SECONDS,
)


class Settings(BaseSettings):
    """Process-level settings read from ``GCE_PROVIDER_*`` environment variables.

    These tune how the provider is built; the cloud provider config file
    itself is read by ``read_config``.
    """

    model_config = ConfigDict(
        env_prefix="GCE_PROVIDER_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    log_level: str = Field(
        default="INFO",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
        description="Logging level",
    )
    cloud_config: str = Field(
        default="",
        description="Path to the cloud provider config file (empty for none)",
    )
    metadata_host: str | None = Field(
        default=None,
        validation_alias=METADATA_HOST_ENV_VAR,
        description=(
            "Metadata server host override, e.g. for an emulator. Only read from "
            "GCE_METADATA_HOST, the variable google-auth also honours"
        ),
    )

    # HTTP settings
    metadata_timeout_seconds: float = Field(
        default=METADATA_TIMEOUT_SECONDS,
        gt=0,
        le=60,
        description="Timeout for each metadata server request in seconds",
    )
    http_timeout_seconds: int = Field(
        default=HTTP_TIMEOUT_SECONDS,
        gt=0,
        le=300,
        description="Compute API request timeout in seconds",
    )

    # Token warm-up
    token_poll_interval_seconds: float = Field(
        default=TOKEN_POLL_INTERVAL_SECONDS,
        gt=0,
        description="Delay between initial token fetch attempts",
    )
    token_poll_timeout_seconds: float = Field(
        default=TOKEN_POLL_TIMEOUT_SECONDS,
        gt=0,
        description="Total time allowed to obtain the initial token",
    )

    def __repr__(self) -> str:
        """String representation of the settings"""
        return (
            f"Settings(cloud_config='{self.cloud_config}', "
            f"log_level='{self.log_level}')"
        )


@cache
def get_settings() -> Settings:
    """Get a cached Settings instance."""
    return Settings()
