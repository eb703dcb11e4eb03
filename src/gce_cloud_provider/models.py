"""Value types shared across the provider."""

from pydantic import BaseModel, ConfigDict, Field


class ResolvedIdentity(BaseModel):
    """Project and zone the provider operates in."""

    model_config = ConfigDict(frozen=True)

    project_id: str = Field(..., min_length=1, description="GCP project id")
    zone: str = Field(..., min_length=1, description="Compute Engine zone")
