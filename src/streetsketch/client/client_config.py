"""Client-side settings for submitting and polling stylization jobs."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Pydantic settings container for the polling client."""

    model_config = SettingsConfigDict(env_prefix="STREETSKETCH_")

    api_base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the StreetSketch job API.",
    )
    poll_interval_seconds: float = Field(
        default=3.0,
        gt=0.0,
        description="Delay between two job status checks in seconds.",
    )
    poll_max_attempts: int = Field(
        default=40,
        ge=1,
        description="Status checks before the poller gives up with a timeout.",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        ge=0.1,
        description="Timeout applied to each API request in seconds.",
    )
    maps_api_key: str | None = Field(
        default=None,
        description="API key used to build Street View image URLs.",
    )
    street_view_size: str = Field(
        default="1024x768",
        pattern=r"^\d+x\d+$",
        description="Requested Street View image size (WIDTHxHEIGHT).",
    )


__all__ = ["ClientSettings"]
