"""Street View static image source."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from urllib.parse import urlencode

from ..jobs.job_errors import ImageSourceConfigError

logger = logging.getLogger(__name__)

STREET_VIEW_URL = "https://maps.googleapis.com/maps/api/streetview"

HEADING_RANGE = (0, 360)
PITCH_RANGE = (-90, 90)
FOV_RANGE = (10, 120)


@dataclass(slots=True, frozen=True)
class StreetViewPov:
    """Camera point of view for a Street View capture."""

    heading: int = 90
    pitch: int = 0
    fov: int = 120

    def clamped(self) -> "StreetViewPov":
        return StreetViewPov(
            heading=_clamp(self.heading, HEADING_RANGE),
            pitch=_clamp(self.pitch, PITCH_RANGE),
            fov=_clamp(self.fov, FOV_RANGE),
        )


@dataclass(slots=True)
class StreetViewSource:
    """Build fetchable Street View URLs for an address."""

    api_key: str | None
    size: str = "1024x768"
    base_url: str = STREET_VIEW_URL
    log: logging.Logger = field(default_factory=lambda: logger)

    def image_url(self, address: str, pov: StreetViewPov | None = None) -> str:
        if not self.api_key:
            self.log.error("street_view.api_key_missing")
            raise ImageSourceConfigError("Maps API key is not set")
        params: dict[str, str | int] = {
            "size": self.size,
            "location": address,
            "key": self.api_key,
        }
        if pov is not None:
            pov = pov.clamped()
            params.update(heading=pov.heading, pitch=pov.pitch, fov=pov.fov)
        return f"{self.base_url}?{urlencode(params)}"


def _clamp(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(high, int(value)))
