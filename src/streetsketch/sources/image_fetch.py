"""Download source images for stylization jobs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

from ..jobs.job_errors import ImageFetchError

logger = logging.getLogger(__name__)

# Street View answers a missing location with a small grey PNG instead of 404.
PLACEHOLDER_MAX_BYTES = 20_000


@dataclass(slots=True, frozen=True)
class SourceImage:
    payload: bytes
    content_type: str


@dataclass(slots=True)
class ImageFetcher:
    """Fetch a source image over HTTP."""

    timeout_seconds: float = 20.0
    log: logging.Logger = field(default_factory=lambda: logger)

    async def fetch(self, url: str) -> SourceImage:
        try:
            response = await self._get(url)
        except httpx.HTTPError as exc:
            raise ImageFetchError(f"Failed to fetch image: {exc}") from exc

        if response.status_code >= 400:
            self.log.error(
                "image_fetch.failed",
                extra={"status_code": response.status_code, "reason": response.reason_phrase},
            )
            raise ImageFetchError(
                f"Failed to fetch image: {response.status_code} {response.reason_phrase}"
            )

        content_type = (response.headers.get("content-type") or "image/jpeg").split(";")[0].strip()
        payload = response.content
        if content_type == "image/png" and len(payload) < PLACEHOLDER_MAX_BYTES:
            raise ImageFetchError("404: No Street View imagery available for this location.")

        self.log.info(
            "image_fetch.done",
            extra={"content_type": content_type, "size_bytes": len(payload)},
        )
        return SourceImage(payload=payload, content_type=content_type)

    async def _get(self, url: str) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout_seconds, follow_redirects=True) as client:
            return await client.get(url)
