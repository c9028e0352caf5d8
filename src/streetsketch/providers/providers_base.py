"""Abstract stylization worker definition."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(slots=True)
class StylizedImage:
    """Standard response from stylization workers."""

    payload: bytes
    content_type: str


class StylizationWorker(ABC):
    """Base interface for stylization workers."""

    @abstractmethod
    async def stylize(
        self, image: bytes, *, content_type: str, art_style: str, job_id: str | None = None
    ) -> StylizedImage:
        """Transform ``image`` into ``art_style`` and return the new image."""
