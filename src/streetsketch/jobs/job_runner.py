"""Server-side execution of a stylization job.

A run always ends by writing exactly one terminal record to the job store:
``complete`` with the stylized image as a data URL, or ``error`` with a
human-readable message. The poller has no other way to learn the outcome.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime

from ..media.data_urls import encode_data_url
from ..providers.providers_base import StylizationWorker, StylizedImage
from ..sources.image_fetch import ImageFetcher
from .job_errors import JobError, JobRecordExistsError, JobStoreError
from .job_models import JobRecord, StylizeJobRequest, utcnow
from .job_store import JobStore

logger = logging.getLogger(__name__)

DEFAULT_RUNNER_TIMEOUT_SECONDS = 90.0


@dataclass(slots=True)
class JobRunner:
    """Fetch the source image, stylize it and persist the terminal record."""

    store: JobStore
    worker: StylizationWorker
    fetcher: ImageFetcher = field(default_factory=ImageFetcher)
    timeout_seconds: float = DEFAULT_RUNNER_TIMEOUT_SECONDS
    log: logging.Logger = field(default_factory=lambda: logger)

    async def run(self, job_id: str, request: StylizeJobRequest) -> JobRecord:
        started_at = utcnow()
        self.log.info(
            "jobs.runner.start",
            extra={"job_id": job_id, "art_style": request.art_style},
        )
        try:
            image = await asyncio.wait_for(
                self._stylize(job_id, request), timeout=self.timeout_seconds
            )
        except asyncio.CancelledError:
            await self._write(JobRecord.error(job_id, "Job was cancelled before completion"))
            raise
        except asyncio.TimeoutError:
            self.log.warning(
                "jobs.runner.timeout",
                extra={"job_id": job_id, "timeout_seconds": self.timeout_seconds},
            )
            record = JobRecord.error(job_id, "Stylization timed out")
        except JobError as exc:
            self.log.error(
                "jobs.runner.failed",
                extra={"job_id": job_id, "error": str(exc), "duration_seconds": _since(started_at)},
            )
            record = JobRecord.error(job_id, str(exc))
        except Exception as exc:
            self.log.exception("jobs.runner.unexpected_error", extra={"job_id": job_id})
            record = JobRecord.error(job_id, str(exc) or exc.__class__.__name__)
        else:
            record = JobRecord.complete(job_id, encode_data_url(image.payload, image.content_type))
            self.log.info(
                "jobs.runner.complete",
                extra={
                    "job_id": job_id,
                    "content_type": image.content_type,
                    "size_bytes": len(image.payload),
                    "duration_seconds": _since(started_at),
                },
            )
        await self._write(record)
        return record

    async def _stylize(self, job_id: str, request: StylizeJobRequest) -> StylizedImage:
        if not request.image_url:
            raise JobError("Source image URL is required")
        source = await self.fetcher.fetch(request.image_url)
        return await self.worker.stylize(
            source.payload,
            content_type=source.content_type,
            art_style=request.art_style,
            job_id=job_id,
        )

    async def _write(self, record: JobRecord) -> None:
        try:
            await self.store.put(record.job_id, record)
        except JobRecordExistsError:
            self.log.error("jobs.runner.duplicate_record", extra={"job_id": record.job_id})
        except JobStoreError:
            self.log.exception(
                "jobs.runner.store_write_failed",
                extra={"job_id": record.job_id, "status": record.status.value},
            )


def _since(started_at: datetime) -> float:
    return (utcnow() - started_at).total_seconds()
