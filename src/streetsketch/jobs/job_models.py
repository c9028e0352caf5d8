"""Data structures shared by the job runner, the store and the poller."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import StrEnum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_job_id() -> str:
    """Return a fresh opaque job identifier."""
    return uuid.uuid4().hex


class JobStatus(StrEnum):
    """Lifecycle statuses of a job as seen by the poller.

    ``PENDING`` is never stored: the absence of a record means pending.
    """

    PENDING = "pending"
    COMPLETE = "complete"
    ERROR = "error"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETE, JobStatus.ERROR})


@dataclass(slots=True, frozen=True)
class JobRecord:
    """Terminal outcome of a job, written once by the runner."""

    job_id: str
    status: JobStatus
    result: str | None = None
    message: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    expires_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.status not in TERMINAL_STATUSES:
            raise ValueError(f"job record must be terminal, got '{self.status}'")
        if self.status is JobStatus.COMPLETE and (self.result is None or self.message is not None):
            raise ValueError("complete record requires result and no message")
        if self.status is JobStatus.ERROR and (self.message is None or self.result is not None):
            raise ValueError("error record requires message and no result")

    @classmethod
    def complete(cls, job_id: str, result: str, *, created_at: datetime | None = None) -> "JobRecord":
        return cls(
            job_id=job_id,
            status=JobStatus.COMPLETE,
            result=result,
            created_at=created_at or utcnow(),
        )

    @classmethod
    def error(cls, job_id: str, message: str, *, created_at: datetime | None = None) -> "JobRecord":
        return cls(
            job_id=job_id,
            status=JobStatus.ERROR,
            message=message or "Unknown error",
            created_at=created_at or utcnow(),
        )

    def with_ttl(self, ttl_seconds: int) -> "JobRecord":
        """Return a copy whose ``expires_at`` is ``created_at + ttl_seconds``."""
        return JobRecord(
            job_id=self.job_id,
            status=self.status,
            result=self.result,
            message=self.message,
            created_at=self.created_at,
            expires_at=self.created_at + timedelta(seconds=ttl_seconds),
        )

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


@dataclass(slots=True, frozen=True)
class StylizeJobRequest:
    """Inputs of a stylization job: source reference and style selector."""

    image_url: str
    art_style: str
