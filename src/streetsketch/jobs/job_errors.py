"""Domain-specific exceptions for the stylization job protocol."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import exc as sa_exc


class JobError(Exception):
    """Base class for job-related errors."""


class JobStoreError(JobError):
    """Raised when the job store cannot complete an operation."""


class JobStoreReadError(JobStoreError):
    """Raised when reading a job record fails; callers treat it as transient."""


class JobRecordExistsError(JobStoreError):
    """Raised when a second terminal record is written for the same job."""


class JobRejectedError(JobError):
    """Raised by the dispatcher when a job cannot be scheduled."""

    def __init__(self, message: str, *, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


class SubmissionRejectedError(JobError):
    """Raised client-side when the runner did not acknowledge scheduling."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StylizationError(JobError):
    """Raised when the stylization worker fails before producing an image."""


class ImageFetchError(JobError):
    """Raised when the source image cannot be downloaded."""


class ImageSourceConfigError(JobError):
    """Raised when the image source provider is not configured."""


class InvalidDataUrlError(JobError, ValueError):
    """Raised when a data URL cannot be decoded."""


@contextmanager
def handle_store_errors(*, reading: bool = False) -> Iterator[None]:
    """Translate SQLAlchemy errors into job store errors."""
    try:
        yield
    except sa_exc.IntegrityError as exc:
        raise JobRecordExistsError("job record already exists") from exc
    except sa_exc.SQLAlchemyError as exc:
        error_cls = JobStoreReadError if reading else JobStoreError
        raise error_cls(f"job store operation failed: {exc.__class__.__name__}") from exc


class FlowStateError(JobError):
    """Raised when a flow action is not allowed in the current step."""
