"""Durable key-value storage for terminal job records.

The store is keyed by job id and only ever holds terminal records: the runner
writes once, the poller reads and deletes. Records carry an expiry so that
results nobody consumed (the poller timed out or was cancelled) do not pile up.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy import delete as sa_delete, func, select
from sqlalchemy.orm import Session

from ..db.db_models import JobRecordModel
from .job_errors import JobRecordExistsError, handle_store_errors
from .job_models import JobRecord, JobStatus, utcnow

logger = logging.getLogger(__name__)

DEFAULT_RECORD_TTL_SECONDS = 3600


class JobStore(ABC):
    """Adapter over the durable job store."""

    def __init__(self, *, record_ttl_seconds: int = DEFAULT_RECORD_TTL_SECONDS) -> None:
        if record_ttl_seconds <= 0:
            raise ValueError("record_ttl_seconds must be positive")
        self.record_ttl_seconds = record_ttl_seconds

    @abstractmethod
    async def put(self, job_id: str, record: JobRecord) -> None:
        """Persist the terminal record; a second write for ``job_id`` fails."""

    @abstractmethod
    async def get(self, job_id: str, *, now: datetime | None = None) -> JobRecord | None:
        """Return the record or ``None`` when absent or expired."""

    @abstractmethod
    async def delete(self, job_id: str) -> None:
        """Remove the record; deleting an absent key is a no-op."""

    @abstractmethod
    async def take(self, job_id: str, *, now: datetime | None = None) -> JobRecord | None:
        """Remove and return the record in one step; ``None`` when absent or expired."""

    @abstractmethod
    async def exists(self, job_id: str) -> bool:
        """Whether ``job_id`` holds a record, expired or not, so ``put`` would fail."""

    @abstractmethod
    async def purge_expired(self, now: datetime | None = None) -> int:
        """Delete expired records and return how many were removed."""

    @abstractmethod
    async def count_expired(self, now: datetime | None = None) -> int:
        """Return how many records a purge at ``now`` would remove."""

    def _stamp(self, job_id: str, record: JobRecord) -> JobRecord:
        if record.job_id != job_id:
            raise ValueError(f"record belongs to job '{record.job_id}', not '{job_id}'")
        return record.with_ttl(self.record_ttl_seconds)


class InMemoryJobStore(JobStore):
    """Process-local store used by tests and single-process deployments."""

    def __init__(self, *, record_ttl_seconds: int = DEFAULT_RECORD_TTL_SECONDS) -> None:
        super().__init__(record_ttl_seconds=record_ttl_seconds)
        self._records: dict[str, JobRecord] = {}
        self._lock = asyncio.Lock()

    async def put(self, job_id: str, record: JobRecord) -> None:
        stamped = self._stamp(job_id, record)
        async with self._lock:
            if job_id in self._records:
                raise JobRecordExistsError(f"job '{job_id}' already has a record")
            self._records[job_id] = stamped
        logger.info("jobs.store.put", extra={"job_id": job_id, "status": stamped.status.value})

    async def get(self, job_id: str, *, now: datetime | None = None) -> JobRecord | None:
        async with self._lock:
            record = self._records.get(job_id)
        if record is None or record.is_expired(now or utcnow()):
            return None
        return record

    async def delete(self, job_id: str) -> None:
        async with self._lock:
            removed = self._records.pop(job_id, None)
        if removed is not None:
            logger.info("jobs.store.delete", extra={"job_id": job_id})

    async def take(self, job_id: str, *, now: datetime | None = None) -> JobRecord | None:
        async with self._lock:
            record = self._records.pop(job_id, None)
        if record is None or record.is_expired(now or utcnow()):
            return None
        logger.info("jobs.store.take", extra={"job_id": job_id})
        return record

    async def exists(self, job_id: str) -> bool:
        async with self._lock:
            return job_id in self._records

    async def purge_expired(self, now: datetime | None = None) -> int:
        current = now or utcnow()
        async with self._lock:
            expired = [key for key, record in self._records.items() if record.is_expired(current)]
            for key in expired:
                del self._records[key]
        return len(expired)

    async def count_expired(self, now: datetime | None = None) -> int:
        current = now or utcnow()
        async with self._lock:
            return sum(1 for record in self._records.values() if record.is_expired(current))

    def __len__(self) -> int:
        return len(self._records)


class SqlJobStore(JobStore):
    """SQLAlchemy-backed store; session work runs in a worker thread."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        record_ttl_seconds: int = DEFAULT_RECORD_TTL_SECONDS,
    ) -> None:
        super().__init__(record_ttl_seconds=record_ttl_seconds)
        self._session_factory = session_factory

    async def put(self, job_id: str, record: JobRecord) -> None:
        stamped = self._stamp(job_id, record)
        await asyncio.to_thread(self._put_sync, stamped)
        logger.info("jobs.store.put", extra={"job_id": job_id, "status": stamped.status.value})

    async def get(self, job_id: str, *, now: datetime | None = None) -> JobRecord | None:
        record = await asyncio.to_thread(self._get_sync, job_id)
        if record is None or record.is_expired(now or utcnow()):
            return None
        return record

    async def delete(self, job_id: str) -> None:
        removed = await asyncio.to_thread(self._delete_sync, job_id)
        if removed:
            logger.info("jobs.store.delete", extra={"job_id": job_id})

    async def take(self, job_id: str, *, now: datetime | None = None) -> JobRecord | None:
        record = await asyncio.to_thread(self._take_sync, job_id)
        if record is None or record.is_expired(now or utcnow()):
            return None
        logger.info("jobs.store.take", extra={"job_id": job_id})
        return record

    async def exists(self, job_id: str) -> bool:
        return await asyncio.to_thread(self._exists_sync, job_id)

    async def purge_expired(self, now: datetime | None = None) -> int:
        return await asyncio.to_thread(self._purge_sync, now or utcnow())

    async def count_expired(self, now: datetime | None = None) -> int:
        return await asyncio.to_thread(self._count_expired_sync, now or utcnow())

    def _put_sync(self, record: JobRecord) -> None:
        with handle_store_errors():
            with self._session_factory() as session:
                if session.get(JobRecordModel, record.job_id) is not None:
                    raise JobRecordExistsError(f"job '{record.job_id}' already has a record")
                session.add(
                    JobRecordModel(
                        job_id=record.job_id,
                        status=record.status.value,
                        result=record.result,
                        message=record.message,
                        created_at=_to_naive_utc(record.created_at),
                        expires_at=_to_naive_utc(record.expires_at),
                    )
                )
                session.commit()

    def _get_sync(self, job_id: str) -> JobRecord | None:
        with handle_store_errors(reading=True):
            with self._session_factory() as session:
                model = session.get(JobRecordModel, job_id)
                if model is None:
                    return None
                return _to_record(model)

    def _take_sync(self, job_id: str) -> JobRecord | None:
        with handle_store_errors(reading=True):
            with self._session_factory() as session:
                model = session.get(JobRecordModel, job_id)
                if model is None:
                    return None
                record = _to_record(model)
                result = session.execute(
                    sa_delete(JobRecordModel).where(JobRecordModel.job_id == job_id)
                )
                session.commit()
                # a concurrent take removed it first
                if not result.rowcount:
                    return None
                return record

    def _exists_sync(self, job_id: str) -> bool:
        with handle_store_errors(reading=True):
            with self._session_factory() as session:
                return session.get(JobRecordModel, job_id) is not None

    def _delete_sync(self, job_id: str) -> bool:
        with handle_store_errors():
            with self._session_factory() as session:
                result = session.execute(
                    sa_delete(JobRecordModel).where(JobRecordModel.job_id == job_id)
                )
                session.commit()
                return bool(result.rowcount)

    def _purge_sync(self, now: datetime) -> int:
        with handle_store_errors():
            with self._session_factory() as session:
                result = session.execute(
                    sa_delete(JobRecordModel).where(
                        JobRecordModel.expires_at <= _to_naive_utc(now)
                    )
                )
                session.commit()
                return int(result.rowcount or 0)

    def _count_expired_sync(self, now: datetime) -> int:
        with handle_store_errors(reading=True):
            with self._session_factory() as session:
                stmt = (
                    select(func.count())
                    .select_from(JobRecordModel)
                    .where(JobRecordModel.expires_at <= _to_naive_utc(now))
                )
                return int(session.execute(stmt).scalar_one())


def _to_record(model: JobRecordModel) -> JobRecord:
    return JobRecord(
        job_id=model.job_id,
        status=JobStatus(model.status),
        result=model.result,
        message=model.message,
        created_at=_to_aware_utc(model.created_at),
        expires_at=_to_aware_utc(model.expires_at),
    )


def _to_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _to_aware_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


__all__ = [
    "DEFAULT_RECORD_TTL_SECONDS",
    "InMemoryJobStore",
    "JobStore",
    "SqlJobStore",
]
