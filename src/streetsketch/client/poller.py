"""Scheduled-retry loop turning job store state into a caller-visible outcome.

One :class:`Poller` watches one job id. It reads the store once per tick,
treats a missing record as pending, and stops on the first terminal record,
when the attempt budget is spent, or when the caller stops it. A terminal
record is deleted right after it is read, so it is delivered only once.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

from ..jobs.job_errors import JobStoreError, JobStoreReadError
from ..jobs.job_models import JobRecord, JobStatus

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 3.0
DEFAULT_MAX_ATTEMPTS = 40


class PollState(StrEnum):
    IDLE = "idle"
    POLLING = "polling"
    RESOLVED_COMPLETE = "resolved_complete"
    RESOLVED_ERROR = "resolved_error"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


FINAL_STATES = frozenset(
    {
        PollState.RESOLVED_COMPLETE,
        PollState.RESOLVED_ERROR,
        PollState.TIMED_OUT,
        PollState.CANCELLED,
    }
)


@dataclass(slots=True, frozen=True)
class PollOutcome:
    """Final result of a polling run."""

    job_id: str
    state: PollState
    attempts: int
    result: str | None = None
    message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is PollState.RESOLVED_COMPLETE


class JobReader(Protocol):
    """Read/delete side of the job store as used by the poller."""

    async def get(self, job_id: str) -> JobRecord | None: ...

    async def delete(self, job_id: str) -> None: ...


OutcomeCallback = Callable[[PollOutcome], Any]


class Poller:
    """Poll the job store for ``job_id`` on a fixed cadence."""

    def __init__(
        self,
        reader: JobReader,
        job_id: str,
        *,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        sleep: Callable[[float], Any] | None = None,
        on_outcome: OutcomeCallback | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.job_id = job_id
        self.interval_seconds = max(0.0, interval_seconds)
        self.max_attempts = max_attempts
        self.state = PollState.IDLE
        self.attempts = 0
        self.outcome: PollOutcome | None = None
        self._reader = reader
        self._sleep = self._wrap_sleep(sleep)
        self._on_outcome = on_outcome
        self._task: asyncio.Task[PollOutcome] | None = None

    @staticmethod
    def _wrap_sleep(
        sleep: Callable[[float], Any] | None,
    ) -> Callable[[float], Awaitable[None]]:
        if sleep is None:
            return asyncio.sleep

        async def _async_sleep(seconds: float) -> None:
            result = sleep(seconds)
            if inspect.isawaitable(result):
                await result

        return _async_sleep

    @property
    def active(self) -> bool:
        return self.state is PollState.POLLING

    def start(self) -> asyncio.Task[PollOutcome]:
        """Schedule the polling loop on the running event loop."""
        if self._task is not None or self.state is not PollState.IDLE:
            raise RuntimeError(f"poller for job '{self.job_id}' was already started")
        self.state = PollState.POLLING
        self._task = asyncio.create_task(self._run(), name=f"streetsketch-poll-{self.job_id}")
        return self._task

    async def wait(self) -> PollOutcome:
        """Wait for the loop to finish; a stopped poller reports ``CANCELLED``."""
        if self._task is None:
            if self.state is PollState.CANCELLED:
                return self._cancelled_outcome()
            raise RuntimeError(f"poller for job '{self.job_id}' was not started")
        await asyncio.wait({self._task})
        if self._task.cancelled():
            return self._cancelled_outcome()
        return self._task.result()

    async def run(self) -> PollOutcome:
        """Start the loop and wait for its outcome."""
        self.start()
        return await self.wait()

    def stop(self) -> None:
        """Stop ticking; no further reads or deletes happen for this job."""
        if self.state in FINAL_STATES:
            return
        self.state = PollState.CANCELLED
        self.outcome = self._cancelled_outcome()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.info(
            "client.poll.cancelled",
            extra={"job_id": self.job_id, "attempts": self.attempts},
        )

    async def _run(self) -> PollOutcome:
        while True:
            await self._sleep(self.interval_seconds)
            self.attempts += 1
            record = await self._read()
            if record is not None:
                return await self._finish(await self._consume(record))
            if self.attempts >= self.max_attempts:
                logger.warning(
                    "client.poll.timed_out",
                    extra={"job_id": self.job_id, "attempts": self.attempts},
                )
                return await self._finish(
                    PollOutcome(
                        job_id=self.job_id,
                        state=PollState.TIMED_OUT,
                        attempts=self.attempts,
                        message="Timed out waiting for the job to finish",
                    )
                )

    async def _read(self) -> JobRecord | None:
        try:
            return await self._reader.get(self.job_id)
        except JobStoreReadError as exc:
            logger.warning(
                "client.poll.read_failed",
                extra={"job_id": self.job_id, "attempt": self.attempts, "error": str(exc)},
            )
            return None

    async def _consume(self, record: JobRecord) -> PollOutcome:
        try:
            await self._reader.delete(self.job_id)
        except JobStoreError:
            # the record still expires through its TTL
            logger.exception("client.poll.delete_failed", extra={"job_id": self.job_id})

        if record.status is JobStatus.COMPLETE:
            logger.info(
                "client.poll.complete",
                extra={"job_id": self.job_id, "attempts": self.attempts},
            )
            return PollOutcome(
                job_id=self.job_id,
                state=PollState.RESOLVED_COMPLETE,
                attempts=self.attempts,
                result=record.result,
            )
        logger.info(
            "client.poll.error",
            extra={"job_id": self.job_id, "attempts": self.attempts, "error": record.message},
        )
        return PollOutcome(
            job_id=self.job_id,
            state=PollState.RESOLVED_ERROR,
            attempts=self.attempts,
            message=record.message,
        )

    async def _finish(self, outcome: PollOutcome) -> PollOutcome:
        self.state = outcome.state
        self.outcome = outcome
        if self._on_outcome is not None:
            result = self._on_outcome(outcome)
            if inspect.isawaitable(result):
                await result
        return outcome

    def _cancelled_outcome(self) -> PollOutcome:
        return PollOutcome(job_id=self.job_id, state=PollState.CANCELLED, attempts=self.attempts)


__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "JobReader",
    "PollOutcome",
    "PollState",
    "Poller",
]
