"""Fire-and-forget scheduling of job runs."""

from __future__ import annotations

import asyncio
import logging

from .job_errors import JobRejectedError
from .job_models import StylizeJobRequest
from .job_runner import JobRunner
from .job_store import JobStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_IN_FLIGHT_JOBS = 12


class RejectReason:
    DUPLICATE = "duplicate_job"
    BUSY = "busy"
    SHUTTING_DOWN = "shutting_down"


class JobDispatcher:
    """Accept stylization jobs and run them as detached tasks.

    ``accept`` only acknowledges scheduling; the caller learns the outcome
    through the job store.
    """

    def __init__(
        self,
        *,
        runner: JobRunner,
        store: JobStore,
        max_in_flight: int = DEFAULT_MAX_IN_FLIGHT_JOBS,
    ) -> None:
        self._runner = runner
        self._store = store
        self._max_in_flight = max(1, max_in_flight)
        self._tasks: dict[str, asyncio.Task[object]] = {}
        self._closed = False

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def accept(self, job_id: str, request: StylizeJobRequest) -> None:
        """Schedule ``job_id`` or raise :class:`JobRejectedError`."""
        existing = await self._store.exists(job_id)
        # no suspension point between these checks and task registration
        if self._closed:
            raise JobRejectedError("Dispatcher is shutting down", reason=RejectReason.SHUTTING_DOWN)
        if existing or job_id in self._tasks:
            logger.warning("jobs.dispatch.duplicate", extra={"job_id": job_id})
            raise JobRejectedError(f"Job '{job_id}' already exists", reason=RejectReason.DUPLICATE)
        if len(self._tasks) >= self._max_in_flight:
            logger.warning(
                "jobs.dispatch.busy",
                extra={"job_id": job_id, "in_flight": len(self._tasks)},
            )
            raise JobRejectedError("Too many jobs in flight", reason=RejectReason.BUSY)

        task = asyncio.create_task(
            self._runner.run(job_id, request), name=f"streetsketch-job-{job_id}"
        )
        self._tasks[job_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(job_id, None))
        logger.info("jobs.dispatch.accepted", extra={"job_id": job_id})

    async def wait_idle(self) -> None:
        """Wait until every scheduled run has finished."""
        tasks = list(self._tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel in-flight runs; each still writes its error record."""
        self._closed = True
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
