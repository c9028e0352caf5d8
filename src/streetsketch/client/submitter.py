"""Client-side submission of stylization jobs."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from ..jobs.job_errors import SubmissionRejectedError
from ..jobs.job_models import StylizeJobRequest, new_job_id
from .flow_state import FlowState, FlowStep
from .poller import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    JobReader,
    OutcomeCallback,
    Poller,
)

logger = logging.getLogger(__name__)


class JobStarter(Protocol):
    async def start_job(self, job_id: str, request: StylizeJobRequest) -> None: ...


def stop_active_poller(state: FlowState) -> None:
    """Stop the flow's poller, if any, and forget its job id."""
    poller = state.poller
    if poller is not None:
        poller.stop()
    state.poller = None
    state.job_id = None


@dataclass(slots=True)
class JobSubmitter:
    """Generate a job id, ask the runner to start, then hand off to a poller."""

    starter: JobStarter
    reader: JobReader
    interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    sleep: Callable[[float], Any] | None = None
    id_factory: Callable[[], str] = new_job_id

    async def submit(
        self,
        state: FlowState,
        request: StylizeJobRequest,
        *,
        on_outcome: OutcomeCallback | None = None,
    ) -> Poller:
        """Start a job for ``request`` and return its running poller.

        Raises :class:`SubmissionRejectedError` when the runner does not
        acknowledge the job; the flow then returns to its previous step and
        no poller is started.
        """
        stop_active_poller(state)
        job_id = self.id_factory()
        previous_step = state.step
        state.step = FlowStep.GENERATING
        state.job_id = job_id
        state.error = None

        try:
            await self.starter.start_job(job_id, request)
        except SubmissionRejectedError as exc:
            if state.job_id == job_id:
                state.step = previous_step
                state.job_id = None
                state.error = str(exc)
            logger.warning("client.submit.rejected", extra={"job_id": job_id, "error": str(exc)})
            raise

        poller = Poller(
            self.reader,
            job_id,
            interval_seconds=self.interval_seconds,
            max_attempts=self.max_attempts,
            sleep=self.sleep,
            on_outcome=on_outcome,
        )
        if state.job_id != job_id:
            # flow was reset or resubmitted while waiting for the acknowledgment
            logger.info("client.submit.superseded", extra={"job_id": job_id})
            poller.stop()
            return poller

        state.poller = poller
        poller.start()
        logger.info("client.submit.polling", extra={"job_id": job_id})
        return poller
