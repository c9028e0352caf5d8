from __future__ import annotations

import asyncio

import pytest

from src.streetsketch.client.flow_state import FlowState, FlowStep
from src.streetsketch.client.poller import PollState
from src.streetsketch.client.submitter import JobSubmitter
from src.streetsketch.jobs.job_errors import SubmissionRejectedError
from src.streetsketch.jobs.job_models import JobRecord, StylizeJobRequest
from tests.mocks.job_backend import FakeJobBackend, never_resolves

pytestmark = pytest.mark.unit

REQUEST = StylizeJobRequest(image_url="https://maps.test/streetview", art_style="Watercolor")


def build_submitter(backend: FakeJobBackend, *, sleep=None) -> JobSubmitter:
    ids = iter(["job-1", "job-2", "job-3"])
    return JobSubmitter(
        starter=backend,
        reader=backend,
        interval_seconds=3.0,
        max_attempts=5,
        sleep=sleep or (lambda seconds: None),
        id_factory=lambda: next(ids),
    )


@pytest.mark.asyncio
async def test_submit_starts_job_then_polls() -> None:
    backend = FakeJobBackend(outcome=lambda job_id: JobRecord.complete(job_id, "data:image/png;base64,AAAA"))
    state = FlowState(step=FlowStep.STYLING)

    poller = await build_submitter(backend).submit(state, REQUEST)

    assert backend.started == [("job-1", REQUEST)]
    assert state.step is FlowStep.GENERATING
    assert state.job_id == "job-1"
    assert state.poller is poller
    outcome = await poller.wait()
    assert outcome.state is PollState.RESOLVED_COMPLETE
    assert backend.deleted == ["job-1"]


@pytest.mark.asyncio
async def test_rejected_submission_starts_no_poller() -> None:
    backend = FakeJobBackend(reject=True)
    state = FlowState(step=FlowStep.STYLING)

    with pytest.raises(SubmissionRejectedError):
        await build_submitter(backend).submit(state, REQUEST)

    assert state.step is FlowStep.STYLING
    assert state.job_id is None
    assert state.poller is None
    assert "busy" in state.error
    assert backend.reads == 0


@pytest.mark.asyncio
async def test_new_submission_stops_previous_poller() -> None:
    backend = FakeJobBackend()
    state = FlowState(step=FlowStep.STYLING)
    submitter = build_submitter(backend, sleep=never_resolves())

    first = await submitter.submit(state, REQUEST)
    await asyncio.sleep(0)
    second = await submitter.submit(state, REQUEST)

    assert first.state is PollState.CANCELLED
    assert (await first.wait()).state is PollState.CANCELLED
    assert second.active
    assert state.poller is second
    assert state.job_id == "job-2"
    assert backend.reads == 0

    second.stop()
    await second.wait()


@pytest.mark.asyncio
async def test_submission_superseded_during_acknowledgment() -> None:
    backend = FakeJobBackend()
    state = FlowState(step=FlowStep.STYLING)
    submitter = build_submitter(backend)
    original_start = backend.start_job

    async def start_then_reset(job_id, request):
        await original_start(job_id, request)
        state.job_id = None

    backend.start_job = start_then_reset

    poller = await submitter.submit(state, REQUEST)

    assert poller.state is PollState.CANCELLED
    assert state.poller is None
