from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from src.streetsketch.jobs.job_dispatcher import JobDispatcher, RejectReason
from src.streetsketch.jobs.job_errors import JobRejectedError
from src.streetsketch.jobs.job_models import JobRecord, JobStatus, StylizeJobRequest, utcnow
from src.streetsketch.jobs.job_runner import JobRunner
from src.streetsketch.jobs.job_store import InMemoryJobStore
from tests.mocks.job_backend import StubFetcher, StubWorker

pytestmark = pytest.mark.unit

REQUEST = StylizeJobRequest(image_url="https://maps.test/streetview", art_style="Watercolor")


def build_dispatcher(*, block: bool = False, max_in_flight: int = 4):
    store = InMemoryJobStore()
    worker = StubWorker()
    worker.block = block
    runner = JobRunner(store=store, worker=worker, fetcher=StubFetcher())
    dispatcher = JobDispatcher(runner=runner, store=store, max_in_flight=max_in_flight)
    return dispatcher, store, worker


@pytest.mark.asyncio
async def test_accept_runs_job_in_background() -> None:
    dispatcher, store, _ = build_dispatcher()

    await dispatcher.accept("job-1", REQUEST)
    assert dispatcher.in_flight == 1

    await dispatcher.wait_idle()
    await asyncio.sleep(0)

    assert dispatcher.in_flight == 0
    assert (await store.get("job-1")).status is JobStatus.COMPLETE


@pytest.mark.asyncio
async def test_duplicate_in_flight_job_is_rejected() -> None:
    dispatcher, _, worker = build_dispatcher(block=True)
    await dispatcher.accept("job-1", REQUEST)

    with pytest.raises(JobRejectedError) as exc_info:
        await dispatcher.accept("job-1", REQUEST)

    assert exc_info.value.reason == RejectReason.DUPLICATE
    worker.release.set()
    await dispatcher.wait_idle()


@pytest.mark.asyncio
async def test_job_with_stored_record_is_rejected() -> None:
    dispatcher, store, worker = build_dispatcher()
    await store.put("job-1", JobRecord.error("job-1", "boom"))

    with pytest.raises(JobRejectedError) as exc_info:
        await dispatcher.accept("job-1", REQUEST)

    assert exc_info.value.reason == RejectReason.DUPLICATE
    assert worker.calls == []


@pytest.mark.asyncio
async def test_job_with_expired_unpurged_record_is_rejected() -> None:
    dispatcher, store, worker = build_dispatcher()
    old = utcnow() - timedelta(hours=2)
    await store.put("job-1", JobRecord.error("job-1", "boom", created_at=old))

    with pytest.raises(JobRejectedError) as exc_info:
        await dispatcher.accept("job-1", REQUEST)

    assert exc_info.value.reason == RejectReason.DUPLICATE
    assert worker.calls == []
    assert dispatcher.in_flight == 0


@pytest.mark.asyncio
async def test_busy_dispatcher_rejects_new_jobs() -> None:
    dispatcher, _, worker = build_dispatcher(block=True, max_in_flight=1)
    await dispatcher.accept("job-1", REQUEST)

    with pytest.raises(JobRejectedError) as exc_info:
        await dispatcher.accept("job-2", REQUEST)

    assert exc_info.value.reason == RejectReason.BUSY
    worker.release.set()
    await dispatcher.wait_idle()


@pytest.mark.asyncio
async def test_shutdown_cancels_runs_and_refuses_new_jobs() -> None:
    dispatcher, store, worker = build_dispatcher(block=True)
    await dispatcher.accept("job-1", REQUEST)
    while not worker.calls:
        await asyncio.sleep(0)

    await dispatcher.shutdown()

    record = await store.get("job-1")
    assert record is not None
    assert record.message == "Job was cancelled before completion"
    assert dispatcher.in_flight == 0
    with pytest.raises(JobRejectedError) as exc_info:
        await dispatcher.accept("job-2", REQUEST)
    assert exc_info.value.reason == RejectReason.SHUTTING_DOWN
