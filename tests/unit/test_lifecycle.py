from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from src.streetsketch.jobs.job_errors import JobStoreError
from src.streetsketch.jobs.job_models import JobRecord, utcnow
from src.streetsketch.jobs.job_store import InMemoryJobStore
from src.streetsketch.lifecycle import expire_records_once, run_periodic_expiry

pytestmark = pytest.mark.unit


@pytest.mark.asyncio
async def test_expire_records_once_purges_orphans() -> None:
    store = InMemoryJobStore(record_ttl_seconds=60)
    await store.put("job-old", JobRecord.error("job-old", "boom", created_at=utcnow() - timedelta(minutes=5)))
    await store.put("job-new", JobRecord.error("job-new", "boom"))

    removed = await expire_records_once(store)

    assert removed == 1
    assert len(store) == 1


class FailingStore(InMemoryJobStore):
    def __init__(self) -> None:
        super().__init__()
        self.calls = 0

    async def purge_expired(self, now=None) -> int:
        self.calls += 1
        raise JobStoreError("database is locked")


@pytest.mark.asyncio
async def test_periodic_expiry_survives_store_errors_and_stops_on_shutdown() -> None:
    store = FailingStore()
    shutdown_event = asyncio.Event()

    task = asyncio.create_task(
        run_periodic_expiry(store=store, shutdown_event=shutdown_event, interval_seconds=1.0)
    )
    while store.calls == 0:
        await asyncio.sleep(0)
    shutdown_event.set()
    await asyncio.wait_for(task, timeout=1.0)

    assert store.calls == 1
    assert task.done() and task.exception() is None
