"""Lifecycle helpers wiring background tasks for FastAPI startup."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from .jobs.job_errors import JobStoreError
from .jobs.job_models import utcnow
from .jobs.job_store import JobStore

logger = logging.getLogger(__name__)


async def expire_records_once(store: JobStore, *, now: datetime | None = None) -> int:
    """Purge orphaned job records whose TTL elapsed."""
    removed = await store.purge_expired(now or utcnow())
    if removed:
        logger.info("jobs.expiry.purged", extra={"removed": removed})
    return removed


async def run_periodic_expiry(
    *,
    store: JobStore,
    shutdown_event: asyncio.Event,
    interval_seconds: float = 300.0,
    clock: Callable[[], datetime] | None = None,
) -> None:
    """Sweep expired records until ``shutdown_event`` is signalled."""
    interval = max(1.0, float(interval_seconds))
    tick = clock or utcnow
    while not shutdown_event.is_set():
        try:
            await expire_records_once(store, now=tick())
        except JobStoreError:
            logger.exception("jobs.expiry.failed")
        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            continue


__all__ = [
    "expire_records_once",
    "run_periodic_expiry",
]
