"""Dependency wiring helpers."""

from __future__ import annotations

from fastapi import FastAPI

from .config import AppConfig
from .jobs.job_dispatcher import JobDispatcher
from .jobs.job_runner import JobRunner
from .jobs.job_store import InMemoryJobStore, JobStore, SqlJobStore
from .jobs.jobs_api import router as jobs_router
from .providers.providers_base import StylizationWorker
from .providers.providers_factory import create_worker


def build_job_store(config: AppConfig) -> JobStore:
    if config.store_backend == "memory":
        return InMemoryJobStore(record_ttl_seconds=config.record_ttl_seconds)
    if config.session_factory is None:
        raise RuntimeError("SQL job store requires a session factory")
    return SqlJobStore(config.session_factory, record_ttl_seconds=config.record_ttl_seconds)


def include_routers(
    app: FastAPI,
    config: AppConfig,
    *,
    store: JobStore | None = None,
    worker: StylizationWorker | None = None,
) -> None:
    """Mount routers and attach services to application state."""
    job_store = store if store is not None else build_job_store(config)
    if worker is None:
        worker = create_worker(config.runner.provider, model=config.runner.model)
    runner = JobRunner(
        store=job_store,
        worker=worker,
        timeout_seconds=config.runner.timeout_seconds,
    )
    dispatcher = JobDispatcher(
        runner=runner,
        store=job_store,
        max_in_flight=config.runner.max_in_flight_jobs,
    )

    app.state.config = config
    app.state.job_store = job_store
    app.state.job_runner = runner
    app.state.job_dispatcher = dispatcher

    app.include_router(jobs_router)
