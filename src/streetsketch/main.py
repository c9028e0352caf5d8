"""FastAPI application entry point."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator

from fastapi import FastAPI

from .config import AppConfig, load_config
from .dependencies import include_routers
from .jobs.job_store import JobStore
from .lifecycle import run_periodic_expiry
from .logging import configure_logging
from .providers.providers_base import StylizationWorker


def create_app(
    config: AppConfig | None = None,
    *,
    store: JobStore | None = None,
    worker: StylizationWorker | None = None,
) -> FastAPI:
    """Build FastAPI instance with configured dependencies."""
    configure_logging()
    cfg = config or load_config()

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        shutdown_event = asyncio.Event()
        expiry_task = asyncio.create_task(
            run_periodic_expiry(
                store=app.state.job_store,
                shutdown_event=shutdown_event,
                interval_seconds=cfg.expiry_sweep_seconds,
            ),
            name="streetsketch-job-expiry",
        )
        try:
            yield
        finally:
            shutdown_event.set()
            await app.state.job_dispatcher.shutdown()
            expiry_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await expiry_task

    app = FastAPI(title="StreetSketch", lifespan=lifespan)
    include_routers(app, cfg, store=store, worker=worker)

    @app.get("/healthz", include_in_schema=False)
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app
