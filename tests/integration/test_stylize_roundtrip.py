"""Client flow against the real job API, with a stub worker and fetcher."""

from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI

from src.streetsketch.client.controller import GENERIC_FAILURE_MESSAGE, NOT_FOUND_MESSAGE, StylizeController
from src.streetsketch.client.flow_state import FlowStep
from src.streetsketch.client.job_client import RemoteJobStore, StylizeApiClient
from src.streetsketch.client.submitter import JobSubmitter
from src.streetsketch.jobs.job_errors import ImageFetchError, StylizationError
from src.streetsketch.media.data_urls import decode_data_url
from src.streetsketch.sources.street_view import StreetViewSource
from tests.mocks.job_app import build_app
from tests.mocks.job_backend import TRANSPARENT_PNG_BYTES, StubFetcher, StubWorker

pytestmark = pytest.mark.integration


async def run_flow(app: FastAPI, *, style: str = "Watercolor") -> StylizeController:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://streetsketch.test") as http:
        api = StylizeApiClient(http)
        controller = StylizeController(
            submitter=JobSubmitter(
                starter=api,
                reader=RemoteJobStore(api),
                interval_seconds=0.01,
                max_attempts=200,
            ),
            source=StreetViewSource("maps-key"),
        )
        controller.submit_address("221B Baker Street, London")
        controller.capture()
        controller.select_style(style)
        await controller.stylize()
    return controller


@pytest.mark.asyncio
async def test_complete_roundtrip_consumes_record() -> None:
    worker = StubWorker()
    fetcher = StubFetcher()
    app, store = build_app(worker=worker, fetcher=fetcher)

    controller = await run_flow(app, style="Pencil Sketch")

    assert controller.state.step is FlowStep.DONE
    payload, content_type = decode_data_url(controller.state.generated_image)
    assert payload == TRANSPARENT_PNG_BYTES
    assert content_type == "image/png"
    assert "location=221B+Baker+Street" in fetcher.urls[0]
    assert worker.calls[0]["art_style"] == "Pencil Sketch"
    assert len(store) == 0


@pytest.mark.asyncio
async def test_missing_imagery_is_reported_to_user() -> None:
    fetcher = StubFetcher(error=ImageFetchError("404: No Street View imagery available for this location."))
    app, store = build_app(worker=StubWorker(), fetcher=fetcher)

    controller = await run_flow(app)

    assert controller.state.step is FlowStep.STYLING
    assert controller.state.error == NOT_FOUND_MESSAGE
    assert len(store) == 0


@pytest.mark.asyncio
async def test_worker_failure_is_reported_to_user() -> None:
    app, _ = build_app(worker=StubWorker(error=StylizationError("worker failure")), fetcher=StubFetcher())

    controller = await run_flow(app)

    assert controller.state.step is FlowStep.STYLING
    assert controller.state.error == GENERIC_FAILURE_MESSAGE
