from __future__ import annotations

import base64
from typing import Any

import pytest

from src.streetsketch.jobs.job_errors import StylizationError
from src.streetsketch.providers.providers_factory import create_worker
from src.streetsketch.providers.providers_gemini import GeminiStylizer
from src.streetsketch.providers.style_prompts import STYLE_DESCRIPTIONS, build_prompt

pytestmark = pytest.mark.unit


class DummyResponse:
    def __init__(
        self, status_code: int, json_data: dict[str, Any] | None = None, text: str = ""
    ) -> None:
        self.status_code = status_code
        self._json_data = json_data or {}
        self.text = text

    def json(self) -> dict[str, Any]:
        return self._json_data


class DummyAsyncClient:
    def __init__(self, responses: list[DummyResponse]) -> None:
        self._responses = responses
        self.requests: list[dict[str, Any]] = []

    async def __aenter__(self) -> "DummyAsyncClient":  # pragma: no cover - helper
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:  # pragma: no cover - helper
        return None

    async def post(self, url: str, headers: dict[str, str], json: dict[str, Any]) -> DummyResponse:
        self.requests.append({"url": url, "headers": headers, "json": json})
        if not self._responses:
            raise RuntimeError("No more responses queued")
        return self._responses.pop(0)


@pytest.fixture(autouse=True)
def gemini_api_key(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")


def image_response(payload: bytes = b"result-bytes") -> DummyResponse:
    return DummyResponse(
        200,
        {
            "candidates": [
                {
                    "content": {
                        "parts": [
                            {"text": "here you go"},
                            {
                                "inlineData": {
                                    "mimeType": "image/png",
                                    "data": base64.b64encode(payload).decode("ascii"),
                                }
                            },
                        ]
                    }
                }
            ]
        },
    )


@pytest.mark.asyncio
async def test_stylize_success(monkeypatch) -> None:
    client = DummyAsyncClient([image_response()])
    monkeypatch.setattr("httpx.AsyncClient", lambda timeout: client)

    result = await GeminiStylizer(backoff_seconds=0).stylize(
        b"street-bytes", content_type="image/jpeg", art_style="Oil Painting", job_id="job-1"
    )

    assert result.payload == b"result-bytes"
    assert result.content_type == "image/png"
    request = client.requests[0]
    assert request["url"].endswith("/models/gemini-2.5-flash-image:generateContent")
    assert request["headers"]["x-goog-api-key"] == "test-key"
    parts = request["json"]["contents"][0]["parts"]
    assert parts[0]["inline_data"] == {
        "mime_type": "image/jpeg",
        "data": base64.b64encode(b"street-bytes").decode("ascii"),
    }
    assert STYLE_DESCRIPTIONS["Oil Painting"] in parts[1]["text"]
    assert request["json"]["generationConfig"]["responseModalities"] == ["IMAGE"]


@pytest.mark.asyncio
async def test_stylize_retries_transient_errors(monkeypatch) -> None:
    busy = DummyResponse(429, {"error": {"status": "RESOURCE_EXHAUSTED", "message": "quota"}})
    client = DummyAsyncClient([busy, image_response()])
    monkeypatch.setattr("httpx.AsyncClient", lambda timeout: client)

    result = await GeminiStylizer(backoff_seconds=0).stylize(
        b"street-bytes", content_type="image/jpeg", art_style="Watercolor"
    )

    assert result.payload == b"result-bytes"
    assert len(client.requests) == 2


@pytest.mark.asyncio
async def test_stylize_gives_up_after_max_attempts(monkeypatch) -> None:
    error_response = DummyResponse(500, {"error": {"status": "INTERNAL", "message": "boom"}})
    client = DummyAsyncClient([error_response, error_response])
    monkeypatch.setattr("httpx.AsyncClient", lambda timeout: client)

    with pytest.raises(StylizationError) as exc_info:
        await GeminiStylizer(backoff_seconds=0).stylize(
            b"street-bytes", content_type="image/jpeg", art_style="Watercolor"
        )

    assert "status=500" in str(exc_info.value)
    assert "INTERNAL boom" in str(exc_info.value)
    assert len(client.requests) == 2


@pytest.mark.asyncio
async def test_client_errors_are_not_retried(monkeypatch) -> None:
    client = DummyAsyncClient(
        [DummyResponse(400, {"error": {"status": "INVALID_ARGUMENT", "message": "bad image"}})]
    )
    monkeypatch.setattr("httpx.AsyncClient", lambda timeout: client)

    with pytest.raises(StylizationError):
        await GeminiStylizer(backoff_seconds=0).stylize(
            b"street-bytes", content_type="image/jpeg", art_style="Watercolor"
        )

    assert len(client.requests) == 1


@pytest.mark.asyncio
async def test_response_without_image_reports_finish_reason(monkeypatch) -> None:
    client = DummyAsyncClient(
        [DummyResponse(200, {"candidates": [{"finishReason": "IMAGE_SAFETY", "content": {"parts": []}}]})]
    )
    monkeypatch.setattr("httpx.AsyncClient", lambda timeout: client)

    with pytest.raises(StylizationError) as exc_info:
        await GeminiStylizer().stylize(b"street-bytes", content_type="image/jpeg", art_style="Watercolor")

    assert "IMAGE_SAFETY" in str(exc_info.value)


@pytest.mark.asyncio
async def test_missing_api_key(monkeypatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY")

    with pytest.raises(StylizationError):
        await GeminiStylizer().stylize(b"street-bytes", content_type="image/jpeg", art_style="Watercolor")


def test_unknown_style_falls_back_to_watercolor() -> None:
    assert build_prompt("Cubism") == build_prompt("Watercolor")


def test_factory_builds_gemini_worker() -> None:
    worker = create_worker("Gemini", model="gemini-test")

    assert isinstance(worker, GeminiStylizer)
    assert worker.model == "gemini-test"
    with pytest.raises(ValueError):
        create_worker("dall-e")
