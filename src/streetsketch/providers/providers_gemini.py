"""Gemini stylization worker."""

from __future__ import annotations

import asyncio
import base64
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..jobs.job_errors import StylizationError
from .providers_base import StylizationWorker, StylizedImage
from .style_prompts import build_prompt

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = {"RESOURCE_EXHAUSTED", "DEADLINE_EXCEEDED"}
RETRYABLE_CODES = {429, 500, 503}


@dataclass(slots=True)
class GeminiStylizer(StylizationWorker):
    """Call the Gemini ``generateContent`` REST method with an inline image."""

    model: str = "gemini-2.5-flash-image"
    api_url_base: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout_seconds: float = 60.0
    max_attempts: int = 2
    backoff_seconds: float = 2.0
    log: logging.Logger = field(default_factory=lambda: logger)

    async def stylize(
        self, image: bytes, *, content_type: str, art_style: str, job_id: str | None = None
    ) -> StylizedImage:
        self.log.info(
            "gemini.request.start",
            extra={"job_id": job_id, "art_style": art_style, "payload_bytes": len(image)},
        )
        api_key = os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise StylizationError("Environment variable GEMINI_API_KEY is not set")

        url = f"{self.api_url_base}/models/{self.model}:generateContent"
        headers = {
            "x-goog-api-key": api_key,
            "Content-Type": "application/json",
        }
        body: dict[str, Any] = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {
                            "inline_data": {
                                "mime_type": content_type,
                                "data": base64.b64encode(image).decode("ascii"),
                            }
                        },
                        {"text": build_prompt(art_style)},
                    ],
                }
            ],
            "generationConfig": {"responseModalities": ["IMAGE"]},
        }

        attempts = max(1, self.max_attempts)
        for attempt in range(1, attempts + 1):
            try:
                response = await self._post(url, headers=headers, json=body)
            except httpx.HTTPError as exc:
                if attempt >= attempts:
                    raise StylizationError(f"Gemini HTTP error: {exc}") from exc
                await asyncio.sleep(self.backoff_seconds)
                continue

            if response.status_code == 200:
                data = response.json()
                self.log.info(
                    "gemini.response.received",
                    extra={"job_id": job_id, "body_preview": _preview(data)},
                )
                result = self._parse_response(data, fallback_mime=content_type)
                self.log.info("gemini.request.success", extra={"job_id": job_id})
                return result

            if not self._should_retry(response) or attempt >= attempts:
                error_detail = _extract_error(response)
                self.log.error(
                    "gemini.response.error",
                    extra={
                        "job_id": job_id,
                        "status_code": response.status_code,
                        "error_detail": error_detail,
                    },
                )
                raise StylizationError(
                    f"Gemini request failed (status={response.status_code}): {error_detail}"
                )

            await asyncio.sleep(self.backoff_seconds)

        raise StylizationError("Gemini request failed after retries")

    async def _post(
        self, url: str, *, headers: dict[str, str], json: dict[str, Any]
    ) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            return await client.post(url, headers=headers, json=json)

    def _should_retry(self, response: httpx.Response) -> bool:
        try:
            data = response.json()
        except ValueError:
            return response.status_code in RETRYABLE_CODES
        error = data.get("error") if isinstance(data, dict) else None
        if not isinstance(error, dict):
            return response.status_code in RETRYABLE_CODES
        status = (error.get("status") or "").upper()
        return status in RETRYABLE_STATUSES or response.status_code in RETRYABLE_CODES

    def _parse_response(self, data: dict[str, Any], *, fallback_mime: str) -> StylizedImage:
        candidates = data.get("candidates") or []
        for candidate in candidates:
            content = candidate.get("content") or {}
            for part in content.get("parts", []):
                inline = part.get("inline_data") or part.get("inlineData")
                if inline and inline.get("data"):
                    mime = inline.get("mime_type") or inline.get("mimeType") or fallback_mime
                    try:
                        payload = base64.b64decode(inline["data"])
                    except ValueError as exc:
                        raise StylizationError("Gemini response payload is invalid") from exc
                    return StylizedImage(payload=payload, content_type=mime)

        reasons = [
            reason
            for reason in (c.get("finishReason") or c.get("finish_reason") for c in candidates)
            if reason
        ]
        if reasons:
            raise StylizationError(
                f"No image was generated by the API (finish_reason={', '.join(reasons)})"
            )
        raise StylizationError("No image was generated by the API.")


def _extract_error(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        message = (error.get("message") or "").strip()
        status = (error.get("status") or "").strip()
        return " ".join(part for part in (status, message) if part)
    return str(data)


def _mask_inline_data(obj: Any) -> Any:
    """Drop base64 payloads so responses can be logged."""
    if isinstance(obj, dict):
        result = {}
        for key, value in obj.items():
            if key in {"inline_data", "inlineData"} and isinstance(value, dict):
                result[key] = {k: v for k, v in value.items() if k != "data"}
            else:
                result[key] = _mask_inline_data(value)
        return result
    if isinstance(obj, list):
        return [_mask_inline_data(item) for item in obj]
    return obj


def _preview(data: dict[str, Any], limit: int = 2000) -> str:
    text = json.dumps(_mask_inline_data(data), ensure_ascii=False)
    if len(text) > limit:
        return text[:limit] + "...(truncated)"
    return text
