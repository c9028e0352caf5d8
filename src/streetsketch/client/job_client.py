"""HTTP client for the stylize job API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..jobs.job_errors import JobStoreReadError, SubmissionRejectedError
from ..jobs.job_models import JobRecord, JobStatus, StylizeJobRequest

logger = logging.getLogger(__name__)

START_PATH = "/api/stylize"
CHECK_PATH = "/api/stylize/check"


@dataclass(slots=True)
class StylizeApiClient:
    """Convenience wrapper around :class:`httpx.AsyncClient` for job calls."""

    http: httpx.AsyncClient
    log: logging.Logger = field(default_factory=lambda: logger)

    async def start_job(self, job_id: str, request: StylizeJobRequest) -> None:
        """Ask the runner to start ``job_id``; only a 202 counts as accepted."""
        payload = {
            "jobId": job_id,
            "imageUrl": request.image_url,
            "artStyle": request.art_style,
        }
        try:
            response = await self.http.post(START_PATH, json=payload)
        except httpx.HTTPError as exc:
            self.log.error("client.start.unreachable", extra={"job_id": job_id, "error": str(exc)})
            raise SubmissionRejectedError(f"Job service unreachable: {exc}") from exc

        if response.status_code != httpx.codes.ACCEPTED:
            detail = _error_detail(response)
            self.log.warning(
                "client.start.rejected",
                extra={"job_id": job_id, "status_code": response.status_code, "detail": detail},
            )
            raise SubmissionRejectedError(
                f"Job was not accepted (status={response.status_code}): {detail}",
                status_code=response.status_code,
            )
        self.log.info("client.start.accepted", extra={"job_id": job_id})

    async def check_job(self, job_id: str) -> JobRecord | None:
        """Return the terminal record, or ``None`` while the job is pending.

        The server deletes the record when it answers with a terminal status.
        Any transport failure or unexpected answer raises
        :class:`JobStoreReadError`.
        """
        try:
            response = await self.http.get(CHECK_PATH, params={"jobId": job_id})
        except httpx.HTTPError as exc:
            raise JobStoreReadError(f"Job status check failed: {exc}") from exc

        if response.status_code == httpx.codes.ACCEPTED:
            return None

        body = _json_body(response)
        state = body.get("status")
        if response.status_code == httpx.codes.OK and state == JobStatus.COMPLETE.value:
            generated_url = body.get("generatedUrl")
            if not generated_url:
                raise JobStoreReadError("Complete response is missing generatedUrl")
            return JobRecord.complete(job_id, generated_url)
        if state == JobStatus.ERROR.value:
            return JobRecord.error(job_id, str(body.get("message") or "Unknown error"))

        raise JobStoreReadError(
            f"Unexpected job status response (status={response.status_code})"
        )


@dataclass(slots=True)
class RemoteJobStore:
    """Read side of the job store reached through the check endpoint."""

    client: StylizeApiClient

    async def get(self, job_id: str) -> JobRecord | None:
        return await self.client.check_job(job_id)

    async def delete(self, job_id: str) -> None:
        # consumed server-side when the terminal status was returned
        return None


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _error_detail(response: httpx.Response) -> str:
    body = _json_body(response)
    for key in ("message", "error", "detail", "reason"):
        if body.get(key):
            return str(body[key])
    return response.reason_phrase or response.text[:200]
