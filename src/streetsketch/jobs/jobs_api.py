"""HTTP routes for starting and checking stylization jobs."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from .job_dispatcher import JobDispatcher, RejectReason
from .job_errors import JobRejectedError, JobStoreError
from .job_models import JobStatus, StylizeJobRequest
from .job_store import JobStore
from .jobs_schemas import (
    JobCompleteResponse,
    JobErrorResponse,
    JobPendingResponse,
    StartJobRequest,
    StartJobResponse,
)

router = APIRouter(prefix="/api/stylize", tags=["stylize"])
logger = logging.getLogger(__name__)

_REJECT_STATUS = {
    RejectReason.DUPLICATE: status.HTTP_409_CONFLICT,
    RejectReason.BUSY: status.HTTP_429_TOO_MANY_REQUESTS,
    RejectReason.SHUTTING_DOWN: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def get_dispatcher(request: Request) -> JobDispatcher:
    """Fetch job dispatcher from application state."""
    try:
        return request.app.state.job_dispatcher  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - misconfigured app
        raise RuntimeError("JobDispatcher is not configured") from exc


def get_job_store(request: Request) -> JobStore:
    """Fetch job store from application state."""
    try:
        return request.app.state.job_store  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - misconfigured app
        raise RuntimeError("JobStore is not configured") from exc


@router.post("", status_code=status.HTTP_202_ACCEPTED)
async def start_job(
    payload: StartJobRequest,
    dispatcher: JobDispatcher = Depends(get_dispatcher),
) -> JSONResponse:
    """Schedule a stylization run and acknowledge with 202."""
    try:
        await dispatcher.accept(
            payload.job_id,
            StylizeJobRequest(image_url=payload.image_url, art_style=payload.art_style),
        )
    except JobRejectedError as exc:
        return JSONResponse(
            status_code=_REJECT_STATUS.get(exc.reason, status.HTTP_409_CONFLICT),
            content={"status": "rejected", "reason": exc.reason, "message": str(exc)},
        )
    except JobStoreError:
        logger.exception("jobs.start.store_unavailable", extra={"job_id": payload.job_id})
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable"},
        )
    body = StartJobResponse(job_id=payload.job_id)
    return JSONResponse(
        status_code=status.HTTP_202_ACCEPTED,
        content=body.model_dump(by_alias=True),
    )


@router.get("/check")
async def check_job(
    job_id: str | None = Query(None, alias="jobId"),
    store: JobStore = Depends(get_job_store),
) -> JSONResponse:
    """Report pending, or hand over the terminal record and delete it."""
    if not job_id:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Missing jobId"},
        )

    try:
        # read and delete in one step
        record = await store.take(job_id)
    except JobStoreError:
        logger.warning("jobs.check.read_failed", extra={"job_id": job_id})
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable"},
        )

    if record is None:
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content=JobPendingResponse().model_dump(),
        )

    if record.status is JobStatus.COMPLETE:
        logger.info("jobs.check.complete", extra={"job_id": job_id})
        body = JobCompleteResponse(generated_url=record.result or "")
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=body.model_dump(by_alias=True),
        )

    logger.info("jobs.check.error", extra={"job_id": job_id, "error_message": record.message})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=JobErrorResponse(message=record.message or "Unknown error").model_dump(),
    )
