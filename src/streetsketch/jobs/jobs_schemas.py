"""Pydantic schemas for the stylize job API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class StartJobRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(..., alias="jobId", min_length=1, max_length=64)
    image_url: str = Field(..., alias="imageUrl", min_length=1)
    art_style: str = Field(..., alias="artStyle", min_length=1)


class StartJobResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["accepted"] = "accepted"
    job_id: str = Field(..., alias="jobId")


class JobPendingResponse(BaseModel):
    status: Literal["pending"] = "pending"


class JobCompleteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["complete"] = "complete"
    generated_url: str = Field(..., alias="generatedUrl")


class JobErrorResponse(BaseModel):
    status: Literal["error"] = "error"
    message: str
