# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Job State Models
Tracks the lifecycle of a generation request from upload through
archive. Used by the abstract JobStore and all API status endpoints.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class JobStage(str, Enum):
    """Pipeline stage labels — used for progress UI display."""
    QUEUED = "queued"
    PREPROCESSING = "preprocessing"
    FIELD_BUILDING = "field_building"
    PERMUTING = "permuting"
    RENDERING = "rendering"
    ARCHIVING = "archiving"
    DONE = "done"
    FAILED = "failed"


# Progress percentage at the START of each stage
STAGE_PROGRESS: dict[JobStage, int] = {
    JobStage.QUEUED: 0,
    JobStage.PREPROCESSING: 5,
    JobStage.FIELD_BUILDING: 15,
    JobStage.PERMUTING: 35,
    JobStage.RENDERING: 75,
    JobStage.ARCHIVING: 90,
    JobStage.DONE: 100,
    JobStage.FAILED: 0,
}


class OutputBundle(BaseModel):
    """URLs to all generated output assets for a completed job."""
    source_url: str
    rpc_a_url: str
    rpc_b_url: str
    ctrl_url: str
    canvas_url: str
    archive_url: str
    base_name: str
    ctrl_seed: int = Field(..., ge=0, le=0xFFFFFFFF)
    working_size: int


class Job(BaseModel):
    """Full job state record stored in JobStore."""
    job_id: str
    source_name: str = "image"
    status: JobStatus = JobStatus.PENDING
    stage: JobStage = JobStage.QUEUED
    progress: int = Field(0, ge=0, le=100)
    error: Optional[str] = None
    result: Optional[OutputBundle] = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def to_status_response(self) -> dict:
        """Serialise to the shape returned by GET /status/{job_id}."""
        resp = {
            "job_id": self.job_id,
            "source_name": self.source_name,
            "status": self.status.value,
            "stage": self.stage.value,
            "progress": self.progress,
            "error": self.error,
        }
        if self.result:
            resp["result"] = self.result.model_dump()
        return resp


# ─── API Request/Response Schemas ────────────────────────────────────────────

class GenerateResponse(BaseModel):
    """Response body for POST /generate."""
    job_id: str
    status: JobStatus = JobStatus.PENDING
    message: str = "Generation job created. Poll /status/{job_id} for progress."
