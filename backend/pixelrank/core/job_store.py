# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Abstract JobStore
Clean interface over job state storage. The job record is the only
state the service keeps between requests; the pixels themselves live
on disk under storage/{job_id}/.

InMemoryJobStore  — development / single-worker deployments
RedisJobStore     — multi-worker deployments
"""

from __future__ import annotations

import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from pixelrank.models.job import Job, JobStage, JobStatus, OutputBundle, STAGE_PROGRESS
from pixelrank.utils.logger import get_logger

log = get_logger(__name__)


def _apply_update(
    job: Job,
    status: Optional[JobStatus],
    stage: Optional[JobStage],
    progress: Optional[int],
    error: Optional[str],
    result: Optional[OutputBundle],
) -> Job:
    """Apply the non-None fields to job and bump updated_at."""
    if status is not None:
        job.status = status
    if stage is not None:
        job.stage = stage
    if progress is not None:
        job.progress = progress
    if error is not None:
        job.error = error
    if result is not None:
        job.result = result
    job.updated_at = datetime.now(timezone.utc)
    return job


# ─── Abstract Interface ──────────────────────────────────────────────────────

class JobStore(ABC):
    """
    Abstract base class for all job state backends.
    All methods are synchronous — async wrappers live in the pipeline layer.
    """

    @abstractmethod
    def create_job(self, source_name: str = "image") -> Job:
        """Create a new job with PENDING status. Returns the Job."""

    @abstractmethod
    def get_job(self, job_id: str) -> Optional[Job]:
        """Return Job by ID, or None if not found."""

    @abstractmethod
    def update_job(
        self,
        job_id: str,
        *,
        status: Optional[JobStatus] = None,
        stage: Optional[JobStage] = None,
        progress: Optional[int] = None,
        error: Optional[str] = None,
        result: Optional[OutputBundle] = None,
    ) -> None:
        """Partially update a job record. Only provided fields are changed."""

    def advance_stage(self, job_id: str, stage: JobStage) -> None:
        """
        Convenience: update stage and auto-set progress from STAGE_PROGRESS map.
        """
        if stage == JobStage.DONE:
            status = JobStatus.DONE
        elif stage == JobStage.FAILED:
            status = JobStatus.FAILED
        else:
            status = JobStatus.RUNNING
        self.update_job(
            job_id,
            stage=stage,
            progress=STAGE_PROGRESS.get(stage, 0),
            status=status,
        )

    def fail_job(self, job_id: str, error: str) -> None:
        """Mark a job as failed with an error message."""
        self.update_job(
            job_id,
            status=JobStatus.FAILED,
            stage=JobStage.FAILED,
            error=error,
        )
        log.error("job_failed", job_id=job_id, error=error)


# ─── In-Memory Implementation ────────────────────────────────────────────────

class InMemoryJobStore(JobStore):
    """
    Thread-safe in-memory job store using a dict + RLock.
    Pipeline stages run in worker threads, hence the lock.
    All data is lost on process restart.
    """

    def __init__(self) -> None:
        self._store: dict[str, Job] = {}
        self._lock = threading.RLock()

    def create_job(self, source_name: str = "image") -> Job:
        job = Job(job_id=str(uuid.uuid4()), source_name=source_name)
        with self._lock:
            self._store[job.job_id] = job
        log.info("job_created", job_id=job.job_id, backend="memory")
        return job

    def get_job(self, job_id: str) -> Optional[Job]:
        with self._lock:
            job = self._store.get(job_id)
            # Hand out copies so callers never mutate the stored record
            return job.model_copy(deep=True) if job is not None else None

    def update_job(
        self,
        job_id: str,
        *,
        status: Optional[JobStatus] = None,
        stage: Optional[JobStage] = None,
        progress: Optional[int] = None,
        error: Optional[str] = None,
        result: Optional[OutputBundle] = None,
    ) -> None:
        with self._lock:
            job = self._store.get(job_id)
            if job is None:
                log.warning("update_job_not_found", job_id=job_id)
                return
            self._store[job_id] = _apply_update(
                job, status, stage, progress, error, result
            )

        log.debug(
            "job_updated",
            job_id=job_id,
            stage=stage.value if stage else None,
            progress=progress,
        )

    def count(self) -> int:
        """Return total number of jobs in store (useful for health checks)."""
        with self._lock:
            return len(self._store)


# ─── Redis Implementation ────────────────────────────────────────────────────

class RedisJobStore(JobStore):
    """
    Redis-backed job store for multi-worker deployments.
    Jobs are JSON-serialised and stored with TTL expiry.
    Requires redis-py and a running Redis instance.
    """

    def __init__(self, redis_url: str, ttl_seconds: int = 86400, client=None) -> None:
        if client is None:
            import redis as redis_lib

            client = redis_lib.from_url(redis_url, decode_responses=True)
            client.ping()
            log.info("redis_job_store_connected", url=redis_url)

        self._client = client
        self._ttl = ttl_seconds
        self._prefix = "pixelrank:job:"

    def _key(self, job_id: str) -> str:
        return f"{self._prefix}{job_id}"

    def _save(self, job: Job) -> None:
        self._client.setex(self._key(job.job_id), self._ttl, job.model_dump_json())

    def create_job(self, source_name: str = "image") -> Job:
        job = Job(job_id=str(uuid.uuid4()), source_name=source_name)
        self._save(job)
        log.info("job_created", job_id=job.job_id, backend="redis")
        return job

    def get_job(self, job_id: str) -> Optional[Job]:
        raw = self._client.get(self._key(job_id))
        if raw is None:
            return None
        return Job.model_validate_json(raw)

    def update_job(
        self,
        job_id: str,
        *,
        status: Optional[JobStatus] = None,
        stage: Optional[JobStage] = None,
        progress: Optional[int] = None,
        error: Optional[str] = None,
        result: Optional[OutputBundle] = None,
    ) -> None:
        job = self.get_job(job_id)
        if job is None:
            log.warning("update_job_not_found", job_id=job_id)
            return

        # setex refreshes the TTL on every update
        self._save(_apply_update(job, status, stage, progress, error, result))

        log.debug(
            "job_updated",
            job_id=job_id,
            stage=stage.value if stage else None,
            progress=progress,
        )
