# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — FastAPI Dependencies
Singleton provider for the JobStore. Instantiated once at startup via
the lifespan event in main.py; route handlers receive it through
FastAPI's Depends() injection.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from pixelrank.config import get_settings
from pixelrank.core.job_store import InMemoryJobStore, JobStore, RedisJobStore
from pixelrank.utils.logger import get_logger

log = get_logger(__name__)

# ─── JobStore Singleton ───────────────────────────────────────────────────────

_job_store: JobStore | None = None


def init_job_store() -> JobStore:
    """
    Initialise the JobStore singleton based on JOB_STORE_BACKEND config.
    Called once during application lifespan startup.
    """
    global _job_store
    settings = get_settings()

    if settings.job_store_backend == "redis":
        log.info("init_job_store", backend="redis", url=settings.redis_url)
        _job_store = RedisJobStore(
            redis_url=settings.redis_url,
            ttl_seconds=settings.job_ttl_seconds,
        )
    else:
        log.info("init_job_store", backend="memory")
        _job_store = InMemoryJobStore()
    return _job_store


def get_job_store() -> JobStore:
    """
    FastAPI dependency: inject the JobStore singleton into route handlers.

    Usage in a route:
        @router.get("/status/{job_id}")
        def get_status(job_id: str, store: JobStoreDep):
            job = store.get_job(job_id)
            ...
    """
    if _job_store is None:
        raise RuntimeError(
            "JobStore has not been initialised. "
            "Ensure init_job_store() is called during app lifespan startup."
        )
    return _job_store


# Annotated type alias for clean route signatures
JobStoreDep = Annotated[JobStore, Depends(get_job_store)]
