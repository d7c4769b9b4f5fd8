# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — GET /assets/{job_id}/{file_path}
Streams output files (variant PNGs, contact sheet, ZIP archive) from
per-job namespaced storage.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import FileResponse

from pixelrank.api.middleware.error_handler import JobNotFoundError
from pixelrank.dependencies import JobStoreDep
from pixelrank.utils.logger import get_logger
from pixelrank.utils.storage import outputs_dir

router = APIRouter(tags=["assets"])
log = get_logger(__name__)

# Only outputs are servable — uploads stay private
MEDIA_TYPES = {
    ".png": "image/png",
    ".zip": "application/zip",
}


def _safe_resolve(job_id: str, file_path: str) -> Path:
    """
    Resolve and validate the requested file path.
    - Ensures the path is inside the job's outputs directory
    - Rejects path traversal attempts (../ etc.)
    - Rejects disallowed file extensions
    Raises HTTPException on any violation.
    """
    out_dir = outputs_dir(job_id).resolve()
    requested = (out_dir / file_path).resolve()

    try:
        requested.relative_to(out_dir)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Path traversal not allowed.",
        )

    if requested.suffix.lower() not in MEDIA_TYPES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"File type '{requested.suffix}' not servable.",
        )

    return requested


@router.get(
    "/assets/{job_id}/{file_path:path}",
    summary="Retrieve a job output asset",
    description=(
        "Stream an output PNG or the ZIP archive for a job. "
        "Only files inside the job's outputs/ directory are accessible."
    ),
)
async def get_asset(
    job_id: str,
    file_path: str,
    store: JobStoreDep,
) -> FileResponse:
    job = store.get_job(job_id)
    if job is None:
        raise JobNotFoundError(job_id)

    resolved = _safe_resolve(job_id, file_path)

    if not resolved.exists():
        log.warning("asset_not_found", job_id=job_id, file_path=file_path)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Asset '{file_path}' not yet available for job {job_id}.",
        )

    log.debug("asset_served", job_id=job_id, file_path=file_path)
    return FileResponse(
        path=str(resolved),
        media_type=MEDIA_TYPES[resolved.suffix.lower()],
        filename=resolved.name,
    )
