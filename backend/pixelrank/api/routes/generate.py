# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — POST /generate
Accepts one uploaded image, creates a job, and enqueues the pipeline
as a FastAPI background task. Optional query parameters override the
configured tile size, blur radii, band count, and remainder mode for
this job only.
"""

from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, UploadFile, status
from pydantic import ValidationError

from pixelrank.api.middleware.error_handler import (
    ImageValidationError,
    InvalidParametersError,
)
from pixelrank.config import get_settings
from pixelrank.core.pipeline import run_pipeline
from pixelrank.dependencies import JobStoreDep
from pixelrank.models.job import GenerateResponse
from pixelrank.models.params import GenerationParams
from pixelrank.modules.preprocessing.validator import validate_image_bytes
from pixelrank.utils.image_utils import base_name
from pixelrank.utils.logger import get_logger
from pixelrank.utils.storage import init_job_dirs, source_upload_path

router = APIRouter(tags=["generate"])
log = get_logger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp"}


def _read_upload(upload: UploadFile) -> bytes:
    """
    Read and validate an uploaded image file.
    Raises ImageValidationError on content-type / size / decode failures.
    """
    if upload.content_type not in ALLOWED_CONTENT_TYPES:
        raise ImageValidationError(
            f"Unsupported file type '{upload.content_type}'. "
            f"Allowed: {', '.join(sorted(ALLOWED_CONTENT_TYPES))}"
        )

    data = upload.file.read()
    validate_image_bytes(data, label=f"'{upload.filename}'")
    return data


@router.post(
    "/generate",
    response_model=GenerateResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit an image for rank-matched remapping",
    description=(
        "Upload an image. It is centre-cropped, resized to the working size, "
        "and turned into RPC_A, RPC_B and CTRL variants plus a contact sheet "
        "and ZIP. Returns a job_id for polling via GET /status/{job_id}."
    ),
)
async def submit_generate(
    image: UploadFile,
    background_tasks: BackgroundTasks,
    store: JobStoreDep,
    tile: Optional[int] = None,
    blur_a: Optional[float] = None,
    blur_b: Optional[float] = None,
    b_levels: Optional[int] = None,
    remainder: Optional[Literal["copy", "blank"]] = None,
) -> GenerateResponse:
    name = base_name(image.filename or "image") or "image"

    try:
        params = GenerationParams.from_settings(
            get_settings(),
            source_name=name,
            ctrl_tile=tile,
            blur_a=blur_a,
            blur_b=blur_b,
            b_levels=b_levels,
            tile_remainder=remainder,
        )
    except ValidationError as exc:
        raise InvalidParametersError(str(exc)) from exc

    data = _read_upload(image)

    job = store.create_job(source_name=name)
    job_id = job.job_id
    log.info("generate_request_received", job_id=job_id, source_name=name)

    init_job_dirs(job_id)
    path = source_upload_path(job_id)
    path.write_bytes(data)
    log.debug("upload_saved", job_id=job_id, path=str(path), size_bytes=len(data))

    background_tasks.add_task(run_pipeline, job_id, store, params)
    log.info("pipeline_enqueued", job_id=job_id, seed=params.ctrl_seed)

    return GenerateResponse(job_id=job_id)
