# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Pipeline Orchestrator
Two entry points over the same building blocks:

  generate(image, params)     pure, synchronous: square RGBA in,
                              GeneratedOutputs out. No I/O, no globals.
  run_pipeline(job_id, ...)   async job runner used by the API: loads the
                              upload, runs the stages, writes the assets.

Execution order of a job:
  1. Preprocessing      validate + centre-crop + resize
  2. Field building     PARALLEL: field A (blur_a) + field B (blur_b, banded)
  3. Permuting          PARALLEL: RPC_A (hue key) + RPC_B (luma key)
                        + CTRL tile shuffle, seeded from the base name
  4. Rendering          contact sheet
  5. Archiving          PNGs + ZIP

The branches never share buffers, so running them concurrently gives
byte-identical results to generate().
"""

from __future__ import annotations

import asyncio
import traceback
from dataclasses import dataclass

import numpy as np
import structlog

from pixelrank.api.middleware.error_handler import ImageValidationError, PipelineError
from pixelrank.core.job_store import JobStore
from pixelrank.models.job import JobStage, OutputBundle
from pixelrank.models.params import GeneratedOutputs, GenerationParams
from pixelrank.modules.control.tile_shuffler import shuffle_tiles
from pixelrank.modules.remapping.luminance_field import build_luminance_field
from pixelrank.modules.remapping.rank_permuter import permute_histogram
from pixelrank.utils.image_utils import is_rgba
from pixelrank.utils.logger import get_logger
from pixelrank.utils.storage import (
    get_asset_url,
    outputs_dir,
    source_upload_path,
    timestamp,
)

log = get_logger(__name__)


@dataclass(frozen=True)
class RankVariant:
    """How one rank-matched output is derived."""
    label: str
    blur_radius: float
    quant_levels: int
    source_uses_hue_key: bool


def rank_variants(params: GenerationParams) -> tuple[RankVariant, RankVariant]:
    """RPC_A (continuous field, hue key) and RPC_B (banded field, luma key)."""
    return (
        RankVariant("RPC_A", params.blur_a, 0, True),
        RankVariant("RPC_B", params.blur_b, params.b_levels, False),
    )


def _require_square_rgba(image: np.ndarray) -> None:
    if not is_rgba(image):
        raise ImageValidationError(
            "generate() expects an RGBA uint8 array of shape (H, W, 4), "
            f"got {getattr(image, 'shape', type(image))}."
        )
    h, w = image.shape[:2]
    if h != w:
        raise ImageValidationError(
            f"generate() expects a square image, got {w}×{h}. "
            "Centre-crop it first (modules.preprocessing.normalize_array)."
        )


def _rank_output(image: np.ndarray, field: np.ndarray, variant: RankVariant) -> np.ndarray:
    return permute_histogram(image, field, variant.source_uses_hue_key)


def _ctrl_output(image: np.ndarray, params: GenerationParams) -> np.ndarray:
    return shuffle_tiles(
        image, params.ctrl_tile, params.ctrl_seed, remainder=params.tile_remainder
    )


# ─── Pure Entry Point ────────────────────────────────────────────────────────

def generate(image: np.ndarray, params: GenerationParams) -> GeneratedOutputs:
    """
    Derive RPC_A, RPC_B and CTRL from a square RGBA image.

    Args:
        image:  RGBA uint8 array (S, S, 4). Not modified.
        params: Generation parameters; params.source_name seeds CTRL.

    Returns:
        GeneratedOutputs with three new RGBA arrays of the same shape.

    Raises:
        ImageValidationError: If image is not a square RGBA uint8 array.
    """
    _require_square_rgba(image)
    variant_a, variant_b = rank_variants(params)

    field_a = build_luminance_field(image, variant_a.blur_radius, variant_a.quant_levels)
    field_b = build_luminance_field(image, variant_b.blur_radius, variant_b.quant_levels)

    return GeneratedOutputs(
        source=image,
        out_a=_rank_output(image, field_a, variant_a),
        out_b=_rank_output(image, field_b, variant_b),
        out_ctrl=_ctrl_output(image, params),
        seed=params.ctrl_seed,
        base_name=params.source_name,
    )


# ─── Async Job Runner ────────────────────────────────────────────────────────

async def run_pipeline(job_id: str, store: JobStore, params: GenerationParams) -> None:
    """
    Main pipeline coroutine. Runs as a FastAPI background task.
    All progress updates flow through store.advance_stage().
    On any unhandled exception the job is marked FAILED with the error message.
    """
    structlog.contextvars.bind_contextvars(job_id=job_id)

    try:
        await _run(job_id, store, params)
    except Exception as exc:
        err_msg = f"{type(exc).__name__}: {exc}"
        log.error(
            "pipeline_fatal_error",
            job_id=job_id,
            error=err_msg,
            traceback=traceback.format_exc(),
        )
        store.fail_job(job_id, err_msg)
    finally:
        structlog.contextvars.clear_contextvars()


async def _run(job_id: str, store: JobStore, params: GenerationParams) -> None:
    variant_a, variant_b = rank_variants(params)

    # ── Stage 1: Preprocessing ───────────────────────────────────────────────
    store.advance_stage(job_id, JobStage.PREPROCESSING)
    log.info("stage_start", stage="preprocessing")

    image = await asyncio.to_thread(_preprocess, job_id, params)
    log.info("stage_complete", stage="preprocessing", shape=image.shape)

    # ── Stage 2: PARALLEL — both destination fields ──────────────────────────
    store.advance_stage(job_id, JobStage.FIELD_BUILDING)
    log.info("stage_start", stage="field_building")

    field_a, field_b = await asyncio.gather(
        asyncio.to_thread(
            build_luminance_field, image, variant_a.blur_radius, variant_a.quant_levels
        ),
        asyncio.to_thread(
            build_luminance_field, image, variant_b.blur_radius, variant_b.quant_levels
        ),
    )
    log.info("stage_complete", stage="field_building")

    # ── Stage 3: PARALLEL — RPC_A, RPC_B and the CTRL shuffle ────────────────
    store.advance_stage(job_id, JobStage.PERMUTING)
    log.info("stage_start", stage="permuting", seed=params.ctrl_seed)

    out_a, out_b, out_ctrl = await asyncio.gather(
        asyncio.to_thread(_rank_output, image, field_a, variant_a),
        asyncio.to_thread(_rank_output, image, field_b, variant_b),
        asyncio.to_thread(_ctrl_output, image, params),
    )
    log.info("stage_complete", stage="permuting")

    outputs = GeneratedOutputs(
        source=image,
        out_a=out_a,
        out_b=out_b,
        out_ctrl=out_ctrl,
        seed=params.ctrl_seed,
        base_name=params.source_name,
    )

    # ── Stage 4: Rendering ───────────────────────────────────────────────────
    store.advance_stage(job_id, JobStage.RENDERING)
    log.info("stage_start", stage="rendering")

    labelled = await asyncio.to_thread(_render, outputs, params)
    log.info("stage_complete", stage="rendering")

    # ── Stage 5: Archiving ───────────────────────────────────────────────────
    store.advance_stage(job_id, JobStage.ARCHIVING)
    log.info("stage_start", stage="archiving")

    bundle = await asyncio.to_thread(_archive, job_id, labelled, outputs, params)
    log.info("stage_complete", stage="archiving", archive=bundle.archive_url)

    # ── Done ─────────────────────────────────────────────────────────────────
    store.advance_stage(job_id, JobStage.DONE)
    store.update_job(job_id, result=bundle)
    log.info("pipeline_complete", job_id=job_id)


# ─── Stage Runners ───────────────────────────────────────────────────────────

def _preprocess(job_id: str, params: GenerationParams) -> np.ndarray:
    """Validate the saved upload, then crop + resize to the working size."""
    from pixelrank.modules.preprocessing.normalizer import normalize_image_file

    path = source_upload_path(job_id)
    if not path.exists():
        raise PipelineError(f"Upload for job {job_id} is missing at {path}.")
    return normalize_image_file(path, params.working_size).image


def _render(outputs: GeneratedOutputs, params: GenerationParams) -> dict[str, np.ndarray]:
    """Add the contact sheet to the labelled outputs."""
    from pixelrank.modules.rendering.contact_sheet import render_contact_sheet, sheet_size

    labelled = outputs.as_labelled()
    labelled["CANVAS"] = render_contact_sheet(labelled, size=sheet_size(params.working_size))
    return labelled


def _archive(
    job_id: str,
    labelled: dict[str, np.ndarray],
    outputs: GeneratedOutputs,
    params: GenerationParams,
) -> OutputBundle:
    """Write PNGs + ZIP into the job's outputs dir and build the URL bundle."""
    from pixelrank.modules.rendering.archive_builder import write_outputs
    from pixelrank.utils.storage import output_stem

    stem = output_stem(outputs.base_name, timestamp())
    written = write_outputs(labelled, stem, outputs_dir(job_id))

    def url(label: str) -> str:
        return get_asset_url(job_id, written.pngs[label].name)

    return OutputBundle(
        source_url=url("SRC"),
        rpc_a_url=url("RPC_A"),
        rpc_b_url=url("RPC_B"),
        ctrl_url=url("CTRL"),
        canvas_url=url("CANVAS"),
        archive_url=get_asset_url(job_id, written.archive.name),
        base_name=outputs.base_name,
        ctrl_seed=outputs.seed,
        working_size=params.working_size,
    )
