# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Phase 7 — Pipeline tests.
generate() is exercised directly on small canvases; run_pipeline() runs
end to end against a temp storage root with the in-memory JobStore.
"""

import zipfile

import cv2
import numpy as np
import pytest


# ─── Helpers ─────────────────────────────────────────────────────────────────

def _random_rgba(size: int = 72, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    img = rng.integers(0, 256, size=(size, size, 4), dtype=np.uint8)
    img[..., 3] = 255
    return img


def _sorted_triples(img: np.ndarray) -> np.ndarray:
    flat = img[..., :3].reshape(-1, 3)
    return flat[np.lexsort(flat.T[::-1])]


def _params(**kw):
    from pixelrank.models.params import GenerationParams
    base = {"working_size": 72, "source_name": "photo"}
    base.update(kw)
    return GenerationParams(**base)


def _read_rgba(path) -> np.ndarray:
    bgra = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    assert bgra is not None and bgra.shape[2] == 4
    return cv2.cvtColor(bgra, cv2.COLOR_BGRA2RGBA)


def _write_upload(job_id: str, img_bgr: np.ndarray) -> None:
    from pixelrank.utils.storage import init_job_dirs, source_upload_path

    init_job_dirs(job_id)
    ok, buf = cv2.imencode(".png", img_bgr)
    assert ok
    source_upload_path(job_id).write_bytes(buf.tobytes())


# ─── rank_variants ───────────────────────────────────────────────────────────

def test_rank_variants_follow_params():
    from pixelrank.core.pipeline import rank_variants

    a, b = rank_variants(_params(blur_a=5.0, blur_b=9.0, b_levels=4))
    assert (a.label, a.blur_radius, a.quant_levels, a.source_uses_hue_key) == (
        "RPC_A", 5.0, 0, True,
    )
    assert (b.label, b.blur_radius, b.quant_levels, b.source_uses_hue_key) == (
        "RPC_B", 9.0, 4, False,
    )


# ─── generate ────────────────────────────────────────────────────────────────

def test_generate_returns_three_variants():
    from pixelrank.core.pipeline import generate

    img = _random_rgba()
    out = generate(img, _params())
    for arr in (out.out_a, out.out_b, out.out_ctrl):
        assert arr.shape == (72, 72, 4)
        assert arr.dtype == np.uint8
        assert np.all(arr[..., 3] == 255)
    assert out.source is img
    assert out.base_name == "photo"
    assert out.seed == 106642994


def test_generate_rank_variants_preserve_histogram():
    from pixelrank.core.pipeline import generate

    img = _random_rgba(seed=3)
    out = generate(img, _params())
    expected = _sorted_triples(img)
    assert np.array_equal(_sorted_triples(out.out_a), expected)
    assert np.array_equal(_sorted_triples(out.out_b), expected)


def test_generate_ctrl_is_seeded_tile_shuffle():
    from pixelrank.core.pipeline import generate
    from pixelrank.modules.control.seed import seed_from_name
    from pixelrank.modules.control.tile_shuffler import shuffle_tiles

    img = _random_rgba(seed=4)
    out = generate(img, _params(source_name="quadrants"))
    expected = shuffle_tiles(img, 36, seed_from_name("quadrants"))
    assert np.array_equal(out.out_ctrl, expected)


def test_generate_ctrl_honours_remainder_mode():
    from pixelrank.core.pipeline import generate

    img = _random_rgba(size=80, seed=5)
    out = generate(img, _params(working_size=80, tile_remainder="blank"))
    assert np.all(out.out_ctrl[72:, :] == 0)


def test_generate_is_deterministic():
    from pixelrank.core.pipeline import generate

    img = _random_rgba(seed=6)
    a = generate(img, _params())
    b = generate(img, _params())
    assert np.array_equal(a.out_a, b.out_a)
    assert np.array_equal(a.out_b, b.out_b)
    assert np.array_equal(a.out_ctrl, b.out_ctrl)


def test_generate_does_not_modify_input():
    from pixelrank.core.pipeline import generate

    img = _random_rgba(seed=7)
    before = img.copy()
    generate(img, _params())
    assert np.array_equal(img, before)


def test_generate_variants_differ_from_source():
    from pixelrank.core.pipeline import generate

    img = _random_rgba(seed=8)
    out = generate(img, _params())
    assert not np.array_equal(out.out_a, img)
    assert not np.array_equal(out.out_b, img)


def test_generate_rejects_non_square():
    from pixelrank.api.middleware.error_handler import ImageValidationError
    from pixelrank.core.pipeline import generate

    img = np.zeros((72, 80, 4), dtype=np.uint8)
    with pytest.raises(ImageValidationError, match="square"):
        generate(img, _params())


def test_generate_rejects_rgb():
    from pixelrank.api.middleware.error_handler import ImageValidationError
    from pixelrank.core.pipeline import generate

    with pytest.raises(ImageValidationError):
        generate(np.zeros((72, 72, 3), dtype=np.uint8), _params())


def test_generated_outputs_as_labelled():
    from pixelrank.core.pipeline import generate

    img = _random_rgba(seed=9)
    out = generate(img, _params())
    labelled = out.as_labelled()
    assert list(labelled) == ["SRC", "RPC_A", "RPC_B", "CTRL"]
    assert labelled["RPC_B"] is out.out_b


# ─── run_pipeline ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_run_pipeline_completes(isolated_settings):
    from pixelrank.core.job_store import InMemoryJobStore
    from pixelrank.core.pipeline import run_pipeline
    from pixelrank.models.job import JobStage, JobStatus
    from pixelrank.utils.storage import outputs_dir

    store = InMemoryJobStore()
    job = store.create_job(source_name="photo")
    bgr = _random_rgba(size=100, seed=10)[..., :3].copy()
    _write_upload(job.job_id, bgr)

    await run_pipeline(job.job_id, store, _params())

    done = store.get_job(job.job_id)
    assert done.status == JobStatus.DONE
    assert done.stage == JobStage.DONE
    assert done.progress == 100
    assert done.error is None

    result = done.result
    assert result.base_name == "photo"
    assert result.ctrl_seed == 106642994
    assert result.working_size == 72
    assert result.rpc_a_url.startswith(f"/assets/{job.job_id}/photo_")
    assert result.rpc_a_url.endswith("_RPC_A.png")
    assert result.archive_url.endswith("_outputs.zip")

    out = outputs_dir(job.job_id)
    for url in (result.source_url, result.rpc_a_url, result.rpc_b_url,
                result.ctrl_url, result.canvas_url, result.archive_url):
        assert (out / url.rsplit("/", 1)[1]).is_file()

    # Preview is drawn at the floor size even for a 72px working canvas
    assert _read_rgba(out / result.canvas_url.rsplit("/", 1)[1]).shape == (900, 900, 4)
    assert _read_rgba(out / result.ctrl_url.rsplit("/", 1)[1]).shape == (72, 72, 4)


@pytest.mark.asyncio
async def test_run_pipeline_archive_contents(isolated_settings):
    from pixelrank.core.job_store import InMemoryJobStore
    from pixelrank.core.pipeline import run_pipeline
    from pixelrank.utils.storage import outputs_dir

    store = InMemoryJobStore()
    job = store.create_job(source_name="beach")
    _write_upload(job.job_id, _random_rgba(seed=11)[..., :3].copy())

    await run_pipeline(job.job_id, store, _params(source_name="beach"))

    archive = outputs_dir(job.job_id) / store.get_job(job.job_id).result.archive_url.rsplit("/", 1)[1]
    with zipfile.ZipFile(archive) as zf:
        names = zf.namelist()
    assert len(names) == 5
    assert names[0].startswith("beach_")
    assert names[0].endswith("_CANVAS.png")
    for suffix in ("_SRC.png", "_RPC_A.png", "_RPC_B.png", "_CTRL.png", "_CANVAS.png"):
        assert any(n.endswith(suffix) for n in names)


@pytest.mark.asyncio
async def test_run_pipeline_matches_generate(isolated_settings):
    from pixelrank.core.job_store import InMemoryJobStore
    from pixelrank.core.pipeline import generate, run_pipeline
    from pixelrank.modules.preprocessing.normalizer import normalize_image_file
    from pixelrank.utils.storage import outputs_dir, source_upload_path

    store = InMemoryJobStore()
    job = store.create_job(source_name="photo")
    _write_upload(job.job_id, _random_rgba(size=90, seed=12)[..., :3].copy())

    params = _params()
    await run_pipeline(job.job_id, store, params)

    expected = generate(normalize_image_file(source_upload_path(job.job_id), 72).image, params)
    result = store.get_job(job.job_id).result
    out = outputs_dir(job.job_id)

    def load(url):
        return _read_rgba(out / url.rsplit("/", 1)[1])

    assert np.array_equal(load(result.rpc_a_url), expected.out_a)
    assert np.array_equal(load(result.rpc_b_url), expected.out_b)
    assert np.array_equal(load(result.ctrl_url), expected.out_ctrl)


@pytest.mark.asyncio
async def test_run_pipeline_missing_upload_fails_job(isolated_settings):
    from pixelrank.core.job_store import InMemoryJobStore
    from pixelrank.core.pipeline import run_pipeline
    from pixelrank.models.job import JobStage, JobStatus

    store = InMemoryJobStore()
    job = store.create_job()

    await run_pipeline(job.job_id, store, _params())

    failed = store.get_job(job.job_id)
    assert failed.status == JobStatus.FAILED
    assert failed.stage == JobStage.FAILED
    assert failed.error.startswith("PipelineError")
    assert failed.result is None


@pytest.mark.asyncio
async def test_run_pipeline_corrupt_upload_fails_job(isolated_settings):
    from pixelrank.core.job_store import InMemoryJobStore
    from pixelrank.core.pipeline import run_pipeline
    from pixelrank.models.job import JobStatus
    from pixelrank.utils.storage import init_job_dirs, source_upload_path

    store = InMemoryJobStore()
    job = store.create_job()
    init_job_dirs(job.job_id)
    source_upload_path(job.job_id).write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 16)

    await run_pipeline(job.job_id, store, _params())

    failed = store.get_job(job.job_id)
    assert failed.status == JobStatus.FAILED
    assert failed.error.startswith("ImageValidationError")


@pytest.mark.asyncio
async def test_run_pipeline_gathers_ctrl_with_rank_branches(isolated_settings, monkeypatch):
    import asyncio

    from pixelrank.core import pipeline
    from pixelrank.core.job_store import InMemoryJobStore
    from pixelrank.models.job import JobStage, JobStatus

    gathered = []
    real_gather = asyncio.gather

    def recording_gather(*aws, **kw):
        gathered.append(len(aws))
        return real_gather(*aws, **kw)

    stages = []

    class RecordingStore(InMemoryJobStore):
        def advance_stage(self, job_id, stage):
            stages.append(stage)
            return super().advance_stage(job_id, stage)

    monkeypatch.setattr(pipeline.asyncio, "gather", recording_gather)

    store = RecordingStore()
    job = store.create_job(source_name="photo")
    _write_upload(job.job_id, _random_rgba(seed=13)[..., :3].copy())

    await pipeline.run_pipeline(job.job_id, store, _params())

    assert store.get_job(job.job_id).status == JobStatus.DONE
    # fields A + B, then RPC_A + RPC_B + CTRL
    assert gathered == [2, 3]
    assert stages == [
        JobStage.PREPROCESSING, JobStage.FIELD_BUILDING, JobStage.PERMUTING,
        JobStage.RENDERING, JobStage.ARCHIVING, JobStage.DONE,
    ]
