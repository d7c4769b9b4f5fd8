# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Per-Job Namespaced Storage
All file I/O is scoped to storage/{job_id}/ to prevent
concurrency collisions across simultaneous generation requests.

Layout per job:
    storage/{job_id}/
        uploads/
            source.bin
        outputs/
            {base}_{stamp}_SRC.png
            {base}_{stamp}_RPC_A.png
            {base}_{stamp}_RPC_B.png
            {base}_{stamp}_CTRL.png
            {base}_{stamp}_CANVAS.png
            {base}_{stamp}_outputs.zip
"""

from datetime import datetime
from pathlib import Path

from pixelrank.config import get_settings

# Suffixes of the individual PNG outputs, in archive order
OUTPUT_LABELS = ("CANVAS", "SRC", "RPC_A", "RPC_B", "CTRL")


def _root() -> Path:
    return get_settings().storage_root


# ─── Job Directory Builders ──────────────────────────────────────────────────

def job_dir(job_id: str) -> Path:
    return _root() / job_id


def uploads_dir(job_id: str) -> Path:
    return job_dir(job_id) / "uploads"


def outputs_dir(job_id: str) -> Path:
    return job_dir(job_id) / "outputs"


# ─── Upload Paths ────────────────────────────────────────────────────────────

def source_upload_path(job_id: str) -> Path:
    # Original extension is irrelevant — format is sniffed from magic bytes
    return uploads_dir(job_id) / "source.bin"


# ─── Output Naming ───────────────────────────────────────────────────────────

def timestamp(now: datetime | None = None) -> str:
    """Local-time stamp used in output names: YYYYMMDD_HHMMSS."""
    return (now or datetime.now()).strftime("%Y%m%d_%H%M%S")


def output_stem(base: str, stamp: str) -> str:
    return f"{base}_{stamp}"


def output_filename(stem: str, label: str) -> str:
    """'{stem}_{label}.png' for one of OUTPUT_LABELS."""
    if label not in OUTPUT_LABELS:
        raise ValueError(f"Unknown output label '{label}'.")
    return f"{stem}_{label}.png"


def archive_filename(stem: str) -> str:
    return f"{stem}_outputs.zip"


# ─── Lifecycle Helpers ───────────────────────────────────────────────────────

def init_job_dirs(job_id: str) -> None:
    """
    Create all required subdirectories for a new job.
    Safe to call multiple times (exist_ok=True).
    """
    for d in [uploads_dir(job_id), outputs_dir(job_id)]:
        d.mkdir(parents=True, exist_ok=True)


def get_asset_url(job_id: str, filename: str) -> str:
    """Build the public URL for a job output asset."""
    return f"/assets/{job_id}/{filename}"
