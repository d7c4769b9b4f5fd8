# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Output Writer and ZIP Archive Builder
Encodes every output image to PNG, writes them next to each other, and
bundles them into a single download:

    {base}_{stamp}_CANVAS.png
    {base}_{stamp}_SRC.png
    {base}_{stamp}_RPC_A.png
    {base}_{stamp}_RPC_B.png
    {base}_{stamp}_CTRL.png
    {base}_{stamp}_outputs.zip   ← the five PNGs above
"""

from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from pixelrank.utils.image_utils import rgba_to_png_bytes
from pixelrank.utils.logger import get_logger
from pixelrank.utils.storage import OUTPUT_LABELS, archive_filename, output_filename

log = get_logger(__name__)


@dataclass
class WrittenOutputs:
    """Where each output ended up on disk."""
    stem: str
    pngs: dict[str, Path] = field(default_factory=dict)   # label → path
    archive: Path | None = None


def encode_outputs(
    images: dict[str, np.ndarray], stem: str
) -> dict[str, tuple[str, bytes]]:
    """
    PNG-encode labelled images in OUTPUT_LABELS order.

    Returns:
        label → (filename, PNG bytes). Labels absent from images are skipped.
    """
    encoded: dict[str, tuple[str, bytes]] = {}
    for label in OUTPUT_LABELS:
        img = images.get(label)
        if img is None:
            continue
        encoded[label] = (output_filename(stem, label), rgba_to_png_bytes(img))
    return encoded


def build_archive_bytes(files: dict[str, bytes]) -> bytes:
    """Deflate-compress filename → bytes entries into an in-memory ZIP."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buf.getvalue()


def write_outputs(
    images: dict[str, np.ndarray],
    stem: str,
    out_dir: Path,
) -> WrittenOutputs:
    """
    Write every labelled image as PNG plus the ZIP archive into out_dir.
    Creates out_dir if needed. Existing files with the same names are
    overwritten.
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    encoded = encode_outputs(images, stem)

    written = WrittenOutputs(stem=stem)
    for label, (name, data) in encoded.items():
        path = out_dir / name
        path.write_bytes(data)
        written.pngs[label] = path

    archive_path = out_dir / archive_filename(stem)
    archive_path.write_bytes(build_archive_bytes(dict(encoded.values())))
    written.archive = archive_path

    log.debug(
        "outputs_written",
        out_dir=str(out_dir),
        files=len(encoded),
        archive=archive_path.name,
    )
    return written
