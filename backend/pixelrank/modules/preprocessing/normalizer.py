# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Working Canvas Normalizer
Prepares a decoded upload for the remapping engine, which requires a
square image of a fixed working size:

  1. Crop    — largest centred square (floored offsets)
  2. Resize  — to working_size × working_size (900 by default)

Alpha is carried through untouched here; every engine output forces
it opaque anyway.
"""

from dataclasses import dataclass
from pathlib import Path

import numpy as np

from pixelrank.modules.preprocessing.validator import validate_image_file
from pixelrank.utils.image_utils import center_crop_square, resize_to_square
from pixelrank.utils.logger import get_logger

log = get_logger(__name__)


@dataclass
class WorkingImage:
    """Output of normalize_array — carries the image and metadata."""
    image: np.ndarray            # RGBA uint8, size × size
    original_shape: tuple        # (H, W) before crop
    crop_size: int               # edge of the centred square before resize
    scale: float                 # working size / crop size


def normalize_array(img: np.ndarray, size: int) -> WorkingImage:
    """
    Centre-crop img to a square and resize it to size × size.
    Used by the pipeline, the CLI, and tests.
    """
    original_shape = img.shape[:2]
    square = center_crop_square(img)
    crop_size = square.shape[0]
    working = resize_to_square(square, size)

    log.debug(
        "image_normalised",
        original=original_shape,
        crop_size=crop_size,
        working_size=size,
    )
    return WorkingImage(
        image=working,
        original_shape=original_shape,
        crop_size=crop_size,
        scale=size / crop_size,
    )


def normalize_image_file(path: Path, size: int) -> WorkingImage:
    """Validate + decode a file on disk, then normalise it."""
    img = validate_image_file(path, label="source image")
    return normalize_array(img, size)
