# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Image Validator
Validates uploaded image files before they enter the pipeline.
Checks format, file size, decodability, and resolution, and returns
the decoded RGBA array.

Raises ImageValidationError (subclass of ValueError) on any failure
so the API error handler maps it cleanly to HTTP 422.
"""

from pathlib import Path

import numpy as np

from pixelrank.api.middleware.error_handler import ImageValidationError
from pixelrank.config import get_settings
from pixelrank.utils.image_utils import bytes_to_rgba
from pixelrank.utils.logger import get_logger

log = get_logger(__name__)

# Supported formats by magic bytes (first few bytes of file)
_MAGIC_BYTES: dict[str, bytes] = {
    "jpeg": b"\xff\xd8\xff",
    "png":  b"\x89PNG",
    "webp": b"RIFF",          # RIFF....WEBP — checked further below
}

# Smallest image worth remapping (one pixel is a valid but useless input)
_MIN_DIMENSION_PX = 1

# Guards against decompression bombs that slip past the byte-size check
_MAX_DIMENSION_PX = 16_000


def _detect_format(data: bytes) -> str | None:
    """
    Detect image format from magic bytes.
    Returns format string ('jpeg', 'png', 'webp') or None if unrecognised.
    """
    if data[:3] == _MAGIC_BYTES["jpeg"]:
        return "jpeg"
    if data[:4] == _MAGIC_BYTES["png"]:
        return "png"
    if data[:4] == _MAGIC_BYTES["webp"] and data[8:12] == b"WEBP":
        return "webp"
    return None


def validate_image_bytes(
    data: bytes,
    label: str = "image",
) -> np.ndarray:
    """
    Validate raw image bytes and return a decoded RGBA numpy array.

    Checks performed (in order):
      1. Non-empty bytes
      2. File size within configured limit
      3. Magic byte format detection (JPEG / PNG / WebP only)
      4. OpenCV decodability
      5. Resolution within [MIN_DIMENSION_PX, MAX_DIMENSION_PX]

    Grayscale, RGB and RGBA sources are all accepted; the result is
    always 4-channel.

    Args:
        data:  Raw bytes from upload or file read.
        label: Human-readable label used in error messages.

    Returns:
        Decoded RGBA uint8 numpy array (H × W × 4).

    Raises:
        ImageValidationError: On any validation failure.
    """
    settings = get_settings()

    # 1. Non-empty
    if not data:
        raise ImageValidationError(f"The {label} file is empty.")

    # 2. File size
    size_mb = len(data) / (1024 * 1024)
    if len(data) > settings.upload_max_bytes:
        raise ImageValidationError(
            f"The {label} file is {size_mb:.1f} MB, which exceeds the "
            f"maximum allowed size of {settings.upload_max_mb} MB."
        )

    # 3. Magic bytes format check
    fmt = _detect_format(data)
    if fmt is None:
        raise ImageValidationError(
            f"The {label} file format is not supported. "
            "Please upload a JPEG, PNG, or WebP image."
        )

    # 4. Decodability
    try:
        img = bytes_to_rgba(data)
    except ValueError as exc:
        raise ImageValidationError(
            f"The {label} file could not be decoded. "
            "The file may be corrupted or truncated."
        ) from exc

    h, w = img.shape[:2]

    # 5. Resolution bounds
    if h < _MIN_DIMENSION_PX or w < _MIN_DIMENSION_PX:
        raise ImageValidationError(
            f"The {label} resolution ({w}×{h}px) is too small."
        )
    if h > _MAX_DIMENSION_PX or w > _MAX_DIMENSION_PX:
        raise ImageValidationError(
            f"The {label} resolution ({w}×{h}px) exceeds the maximum "
            f"allowed dimension of {_MAX_DIMENSION_PX}px. "
            "Please downscale the image before uploading."
        )

    log.debug(
        "image_validated",
        label=label,
        format=fmt,
        shape=img.shape,
        size_mb=round(size_mb, 2),
    )
    return img


def validate_image_file(path: Path, label: str = "image") -> np.ndarray:
    """
    Read a file from disk and validate it.
    Convenience wrapper around validate_image_bytes for pipeline use.

    Raises:
        ImageValidationError: If the file does not exist or fails validation.
    """
    if not path.exists():
        raise ImageValidationError(
            f"The {label} file was not found at path: {path}"
        )
    if not path.is_file():
        raise ImageValidationError(
            f"The {label} path does not point to a file: {path}"
        )

    return validate_image_bytes(path.read_bytes(), label=label)
