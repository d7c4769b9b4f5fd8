# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Image I/O and Conversion Utilities
Shared helpers used across preprocessing, the remapping engine, and
rendering. All internal processing uses RGBA uint8 numpy arrays of shape
(H, W, 4). Conversion to/from OpenCV's BGR(A) order happens only at the
decode / encode boundaries.
"""

from pathlib import Path

import cv2
import numpy as np


# ─── Decode / Encode ─────────────────────────────────────────────────────────

def bytes_to_rgba(data: bytes) -> np.ndarray:
    """
    Decode raw image bytes (from upload or disk) to an RGBA uint8 array.
    Grayscale and 3-channel images gain an opaque alpha channel.
    Raises ValueError if the bytes cannot be decoded.
    """
    if not data:
        raise ValueError("Could not decode empty image bytes.")
    arr = np.frombuffer(data, dtype=np.uint8)
    img = cv2.imdecode(arr, cv2.IMREAD_UNCHANGED)
    if img is None:
        raise ValueError("Could not decode image bytes.")
    return to_rgba(img, bgr_order=True)


def rgba_to_png_bytes(img: np.ndarray) -> bytes:
    """Encode an RGBA numpy array to PNG bytes (lossless)."""
    success, buf = cv2.imencode(".png", rgba_to_bgra(img))
    if not success:
        raise RuntimeError("Failed to encode image to PNG bytes.")
    return buf.tobytes()


# ─── Channel Layout ──────────────────────────────────────────────────────────

def to_rgba(img: np.ndarray, bgr_order: bool = False) -> np.ndarray:
    """
    Normalise any 8-bit image array to RGBA.

    Args:
        img:       (H, W), (H, W, 1), (H, W, 3) or (H, W, 4) uint8 array.
        bgr_order: True when colour channels arrive in OpenCV BGR(A) order.

    Returns:
        New (H, W, 4) uint8 array. Existing alpha is preserved.
    """
    if img.dtype != np.uint8:
        # 16-bit PNGs and friends — scale down to 8 bits
        img = cv2.convertScaleAbs(img, alpha=255.0 / float(np.iinfo(img.dtype).max))

    if img.ndim == 2 or (img.ndim == 3 and img.shape[2] == 1):
        return cv2.cvtColor(img.reshape(img.shape[:2]), cv2.COLOR_GRAY2RGBA)
    if img.ndim != 3 or img.shape[2] not in (3, 4):
        raise ValueError(f"Unsupported image shape {img.shape}.")

    if img.shape[2] == 3:
        code = cv2.COLOR_BGR2RGBA if bgr_order else cv2.COLOR_RGB2RGBA
        return cv2.cvtColor(img, code)
    if bgr_order:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
    return img.copy()


def rgba_to_bgra(img: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(img, cv2.COLOR_RGBA2BGRA)


def with_opaque_alpha(img: np.ndarray) -> np.ndarray:
    """Return a copy of an RGBA array with every alpha sample set to 255."""
    out = img.copy()
    out[..., 3] = 255
    return out


# ─── Geometry ────────────────────────────────────────────────────────────────

def center_crop_square(img: np.ndarray) -> np.ndarray:
    """
    Crop the largest centred square out of img.
    Offsets are floored, so odd leftovers go to the right / bottom.
    """
    h, w = img.shape[:2]
    s = min(h, w)
    ox = (w - s) // 2
    oy = (h - s) // 2
    return img[oy:oy + s, ox:ox + s].copy()


def resize_to_square(img: np.ndarray, size: int) -> np.ndarray:
    """
    Resize image to size×size.
    INTER_AREA when shrinking (no aliasing), INTER_LINEAR when enlarging.
    """
    h, w = img.shape[:2]
    if (h, w) == (size, size):
        return img.copy()
    interp = cv2.INTER_AREA if max(h, w) > size else cv2.INTER_LINEAR
    return cv2.resize(img, (size, size), interpolation=interp)


def fit_within(
    src_w: int, src_h: int, box_w: float, box_h: float
) -> tuple[int, int, int, int]:
    """
    Aspect-fit a src_w×src_h image inside a box anchored at (0, 0).
    Returns (dx, dy, dw, dh) — the offset and size of the fitted image.
    """
    ar = src_w / src_h
    br = box_w / box_h
    if ar > br:
        dw = int(box_w)
        dh = int(round(box_w / ar))
        dx, dy = 0, int((box_h - dh) / 2)
    else:
        dh = int(box_h)
        dw = int(round(box_h * ar))
        dx, dy = int((box_w - dw) / 2), 0
    return dx, dy, dw, dh


# ─── Naming ──────────────────────────────────────────────────────────────────

def base_name(filename: str) -> str:
    """
    Strip the final extension from a file name.
    'beach.photo.png' → 'beach.photo'; '.env' is returned whole.
    Any directory component is dropped first.
    """
    name = Path(filename).name if filename else ""
    dot = name.rfind(".")
    return name[:dot] if dot > 0 else name


# ─── Validation ──────────────────────────────────────────────────────────────

def is_rgba(img: np.ndarray) -> bool:
    return (
        isinstance(img, np.ndarray)
        and img.dtype == np.uint8
        and img.ndim == 3
        and img.shape[2] == 4
    )
