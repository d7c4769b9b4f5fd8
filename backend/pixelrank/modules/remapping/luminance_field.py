# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Luminance Field Builder
Converts an RGBA image into the destination ScalarField of the rank
matcher: one float64 per pixel, row-major, length W*H.

Steps applied:
  1. Luma     — BT.709 weights: 0.2126 R + 0.7152 G + 0.0722 B
  2. Blur     — separable Gaussian, sigma = radius / sqrt(10)
  3. Normalise — divide by 255
  4. Quantise — floor(v * levels) / levels, skipped when levels == 0
  5. Perturb  — v += x * 1e-7 + y * 1e-9 (column x, row y)

Blur kernel:
  The rank matcher only consumes the field's ORDER, so the exact kernel
  is free. sigma = r / sqrt(10) is the standard deviation of the
  squared-triangle kernel (weights (r - |i|)^2) classic canvas blur
  filters use, so a given radius smooths about as much as it does there.
  Borders replicate the edge pixel.

Perturbation:
  Large enough to split the plateaus quantisation creates (adjacent
  columns differ by 1e-7, rows by 1e-9, both far above float64
  resolution near 1.0) and small (≤ 1e-3 at 10^4 px) next to a 1/levels
  band step, so banding survives. Offsets are not unique: pixels whose
  row gap is 100× their column gap share one, so a flat band more than
  100 rows tall holds many exact ties (a 900×900 plateau has about
  90,800 distinct values). The rank matcher's stable sort orders those
  ties by pixel index.
"""

from __future__ import annotations

import math

import cv2
import numpy as np

from pixelrank.utils.logger import get_logger

log = get_logger(__name__)

# ITU-R BT.709 luma coefficients
LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)

COLUMN_EPSILON = 1e-7
ROW_EPSILON = 1e-9


class FieldBuildError(ValueError):
    """Raised for a malformed image or out-of-range field parameters."""


def luma(image: np.ndarray) -> np.ndarray:
    """
    Per-pixel BT.709 luma of an RGB(A) uint8 image.

    Returns:
        float64 array (H, W) in [0, 255].
    """
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise FieldBuildError(
            f"Expected an RGB or RGBA image, got shape {image.shape}."
        )
    rgb = image[..., :3].astype(np.float64)
    wr, wg, wb = LUMA_WEIGHTS
    return wr * rgb[..., 0] + wg * rgb[..., 1] + wb * rgb[..., 2]


def gaussian_sigma(blur_radius: float) -> float:
    return blur_radius / math.sqrt(10.0)


def blur_plane(plane: np.ndarray, blur_radius: float) -> np.ndarray:
    """
    Isotropic separable Gaussian blur of a single float64 plane.
    A radius of 0 returns an unmodified copy.
    """
    if blur_radius <= 0:
        return plane.copy()
    radius_px = int(math.ceil(blur_radius))
    ksize = 2 * radius_px + 1
    return cv2.GaussianBlur(
        plane,
        (ksize, ksize),
        sigmaX=gaussian_sigma(blur_radius),
        sigmaY=gaussian_sigma(blur_radius),
        borderType=cv2.BORDER_REPLICATE,
    )


def quantise(values: np.ndarray, levels: int) -> np.ndarray:
    """floor(v * levels) / levels; levels == 0 means no quantisation."""
    if levels == 0:
        return values
    return np.floor(values * levels) / levels


def positional_perturbation(height: int, width: int) -> np.ndarray:
    """x * 1e-7 + y * 1e-9 for every pixel, as an (H, W) float64 array."""
    xs = np.arange(width, dtype=np.float64) * COLUMN_EPSILON
    ys = np.arange(height, dtype=np.float64) * ROW_EPSILON
    return ys[:, np.newaxis] + xs[np.newaxis, :]


def build_luminance_field(
    image: np.ndarray,
    blur_radius: float,
    quant_levels: int = 0,
) -> np.ndarray:
    """
    Build the smoothed, optionally banded scalar field of an image.

    Args:
        image:        RGBA (or RGB) uint8 array (H, W, C).
        blur_radius:  Blur radius in pixels, >= 0.
        quant_levels: Number of bands, >= 0. 0 keeps the field continuous.

    Returns:
        float64 array of length H*W, row-major.

    Raises:
        FieldBuildError: On a negative radius / level count or a
                         non-colour image.
    """
    if blur_radius < 0:
        raise FieldBuildError(f"Blur radius must be >= 0, got {blur_radius}.")
    if quant_levels < 0:
        raise FieldBuildError(
            f"Quantisation levels must be >= 0, got {quant_levels}."
        )

    h, w = image.shape[:2]
    field = blur_plane(luma(image), blur_radius) / 255.0
    field = quantise(field, quant_levels)
    field = field + positional_perturbation(h, w)

    log.debug(
        "luminance_field_built",
        shape=(h, w),
        blur_radius=blur_radius,
        quant_levels=quant_levels,
        field_min=round(float(field.min()), 6),
        field_max=round(float(field.max()), 6),
    )
    return field.reshape(-1)
