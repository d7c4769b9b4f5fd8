# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Histogram-Preserving Rank Permuter
Rearranges the pixels of an image so their ordering by a SOURCE key
follows the ordering of a DESTINATION ScalarField: the k-th smallest
source pixel lands on the k-th smallest field location.

Algorithm:
  1. source key per pixel
       hue mode:  H + 0.08 S + 0.02 V   (HSV, all in [0, 1])
       luma mode: 0.2126 R + 0.7152 G + 0.0722 B on the unblurred image
  2. destination key = field value
  3. src_order = stable argsort(source key)
     dst_order = stable argsort(destination key)
  4. out[dst_order[k]] = image[src_order[k]], alpha = 255

Both orders are permutations of 0..n-1, so step 4 is a bijection and
the output holds exactly the input's multiset of RGB triples — no colour
is created, dropped, or duplicated.

Ties:
  Stable sorting breaks exact key ties by ascending row-major pixel
  index. Luma keys tie whenever two pixels share a colour. Field keys
  tie on any flat band of an image taller than 100 rows, since pixel
  (x + 1, y) and (x, y + 100) get the same offset. Either way the
  result is fully deterministic.
"""

from __future__ import annotations

import numpy as np

from pixelrank.modules.remapping.luminance_field import luma
from pixelrank.utils.logger import get_logger

log = get_logger(__name__)

# Hue dominates; saturation and value separate near-identical hues
SATURATION_WEIGHT = 0.08
VALUE_WEIGHT = 0.02


class PermutationError(ValueError):
    """Raised when keys / field do not line up with the image's pixels."""


def hsv_components(image: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Standard HSV of an RGB(A) uint8 image, computed in float64.

    Returns:
        (hue, saturation, value) arrays of shape (H, W):
        hue in [0, 1), saturation and value in [0, 1].
        Achromatic pixels (max == min) get hue 0; black gets saturation 0.
    """
    rgb = image[..., :3].astype(np.float64) / 255.0
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]

    value = rgb.max(axis=-1)
    chroma = value - rgb.min(axis=-1)

    saturation = np.divide(
        chroma, value, out=np.zeros_like(value), where=value > 0
    )

    safe_chroma = np.where(chroma > 0, chroma, 1.0)
    # Red wins ties for the max channel, then green
    sector = np.select(
        [value == r, value == g],
        [(g - b) / safe_chroma, 2.0 + (b - r) / safe_chroma],
        default=4.0 + (r - g) / safe_chroma,
    )
    sector = np.where(sector < 0, sector + 6.0, sector)
    sector = np.where(sector >= 6.0, sector - 6.0, sector)
    hue = np.where(chroma > 0, sector / 6.0, 0.0)

    return hue, saturation, value


def source_keys(image: np.ndarray, use_hue: bool) -> np.ndarray:
    """
    Per-pixel source ordering key, flattened row-major.

    Args:
        image:   RGBA uint8 array (H, W, 4).
        use_hue: True → H + 0.08 S + 0.02 V; False → BT.709 luma.

    Returns:
        float64 array of length H*W.
    """
    if use_hue:
        hue, sat, val = hsv_components(image)
        key = hue + SATURATION_WEIGHT * sat + VALUE_WEIGHT * val
    else:
        key = luma(image)
    return key.reshape(-1)


def rank_orders(
    source_key: np.ndarray,
    destination_key: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Sort pixel indices by each key.

    Returns:
        (src_order, dst_order): int64 arrays, rank position → pixel index.

    Raises:
        PermutationError: If the two keys differ in length.
    """
    if source_key.shape != destination_key.shape:
        raise PermutationError(
            f"Source key length {source_key.size} does not match "
            f"destination key length {destination_key.size}."
        )
    src_order = np.argsort(source_key, kind="stable").astype(np.int64)
    dst_order = np.argsort(destination_key, kind="stable").astype(np.int64)
    return src_order, dst_order


def apply_permutation(
    image: np.ndarray,
    src_order: np.ndarray,
    dst_order: np.ndarray,
) -> np.ndarray:
    """
    Copy the RGB of pixel src_order[k] to position dst_order[k] for all k.
    Output alpha is opaque.
    """
    h, w = image.shape[:2]
    flat = image.reshape(h * w, -1)
    out = np.empty((h * w, 4), dtype=np.uint8)
    out[dst_order, :3] = flat[src_order, :3]
    out[:, 3] = 255
    return out.reshape(h, w, 4)


def permute_histogram(
    image: np.ndarray,
    destination_field: np.ndarray,
    source_uses_hue_key: bool,
) -> np.ndarray:
    """
    Histogram-perfect rearrangement of image onto destination_field.

    Args:
        image:               RGBA uint8 array (H, W, 4).
        destination_field:   float64 ScalarField of length H*W.
        source_uses_hue_key: Order source pixels by hue (True) or luma.

    Returns:
        New RGBA uint8 array with the same RGB multiset as image.

    Raises:
        PermutationError: If the field length differs from H*W.
    """
    h, w = image.shape[:2]
    field = np.asarray(destination_field, dtype=np.float64).reshape(-1)
    if field.size != h * w:
        raise PermutationError(
            f"Destination field has {field.size} entries; "
            f"image has {h * w} pixels."
        )

    src_order, dst_order = rank_orders(
        source_keys(image, source_uses_hue_key), field
    )
    out = apply_permutation(image, src_order, dst_order)

    log.debug(
        "histogram_permuted",
        shape=(h, w),
        key="hue" if source_uses_hue_key else "luma",
    )
    return out
