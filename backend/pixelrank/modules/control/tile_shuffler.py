# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Deterministic Tile Shuffler
Produces the CTRL variant: the image is cut into a grid of uniform
tile×tile blocks and the blocks are relocated by a seeded Fisher–Yates
permutation. Pixels inside a block are copied verbatim, so CTRL keeps
all local structure and only scrambles layout — the baseline the two
rank-matched variants are compared against.

Algorithm:
  1. cols = W // tile, rows = H // tile, tile_count = cols * rows
  2. order = identity, then Fisher–Yates driven by PseudoRandomStream:
       for i = tile_count-1 .. 1: j = floor(next() * (i+1)); swap(i, j)
  3. Destination tile t (row-major) receives source tile order[t]

Remainder strip:
  When tile does not divide W or H, the right / bottom strip outside
  the cols*tile × rows*tile grid is not shuffled. It is either copied
  through from the source ("copy", the default) or left as the fresh
  buffer's transparent black ("blank").
"""

from __future__ import annotations

from typing import Literal

import numpy as np

from pixelrank.modules.control.random_stream import PseudoRandomStream
from pixelrank.utils.image_utils import with_opaque_alpha
from pixelrank.utils.logger import get_logger

log = get_logger(__name__)

RemainderMode = Literal["copy", "blank"]
_REMAINDER_MODES = ("copy", "blank")


class TileShuffleError(ValueError):
    """Raised for an invalid tile size or remainder mode."""


def grid_shape(width: int, height: int, tile: int) -> tuple[int, int]:
    """Return (rows, cols) of whole tiles that fit in a width×height image."""
    if tile <= 0:
        raise TileShuffleError(f"Tile size must be positive, got {tile}.")
    return height // tile, width // tile


def tile_order(tile_count: int, seed: int) -> np.ndarray:
    """
    Seeded Fisher–Yates permutation of 0..tile_count-1.

    Returns:
        int64 array; entry t is the source tile placed at destination t.
    """
    order = list(range(tile_count))
    rng = PseudoRandomStream(seed)
    for i in range(tile_count - 1, 0, -1):
        j = rng.next_below(i + 1)
        order[i], order[j] = order[j], order[i]
    return np.asarray(order, dtype=np.int64)


def shuffle_tiles(
    image: np.ndarray,
    tile: int,
    seed: int,
    remainder: RemainderMode = "copy",
) -> np.ndarray:
    """
    Relocate whole tile×tile blocks of image by a seeded permutation.

    Args:
        image:     RGBA uint8 array (H, W, 4).
        tile:      Tile edge length in pixels (> 0).
        seed:      Unsigned 32-bit seed for the permutation.
        remainder: "copy" or "blank" — fate of pixels outside the grid.

    Returns:
        New RGBA uint8 array of the same shape, alpha forced to 255
        everywhere a pixel was written.

    Raises:
        TileShuffleError: On tile <= 0 or an unknown remainder mode.
    """
    if remainder not in _REMAINDER_MODES:
        raise TileShuffleError(
            f"Unknown remainder mode '{remainder}'. "
            f"Expected one of {_REMAINDER_MODES}."
        )

    h, w = image.shape[:2]
    rows, cols = grid_shape(w, h, tile)
    tile_count = rows * cols

    if remainder == "copy":
        out = with_opaque_alpha(image)
    else:
        out = np.zeros_like(image)

    if tile_count == 0:
        log.debug("tile_shuffle_empty_grid", tile=tile, shape=(h, w))
        return out

    order = tile_order(tile_count, seed)

    # (rows, tile, cols, tile, C) → (tile_count, tile, tile, C), row-major tiles
    gh, gw = rows * tile, cols * tile
    blocks = (
        image[:gh, :gw]
        .reshape(rows, tile, cols, tile, -1)
        .swapaxes(1, 2)
        .reshape(tile_count, tile, tile, -1)
    )
    placed = blocks[order]
    out[:gh, :gw] = (
        placed.reshape(rows, cols, tile, tile, -1)
        .swapaxes(1, 2)
        .reshape(gh, gw, -1)
    )
    out[:gh, :gw, 3] = 255

    log.debug(
        "tiles_shuffled",
        tile=tile,
        grid=(rows, cols),
        tile_count=tile_count,
        seed=seed,
        remainder=remainder,
        remainder_px=h * w - gh * gw,
    )
    return out
