# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Control Variant Module
Public API for the seeded tile-shuffle baseline (CTRL).
"""

from pixelrank.modules.control.random_stream import PseudoRandomStream
from pixelrank.modules.control.seed import seed_from_name, utf16_code_units
from pixelrank.modules.control.tile_shuffler import (
    RemainderMode,
    TileShuffleError,
    grid_shape,
    shuffle_tiles,
    tile_order,
)

__all__ = [
    # Random stream
    "PseudoRandomStream",
    # Seed derivation
    "seed_from_name",
    "utf16_code_units",
    # Tile shuffler
    "RemainderMode",
    "TileShuffleError",
    "grid_shape",
    "tile_order",
    "shuffle_tiles",
]
