# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Rank Remapping Module
Public API for the luminance field builder and the rank permuter
behind the RPC_A / RPC_B variants.
"""

from pixelrank.modules.remapping.luminance_field import (
    FieldBuildError,
    blur_plane,
    build_luminance_field,
    luma,
    positional_perturbation,
    quantise,
)
from pixelrank.modules.remapping.rank_permuter import (
    PermutationError,
    apply_permutation,
    hsv_components,
    permute_histogram,
    rank_orders,
    source_keys,
)

__all__ = [
    # Field builder
    "FieldBuildError",
    "luma",
    "blur_plane",
    "quantise",
    "positional_perturbation",
    "build_luminance_field",
    # Rank permuter
    "PermutationError",
    "hsv_components",
    "source_keys",
    "rank_orders",
    "apply_permutation",
    "permute_histogram",
]
