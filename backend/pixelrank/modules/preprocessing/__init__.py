# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Preprocessing Module
Public API for the preprocessing stage.
"""

from pixelrank.modules.preprocessing.normalizer import (
    WorkingImage,
    normalize_array,
    normalize_image_file,
)
from pixelrank.modules.preprocessing.validator import (
    validate_image_bytes,
    validate_image_file,
)

__all__ = [
    # Validator
    "validate_image_bytes",
    "validate_image_file",
    # Normalizer
    "WorkingImage",
    "normalize_array",
    "normalize_image_file",
]
