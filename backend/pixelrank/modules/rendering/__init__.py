# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Rendering Module
Public API for the contact sheet and the PNG / ZIP output writer.
"""

from pixelrank.modules.rendering.archive_builder import (
    WrittenOutputs,
    build_archive_bytes,
    encode_outputs,
    write_outputs,
)
from pixelrank.modules.rendering.contact_sheet import (
    CELL_ORDER,
    MIN_SHEET_SIZE,
    cell_boxes,
    render_contact_sheet,
    sheet_size,
)

__all__ = [
    # Contact sheet
    "CELL_ORDER",
    "MIN_SHEET_SIZE",
    "cell_boxes",
    "render_contact_sheet",
    "sheet_size",
    # Outputs / archive
    "WrittenOutputs",
    "encode_outputs",
    "build_archive_bytes",
    "write_outputs",
]
