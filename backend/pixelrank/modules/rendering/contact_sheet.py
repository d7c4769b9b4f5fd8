# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Contact Sheet Renderer
Composes the source and its three derived images into one 2×2 preview
("canvas"), each labelled in its top-left corner:

    ┌──────────────┬──────────────┐
    │ SRC          │ RPC_A        │
    ├──────────────┼──────────────┤
    │ RPC_B        │ CTRL         │
    └──────────────┴──────────────┘

An 80px band above the grid is left empty. Each image is aspect-fit
into its cell and centred. Jobs render the sheet at no less than
MIN_SHEET_SIZE (see sheet_size) so small working sizes still get a
readable grid; cells that would collapse to nothing are left empty.
"""

from __future__ import annotations

import cv2
import numpy as np

from pixelrank.utils.image_utils import fit_within
from pixelrank.utils.logger import get_logger

log = get_logger(__name__)

# Visual constants (RGBA)
_BACKGROUND   = (20, 20, 20, 255)
_LABEL_COLOUR = (235, 235, 235, 255)
_SHADOW       = (0, 0, 0, 255)
_PAD          = 16
_TOP_OFFSET   = 80
_FONT         = cv2.FONT_HERSHEY_SIMPLEX
_FONT_SCALE   = 0.4

# Sheets smaller than this leave no room for the grid below the top band
MIN_SHEET_SIZE = 900

CELL_ORDER = ("SRC", "RPC_A", "RPC_B", "CTRL")


def cell_boxes(size: int) -> dict[str, tuple[float, float, float, float]]:
    """
    Return label → (x, y, w, h) of each grid cell on a size×size sheet.
    Cell sizes are fractional; callers round when drawing.
    """
    cell_w = max((size - _PAD * 3) / 2, 0.0)
    cell_h = max((size - _PAD * 3 - _TOP_OFFSET) / 2, 0.0)
    left, right = _PAD, _PAD * 2 + cell_w
    top, bottom = _PAD + _TOP_OFFSET, _PAD * 2 + cell_h + _TOP_OFFSET
    return {
        "SRC":   (left,  top,    cell_w, cell_h),
        "RPC_A": (right, top,    cell_w, cell_h),
        "RPC_B": (left,  bottom, cell_w, cell_h),
        "CTRL":  (right, bottom, cell_w, cell_h),
    }


def _draw_fit(sheet: np.ndarray, img: np.ndarray, box: tuple) -> None:
    x, y, w, h = box
    if w < 1 or h < 1:
        return
    ih, iw = img.shape[:2]
    dx, dy, dw, dh = fit_within(iw, ih, w, h)
    if dw <= 0 or dh <= 0:
        return
    interp = cv2.INTER_AREA if dw < iw else cv2.INTER_LINEAR
    resized = cv2.resize(img, (dw, dh), interpolation=interp)

    # Clip to the sheet; rounding can push the last row/column past the edge
    x0, y0 = int(x) + dx, int(y) + dy
    x1 = min(x0 + dw, sheet.shape[1])
    y1 = min(y0 + dh, sheet.shape[0])
    if x1 <= x0 or y1 <= y0:
        return
    sheet[y0:y1, x0:x1] = resized[:y1 - y0, :x1 - x0]
    sheet[y0:y1, x0:x1, 3] = 255


def sheet_size(working_size: int) -> int:
    """Edge length of the preview for a given working size."""
    return max(working_size, MIN_SHEET_SIZE)


def _draw_label(sheet: np.ndarray, text: str, x: int, y: int) -> None:
    """Label with a 1px shadow so it reads over bright image content."""
    cv2.putText(sheet, text, (x + 1, y + 1), _FONT, _FONT_SCALE,
                _SHADOW, 2, cv2.LINE_AA)
    cv2.putText(sheet, text, (x, y), _FONT, _FONT_SCALE,
                _LABEL_COLOUR, 1, cv2.LINE_AA)


def render_contact_sheet(
    images: dict[str, np.ndarray],
    size: int = 900,
) -> np.ndarray:
    """
    Render the 2×2 preview sheet.

    Args:
        images: label → RGBA image for any of SRC, RPC_A, RPC_B, CTRL.
                Missing labels leave their cell empty.
        size:   Edge length of the square sheet.

    Returns:
        RGBA uint8 array (size, size, 4).
    """
    sheet = np.empty((size, size, 4), dtype=np.uint8)
    sheet[:] = _BACKGROUND

    boxes = cell_boxes(size)
    for label in CELL_ORDER:
        img = images.get(label)
        if img is not None:
            _draw_fit(sheet, img, boxes[label])

    # Labels last so no image covers them
    for label in CELL_ORDER:
        if label in images:
            x, y, _, _ = boxes[label]
            _draw_label(sheet, label, int(x) + 4, int(y) + 14)

    log.debug("contact_sheet_rendered", size=size, cells=sorted(images))
    return sheet
