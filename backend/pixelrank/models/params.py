# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Generation Parameters
Immutable per-call parameters for core.pipeline.generate(), plus the
dataclass carrying its three outputs. Defaults reproduce the reference
outputs; Settings and per-request overrides feed in through
GenerationParams.from_settings().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from pixelrank.config import Settings
from pixelrank.modules.control.seed import seed_from_name


class GenerationParams(BaseModel):
    """Everything generate() needs besides the pixels themselves."""
    model_config = ConfigDict(frozen=True)

    working_size: int = Field(900, gt=0, le=16_000)
    ctrl_tile: int = Field(36, gt=0)
    blur_a: float = Field(18.0, ge=0.0)
    blur_b: float = Field(34.0, ge=0.0)
    b_levels: int = Field(10, ge=0)
    tile_remainder: Literal["copy", "blank"] = "copy"
    # Base name of the upload (extension stripped) — seeds the CTRL shuffle
    source_name: str = "image"

    @property
    def ctrl_seed(self) -> int:
        return seed_from_name(self.source_name)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        source_name: str = "image",
        **overrides,
    ) -> GenerationParams:
        """
        Build params from Settings; keyword overrides win.
        Raises pydantic.ValidationError on out-of-range overrides.
        """
        values = {
            "working_size": settings.working_size,
            "ctrl_tile": settings.ctrl_tile,
            "blur_a": settings.blur_a,
            "blur_b": settings.blur_b,
            "b_levels": settings.b_levels,
            "tile_remainder": settings.tile_remainder,
            "source_name": source_name,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class GeneratedOutputs:
    """Output of generate() — the source and its three derived images."""
    source: np.ndarray     # RGBA uint8, as passed in
    out_a: np.ndarray      # RPC_A: hue-keyed onto the continuous field
    out_b: np.ndarray      # RPC_B: luma-keyed onto the banded field
    out_ctrl: np.ndarray   # CTRL: seeded tile shuffle
    seed: int              # CTRL seed actually used
    base_name: str

    def as_labelled(self) -> dict[str, np.ndarray]:
        """Map output labels (SRC, RPC_A, RPC_B, CTRL) to images."""
        return {
            "SRC": self.source,
            "RPC_A": self.out_a,
            "RPC_B": self.out_b,
            "CTRL": self.out_ctrl,
        }
