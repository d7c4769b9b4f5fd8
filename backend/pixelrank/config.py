# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — Application Configuration
All settings are loaded from environment variables with defaults that
reproduce the reference outputs (900px canvas, 36px control tiles,
blur radii 18 / 34, 10 quantisation levels). Override via backend/.env
or environment.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ─── Working Canvas ──────────────────────────────────────────────────────
    # Uploads are centre-cropped to a square and resized to this edge length
    working_size: int = 900

    # ─── Rank-Matched Variants ───────────────────────────────────────────────
    # RPC_A: continuous field, hue-keyed source
    blur_a: float = 18.0
    # RPC_B: coarse banded field, luma-keyed source
    blur_b: float = 34.0
    b_levels: int = 10

    # ─── Control Variant ─────────────────────────────────────────────────────
    ctrl_tile: int = 36
    # What happens to pixels outside the tile grid when the tile size does
    # not divide the canvas: copied from source, or left transparent black
    tile_remainder: Literal["copy", "blank"] = "copy"

    # ─── Storage ─────────────────────────────────────────────────────────────
    storage_root: Path = Path("./storage")
    upload_max_mb: int = 25

    # ─── Job Store ───────────────────────────────────────────────────────────
    job_store_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    job_ttl_seconds: int = 86400  # 24 hours

    # ─── Logging ─────────────────────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ─── Server ──────────────────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8000

    # ─── Derived helpers ─────────────────────────────────────────────────────
    @property
    def upload_max_bytes(self) -> int:
        return self.upload_max_mb * 1024 * 1024


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached singleton Settings instance."""
    return Settings()
