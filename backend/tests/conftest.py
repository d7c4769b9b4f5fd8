# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Shared fixtures. Settings are cached process-wide, so every test that
changes environment variables goes through `isolated_settings`, which
points storage at a temp dir and clears the cache on both sides.
"""

import pytest


@pytest.fixture
def isolated_settings(monkeypatch, tmp_path):
    from pixelrank.config import get_settings

    monkeypatch.setenv("STORAGE_ROOT", str(tmp_path / "storage"))
    monkeypatch.setenv("JOB_STORE_BACKEND", "memory")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    # Small canvas keeps pipeline tests fast; 72 = 2×2 tiles of 36
    monkeypatch.setenv("WORKING_SIZE", "72")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
