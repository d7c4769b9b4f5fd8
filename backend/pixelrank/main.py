# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PixelRank — FastAPI Application Entry Point
Creates the app, registers lifespan events, CORS, routers,
and global error handlers.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pixelrank.api.middleware.error_handler import register_error_handlers
from pixelrank.api.routes import assets, generate, status
from pixelrank.config import get_settings
from pixelrank.dependencies import init_job_store
from pixelrank.utils.logger import configure_logging, get_logger

log = get_logger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Startup: configure logging, initialise JobStore.
    """
    configure_logging()
    settings = get_settings()

    log.info(
        "pixelrank_startup",
        version=VERSION,
        working_size=settings.working_size,
        ctrl_tile=settings.ctrl_tile,
        blur_a=settings.blur_a,
        blur_b=settings.blur_b,
        b_levels=settings.b_levels,
        tile_remainder=settings.tile_remainder,
        job_store=settings.job_store_backend,
    )

    init_job_store()

    log.info("pixelrank_ready")
    yield

    log.info("pixelrank_shutdown")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="PixelRank",
        summary="Histogram-preserving pixel remapping with a seeded tile-shuffle control.",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # ── CORS ─────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",   # Vite dev server
            "http://localhost:3000",   # Alternative dev port
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error Handlers ───────────────────────────────────────────────────────
    register_error_handlers(app)

    # ── Routers ──────────────────────────────────────────────────────────────
    app.include_router(generate.router)
    app.include_router(status.router)
    app.include_router(assets.router)

    # ── Health Check ─────────────────────────────────────────────────────────
    @app.get("/health", tags=["health"], summary="Health check")
    async def health() -> dict:
        return {
            "status": "ok",
            "service": "pixelrank",
            "version": VERSION,
            "working_size": settings.working_size,
            "job_store": settings.job_store_backend,
        }

    return app


# Module-level app instance for uvicorn
app = create_app()
