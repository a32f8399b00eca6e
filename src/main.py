"""Journal Insights API — FastAPI application entry point.

Run locally:
    uvicorn src.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.analytics.config_loader import get_analytics_config, reload_analytics_config
from src.analytics.engine import AnalyticsEngine
from src.analytics.stores import InMemoryProfileStore, InMemoryRecordStore, load_seed_file
from src.config import get_settings
from src.routers import analytics, health

# ---------- Logging ----------

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger("journal")


# ---------- Lifespan ----------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    settings = get_settings()
    logger.info(
        "Starting Journal Insights API v%s [%s]",
        settings.app_version,
        settings.environment,
    )

    if settings.analytics_config_path:
        config = reload_analytics_config(Path(settings.analytics_config_path))
    else:
        config = get_analytics_config()

    if settings.seed_data_path:
        record_store, profile_store = load_seed_file(Path(settings.seed_data_path))
    else:
        record_store, profile_store = InMemoryRecordStore(), InMemoryProfileStore()

    app.state.engine = AnalyticsEngine(record_store, profile_store, config)
    yield
    app.state.engine = None
    logger.info("Journal Insights API shut down")


# ---------- App factory ----------

def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Journal Insights API",
        description=(
            "Analytics and predictive insights for a personal health journal — "
            "symptom trends, food correlations, cycle forecasts and health scores."
        ),
        version=settings.app_version,
        debug=settings.debug,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------- Health check (outside v1 prefix, always at /health) ----------
    app.include_router(health.router)

    # ---------- API v1 routes ----------
    app.include_router(analytics.router, prefix="/api/v1")

    return app


app = create_app()
