"""Health check endpoint, served outside the /api/v1 prefix."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from src.dependencies import AppSettings

router = APIRouter(tags=["system"])
logger = logging.getLogger("journal.health")


@router.get("/health")
async def health_check(request: Request, settings: AppSettings) -> dict:
    """Liveness probe. Returns 200 if the API process is up.

    Also reports which analytics config version is loaded.
    """
    engine = getattr(request.app.state, "engine", None)
    config = engine.config if engine is not None else None

    return {
        "status": "healthy" if engine is not None else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "analytics_config": config.version if config else None,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
