"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from src.analytics.engine import AnalyticsEngine
from src.config import Settings, get_settings


async def get_engine(request: Request) -> AnalyticsEngine:
    """Return the engine built at startup (``app.state.engine``)."""
    engine: AnalyticsEngine | None = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Analytics engine not initialised")
    return engine


# Annotated shortcuts for route signatures
Engine = Annotated[AnalyticsEngine, Depends(get_engine)]
AppSettings = Annotated[Settings, Depends(get_settings)]
