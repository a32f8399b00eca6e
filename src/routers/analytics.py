"""Analytics endpoints: dashboard analytics, per-day health score, stateless compute."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from src.analytics.base import Granularity
from src.analytics.engine import InvalidDateRangeError
from src.dependencies import Engine
from src.models.analytics import AnalyticsRequest, AnalyticsResponse, HealthScoreRead
from src.models.base import ErrorDetail

router = APIRouter(tags=["analytics"])

# HTTPException bodies: 422 for a bad date window, 503 before startup finished
_ERRORS: dict[int | str, dict[str, Any]] = {
    422: {"model": ErrorDetail, "description": "Malformed or inverted date window"},
    503: {"model": ErrorDetail, "description": "Analytics engine not initialised"},
}
logger = logging.getLogger("journal.analytics.api")


@router.get("/users/{user_id}/analytics", response_model=AnalyticsResponse, responses=_ERRORS)
async def get_analytics(
    user_id: str,
    engine: Engine,
    start_date: str = Query(..., description="Inclusive YYYY-MM-DD"),
    end_date: str = Query(..., description="Inclusive YYYY-MM-DD"),
    granularity: Granularity = Query(default=Granularity.daily),
) -> Any:
    try:
        result = await engine.compute_analytics(user_id, start_date, end_date, granularity)
    except InvalidDateRangeError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return asdict(result)


@router.get("/users/{user_id}/health-score", response_model=HealthScoreRead, responses=_ERRORS)
async def get_health_score(
    user_id: str,
    engine: Engine,
    date: str = Query(..., description="YYYY-MM-DD"),
) -> Any:
    try:
        score = await engine.compute_health_score(user_id, date)
    except InvalidDateRangeError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return HealthScoreRead.build(date, score)


@router.post("/analytics/compute", response_model=AnalyticsResponse, responses=_ERRORS)
async def compute_analytics(body: AnalyticsRequest, engine: Engine) -> Any:
    """Run the analytics over records supplied in the request body."""
    records = [r.to_record() for r in body.records]
    profile = body.profile.to_profile() if body.profile else None
    try:
        result = engine.analyze(
            records, profile, body.start_date, body.end_date, body.granularity
        )
    except InvalidDateRangeError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    logger.debug("Computed analytics over %d supplied record(s)", len(records))
    return asdict(result)
