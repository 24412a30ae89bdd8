from __future__ import annotations

import os
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request, Response

from app.schemas.numbers import HealthResponse


router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health(request: Request) -> HealthResponse:
    started_at: datetime = request.app.state.started_at
    uptime = (datetime.now(timezone.utc) - started_at).total_seconds()
    return HealthResponse(status="ok", started_at=started_at, uptime_seconds=round(uptime, 3))


@router.get("/metrics")
def metrics(request: Request) -> Response:
    if not request.app.state.settings.metrics_enabled:
        raise HTTPException(status_code=404, detail="Metrics disabled")

    from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

    multiproc_dir = os.getenv("PROMETHEUS_MULTIPROC_DIR")
    if multiproc_dir:
        from prometheus_client import multiprocess

        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        return Response(generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
