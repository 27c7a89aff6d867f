"""Prometheus scrape endpoint.

Exposes the HTTP series from the middleware alongside the activity
series (activity_events_total, activity_rejections_total,
activity_commit_duration_seconds, rate_limit_hits_total).
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
