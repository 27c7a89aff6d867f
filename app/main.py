from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.activity import router as activity_router
from app.api.health import router as health_router
from app.api.metrics_endpoint import router as metrics_router
from app.api.reference import router as reference_router
from app.api.status import router as status_router
from app.core.config import SETTINGS
from app.core.logging import setup_logging
from app.db.engine import lifespan_db
from app.db.redis import lifespan_redis
from app.middleware.metrics import MetricsMiddleware
from app.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(
    SETTINGS.log_level,
    json_format=SETTINGS.log_json,
    log_file=SETTINGS.log_file,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Teardown runs in reverse order: Redis closes before the DB engine.
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="unistellar-server",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

# Last-added runs first: RequestContext -> Metrics -> route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(activity_router)
app.include_router(status_router)
app.include_router(reference_router)

logger.info(
    "unistellar-server started  env=%s log_level=%s port=%d enrollment=%s docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "enforced" if SETTINGS.enforce_enrollment else "off",
    "on" if SETTINGS.is_dev else "off",
)
