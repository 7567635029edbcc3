from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from practice_orgs.api.auth import router as auth_router
from practice_orgs.api.errors import register_error_handlers
from practice_orgs.api.health import router as health_router
from practice_orgs.api.me import router as me_router
from practice_orgs.api.members import router as members_router
from practice_orgs.api.metrics_endpoint import router as metrics_router
from practice_orgs.api.organizations import router as organizations_router
from practice_orgs.core.config import SETTINGS
from practice_orgs.core.logging import setup_logging
from practice_orgs.db.engine import lifespan_db
from practice_orgs.db.redis import lifespan_redis
from practice_orgs.middleware.metrics import MetricsMiddleware
from practice_orgs.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order.
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="practice-orgs",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[SETTINGS.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last-added runs first: RequestContext → Metrics → CORS → route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

register_error_handlers(app)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(me_router)
app.include_router(members_router)
app.include_router(organizations_router)

logger.info(
    "practice-orgs started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
