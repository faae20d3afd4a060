"""carecal FastAPI application entry point.

Start with:
    uvicorn carecal.api.main:app --reload --host 0.0.0.0 --port 8000
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from carecal import __version__
from carecal.api.errors import install_error_handlers
from carecal.config import load_scheduling_config
from carecal.core.logger import configure
from carecal.infra.database.engine import (
    build_engine,
    build_session_factory,
    close_engine,
    ensure_database_exists,
    init_db,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── Startup ──────────────────────────────────────────────────
    configure()

    await ensure_database_exists()
    engine = build_engine()
    session_factory = build_session_factory(engine)
    await init_db()

    app.state.session_factory = session_factory
    app.state.scheduling_config = load_scheduling_config()
    logger.info("API: scheduling config %s", app.state.scheduling_config)

    yield

    # ── Shutdown ─────────────────────────────────────────────────
    await close_engine()
    logger.info("API: engine disposed")


app = FastAPI(
    title="carecal API",
    version=__version__,
    description="Clinician availability and appointment scheduling across timezones.",
    lifespan=lifespan,
)

# Rate limiter: default limit for every route, configurable via API_RATE_LIMIT (default 120/minute)
_api_rate_limit = os.environ.get("API_RATE_LIMIT", "120/minute")
limiter = Limiter(key_func=get_remote_address, default_limits=[_api_rate_limit])
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

install_error_handlers(app)

_allowed_origins = os.environ.get(
    "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
).split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Routers ───────────────────────────────────────────────────────
from carecal.api.routers import appointments, availability, users  # noqa: E402

app.include_router(availability.router, prefix="/api/v1")
app.include_router(appointments.router, prefix="/api/v1")
app.include_router(appointments.clinician_router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")


@app.get("/health", tags=["health"])
@limiter.exempt
async def health(request: Request):
    return {"status": "ok", "version": __version__}
