"""
Casebook — Application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `api/`, `crud/`, `models/`, `services/` and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from casebook.api.v1.api import api_router
from casebook.api.v1.endpoints.auth import limiter
from casebook.core.config import settings
from casebook.core.exceptions import register_exception_handlers
from casebook.db.session import create_tables, dispose_db, init_db

# Ensure all models are imported so metadata.create_all can see them
from casebook.models.case_study import CaseStudy, Favorite  # noqa: F401
from casebook.models.user import User  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db(settings.DATABASE_URL)
    await create_tables()

    if settings.OWNER_OPEN_ID:
        logger.info("Owner identity configured; it is promoted to admin on sign-in")
    else:
        logger.warning("OWNER_OPEN_ID is not set; no account is admin by default")

    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await dispose_db()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Community case-study sharing site",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Rate limiting (OAuth callback)
    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
