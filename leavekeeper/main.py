"""Leavekeeper — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from leavekeeper import __version__
from leavekeeper.absences.router import router as absences_router
from leavekeeper.anniversaries.router import router as anniversaries_router
from leavekeeper.bonus.router import router as bonus_router
from leavekeeper.common.exceptions import register_exception_handlers
from leavekeeper.common.rate_limit import limiter
from leavekeeper.config import settings
from leavekeeper.database import engine
from leavekeeper.entitlement.router import router as entitlement_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("Leavekeeper %s starting (%s)", __version__, settings.ENVIRONMENT)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Leavekeeper",
        description="Paid leave entitlements, balances and work anniversaries",
        version=__version__,
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": __version__,
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(entitlement_router, prefix="/api/v1/entitlements", tags=["entitlements"])
    app.include_router(absences_router, prefix="/api/v1", tags=["extended-absences"])
    app.include_router(bonus_router, prefix="/api/v1/bonus-leave", tags=["bonus-leave"])
    app.include_router(anniversaries_router, prefix="/api/v1/anniversaries", tags=["anniversaries"])

    return app


app = create_app()
