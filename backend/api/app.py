"""FastAPI application factory"""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings
from core.dependencies import close_http_client
from core.errors import register_error_handlers
from core.logging import setup_logging
from routers import merch_router, twitch_router, videos_router

logger = logging.getLogger(__name__)

# Track server start time
_start_time: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle startup and shutdown"""
    global _start_time
    _start_time = time.time()

    settings = get_settings()

    # Startup
    logger.info("Starting Creator Hub API server")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Site URL: {settings.site_url}")

    yield

    # Shutdown
    logger.info("Shutting down Creator Hub API server")
    await close_http_client()


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    settings = get_settings()

    # Setup logging first
    setup_logging(settings)

    # Create FastAPI app with lifespan
    app = FastAPI(
        title="Creator Hub API",
        description="Aggregation gateway over Twitch, YouTube and Fourthwall for a creator site",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app, settings)

    # Register routers
    app.include_router(twitch_router.router)
    app.include_router(videos_router.router)
    app.include_router(merch_router.router)

    # Root endpoint
    @app.get("/")
    async def root():
        """Root endpoint - minimal service info"""
        return {"service": "creator-hub-api", "status": "running"}

    # Liveness probe: always 200, no upstream dependency
    @app.get("/health")
    async def health():
        """Liveness check (does not call any upstream)"""
        return {
            "status": "healthy",
            "uptime_seconds": int(time.time() - _start_time),
        }

    logger.info("FastAPI application configured")

    return app
