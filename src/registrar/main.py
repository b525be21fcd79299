"""
Registrar - student duplicate detection service

FastAPI application entry point.
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import redis.asyncio as redis
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from starlette.middleware.base import BaseHTTPMiddleware

from registrar import __version__
from registrar.config import settings
from registrar.matching.cache import DetectionCache

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its status and duration."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.time()

        request_id = request.headers.get("X-Request-ID", f"req_{int(time.time() * 1000)}")

        logger.info(
            f"Request: {request.method} {request.url.path} "
            f"[{request_id}] from {request.client.host if request.client else 'unknown'}"
        )

        response = await call_next(request)

        process_time = time.time() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(process_time)

        logger.info(
            f"Response: {request.method} {request.url.path} "
            f"[{request_id}] status={response.status_code} time={process_time:.3f}s"
        )

        return response


# Database engine and session factory
engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting Registrar...")

    # Initialize Redis connection pool
    app.state.redis = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )

    # Store database session factory
    app.state.db_session = async_session

    if settings.duplicate_cache_enabled:
        app.state.detection_cache = DetectionCache(
            app.state.redis,
            default_ttl_seconds=settings.duplicate_cache_ttl_seconds,
        )
        logger.info(
            f"Duplicate detection cache enabled (ttl={settings.duplicate_cache_ttl_seconds}s)"
        )
    else:
        app.state.detection_cache = None

    logger.info("Registrar started successfully")

    yield

    # Cleanup
    logger.info("Shutting down Registrar...")
    await app.state.redis.aclose()
    await engine.dispose()
    logger.info("Registrar shutdown complete")


app = FastAPI(
    title="Registrar",
    description="Duplicate detection for student registrations",
    version=__version__,
    lifespan=lifespan,
    # Disable docs in production
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
    openapi_url="/openapi.json" if not settings.is_production else None,
)

# Request logging middleware
app.add_middleware(RequestLoggingMiddleware)


@app.get("/health")
async def health_check(request: Request) -> dict[str, Any]:
    """
    Health check endpoint.

    Reports database and Redis reachability and cache state.
    """
    health_status: dict[str, Any] = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "services": {},
    }

    # Check the database
    try:
        async with request.app.state.db_session() as session:
            await session.execute(text("SELECT 1"))
        health_status["services"]["database"] = {"status": "healthy"}
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Database health check failed: {e}")
        health_status["services"]["database"] = {"status": "unhealthy", "error": str(e)}
        health_status["status"] = "degraded"

    # Check Redis
    try:
        await request.app.state.redis.ping()
        health_status["services"]["redis"] = {"status": "healthy"}
    except (redis.RedisError, OSError) as e:
        logger.warning(f"Redis health check failed: {e}")
        health_status["services"]["redis"] = {"status": "unhealthy", "error": str(e)}
        health_status["status"] = "degraded"

    cache = getattr(request.app.state, "detection_cache", None)
    health_status["services"]["detection_cache"] = {
        "status": "enabled" if cache is not None else "disabled"
    }

    return health_status


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "name": "Registrar",
        "description": "Duplicate detection for student registrations",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions."""
    logger.exception(f"Unhandled exception: {exc}")

    # Never expose internal error details in production
    if settings.is_production:
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please contact support.",
            },
        )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc),
            "type": type(exc).__name__,
        },
    )


# Import and include routers
from registrar.api.routes import duplicates_router  # noqa: E402

app.include_router(duplicates_router, prefix="/api/v1")
