"""
FastAPI Application Entry Point

Coffee shop ordering backend.

Endpoints:
    - /api/auth/*: Registration, login, profile, password reset
    - /api/products/*: Catalog (public)
    - /api/search: Catalog search (public)
    - /api/cart/*: Cart of the authenticated user
    - /api/orders/*: Checkout, history, status, transfer confirmation
    - GET /health: System health check

Run with:
    uvicorn coffeeshop.main:app --port 3000
    python -m coffeeshop.main
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

import redis.asyncio as aioredis
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from coffeeshop.core.config import get_settings, setup_logging
from coffeeshop.core.exceptions import AppError
from coffeeshop.database import async_session_maker, engine, get_db, init_db
from coffeeshop.routers import api_router
from coffeeshop.schemas import HealthResponse
from coffeeshop.seed import seed_catalog
from coffeeshop.services.notifications import get_notification_service

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()

    if settings.seed_catalog:
        async with async_session_maker() as session:
            await seed_catalog(session)

    notification_service = get_notification_service()
    logger.info(f"Email Service: {notification_service.provider_name}")

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"Missing production config: {missing}")

    logger.info("Application ready")

    yield  # Application runs

    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Coffee shop ordering API: catalog, auth, cart, orders and search.",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db)
) -> HealthResponse:
    """Verify database, Redis and email service."""

    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "unhealthy"
        logger.error(f"Database health check failed: {e}")

    redis_status = "healthy"
    client = aioredis.from_url(settings.redis_url, socket_timeout=2)
    try:
        await client.ping()
    except Exception as e:
        redis_status = "unhealthy"
        logger.error(f"Redis health check failed: {e}")
    finally:
        await client.aclose()

    email_status = "healthy" if await get_notification_service().health_check() else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [db_status, redis_status, email_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        redis=redis_status,
        email_service=email_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Domain errors carry their own status code."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or incomplete request bodies answer 400."""
    errors = exc.errors()
    details: list[str] = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    logger.debug(f"Validation failed on {request.url.path}: {details}")
    return JSONResponse(
        status_code=400,
        content={"message": "Missing or invalid fields: " + "; ".join(details)},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")

    content: dict[str, Any] = {"message": "Internal server error"}
    if settings.debug and not settings.is_production:
        content["detail"] = str(exc)
    return JSONResponse(status_code=500, content=content)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "coffeeshop.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
