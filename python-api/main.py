"""
FastAPI application entry point.

Initializes the FastAPI app with:
- CORS configuration
- Rate limiting
- Global exception handlers producing the ``{success, error}`` envelope
- Structured logging
- REST routers and the WebSocket endpoint
- Health check endpoint
"""

import logging
import sys
from datetime import datetime
from typing import Any

from api.responses import error_body
from api.routes import (
    auth,
    dashboard,
    hackathons,
    messages,
    notifications,
    projects,
    submissions,
    teams,
    users,
)
from config import settings
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from integrations.redis_client import close_redis, get_redis, init_redis
from integrations.zerodb.dependencies import build_zerodb_client
from integrations.zerodb.exceptions import ZeroDBError, ZeroDBNotFound, ZeroDBTimeoutError
from middleware.rate_limit import rate_limit_middleware
from models.common import DomainError
from realtime import router as realtime_router
from realtime.manager import manager
from realtime.presence import build_presence_registry
from services.auth_exceptions import AuthError
from starlette.exceptions import HTTPException as StarletteHTTPException


# Configure structured logging
def setup_logging() -> None:
    """
    Configure structured logging.

    Logs include:
    - Timestamp
    - Log level
    - Message
    - Module name
    """
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


setup_logging()
logger = logging.getLogger(__name__)


# Initialize FastAPI app
app = FastAPI(
    title="DotHack Backend API",
    description="Hackathon platform: events, teams, projects, judging and team chat",
    version=settings.API_VERSION,
    docs_url=f"/{settings.API_VERSION}/docs",
    redoc_url=f"/{settings.API_VERSION}/redoc",
    openapi_url=f"/{settings.API_VERSION}/openapi.json",
)


# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info(f"CORS configured with allowed origins: {settings.cors_origins}")

if settings.RATE_LIMIT_ENABLED:
    rate_limit_middleware(app)
    logger.info(
        f"Rate limiting enabled: {settings.RATE_LIMIT_MAX_REQUESTS} requests per "
        f"{settings.RATE_LIMIT_WINDOW_SECONDS}s"
    )


# Register API Routes
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(hackathons.router)
app.include_router(projects.router)
app.include_router(teams.router)
app.include_router(submissions.router)
app.include_router(notifications.router)
app.include_router(messages.router)
app.include_router(dashboard.router)
logger.info("Registered REST routes")
app.include_router(realtime_router.router)
logger.info("Registered WebSocket route")


# Global Exception Handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle HTTP exceptions with the error envelope.

    Authentication failures carry a dict detail with an ``error_code``.
    """
    path = str(request.url.path)
    if isinstance(exc.detail, dict):
        message = exc.detail.get("detail", "Request failed")
        error_code = exc.detail.get("error_code")
    else:
        message = exc.detail
        error_code = None

    log = logger.error if exc.status_code >= 500 else logger.info
    log(f"HTTP exception: {exc.status_code} - {message} - Path: {path}")

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message, path, error_code=error_code),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors with per-field messages.

    Validation failures are reported as 400 Bad Request.
    """
    details = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    logger.info(f"Validation error on {request.url.path}: {details}")

    message = details[0]["message"] if len(details) == 1 else "Validation error"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            message, str(request.url.path), error_code="VALIDATION_ERROR", details=details
        ),
    )


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Handle rejected state transitions raised by the domain rules."""
    logger.info(f"Rejected on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, str(request.url.path)),
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Handle authentication errors raised outside the auth dependencies."""
    logger.warning(
        f"Authentication error on {request.url.path}: {exc.error_code}",
        extra={"event": "auth_failed", "error_code": exc.error_code},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(
            exc.message, str(request.url.path), error_code=exc.error_code, details=exc.details
        ),
    )


@app.exception_handler(ZeroDBError)
async def zerodb_error_handler(request: Request, exc: ZeroDBError) -> JSONResponse:
    """Handle storage failures that escaped the services."""
    logger.error(f"ZeroDB error on {request.url.path}: {exc}")
    if isinstance(exc, ZeroDBTimeoutError):
        status_code = status.HTTP_504_GATEWAY_TIMEOUT
        message = "Database request timed out"
    elif isinstance(exc, ZeroDBNotFound):
        status_code = status.HTTP_404_NOT_FOUND
        message = "Resource not found"
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        message = "Database error"
    return JSONResponse(
        status_code=status_code,
        content=error_body(message, str(request.url.path), error_code="DATABASE_ERROR"),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with generic error response."""
    logger.exception(f"Unhandled exception on {request.url.path}: {str(exc)}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", str(request.url.path)),
    )


# Health Check Endpoint
@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, Any]:
    """
    Health check endpoint.

    Returns:
        Dictionary with health status, timestamp and socket statistics

    Response Schema:
        {
            "status": "healthy",
            "timestamp": "2024-01-01T00:00:00.000000",
            "environment": "development",
            "websocket": {"total_connections": 0, ...}
        }
    """
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
        "websocket": manager.get_stats(),
    }


# Startup event
@app.on_event("startup")
async def startup_event() -> None:
    """
    Execute tasks on application startup.

    Connects Redis when REDIS_URL is set so that rate limit counters and
    socket presence are shared between instances.
    """
    logger.info("=" * 60)
    logger.info("DotHack Backend API Starting")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"API Version: {settings.API_VERSION}")
    logger.info(f"Log Level: {settings.LOG_LEVEL}")
    logger.info("=" * 60)

    if settings.REDIS_URL:
        await init_redis(settings.REDIS_URL)
    else:
        logger.info("REDIS_URL not set, using in-process rate limits and presence")
    manager.configure_presence(build_presence_registry(get_redis()))
    await manager.presence.start()


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event() -> None:
    """
    Execute cleanup tasks on application shutdown.
    """
    if build_zerodb_client.cache_info().currsize:
        await build_zerodb_client().close()
        build_zerodb_client.cache_clear()
    await manager.presence.close()
    await close_redis()
    logger.info("DotHack Backend API Shutting Down")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
