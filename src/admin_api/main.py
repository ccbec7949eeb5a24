"""FastAPI application entry point.

This module creates and configures the FastAPI application instance with:
- Middleware (CORS, request context, security headers)
- Exception handlers mapping every failure onto the error envelope
- The /api routers (inbox, staff, diploma)
- Health check endpoints (/api/health, /api/ready)
- Startup/shutdown lifecycle (database, status registry)
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from admin_api.api.router import api_router
from admin_api.config import get_settings
from admin_api.database import check_connection, close_db, get_session_context, init_db
from admin_api.exceptions import APIException
from admin_api.middleware import REQUEST_ID_HEADER, setup_middleware
from admin_api.services.status_registry import StatusRegistry
from admin_api.utils.logging import get_logger, get_request_id, log_error, setup_logging

# Set up logging first
setup_logging()
logger = get_logger("main")

settings = get_settings()

_started_at = time.monotonic()


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or get_request_id()


def _envelope(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    detail=None,
) -> JSONResponse:
    error = {"code": code, "message": message, "requestId": _request_id(request)}
    if detail is not None:
        error["detail"] = detail
    return JSONResponse(status_code=status_code, content={"error": error})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Opens the database pool and creates the process-wide status registry on
    startup; closes the pool on shutdown.
    """
    logger.info("Starting admin API...")
    try:
        await init_db()
        logger.info("Database connection initialized successfully")

        app.state.status_registry = StatusRegistry(
            get_session_context,
            ttl_seconds=settings.inbox.status_cache_ttl_seconds,
            initial_code=settings.inbox.initial_status,
        )

        if not settings.auth0.is_configured:
            logger.warning("AUTH0_DOMAIN / AUTH0_AUDIENCE not set - token verification will fail")
        if not settings.resend.is_configured:
            logger.warning("RESEND_API_KEY / RESEND_FROM not set - outgoing email is disabled")

        logger.info("Admin API started successfully")
        yield
    except Exception as e:
        logger.error(f"Failed to start admin API: {e}", exc_info=True)
        raise
    finally:
        logger.info("Shutting down admin API...")
        try:
            await close_db()
            logger.info("Database connection closed successfully")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}", exc_info=True)


app = FastAPI(
    title="Access USA Admin API",
    description="Lead inbox, staff administration and diploma portal APIs.",
    version="0.1.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
    debug=settings.debug,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "inbox", "description": "Unified lead inbox, lead audit trail and replies"},
        {"name": "staff", "description": "Staff listing, invites and role changes"},
        {"name": "diploma", "description": "Diploma portal for students and admins"},
        {"name": "health", "description": "Liveness and readiness checks"},
    ],
)

setup_middleware(app)

app.include_router(api_router, prefix=settings.api_prefix)


# Exception handlers
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Handle custom API exceptions."""
    fields = {"method": request.method, "path": request.url.path, "status_code": exc.status_code, "code": exc.code}
    if exc.status_code >= 500:
        log_error(exc, **fields)
    else:
        logger.warning(f"{exc.code}: {exc.message}", extra=fields)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(_request_id(request)))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions (404, 405, etc.)."""
    logger.warning(
        f"{exc.status_code} {request.method} {request.url.path}",
        extra={"method": request.method, "path": request.url.path, "status_code": exc.status_code},
    )
    return _envelope(request, exc.status_code, "HTTP_ERROR", str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors as 400 BAD_REQUEST."""
    errors = []
    for error in exc.errors():
        errors.append(
            {
                "field": ".".join(str(loc) for loc in error.get("loc", [])),
                "message": error.get("msg"),
                "type": error.get("type"),
            }
        )

    logger.warning(
        f"Validation error on {request.method} {request.url.path}: {len(errors)} field(s)",
        extra={"method": request.method, "path": request.url.path, "code": "BAD_REQUEST"},
    )
    return _envelope(request, status.HTTP_400_BAD_REQUEST, "BAD_REQUEST", "Invalid request", errors)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all other unhandled exceptions.

    Starlette runs this handler outside the user middleware, so the request
    id header is set here as well as in the body.
    """
    log_error(exc, method=request.method, path=request.url.path, code="SERVER_ERROR")

    # Don't expose internal error details in production
    detail = None if settings.is_production else {"exception_type": type(exc).__name__, "message": str(exc)}
    response = _envelope(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "SERVER_ERROR",
        "An internal server error occurred",
        detail,
    )
    request_id = _request_id(request)
    if request_id:
        response.headers[REQUEST_ID_HEADER] = request_id
    return response


@app.get(f"{settings.api_prefix}/health", tags=["health"])
async def health_check(request: Request):
    """Liveness check."""
    return {
        "ok": True,
        "requestId": _request_id(request),
        "uptime_seconds": round(time.monotonic() - _started_at, 3),
        "version": settings.version,
        "environment": settings.environment.value,
    }


@app.get(f"{settings.api_prefix}/ready", tags=["health"])
async def readiness_check(request: Request):
    """Readiness check with database connectivity."""
    db_connected = await check_connection()
    body = {
        "ok": db_connected,
        "requestId": _request_id(request),
        "database": "connected" if db_connected else "disconnected",
    }
    if not db_connected:
        logger.warning("Readiness check failed: database not connected")
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body
