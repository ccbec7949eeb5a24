"""HTTP middleware: request context, security headers and CORS."""

import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from admin_api.config import get_settings
from admin_api.utils.logging import get_logger, log_request, set_request_id

logger = get_logger("middleware")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Assign a request id, time the request and log its outcome.

    The id comes from the caller's ``X-Request-ID`` header when present. It
    is stored in the logging context and on ``request.state`` so error
    envelopes can echo it, and returned on every response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        set_request_id(request_id)
        request.state.request_id = request_id
        client_ip = request.client.host if request.client else None
        started = time.perf_counter()

        # Unhandled errors are logged by the app's catch-all handler, outside this middleware
        response = await call_next(request)

        duration_ms = (time.perf_counter() - started) * 1000
        log_request(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
            client_ip=client_ip,
            staff_id=getattr(request.state, "staff_id", None),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = f"{duration_ms:.2f}ms"
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers; HSTS only in production."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        # Admin responses carry contact data
        response.headers.setdefault("Cache-Control", "no-store")
        if get_settings().is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


def setup_middleware(app: FastAPI) -> None:
    """
    Register middleware. Starlette runs the last one added first, so CORS
    answers preflights before anything else and request context wraps the
    security headers.
    """
    cors = get_settings().cors
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors.origins,
        allow_credentials=cors.allow_credentials,
        allow_methods=cors.allow_methods,
        allow_headers=cors.allow_headers,
        expose_headers=cors.expose_headers,
        max_age=cors.max_age,
    )
    logger.info(f"Middleware configured; CORS origins={cors.origins}")
