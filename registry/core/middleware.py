"""
Middleware configuration for the application.
Request ids come from asgi-correlation-id; every request is timed and logged.
"""

import time
from typing import Callable

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

# Image serving and health probes run constantly; they are logged at debug
QUIET_PREFIXES = ("/api/uploads/passports/", "/api/uploads/signatures/", "/api/health")


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request once it finishes, with status and timing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Request failed",
                method=request.method,
                path=path,
                process_time_ms=_elapsed_ms(start),
            )
            raise

        elapsed = _elapsed_ms(start)
        response.headers["X-Process-Time"] = str(elapsed)

        if response.status_code >= 500:
            log = logger.error
        elif response.status_code >= 400:
            log = logger.warning
        elif path.startswith(QUIET_PREFIXES):
            log = logger.debug
        else:
            log = logger.info

        log(
            "Request completed",
            method=request.method,
            path=path,
            status_code=response.status_code,
            process_time_ms=elapsed,
            client_ip=request.client.host if request.client else "unknown",
        )
        return response


def setup_middleware(app):
    """Setup all middleware for the application."""
    # Added last so it runs first: the request id must exist before anything logs
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name="X-Request-ID",
        update_request_header=True,
    )
