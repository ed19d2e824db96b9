"""
Request tracing middleware.

Every request gets a short id (or keeps the one the app sent in
X-Request-ID). The id is bound into the structlog context so service logs
for the request can be correlated, and is echoed back with the response
time.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from core.logging import bind_context, clear_context, get_logger


logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
RESPONSE_TIME_HEADER = "X-Response-Time"


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """
    Log each request with its id, status and duration.

    Server errors are logged at error level; uploads and AI calls are slow,
    so durations are always included.

    Usage:
        app.add_middleware(RequestTracingMiddleware)
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        bind_context(request_id=request_id, method=request.method, path=request.url.path)

        start = time.perf_counter()
        logger.info("Request started", content_length=request.headers.get("content-length"))

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=_elapsed_ms(start),
            )
            raise
        else:
            duration_ms = _elapsed_ms(start)
            log = logger.error if response.status_code >= 500 else logger.info
            log("Request completed", status_code=response.status_code, duration_ms=duration_ms)

            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers[RESPONSE_TIME_HEADER] = f"{duration_ms:.2f}ms"
            return response
        finally:
            clear_context()
