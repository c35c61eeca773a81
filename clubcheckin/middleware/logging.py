"""Request logging middleware."""
import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from clubcheckin.core.logging_config import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Polled by load balancers; logged at debug so they don't drown out traffic
QUIET_PATHS = {"/health"}


class LoggingMiddleware(BaseHTTPMiddleware):
    """Tag each HTTP request with an id and log its outcome and duration.

    WebSocket connections bypass BaseHTTPMiddleware; the realtime
    endpoint logs its own connect/disconnect events.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_host=request.client.host if request.client else None,
        )

        log = logger.debug if request.url.path in QUIET_PATHS else logger.info
        started = time.perf_counter()
        log("request_started")

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                exception_type=type(exc).__name__,
                duration_ms=_elapsed_ms(started),
                exc_info=True,
            )
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        log(
            "request_completed",
            status_code=response.status_code,
            duration_ms=_elapsed_ms(started),
        )
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
