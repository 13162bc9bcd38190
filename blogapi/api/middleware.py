import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from blogapi.core.logging import (
    LogContext,
    add_correlation_id,
    reset_correlation_context,
    set_request_id,
)
from blogapi.core.metrics import (
    active_requests,
    http_request_duration,
    http_requests_total,
)

logger = LogContext(__name__)

NUMERIC_SEGMENT = re.compile(r"^\d+$")
REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assign every request an id and seed the logging correlation context

    An incoming X-Request-ID header is reused, otherwise a new id is
    generated. The id is stored on ``request.state`` and echoed in the
    response headers.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        reset_correlation_context()

        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        set_request_id(request_id)

        add_correlation_id("method", request.method)
        add_correlation_id("path", request.url.path)
        add_correlation_id(
            "client_ip", request.client.host if request.client else "unknown"
        )

        start_time = time.time()
        logger.info(f"Request received: {request.method} {request.url.path}")

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            add_correlation_id("duration_ms", round(duration_ms, 2))
            logger.exception(f"Unhandled exception in request processing: {str(e)}")
            raise

        duration_ms = (time.time() - start_time) * 1000
        add_correlation_id("status_code", response.status_code)
        add_correlation_id("duration_ms", round(duration_ms, 2))

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            f"Request completed: {request.method} {request.url.path} - "
            f"{response.status_code} in {duration_ms:.2f}ms"
        )
        return response


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware for collecting Prometheus metrics for HTTP requests

    Tracks request counts by method, endpoint and status code, request
    duration and the number of requests in flight.
    """

    async def dispatch(self, request: Request, call_next):
        if request.url.path == "/metrics":
            return await call_next(request)

        active_requests.inc()
        start_time = time.time()
        endpoint = normalize_path(request.url.path)

        try:
            response = await call_next(request)
        except Exception as e:
            http_requests_total.labels(
                method=request.method, endpoint=endpoint, status_code=500
            ).inc()
            logger.error(
                "Request error in PrometheusMiddleware",
                extra={
                    "error": str(e),
                    "error_type": e.__class__.__name__,
                    "path": request.url.path,
                    "method": request.method,
                },
            )
            raise
        finally:
            active_requests.dec()

        http_request_duration.labels(method=request.method, endpoint=endpoint).observe(
            time.time() - start_time
        )
        http_requests_total.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()
        return response


def normalize_path(path: str) -> str:
    """
    Replace numeric path segments with ``{id}`` to keep metric labels bounded

    ``/api/articles/12/delete`` becomes ``/api/articles/{id}/delete``.
    """
    return "/".join(
        "{id}" if NUMERIC_SEGMENT.match(part) else part for part in path.split("/")
    )
