from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from blogapi.core.exceptions import BaseAPIException
from blogapi.core.logging import LogContext

logger = LogContext(__name__)

# map status codes to error codes for plain HTTP exceptions
STATUS_CODE_MAP = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "UNPROCESSABLE_ENTITY",
    500: "INTERNAL_SERVER_ERROR",
    503: "SERVICE_UNAVAILABLE",
}


def _error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: Any,
    headers: Dict[str, str] | None = None,
    **extra: Any,
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)

    content = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": status_code,
        "error_code": error_code,
        "message": message,
        "path": request.url.path,
        "request_id": request_id,
    }
    content.update({key: value for key, value in extra.items() if value})

    response = JSONResponse(
        status_code=status_code, content=jsonable_encoder(content), headers=headers
    )
    if request_id:
        response.headers["X-Request-ID"] = request_id
    return response


async def api_exception_handler(
    request: Request,
    exc: BaseAPIException,
) -> JSONResponse:
    """Handler for API exceptions"""
    return _error_response(
        request,
        exc.status_code,
        exc.error_code,
        exc.detail,
        headers=getattr(exc, "headers", None),
        additional_info=exc.additional_info,
    )


async def http_exception_handler(
    request: Request,
    exc: HTTPException,
) -> JSONResponse:
    """
    Handler for FastAPI HTTP Exceptions
    """
    error_code = STATUS_CODE_MAP.get(exc.status_code, f"HTTP_ERROR_{exc.status_code}")
    return _error_response(
        request,
        exc.status_code,
        error_code,
        exc.detail,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Handler for request validation errors
    """
    return _error_response(
        request,
        422,
        "VALIDATION_ERROR",
        "Request validation error",
        errors=exc.errors(),
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handler for unexpected exceptions"""
    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "error": str(exc),
            "error_type": exc.__class__.__name__,
        },
        exc_info=True,
    )
    return _error_response(
        request,
        500,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred",
        type=exc.__class__.__name__,
    )


def setup_error_handlers(app: FastAPI) -> None:
    # custom api exceptions
    app.add_exception_handler(BaseAPIException, api_exception_handler)

    # fastapi and starlette http exceptions
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # validation errors
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # catch all for unexpected exceptions
    app.add_exception_handler(Exception, generic_exception_handler)
