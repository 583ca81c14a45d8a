"""Maps domain and validation exceptions onto the JSON error envelope.

Every error body has the shape::

    {"error": {"code": ..., "message": ..., "details": ..., "correlationId": ...}}
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.domain.exceptions import (
    AuthenticationRequiredError,
    ExportFormatNotImplementedError,
    PermissionDeniedError,
    SearchError,
    SearchExecutionError,
    SearchValidationError,
    UrlTooLongError,
)

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# most specific first
_STATUS_CODES: tuple[tuple[type[SearchError], int], ...] = (
    (UrlTooLongError, 414),
    (SearchValidationError, 400),
    (AuthenticationRequiredError, 401),
    (PermissionDeniedError, 403),
    (ExportFormatNotImplementedError, 501),
    (SearchExecutionError, 500),
)


def get_correlation_id(request: Request) -> str:
    correlation_id = getattr(request.state, "correlation_id", None)
    if correlation_id is None:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
    return correlation_id


async def correlation_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Reuse the caller's correlation id or mint one, and echo it back."""
    correlation_id = get_correlation_id(request)
    response = await call_next(request)
    response.headers[CORRELATION_HEADER] = correlation_id
    return response


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
) -> JSONResponse:
    error: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = jsonable_encoder(details)
    error["correlationId"] = get_correlation_id(request)
    return JSONResponse(status_code=status_code, content={"error": error})


def _status_for(exc: SearchError) -> int:
    for exc_type, status_code in _STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return 500


async def search_error_handler(request: Request, exc: SearchError) -> JSONResponse:
    status_code = _status_for(exc)
    if status_code >= 500 and status_code != 501:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.code)
    return error_response(request, status_code, exc.code, exc.message, exc.details)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return error_response(
        request, 400, "VALIDATION_ERROR", "Invalid search request", exc.errors()
    )


async def pydantic_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return error_response(
        request,
        400,
        "VALIDATION_ERROR",
        "Invalid search parameters",
        exc.errors(include_url=False, include_context=False),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SearchError, search_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, pydantic_validation_handler)
