"""
Top-level exception boundary.

Translates every error raised while handling a request into the uniform
error envelope produced by common.utils.responses.error_response.

Example:
    from fastapi import FastAPI
    from common.utils.handlers import register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)
"""

import logging
from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from common.utils.exceptions import APIException
from common.utils.responses import error_response

logger = logging.getLogger(__name__)


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Flatten pydantic error dicts into field-level entries.

    Args:
        errors: Output of RequestValidationError.errors()

    Returns:
        List of {"field", "message"} dicts
    """
    formatted = []
    for error in errors:
        # Drop the "body"/"query"/"path" prefix from the location
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        formatted.append({
            "field": ".".join(location) or None,
            "message": error.get("msg", "Invalid value"),
        })
    return formatted


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Render an APIException."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.debug(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}")

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.message, code=exc.code, details=exc.details, errors=exc.errors),
        headers=exc.headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (404 route not found, 405, ...)."""
    if isinstance(exc.detail, dict):
        message = exc.detail.get("message", "Request failed")
    else:
        message = str(exc.detail)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(message),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as 400 with field-level errors."""
    errors = format_validation_errors(exc.errors())
    logger.debug(f"{request.method} {request.url.path} validation failed: {errors}")

    return JSONResponse(
        status_code=400,
        content=error_response("Validation failed", code="VALIDATION_ERROR", errors=errors),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for anything not raised as an APIException."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")

    return JSONResponse(
        status_code=500,
        content=error_response("Internal server error", code="INTERNAL_ERROR"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all handlers to the application."""
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
