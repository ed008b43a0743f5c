"""Error types and FastAPI exception handlers producing the JSON error envelope.

Every failure response looks like ``{"success": false, "error": "..."}``;
validation failures add ``details: [{field, message}]``.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.bugs.store import ForbiddenOperationError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """An expected, per-request failure with an HTTP status code."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.status = "fail" if 400 <= status_code < 500 else "error"
        self.is_operational = True


class ValidationFailedError(AppError):
    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__("Validation failed", 400)
        self.details = [{"field": field, "message": message} for field, message in errors.items()]


def error_body(message: str, details: list[dict[str, str]] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": message}
    if details is not None:
        body["details"] = details
    return body


def _location_to_field(loc: tuple[Any, ...]) -> str:
    # ("query", "limit") -> "limit"; ("body", "tags", 0) -> "tags.0"
    parts = [str(p) for p in loc if p not in ("query", "body", "path", "header")]
    return ".".join(parts) or "request"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    details = exc.details if isinstance(exc, ValidationFailedError) else None
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, details))


async def forbidden_handler(request: Request, exc: ForbiddenOperationError) -> JSONResponse:
    logger.warning("Forbidden operation %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=403, content=error_body(str(exc)))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [{"field": _location_to_field(tuple(e["loc"])), "message": e["msg"]} for e in exc.errors()]
    return JSONResponse(status_code=400, content=error_body("Validation failed", details))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        message = f"Not found - {request.url.path}"
    else:
        message = str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=error_body(message), headers=exc.headers)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)  # pyright: ignore[reportArgumentType]
    app.add_exception_handler(ForbiddenOperationError, forbidden_handler)  # pyright: ignore[reportArgumentType]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # pyright: ignore[reportArgumentType]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # pyright: ignore[reportArgumentType]
    app.add_exception_handler(Exception, unhandled_exception_handler)
