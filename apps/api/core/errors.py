"""RFC 7807 Problem Details error handling.

Provides centralized exception handlers and the API's exception classes.
All errors return a consistent JSON format:

    {
        "type": "about:blank",
        "title": "Bad Gateway",
        "status": 502,
        "detail": "Duplicate check failed: connection reset",
        "instance": "/api/v1/statements/save"
    }

Record store failures raised by the statement engine (``StoreError`` and
its ``DuplicateCheckError`` subclass) are reported as 502.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from packages.statement_engine.store import StoreError

logger = structlog.get_logger()


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str, status_code: int = 500, error_type: str = "about:blank"):
        self.detail = detail
        self.status_code = status_code
        self.error_type = error_type
        super().__init__(detail)


class NotFoundError(AppError):
    """Resource not found."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(detail=detail, status_code=404)


class ValidationError(AppError):
    """Request validation failed."""

    def __init__(self, detail: str = "Validation failed"):
        super().__init__(detail=detail, status_code=422)


class AuthenticationError(AppError):
    """Authentication failed."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(detail=detail, status_code=401)


class UpstreamError(AppError):
    """The record store or customer directory backend failed."""

    def __init__(self, detail: str = "Upstream service unavailable"):
        super().__init__(detail=detail, status_code=502)


def _build_problem_detail(
    status: int,
    title: str,
    detail: str,
    error_type: str = "about:blank",
    instance: str = "",
    request_id: str = "",
) -> dict:
    """Build RFC 7807 Problem Details response body."""
    body = {
        "type": error_type,
        "title": title,
        "status": status,
        "detail": detail,
    }
    if instance:
        body["instance"] = instance
    if request_id:
        body["request_id"] = request_id
    return body


_STATUS_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    413: "Payload Too Large",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


def _problem_response(request: Request, status: int, detail: str, error_type: str = "about:blank"):
    body = _build_problem_detail(
        status=status,
        title=_STATUS_TITLES.get(status, "Error"),
        detail=detail,
        error_type=error_type,
        instance=str(request.url.path),
        request_id=getattr(request.state, "request_id", ""),
    )
    return JSONResponse(status_code=status, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return _problem_response(request, exc.status_code, exc.detail, exc.error_type)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        logger.error("record_store_failed", path=request.url.path, error=str(exc))
        return _problem_response(request, 502, str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return _problem_response(request, exc.status_code, detail)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error", path=request.url.path)
        return _problem_response(request, 500, "An unexpected error occurred")
