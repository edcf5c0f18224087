from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from resto_admin.services.columns import TableConfigError
from resto_admin.services.dynamic_filters import FilterValidationError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A failed call to the restaurant REST API."""

    def __init__(self, message: str | None, *, status_code: int | None = None, payload: Any = None):
        super().__init__(message or "Request failed")
        self.message = message
        self.status_code = status_code
        self.payload = payload


@dataclass(frozen=True)
class Notice:
    """A toast shown to the operator."""

    level: Literal["success", "error"]
    title: str
    message: str


def error_message(exc: BaseException | None, fallback: str) -> str:
    """Prefer the server's message; otherwise fall back to a generic string."""
    if isinstance(exc, ApiError) and exc.message and exc.message.strip():
        return exc.message.strip()
    return fallback


def error_notice(exc: BaseException | None, fallback: str) -> Notice:
    return Notice(level="error", title="Error", message=error_message(exc, fallback))


def _error_payload(code: str, message: str, details: object, request_id: str | None):
    return {"code": code, "message": message, "details": details, "request_id": request_id}


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id") or "unknown"


def register_error_handlers(app) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return _http_error(request, exc.status_code, exc.detail)

    @app.exception_handler(StarletteHTTPException)
    async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail if getattr(exc, "detail", None) is not None else "Request failed"
        return _http_error(request, exc.status_code, detail)

    @app.exception_handler(FilterValidationError)
    async def filter_validation_handler(request: Request, exc: FilterValidationError):
        return JSONResponse(
            status_code=400,
            content=_error_payload("invalid_filter", str(exc), None, _request_id(request)),
        )

    @app.exception_handler(TableConfigError)
    async def table_config_handler(request: Request, exc: TableConfigError):
        return JSONResponse(
            status_code=400,
            content=_error_payload("invalid_table_config", str(exc), None, _request_id(request)),
        )

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        logger.warning("Upstream API error on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=502,
            content=_error_payload(
                "upstream_error",
                error_message(exc, "Upstream request failed"),
                {"status_code": exc.status_code},
                _request_id(request),
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            error_copy = dict(error)
            error_copy.pop("ctx", None)
            if "input" in error_copy and not isinstance(
                error_copy["input"], (str, int, float, bool, type(None))
            ):
                error_copy["input"] = str(error_copy["input"])
            errors.append(error_copy)
        return JSONResponse(
            status_code=422,
            content=_error_payload(
                "validation_error", "Validation error", errors, _request_id(request)
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled exception on %s %s",
            request.method,
            request.url.path,
            extra={"request_id": _request_id(request)},
        )
        return JSONResponse(
            status_code=500,
            content=_error_payload(
                "internal_error", "Internal server error", None, _request_id(request)
            ),
        )


def _http_error(request: Request, status_code: int, detail: object) -> JSONResponse:
    code = f"http_{status_code}"
    message = "Request failed"
    details = None
    if isinstance(detail, dict):
        code = detail.get("code", code)
        message = detail.get("message", message)
        details = detail.get("details")
    elif isinstance(detail, str):
        message = detail
    else:
        details = detail
    return JSONResponse(
        status_code=status_code,
        content=_error_payload(code, message, details, _request_id(request)),
    )
