from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasktrack.service.responses import ApiResponse, FieldErrorBody
from tasktrack.logging import get_logger

logger = get_logger(__name__)

_STATUS_MESSAGES = {
    400: "Bad request",
    401: "Authentication required",
    403: "Access denied",
    404: "Not found",
    405: "Method not allowed",
    409: "Conflict",
    500: "Internal server error",
}


def _error_response(status_code: int, message: str, field_errors=None) -> JSONResponse:
    envelope = ApiResponse.fail(status_code, message, field_errors)
    return JSONResponse(status_code=status_code, content=envelope.to_wire())


def _field_name(loc: tuple) -> str:
    names = [str(part) for part in loc if part != "body"]
    return names[-1] if names else "body"


def register_exception_handlers(app: FastAPI) -> None:
    """Answer framework-level failures with the same envelope the services use."""

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        field_errors = [
            FieldErrorBody(
                field=_field_name(tuple(err.get("loc", ()))),
                message=err.get("msg", "invalid"),
            )
            for err in exc.errors()
        ]
        logger.info(
            "request_validation_failed",
            path=request.url.path,
            method=request.method,
            fields=[fe.field for fe in field_errors],
        )
        return _error_response(400, "Validation failed", field_errors)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else None
        message = message or _STATUS_MESSAGES.get(exc.status_code, "http error")
        if exc.status_code >= 500:
            logger.error(
                "http_error",
                path=request.url.path,
                method=request.method,
                status_code=exc.status_code,
            )
        return _error_response(exc.status_code, message)

    @app.exception_handler(Exception)
    async def handle_uncaught(request: Request, exc: Exception):
        logger.exception(
            "unhandled_exception",
            exc_info=exc,
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        )
        return _error_response(500, _STATUS_MESSAGES[500])
