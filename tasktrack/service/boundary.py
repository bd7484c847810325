from __future__ import annotations

import functools
import inspect
from typing import Any, Callable

from tasktrack.service.responses import ApiResponse, FieldErrorBody
from tasktrack.logging import get_logger
from tasktrack.service.errors import ServiceError, ValidationError
from tasktrack.storage.errors import ConstraintViolation

logger = get_logger(__name__)


def _failure_response(operation: str, exc: Exception, failure_message: str) -> ApiResponse:
    if isinstance(exc, ServiceError):
        log_fn = logger.error if exc.status_code >= 500 else logger.info
        log_fn(
            "service_error",
            operation=operation,
            status_code=exc.status_code,
            error_code=exc.error_code,
            message=exc.message,
        )
        field_errors = None
        if isinstance(exc, ValidationError) and exc.field_errors:
            field_errors = [
                FieldErrorBody(field=err.field, message=err.message)
                for err in exc.field_errors
            ]
        return ApiResponse.fail(exc.status_code, exc.message, field_errors)
    if isinstance(exc, ConstraintViolation):
        logger.warning(
            "constraint_violation",
            operation=operation,
            message=exc.message,
            detail=exc.detail,
        )
        return ApiResponse.fail(409, exc.message)
    logger.exception(
        "service_unhandled_exception",
        exc_info=exc,
        operation=operation,
        error_type=type(exc).__name__,
    )
    return ApiResponse.fail(500, failure_message)


def service_boundary(
    success_status: int = 200, failure_message: str = "Internal server error"
) -> Callable:
    """Turn a service method's return value or exception into an ``ApiResponse``.

    ``ServiceError`` keeps its status and message; anything unexpected is
    logged and answered with ``failure_message`` and a 500, so internals never
    reach the caller.
    """

    def decorator(fn: Callable) -> Callable:
        operation = fn.__name__

        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> ApiResponse:
                try:
                    data = await fn(*args, **kwargs)
                except Exception as exc:
                    return _failure_response(operation, exc, failure_message)
                return ApiResponse.ok(data, success_status)

            return async_wrapper

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> ApiResponse:
            try:
                data = fn(*args, **kwargs)
            except Exception as exc:
                return _failure_response(operation, exc, failure_message)
            return ApiResponse.ok(data, success_status)

        return wrapper

    return decorator
