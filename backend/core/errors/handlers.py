"""FastAPI Exception Handlers

Turns AppErrors, request validation failures and stray exceptions into
the JSON error envelope every endpoint answers with.
"""
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.logging import get_logger

from .boundaries import ValidationErrorMapper
from .types import AppError, ErrorCode, ErrorContext

log = get_logger("errors.handlers")

_validation_mapper = ValidationErrorMapper("request_validation")


class AppErrorException(Exception):
    """Exception wrapper for AppError.

    Raised at the HTTP boundary when a Result comes back as Err.
    """

    def __init__(self, error: AppError):
        self.error = error
        super().__init__(str(error))


def result_to_response(error: AppError) -> JSONResponse:
    """Convert AppError to a JSONResponse and log it."""
    status_code = error.code.http_status

    log_method = log.warning if status_code < 500 else log.error
    log_method(
        "error_response",
        error_code=error.code.name,
        error_code_num=error.code.value,
        message=error.message,
        category=error.code.category,
        correlation_id=error.context.correlation_id,
        origin=error.context.origin,
        metadata=error.metadata,
    )

    return JSONResponse(
        status_code=status_code,
        content=error.to_dict(),
    )


async def app_error_handler(request: Request, exc: AppErrorException) -> JSONResponse:
    error = exc.error.with_context(
        request_id=request.headers.get("X-Request-ID"),
        correlation_id=request.headers.get("X-Correlation-ID") or exc.error.context.correlation_id,
    )
    return result_to_response(error)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle plain HTTP exceptions (unknown routes, bad methods)."""
    status_code = exc.status_code
    code_map = {
        400: ErrorCode.E2000_VALIDATION_GENERIC,
        404: ErrorCode.E4010_NOT_FOUND,
        409: ErrorCode.E5002_STATE_CONFLICT,
        422: ErrorCode.E2000_VALIDATION_GENERIC,
    }

    code = code_map.get(status_code)
    if code is None:
        code = ErrorCode.E9001_UNEXPECTED_ERROR if status_code >= 500 else ErrorCode.E9000_INTERNAL_GENERIC

    error = AppError(
        code=code,
        message=str(exc.detail) if exc.detail else f"HTTP {status_code}",
        context=ErrorContext(
            correlation_id=request.headers.get("X-Correlation-ID", ""),
            origin="http",
        ),
    )

    response = result_to_response(error)
    # Keep the transport status (405 stays 405)
    response.status_code = status_code
    return response


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle pydantic request validation errors with field details."""
    errors = _validation_mapper.map_pydantic_errors(list(exc.errors()))
    first = errors[0] if errors else None

    error = AppError(
        code=first.code if first and len(errors) == 1 else ErrorCode.E2000_VALIDATION_GENERIC,
        message=first.message if first and len(errors) == 1 else f"Validation failed: {len(errors)} errors",
        context=ErrorContext(
            correlation_id=request.headers.get("X-Correlation-ID", ""),
            request_id=request.headers.get("X-Request-ID"),
            origin="request_validation",
        ),
        metadata={
            "error_count": len(errors),
            "errors": [{"message": e.message, "code": e.code.name, **e.metadata} for e in errors],
        },
    )
    return result_to_response(error)


async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Catch-all: log the traceback and answer with an internal error."""
    error = AppError(
        code=ErrorCode.E9001_UNEXPECTED_ERROR,
        message="An unexpected error occurred",
        context=ErrorContext(
            correlation_id=request.headers.get("X-Correlation-ID", ""),
            origin="unhandled",
        ),
        cause=exc,
    )

    log.exception(
        "unhandled_exception",
        error_type=type(exc).__name__,
        error_message=str(exc),
        correlation_id=error.context.correlation_id,
    )

    return result_to_response(error)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppErrorException, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


def raise_error(error: AppError) -> None:
    """Raise AppError as exception.

    Usage:
        if not problem:
            raise_error(not_found("Problem", problem_id).error)
    """
    raise AppErrorException(error)


def raise_result(result) -> None:
    """Raise if Result is Err, otherwise return."""
    if result.is_err():
        raise AppErrorException(result.unwrap_err())
