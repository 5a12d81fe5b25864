"""Result-based Error Handling

- Result[T, E]: Ok/Err container returned by engines
- AppError: error value with code, message, context and metadata
- ErrorCode: taxonomy mapped to HTTP status at the API boundary
- Builder functions: one per error the tracker can produce

Usage:
    from core.errors import Ok, Result, AppError, out_of_range

    def validate_minutes(minutes: int) -> Result[int, AppError]:
        if minutes < 1:
            return out_of_range("time_taken", minutes, 1, origin="scheduler")
        return Ok(minutes)

    match validate_minutes(5):
        case Ok(value):
            ...
        case Err(error):
            log.warning(error.message, code=error.code.name)
"""
from .types import (
    Result,
    Ok,
    Err,
    AppError,
    ErrorCode,
    ErrorContext,
)

from .builders import (
    # Validation (E2xxx)
    validation_error,
    invalid_format,
    out_of_range,
    invalid_date,
    # Database (E4xxx)
    db_error,
    not_found,
    duplicate_key,
    db_connection_failed,
    transaction_failed,
    # Business (E5xxx)
    business_error,
    state_conflict,
    inconsistent_state,
    # Internal (E9xxx)
    internal_error,
)

from .boundaries import (
    DatabaseErrorMapper,
    ValidationErrorMapper,
)

from .handlers import (
    AppErrorException,
    register_error_handlers,
    result_to_response,
    raise_error,
    raise_result,
)

__all__ = [
    "Result",
    "Ok",
    "Err",
    "AppError",
    "ErrorCode",
    "ErrorContext",
    "validation_error",
    "invalid_format",
    "out_of_range",
    "invalid_date",
    "db_error",
    "not_found",
    "duplicate_key",
    "db_connection_failed",
    "transaction_failed",
    "business_error",
    "state_conflict",
    "inconsistent_state",
    "internal_error",
    "DatabaseErrorMapper",
    "ValidationErrorMapper",
    "AppErrorException",
    "register_error_handlers",
    "result_to_response",
    "raise_error",
    "raise_result",
]
