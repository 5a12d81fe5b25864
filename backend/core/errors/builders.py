"""Error Builders

Constructors for the typed errors the tracker raises. Each builder
returns an ``Err`` wrapping an ``AppError`` with the right code.
"""
from uuid import UUID

from .types import AppError, ErrorCode, ErrorContext, Err


# =============================================================================
# Validation Errors (E2xxx)
# =============================================================================

def validation_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E2000_VALIDATION_GENERIC,
    field: str | None = None,
    value: str | None = None,
    origin: str = "",
    **metadata,
) -> Err[AppError]:
    meta = {"field": field, "value": value, **metadata}
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata={k: v for k, v in meta.items() if v is not None},
    ))


def invalid_format(
    field: str, expected: str, got: str | None = None, origin: str = ""
) -> Err[AppError]:
    msg = f"Invalid format for '{field}': expected {expected}"
    if got:
        msg += f", got '{got}'"
    return validation_error(
        msg,
        code=ErrorCode.E2002_INVALID_FORMAT,
        field=field,
        expected=expected,
        origin=origin,
    )


def out_of_range(
    field: str,
    value: int | float,
    min_val: int | float | None = None,
    max_val: int | float | None = None,
    origin: str = "",
) -> Err[AppError]:
    bounds = []
    if min_val is not None:
        bounds.append(f">= {min_val}")
    if max_val is not None:
        bounds.append(f"<= {max_val}")
    return validation_error(
        f"Value {value} for '{field}' out of range ({', '.join(bounds)})",
        code=ErrorCode.E2003_OUT_OF_RANGE,
        field=field,
        value=str(value),
        min=min_val,
        max=max_val,
        origin=origin,
    )


def invalid_date(field: str, value: object, origin: str = "") -> Err[AppError]:
    return validation_error(
        f"'{field}' is not a valid ISO-8601 timestamp: {value!r}",
        code=ErrorCode.E2012_INVALID_DATE,
        field=field,
        value=str(value),
        origin=origin,
    )


# =============================================================================
# Database Errors (E4xxx)
# =============================================================================

def db_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E4000_DATABASE_GENERIC,
    table: str | None = None,
    origin: str = "",
    cause: Exception | None = None,
    **metadata,
) -> Err[AppError]:
    meta = {"table": table, **metadata}
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata={k: v for k, v in meta.items() if v is not None},
        cause=cause,
    ))


def not_found(
    entity: str,
    id: str | UUID | None = None,
    origin: str = "",
) -> Err[AppError]:
    msg = f"{entity} not found"
    if id:
        msg += f": {id}"
    return db_error(
        msg,
        code=ErrorCode.E4010_NOT_FOUND,
        entity=entity,
        entity_id=str(id) if id else None,
        origin=origin,
    )


def duplicate_key(entity: str, field: str, value: str, origin: str = "") -> Err[AppError]:
    return db_error(
        f"{entity} with {field}='{value}' already exists",
        code=ErrorCode.E4011_DUPLICATE_KEY,
        entity=entity,
        field=field,
        origin=origin,
    )


def db_connection_failed(reason: str = "", origin: str = "") -> Err[AppError]:
    msg = "Database connection failed"
    if reason:
        msg += f": {reason}"
    return db_error(msg, code=ErrorCode.E4001_CONNECTION_FAILED, origin=origin)


def transaction_failed(reason: str = "", origin: str = "") -> Err[AppError]:
    msg = "Database transaction failed"
    if reason:
        msg += f": {reason}"
    return db_error(msg, code=ErrorCode.E4003_TRANSACTION_FAILED, origin=origin)


# =============================================================================
# Business Logic Errors (E5xxx)
# =============================================================================

def business_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E5000_BUSINESS_GENERIC,
    origin: str = "",
    **metadata,
) -> Err[AppError]:
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata=metadata,
    ))


def state_conflict(entity: str, entity_id: str | UUID, reason: str = "", origin: str = "") -> Err[AppError]:
    msg = f"{entity} {entity_id} was modified concurrently"
    if reason:
        msg += f": {reason}"
    return business_error(
        msg,
        code=ErrorCode.E5002_STATE_CONFLICT,
        entity=entity,
        entity_id=str(entity_id),
        origin=origin,
    )


def inconsistent_state(
    entity: str,
    invariant: str,
    origin: str = "",
    **metadata,
) -> Err[AppError]:
    return business_error(
        f"{entity} violates invariant: {invariant}",
        code=ErrorCode.E5004_INVARIANT_VIOLATED,
        entity=entity,
        invariant=invariant,
        origin=origin,
        **metadata,
    )


# =============================================================================
# Internal Errors (E9xxx)
# =============================================================================

def internal_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E9001_UNEXPECTED_ERROR,
    origin: str = "",
    cause: Exception | None = None,
    **metadata,
) -> Err[AppError]:
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata=metadata,
        cause=cause,
    ))
