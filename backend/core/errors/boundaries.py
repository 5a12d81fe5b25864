"""Error Boundary Mappers

Maps exceptions raised below a module boundary (SQLAlchemy, pydantic)
to ``AppError`` values so callers only ever see one error type.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from .types import AppError, ErrorCode, ErrorContext
from .builders import (
    db_connection_failed,
    duplicate_key,
    internal_error,
    state_conflict,
    transaction_failed,
)


class DatabaseErrorMapper:
    """Maps SQLAlchemy exceptions to application errors."""

    def __init__(self, origin: str = "database"):
        self.origin = origin

    def map_exception(self, exc: Exception, *, entity: str = "record", entity_id: object = "unknown") -> AppError:
        if isinstance(exc, StaleDataError):
            # version_id_col mismatch: another writer committed first
            return state_conflict(entity, str(entity_id), "version mismatch", origin=self.origin).error
        if isinstance(exc, IntegrityError):
            return self._map_integrity_error(exc, entity)
        if isinstance(exc, OperationalError):
            return self._map_operational_error(exc)
        if isinstance(exc, SQLAlchemyError):
            return transaction_failed(str(exc), origin=self.origin).error

        return internal_error(
            f"Database error: {exc}",
            origin=self.origin,
            cause=exc,
        ).error

    def _map_integrity_error(self, exc: IntegrityError, entity: str) -> AppError:
        message = str(exc.orig) if exc.orig else str(exc)

        if "unique" in message.lower() or "duplicate key" in message.lower():
            return duplicate_key(entity, "unknown", "unknown", origin=self.origin).error

        return AppError(
            code=ErrorCode.E4013_CHECK_CONSTRAINT,
            message=f"Constraint violation: {message}",
            context=ErrorContext(origin=self.origin),
            cause=exc,
        )

    def _map_operational_error(self, exc: OperationalError) -> AppError:
        message = str(exc.orig) if exc.orig else str(exc)
        if "connect" in message.lower() or "unable to open" in message.lower():
            return db_connection_failed(message, origin=self.origin).error
        return transaction_failed(message, origin=self.origin).error


class ValidationErrorMapper:
    """Maps pydantic validation error dicts to application errors."""

    def __init__(self, origin: str = "validation"):
        self.origin = origin

    def map_pydantic_errors(self, errors: list[dict]) -> list[AppError]:
        result = []
        for err in errors:
            field = ".".join(str(loc) for loc in err.get("loc", []))
            msg = err.get("msg", "Validation error")
            err_type = err.get("type", "value_error")

            code = ErrorCode.E2000_VALIDATION_GENERIC
            if err_type == "missing":
                code = ErrorCode.E2001_REQUIRED_FIELD_MISSING
            elif err_type.startswith(("greater_than", "less_than")):
                code = ErrorCode.E2003_OUT_OF_RANGE
            elif err_type.startswith(("datetime", "date")):
                code = ErrorCode.E2012_INVALID_DATE
            elif err_type.endswith("_type") or err_type.endswith("_parsing"):
                code = ErrorCode.E2004_INVALID_TYPE
            elif err_type in ("enum", "literal_error", "string_too_long", "string_too_short"):
                code = ErrorCode.E2002_INVALID_FORMAT

            result.append(AppError(
                code=code,
                message=f"{field}: {msg}",
                context=ErrorContext(origin=self.origin),
                metadata={"field": field, "error_type": err_type},
            ))

        return result
