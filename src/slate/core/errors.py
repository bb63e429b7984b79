"""Specific error types for the query builder."""

from .base import (
    ApplicationError,
    DatabaseErrorDetails,
    ErrorCode,
    ErrorDetails,
    ErrorLevel,
    ValidationErrorDetails,
)


class NotFoundError(ApplicationError):
    """The query ran but its cursor produced no rows."""

    def __init__(self, message: str, details: DatabaseErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.DB_RECORD_NOT_FOUND,
            level=ErrorLevel.WARNING,
            details=details,
        )


class QueryExecutionError(ApplicationError):
    """The datastore failed to execute a query or to stream its cursor."""

    def __init__(self, message: str, details: DatabaseErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.DB_QUERY,
            level=ErrorLevel.ERROR,
            details=details or DatabaseErrorDetails(
                source="arango",
                operation="aql.execute",
                service_name="ArangoDB",
            ),
        )


class DecodingError(ApplicationError):
    """Result documents could not be decoded into the requested shape."""

    def __init__(self, message: str, details: ValidationErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.DB_VALIDATION,
            level=ErrorLevel.ERROR,
            details=details,
        )


class BindVariableCollisionError(ApplicationError):
    """Two builders bound different values under the same bind variable name."""

    def __init__(self, message: str, details: ValidationErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_INPUT,
            level=ErrorLevel.ERROR,
            details=details,
        )


class QueryBuilderError(ApplicationError):
    """A builder was used in a way it cannot support (raw clauses, no executor, ...)."""

    def __init__(self, message: str, details: ErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_REQUEST,
            level=ErrorLevel.ERROR,
            details=details,
        )
