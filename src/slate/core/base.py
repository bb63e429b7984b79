"""Error model shared by the builder, the decoder and the driver.

Every error raised by slate is an ``ApplicationError`` carrying a code, a
severity and a pydantic details model, so it can be logged as structured
data and shipped to Logfire without string parsing.
"""

import logging
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from logfire.integrations.pydantic import PluginSettings
from pydantic import BaseModel, Field, field_serializer


class ErrorLevel(str, Enum):
    """Severity an error is logged with."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    def to_logging_level(self) -> int:
        return logging.getLevelNamesMapping()[self.name]


class ErrorCode(str, Enum):
    # Usage errors (1xxx)
    UNKNOWN = "1000"
    INVALID_REQUEST = "1001"
    INVALID_INPUT = "1002"
    CONFIG_INVALID = "1005"

    # Datastore errors (3xxx)
    DB_CONNECTION = "3001"
    DB_QUERY = "3002"
    DB_VALIDATION = "3003"
    DB_RECORD_NOT_FOUND = "3004"


class ErrorDetails(BaseModel, plugin_settings=PluginSettings(logfire={"record": "all"})):
    """Where an error happened."""

    source: str = Field(description="Module that raised the error")
    operation: str = Field(description="Builder or driver operation that failed")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_serializer("timestamp")
    def serialize_timestamp(self, timestamp: datetime) -> str:
        return timestamp.isoformat()


class ValidationErrorDetails(ErrorDetails):
    """Details for values that could not be bound or decoded."""

    field: str | None = Field(None, description="Bind variable or document field at fault")
    actual_value: Any = Field(None, description="Offending value")
    expected_type: str | None = Field(None, description="Type the value was decoded into")
    constraint: str | None = Field(None, description="Validation message")


class ServiceErrorDetails(ErrorDetails):
    """Details for failures talking to a remote service."""

    service_name: str
    endpoint: str | None = Field(None, description="HTTP method and path called")
    status_code: int | None = Field(None, description="HTTP status code, None on transport errors")


class DatabaseErrorDetails(ServiceErrorDetails):
    """Details for a query that failed or found nothing.

    Only bind variable names are recorded, values may be sensitive.
    """

    query_type: str | None = Field(None, description="get, count or the cursor operation")
    collection: str | None = None
    query: str | None = Field(None, description="Rendered AQL text")
    bind_vars: list[str] = Field(default_factory=list, description="Names of the bind variables sent")


class ApplicationError(Exception):
    """Base class for all slate errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        level: ErrorLevel = ErrorLevel.ERROR,
        details: ErrorDetails | dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.level = level

        if details is None:
            details = ErrorDetails(source="unknown", operation="unknown")
        elif isinstance(details, dict):
            fields = {"source": "unknown", "operation": "unknown", **details}
            details = ErrorDetails(**fields)
        self.details = details

        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Structured form used when logging the error."""
        return {
            "code": self.code.value,
            "level": self.level.value,
            "message": self.message,
            "details": self.details.model_dump(exclude_none=True),
        }
