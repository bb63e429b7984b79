"""Error context captured when a driver call fails."""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from .base import ApplicationError
from .logging import get_log_context, get_logger

logger = get_logger(__name__)


class ErrorContext:
    """Snapshot of an error together with the log context it happened in.

    The trace id ties the log line to whatever the caller reports upstream.
    """

    def __init__(self, error: Exception, trace_id: str | None = None, **context: Any):
        self.error = error
        self.trace_id = trace_id or uuid4().hex
        self.timestamp = datetime.now(UTC)
        self.context = {**get_log_context(), **context}

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "trace_id": self.trace_id,
            "timestamp": self.timestamp.isoformat(),
            "error_type": type(self.error).__name__,
        }

        if isinstance(self.error, ApplicationError):
            result.update(self.error.to_dict())
        else:
            result["message"] = str(self.error)

        if self.context:
            result["context"] = dict(self.context)
        return result


@contextmanager
def error_context(error: Exception, **context: Any) -> Iterator[ErrorContext]:
    """Capture ``error`` for the duration of a ``with`` block.

    Failures raised while handling the error are logged and re-raised.
    """
    captured = ErrorContext(error, **context)
    try:
        yield captured
    except Exception as e:
        if e is not error:
            logger.exception(
                "Exception during error handling",
                extra={"trace_id": captured.trace_id, "original_error": type(error).__name__},
            )
        raise
