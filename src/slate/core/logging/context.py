"""Logging context utilities.

Context lives in structlog's contextvars, so every logger configured by
``setup_logging``, stdlib loggers included, picks it up through the
``merge_contextvars`` processor.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog


def get_log_context() -> dict[str, Any]:
    """Copy of the context bound to the current execution context."""
    return dict(structlog.contextvars.get_contextvars())


def set_log_context(context: dict[str, Any]) -> None:
    """Replace the whole logging context."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**context)


def update_log_context(key: str, value: Any) -> None:
    structlog.contextvars.bind_contextvars(**{key: value})


def clear_log_context() -> None:
    structlog.contextvars.clear_contextvars()


@contextmanager
def log_context(**context: Any) -> Iterator[None]:
    """Bind ``context`` for the duration of a ``with`` block.

    Keys bound before the block are restored on exit.

    Example:
        ```python
        with log_context(collection="users"):
            logger.debug("Executing AQL query")
        ```
    """
    with structlog.contextvars.bound_contextvars(**context):
        yield
