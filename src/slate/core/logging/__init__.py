"""Structured logging with structlog, forwarded to Logfire."""

from .base import get_logger
from .context import (
    clear_log_context,
    get_log_context,
    log_context,
    set_log_context,
    update_log_context,
)
from .setup import setup_logging

__all__ = [
    # Context management
    "clear_log_context",
    "get_log_context",
    "log_context",
    "set_log_context",
    "update_log_context",
    # Setup
    "get_logger",
    "setup_logging",
]
