"""Logger access shared by the logging modules."""

import structlog
from structlog.typing import FilteringBoundLogger

LOG_LEVEL = "INFO"


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Get a structlog logger named after the calling module.

    Loggers obtained before ``setup_logging`` runs pick up its
    configuration on first use.
    """
    return structlog.get_logger(name)
