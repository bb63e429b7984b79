"""Error handling decorators"""

from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar, cast

from .base import ApplicationError, ErrorLevel
from .error_context import error_context
from .logging import get_logger

logger = get_logger(__name__)
P = ParamSpec("P")
T = TypeVar("T")


def with_error_handling(
    error_level: ErrorLevel = ErrorLevel.ERROR,
    reraise: bool = True,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator logging errors raised by a driver call.

    ApplicationError instances are logged at their own level, anything else
    at ``error_level``.

    Args:
        error_level: Severity for errors that are not ApplicationErrors
        reraise: Whether to re-raise after logging; the call returns None otherwise

    Returns:
        Decorated function with error handling
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                level = e.level if isinstance(e, ApplicationError) else error_level
                with error_context(e, function=func.__qualname__) as ctx:
                    logger.log(
                        level.to_logging_level(),
                        f"Error in {func.__qualname__}: {e!s}",
                        extra={"error_context": ctx.to_dict()},
                        exc_info=True,
                    )
                    if reraise:
                        raise
                return cast("T", None)

        return wrapper

    return decorator
