"""Bind variable naming and merging.

Every value a builder filters on is sent out-of-band as a bind variable.
Names are derived from the builder alias and the filtered column so the
rendered query stays readable, and suffixed with a running count so that
repeated filters on one column never collide.
"""

import re
from collections.abc import Mapping
from typing import Any

from slate.core.base import ValidationErrorDetails
from slate.core.errors import BindVariableCollisionError
from slate.core.logging import get_logger

logger = get_logger(__name__)

AGGREGATES: tuple[str, ...] = ("COUNT", "SUM")

_NAME_REPLACEMENTS = str.maketrans({"(": "_", ")": None, ".": "_"})
_INVALID_NAME_CHARS = re.compile(r"[^A-Za-z0-9_]")


def is_aggregate(column: str) -> bool:
    """Check whether ``column`` is an aggregate expression such as ``COUNT(x)``."""
    lowered = column.lower()
    return any(aggregate.lower() in lowered for aggregate in AGGREGATES)


def is_qualified(column: str) -> bool:
    """Check whether ``column`` already names its document (``posts.title``)."""
    return "." in column


def qualify(alias: str, column: str) -> str:
    """Prefix ``column`` with ``alias`` unless it is qualified or an aggregate."""
    if is_qualified(column) or is_aggregate(column):
        return column
    return f"{alias}.{column}"


def sanitize(name: str) -> str:
    """Turn ``alias_column`` into a valid bind parameter identifier.

    Example:
        >>> sanitize("users_COUNT(posts.id)")
        'users_COUNT_posts_id'
    """
    return _INVALID_NAME_CHARS.sub("_", name.translate(_NAME_REPLACEMENTS))


def bind_name(alias: str, column: str, existing: Mapping[str, Any]) -> str:
    """Generate a bind variable name not yet present in ``existing``.

    Args:
        alias: Loop variable of the builder registering the argument
        column: Column (or expression) being filtered
        existing: Arguments already registered on the builder

    Returns:
        ``<sanitized alias_column><n>`` where ``n`` starts at ``len(existing) + 1``
    """
    base = sanitize(f"{alias}_{column}")
    suffix = len(existing) + 1
    while f"{base}{suffix}" in existing:
        suffix += 1
    return f"{base}{suffix}"


def merge_arguments(parent: Mapping[str, Any], child: Mapping[str, Any]) -> dict[str, Any]:
    """Merge a nested builder's arguments into its parent's.

    A name bound on both sides to the same value is shared; a name bound to
    two different values would silently change the meaning of one of the
    filters, so it is rejected.

    Raises:
        BindVariableCollisionError: If ``child`` rebinds a parent name to another value
    """
    merged = dict(parent)
    for name, value in child.items():
        if name in merged and merged[name] != value:
            logger.warning(
                "Bind variable collision while merging nested query",
                extra={"bind_var": name},
            )
            raise BindVariableCollisionError(
                f"Bind variable @{name} is already bound to a different value",
                details=ValidationErrorDetails(
                    source=__name__,
                    operation="merge_arguments",
                    field=name,
                    constraint="nested query bind variables must not rebind parent names",
                ),
            )
        merged[name] = value
    return merged
