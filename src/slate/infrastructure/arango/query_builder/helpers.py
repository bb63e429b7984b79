"""Helper methods for the AQL query builder.

This module provides convenient helper methods that extend the query builder
with common filter patterns.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from slate.infrastructure.arango.query_builder.state import Operator

if TYPE_CHECKING:
    from slate.infrastructure.arango.query_builder.builder import AQLQueryBuilder


class QueryHelpers:
    """Mixin providing helper methods for common query patterns."""

    def where_key(self: "AQLQueryBuilder", key: str) -> "AQLQueryBuilder":
        """Filter on the document key.

        Args:
            key: Value of ``_key``

        Returns:
            Self for method chaining
        """
        return self.where("_key", Operator.EQ, key)

    def where_in(self: "AQLQueryBuilder", column: str, values: Iterable[Any]) -> "AQLQueryBuilder":
        """Filter on membership in a list of values.

        Args:
            column: Column to compare
            values: Accepted values, bound as a single array

        Returns:
            Self for method chaining
        """
        return self.where(column, Operator.IN, list(values))

    def where_between(
        self: "AQLQueryBuilder",
        column: str,
        low: Any,
        high: Any,
    ) -> "AQLQueryBuilder":
        """Filter on an inclusive range.

        Args:
            column: Column to compare
            low: Lower bound
            high: Upper bound

        Returns:
            Self for method chaining
        """
        return self.where(column, Operator.GTE, low).where(column, Operator.LTE, high)
