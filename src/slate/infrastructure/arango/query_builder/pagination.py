"""Pagination mixin for the AQL query builder.

This module provides a separate mixin for pagination operations
to keep the core query builder clean.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from slate.infrastructure.arango.query_builder.builder import AQLQueryBuilder


class PaginationMixin:
    """Mixin adding ``LIMIT offset,count`` support to query builders.

    The limit clause is only rendered once a positive limit is set; an offset
    on its own has no effect.
    """

    def offset(self: "AQLQueryBuilder", offset: int) -> "AQLQueryBuilder":
        """Set the number of documents to skip.

        Args:
            offset: Number of results to skip

        Returns:
            Self for method chaining
        """
        if offset < 0:
            raise ValueError("Offset must be greater than or equal to 0")

        self._editable().offset = offset
        return self

    def limit(self: "AQLQueryBuilder", limit: int) -> "AQLQueryBuilder":
        """Set the maximum number of documents returned.

        Args:
            limit: Maximum number of results, 0 removes the limit

        Returns:
            Self for method chaining
        """
        if limit < 0:
            raise ValueError("Limit must be greater than or equal to 0")

        self._editable().limit = limit
        return self

    def paginate(self: "AQLQueryBuilder", page: int, page_size: int) -> "AQLQueryBuilder":
        """Set offset and limit from a page number and size.

        Args:
            page: Page number (1-based)
            page_size: Number of items per page

        Returns:
            Self for method chaining
        """
        if page < 1:
            raise ValueError("Page number must be greater than or equal to 1")

        if page_size < 1:
            raise ValueError("Page size must be greater than or equal to 1")

        return self.offset((page - 1) * page_size).limit(page_size)
